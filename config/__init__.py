"""Configuration management for the ZK multisig."""

from .config import SystemConfig, MultisigConfig, VerifierConfig, ConfigError, load_config, save_config

__all__ = ['SystemConfig', 'MultisigConfig', 'VerifierConfig', 'ConfigError', 'load_config', 'save_config']
