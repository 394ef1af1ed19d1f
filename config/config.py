import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from multisig.proposals import PRECISION, percent

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration file is malformed"""
    pass


@dataclass
class VerifierConfig:
    backend: str = "reference"  # reference | groth16
    snarkjs_bin: str = "snarkjs"
    creation_vkey: Path = field(default_factory=lambda: Path("circuits/build/proposal_creation_vkey.json"))
    voting_vkey: Path = field(default_factory=lambda: Path("circuits/build/voting_vkey.json"))
    timeout: int = 60

    def __post_init__(self):
        self.creation_vkey = Path(self.creation_vkey)
        self.voting_vkey = Path(self.voting_vkey)
        if self.backend not in ("reference", "groth16"):
            raise ConfigError(f"Unknown verifier backend: {self.backend}")


@dataclass
class MultisigConfig:
    chain_id: int = 1
    quorum_percentage: int = field(default_factory=lambda: percent(80))
    proof_size: int = 40

    def __post_init__(self):
        if self.proof_size <= 0 or self.proof_size % 2 != 0:
            raise ConfigError(f"proof_size must be a positive even number, got {self.proof_size}")


@dataclass
class SystemConfig:
    multisig_config: MultisigConfig = field(default_factory=MultisigConfig)
    verifier_config: VerifierConfig = field(default_factory=VerifierConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    enable_benchmarking: bool = True
    enable_debug_mode: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)

    def ensure_directories(self):
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.results_dir.mkdir(parents=True, exist_ok=True)


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config_data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    return section


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = Path("config.yaml")
    config_path = Path(config_path)

    if not config_path.exists():
        logger.info(f"No config file at {config_path}, using defaults")
        return SystemConfig()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse config file {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    try:
        ms_data = _section(config_data, 'multisig')
        multisig_config = MultisigConfig(
            chain_id=int(ms_data.get('chain_id', 1)),
            # YAML carries whole percents
            quorum_percentage=percent(ms_data.get('quorum_percent', 80)),
            proof_size=int(ms_data.get('proof_size', 40)),
        )

        v_data = _section(config_data, 'verifier')
        verifier_config = VerifierConfig(
            backend=v_data.get('backend', 'reference'),
            snarkjs_bin=v_data.get('snarkjs_bin', 'snarkjs'),
            creation_vkey=Path(v_data.get(
                'creation_vkey', 'circuits/build/proposal_creation_vkey.json')),
            voting_vkey=Path(v_data.get('voting_vkey', 'circuits/build/voting_vkey.json')),
            timeout=int(v_data.get('timeout', 60)),
        )

        return SystemConfig(
            multisig_config=multisig_config,
            verifier_config=verifier_config,
            log_dir=Path(config_data.get('log_dir', 'logs')),
            results_dir=Path(config_data.get('results_dir', 'results')),
            enable_benchmarking=bool(config_data.get('enable_benchmarking', True)),
            enable_debug_mode=bool(config_data.get('enable_debug_mode', False)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in config file {config_path}: {e}") from e


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = Path("config.yaml")

    config_data = {
        'multisig': {
            'chain_id': config.multisig_config.chain_id,
            'quorum_percent': config.multisig_config.quorum_percentage // PRECISION,
            'proof_size': config.multisig_config.proof_size,
        },
        'verifier': {
            'backend': config.verifier_config.backend,
            'snarkjs_bin': config.verifier_config.snarkjs_bin,
            'creation_vkey': str(config.verifier_config.creation_vkey),
            'voting_vkey': str(config.verifier_config.voting_vkey),
            'timeout': config.verifier_config.timeout,
        },
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'enable_benchmarking': config.enable_benchmarking,
        'enable_debug_mode': config.enable_debug_mode,
    }

    with open(config_path, 'w') as f:
        yaml.dump(config_data, f, default_flow_style=False)
    logger.info(f"Configuration saved to {config_path}")
