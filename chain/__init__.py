"""In-memory host chain: addresses, balances and call dispatch."""

from .chain import Chain, ZERO_ADDRESS, normalize_address
from .calldata import encode_call, decode_call
from .contract import Contract
from .errors import (
    ChainError,
    UnknownContract,
    InsufficientBalance,
    UnknownMethod,
    NonPayable,
    MalformedCalldata,
)

__all__ = [
    'Chain',
    'ZERO_ADDRESS',
    'normalize_address',
    'encode_call',
    'decode_call',
    'Contract',
    'ChainError',
    'UnknownContract',
    'InsufficientBalance',
    'UnknownMethod',
    'NonPayable',
    'MalformedCalldata',
]
