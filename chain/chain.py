"""
In-memory execution environment

Provides what the multisig needs from a host chain: contract addresses,
native balances, an ``is_contract`` check for verifier updates and a
``call`` primitive that moves value and dispatches calldata to the target.
Balance changes made during a failed call are rolled back.
"""

import logging
from collections import defaultdict
from typing import Any, Dict

from primitives import encode_uint256, keccak256

from .errors import ChainError, InsufficientBalance, UnknownContract, UnknownMethod

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40


def normalize_address(address: str) -> str:
    if not isinstance(address, str) or not address.startswith("0x") or len(address) != 42:
        raise ChainError(f"Malformed address: {address!r}")
    int(address, 16)
    return address.lower()


class Chain:
    """Single-threaded host with sequential, all-or-nothing calls"""

    def __init__(self, chain_id: int = 1):
        self.chain_id = chain_id
        self._contracts: Dict[str, Any] = {}
        self._balances: Dict[str, int] = defaultdict(int)
        self._nonce = 0

    # ==================== Accounts ====================

    def _next_address(self) -> str:
        self._nonce += 1
        digest = keccak256(b"contract" + encode_uint256(self.chain_id, self._nonce))
        return f"0x{digest[-20:].hex()}"

    def create_account(self, label: str) -> str:
        """Deterministic externally-owned address for tests and demos"""
        digest = keccak256(b"account" + label.encode())
        return f"0x{digest[-20:].hex()}"

    def deploy(self, contract: Any) -> str:
        """Register a contract object and assign it a fresh address"""
        address = self._next_address()
        contract.address = address
        self._contracts[address] = contract
        logger.info(f"Deployed {type(contract).__name__} at {address}")
        return address

    def is_contract(self, address: str) -> bool:
        return address.lower() in self._contracts

    def get_contract(self, address: str) -> Any:
        contract = self._contracts.get(address.lower())
        if contract is None:
            raise UnknownContract(address)
        return contract

    # ==================== Balances ====================

    def balance_of(self, address: str) -> int:
        return self._balances.get(address.lower(), 0)

    def fund(self, address: str, amount: int):
        if amount < 0:
            raise ChainError(f"Cannot fund negative amount {amount}")
        self._balances[address.lower()] += amount

    def _transfer(self, sender: str, target: str, value: int):
        balance = self.balance_of(sender)
        if balance < value:
            raise InsufficientBalance(sender, balance, value)
        self._balances[sender.lower()] = balance - value
        self._balances[target.lower()] += value

    # ==================== Calls ====================

    def call(self, sender: str, target: str, value: int = 0, data: bytes = b"") -> Any:
        """
        Transfer `value` from `sender` to `target` and dispatch `data`.

        Contracts receive the call through ``receive_call(sender, value, data)``.
        Empty calldata is a plain value transfer. Errors raised by the target
        propagate unchanged after balances are restored.
        """
        if value < 0:
            raise ChainError(f"Negative call value {value}")

        target = normalize_address(target)
        snapshot = dict(self._balances)
        try:
            if value:
                self._transfer(sender, target, value)

            contract = self._contracts.get(target)
            if contract is None:
                return None

            receiver = getattr(contract, 'receive_call', None)
            if receiver is None:
                if data:
                    raise UnknownMethod(f"{type(contract).__name__} accepts no calls")
                return None

            return receiver(sender, value, data)
        except Exception:
            self._balances = defaultdict(int, snapshot)
            raise
