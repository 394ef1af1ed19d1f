"""Append-only replay protection: global rotation nullifiers and per-proposal blinders"""

from dataclasses import dataclass, field
from typing import Dict, List, Set


@dataclass
class NullifierLedger:
    used_nullifiers: Set[int] = field(default_factory=set)
    blinders: Dict[int, List[int]] = field(default_factory=dict)
    _blinder_sets: Dict[int, Set[int]] = field(default_factory=dict)

    def is_nullifier_used(self, nullifier: int) -> bool:
        return nullifier in self.used_nullifiers

    def is_blinder_used(self, proposal_id: int, blinder: int) -> bool:
        return blinder in self._blinder_sets.get(proposal_id, ())

    def mark_nullifier(self, nullifier: int):
        self.used_nullifiers.add(nullifier)

    def mark_blinder(self, proposal_id: int, blinder: int):
        if self.is_blinder_used(proposal_id, blinder):
            return
        self.blinders.setdefault(proposal_id, []).append(blinder)
        self._blinder_sets.setdefault(proposal_id, set()).add(blinder)

    def get_blinders(self, proposal_id: int) -> List[int]:
        return list(self.blinders.get(proposal_id, []))
