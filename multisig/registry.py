"""
Participant registry

Keeps the ordered permanent and rotation key lists, their running EC sums and
the membership set whose root covers the leaves of both lists.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from primitives import (
    IDENTITY,
    KeyType,
    Point,
    encode_key_leaf,
    normalize_point,
    point_add,
    point_sub,
)
from zk import CartesianMerkleTree, DEFAULT_PROOF_SIZE, MembershipOracle, MembershipProof

from .errors import KeyLenMismatch, NoParticipantsToProcess, RemovingAllParticipants

logger = logging.getLogger(__name__)


@dataclass
class ParticipantRegistry:
    membership: MembershipOracle = field(default_factory=CartesianMerkleTree)
    permanent_keys: List[Point] = field(default_factory=list)
    rotation_keys: List[Point] = field(default_factory=list)
    cumulative_permanent_key: Point = IDENTITY
    cumulative_rotation_key: Point = IDENTITY

    def _insert_permanent(self, key: Point) -> bool:
        if not self.membership.insert(encode_key_leaf(key, KeyType.PERMANENT)):
            return False
        self.permanent_keys.append(key)
        self.cumulative_permanent_key = point_add(self.cumulative_permanent_key, key)
        return True

    def add_rotation_key(self, key: Point) -> bool:
        """Insert a rotation key leaf; only newly inserted keys join the list and sum"""
        key = normalize_point(key)
        if not self.membership.insert(encode_key_leaf(key, KeyType.ROTATION)):
            return False
        self.rotation_keys.append(key)
        self.cumulative_rotation_key = point_add(self.cumulative_rotation_key, key)
        return True

    def add_participants(self, permanent_keys: Sequence[Point],
                         rotation_keys: Sequence[Point]) -> List[Tuple[Point, Point]]:
        """
        Register (permanent, rotation) key pairs.

        Each key is inserted independently; keys already in the set are
        skipped, so repeated keys inside one batch are stored once.
        Returns every input pair in order.
        """
        if len(permanent_keys) != len(rotation_keys):
            raise KeyLenMismatch(len(permanent_keys), len(rotation_keys))
        if not permanent_keys:
            raise NoParticipantsToProcess("No participants to add")

        pairs = []
        for permanent, rotation in zip(permanent_keys, rotation_keys):
            permanent = normalize_point(permanent)
            rotation = normalize_point(rotation)
            self._insert_permanent(permanent)
            self.add_rotation_key(rotation)
            pairs.append((permanent, rotation))

        logger.info(
            f"Registry now holds {len(self.permanent_keys)} permanent and "
            f"{len(self.rotation_keys)} rotation keys")
        return pairs

    def remove_participants(self, permanent_keys: Sequence[Point]) -> List[Point]:
        """
        Remove permanent keys that are present; absent keys are ignored.

        Raises RemovingAllParticipants before any mutation if the batch would
        empty the permanent key list.
        """
        if not permanent_keys:
            raise NoParticipantsToProcess("No participants to remove")

        present = []
        for key in permanent_keys:
            key = normalize_point(key)
            if key not in present and self.membership.contains(encode_key_leaf(key, KeyType.PERMANENT)):
                present.append(key)

        if len(present) >= len(self.permanent_keys):
            raise RemovingAllParticipants("Cannot remove every permanent key")

        for key in present:
            self.membership.remove(encode_key_leaf(key, KeyType.PERMANENT))
            self.permanent_keys.remove(key)
            self.cumulative_permanent_key = point_sub(self.cumulative_permanent_key, key)

        logger.info(f"Removed {len(present)} participants, {len(self.permanent_keys)} remain")
        return present

    def reset_rotation_epoch(self):
        """Start a fresh rotation key list; leaves stay in the membership set"""
        self.rotation_keys = []
        self.cumulative_rotation_key = IDENTITY

    # ==================== Views ====================

    @property
    def participants_count(self) -> int:
        return len(self.permanent_keys)

    def root(self) -> int:
        return self.membership.root()

    def prove(self, leaf: int, max_depth: int = DEFAULT_PROOF_SIZE) -> MembershipProof:
        return self.membership.prove(leaf, max_depth)
