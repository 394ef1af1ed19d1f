"""
Additively homomorphic ElGamal ballots over Baby JubJub

A ballot encrypts G (approve) or the identity (reject) under the proposal's
encryption key. Ciphertexts and decryption key shares are summed as votes
arrive; at reveal the claimed approval count k is accepted only when
k*G == C2_sum - D_sum*C1_sum.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Tuple

from primitives import (
    BASE8,
    IDENTITY,
    Point,
    SUBGROUP_ORDER,
    base_mul,
    normalize_point,
    point_add,
    point_sub,
    scalar_mul,
)
from zk.circuits import challenge_coefficients

logger = logging.getLogger(__name__)

APPROVE: Point = BASE8
REJECT: Point = IDENTITY


@dataclass
class EncryptedBallot:
    c1: Point
    c2: Point

    def __post_init__(self):
        self.c1 = normalize_point(self.c1)
        self.c2 = normalize_point(self.c2)

    def to_points(self) -> Tuple[Point, Point]:
        return (self.c1, self.c2)


@dataclass
class VoteParams:
    """Everything a voter submits with a ballot"""
    encrypted_ballot: EncryptedBallot
    decryption_key_share: int
    rotation_key_nullifier: int
    blinder: int
    cmt_root: int
    rotation_key: Point
    proof: Any

    def __post_init__(self):
        if not isinstance(self.encrypted_ballot, EncryptedBallot):
            c1, c2 = self.encrypted_ballot
            self.encrypted_ballot = EncryptedBallot(c1, c2)
        self.rotation_key = normalize_point(self.rotation_key)


def compute_encryption_key(challenge: int, cumulative_permanent_key: Point,
                           cumulative_rotation_key: Point) -> Point:
    """EncKey = h1*CumPerm + h2*CumRot"""
    h1, h2 = challenge_coefficients(challenge)
    return point_add(
        scalar_mul(h1, cumulative_permanent_key),
        scalar_mul(h2, cumulative_rotation_key),
    )


def random_scalar() -> int:
    return secrets.randbelow(SUBGROUP_ORDER - 1) + 1


def encrypt_ballot(approve: bool, encryption_key: Point, randomness: int) -> EncryptedBallot:
    plaintext = APPROVE if approve else REJECT
    randomness %= SUBGROUP_ORDER
    return EncryptedBallot(
        c1=base_mul(randomness),
        c2=point_add(plaintext, scalar_mul(randomness, encryption_key)),
    )


@dataclass
class BallotAccumulator:
    """Running sums of ciphertexts and decryption key shares for one proposal"""
    c1: Point = IDENTITY
    c2: Point = IDENTITY
    decryption_key: int = 0

    def add(self, ballot: EncryptedBallot, decryption_key_share: int):
        self.c1 = point_add(self.c1, ballot.c1)
        self.c2 = point_add(self.c2, ballot.c2)
        self.decryption_key = (self.decryption_key + decryption_key_share) % SUBGROUP_ORDER

    def decrypted_point(self) -> Point:
        return point_sub(self.c2, scalar_mul(self.decryption_key, self.c1))

    def matches(self, approval_count: int, total_eligible: int) -> bool:
        """True iff approval_count*G is the decrypted aggregate"""
        if approval_count < 0 or approval_count > total_eligible:
            return False
        return base_mul(approval_count) == self.decrypted_point()

    def is_decryptable(self, total_eligible: int) -> bool:
        """True iff some count in [0, total_eligible] matches the aggregate"""
        target = self.decrypted_point()
        candidate = IDENTITY
        generator = base_mul(1)
        for _ in range(total_eligible + 1):
            if candidate == target:
                return True
            candidate = point_add(candidate, generator)
        return False
