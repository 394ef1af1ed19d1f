"""Proposal records, identifiers and quorum arithmetic"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Set

from chain import normalize_address
from primitives import Point, address_to_int, encode_uint256, keccak256, keccak256_int

from .ballots import BallotAccumulator

logger = logging.getLogger(__name__)

PRECISION = 10 ** 25
PERCENTAGE_100 = 100 * PRECISION


class ProposalStatus(IntEnum):
    """Lifecycle of a proposal. NONE also marks deactivated proposals."""
    NONE = 0
    VOTING = 1
    ACCEPTED = 2
    REJECTED = 3
    EXECUTED = 4


@dataclass
class ProposalContent:
    """Call the multisig performs once a proposal is accepted"""
    target: str
    value: int = 0
    payload: bytes = b""

    def __post_init__(self):
        self.target = normalize_address(self.target)
        if self.value < 0:
            raise ValueError(f"Proposal value must be non-negative, got {self.value}")
        self.payload = bytes(self.payload)


def compute_proposal_id(content: ProposalContent, salt: int) -> int:
    """keccak(target, value, keccak(payload), salt) as a 256-bit integer"""
    encoded = encode_uint256(
        address_to_int(content.target),
        content.value,
        keccak256(content.payload),
        salt,
    )
    return keccak256_int(encoded)


def required_quorum(participants_count: int, quorum_percentage: int) -> int:
    """Floor of participants * quorum / 100%"""
    return participants_count * quorum_percentage // PERCENTAGE_100


def percent(value) -> int:
    """Whole percent to fixed-point quorum, e.g. percent(80)"""
    return int(value * PRECISION)


@dataclass
class Proposal:
    id: int
    content: ProposalContent
    challenge: int
    encryption_key: Point
    total_eligible: int
    required_quorum: int
    status: ProposalStatus = ProposalStatus.VOTING
    vote_count: int = 0
    accumulator: BallotAccumulator = field(default_factory=BallotAccumulator)
    # Membership roots a vote on this proposal may be proven against
    valid_roots: Set[int] = field(default_factory=set)


@dataclass
class ProposalBook:
    """Every proposal ever created, in creation order"""
    proposals: Dict[int, Proposal] = field(default_factory=dict)
    ids: List[int] = field(default_factory=list)
    current_id: int = 0

    def exists(self, proposal_id: int) -> bool:
        return proposal_id in self.proposals

    def get(self, proposal_id: int) -> Optional[Proposal]:
        return self.proposals.get(proposal_id)

    def status_of(self, proposal_id: int) -> ProposalStatus:
        proposal = self.proposals.get(proposal_id)
        return proposal.status if proposal is not None else ProposalStatus.NONE

    def current(self) -> Optional[Proposal]:
        if not self.ids:
            return None
        return self.proposals[self.current_id]

    def record(self, proposal: Proposal):
        self.proposals[proposal.id] = proposal
        self.ids.append(proposal.id)
        self.current_id = proposal.id

    def page(self, offset: int, limit: int) -> List[int]:
        if offset < 0 or limit < 0:
            raise ValueError("offset and limit must be non-negative")
        return self.ids[offset:offset + limit]
