"""
ZK Multisig Module
Anonymous threshold governance with homomorphic ballots
"""

from .ballots import (
    APPROVE,
    REJECT,
    BallotAccumulator,
    EncryptedBallot,
    VoteParams,
    compute_encryption_key,
    encrypt_ballot,
)
from .errors import (
    ZKMultisigError,
    KeyLenMismatch,
    NoParticipantsToProcess,
    RemovingAllParticipants,
    NotAuthorizedCall,
    ZeroTarget,
    ProposalExists,
    ActiveProposal,
    InvalidProof,
    NotVoting,
    UsedBlinder,
    UsedNullifier,
    InvalidCMTRoot,
    VoteCountMismatch,
    ProposalNotAccepted,
    InvalidValue,
    ZeroVerifier,
    NotAContract,
    DuplicateVerifier,
    InvalidQuorum,
    InvalidInitialization,
    NotInitialized,
)
from .ledger import NullifierLedger
from .participant import Participant
from .proposals import (
    PRECISION,
    PERCENTAGE_100,
    Proposal,
    ProposalContent,
    ProposalStatus,
    compute_proposal_id,
    percent,
    required_quorum,
)
from .registry import ParticipantRegistry
from .zk_multisig import MultisigEvent, ProposalInfo, ZKMultisig

__all__ = [
    # Contract
    'ZKMultisig',
    'MultisigEvent',
    'ProposalInfo',
    'Participant',

    # Components
    'ParticipantRegistry',
    'NullifierLedger',
    'BallotAccumulator',
    'EncryptedBallot',
    'VoteParams',
    'Proposal',
    'ProposalContent',
    'ProposalStatus',
    'APPROVE',
    'REJECT',
    'PRECISION',
    'PERCENTAGE_100',
    'compute_encryption_key',
    'compute_proposal_id',
    'encrypt_ballot',
    'percent',
    'required_quorum',

    # Exceptions
    'ZKMultisigError',
    'KeyLenMismatch',
    'NoParticipantsToProcess',
    'RemovingAllParticipants',
    'NotAuthorizedCall',
    'ZeroTarget',
    'ProposalExists',
    'ActiveProposal',
    'InvalidProof',
    'NotVoting',
    'UsedBlinder',
    'UsedNullifier',
    'InvalidCMTRoot',
    'VoteCountMismatch',
    'ProposalNotAccepted',
    'InvalidValue',
    'ZeroVerifier',
    'NotAContract',
    'DuplicateVerifier',
    'InvalidQuorum',
    'InvalidInitialization',
    'NotInitialized',
]
