"""
Zero-Knowledge Module for the ZK multisig
Membership set, circuit statements and proof verifiers
"""

from .errors import ZKError, MembershipError, VerifierError, WitnessError
from .membership import (
    MembershipOracle,
    MembershipProof,
    CartesianMerkleTree,
    verify_membership_proof,
    DEFAULT_PROOF_SIZE,
)
from .circuits import (
    CreationWitness,
    VotingWitness,
    creation_public_signals,
    voting_public_signals,
)
from .verifiers import (
    ProofVerifier,
    ReferenceCreationVerifier,
    ReferenceVotingVerifier,
    Groth16Verifier,
    build_verifiers,
)

__all__ = [
    # Membership
    'MembershipOracle',
    'MembershipProof',
    'CartesianMerkleTree',
    'verify_membership_proof',
    'DEFAULT_PROOF_SIZE',

    # Circuits
    'CreationWitness',
    'VotingWitness',
    'creation_public_signals',
    'voting_public_signals',

    # Verifiers
    'ProofVerifier',
    'ReferenceCreationVerifier',
    'ReferenceVotingVerifier',
    'Groth16Verifier',
    'build_verifiers',

    # Exceptions
    'ZKError',
    'MembershipError',
    'VerifierError',
    'WitnessError',
]
