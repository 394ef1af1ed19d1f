"""
Circuit statements for proposal creation and voting

Holds the public-signal layouts both circuits expose, the scalar derivations
shared between the contract side and the prover side, and the in-the-clear
relation checks used by the reference verifiers.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from primitives import (
    BASE8,
    IDENTITY,
    Point,
    SUBGROUP_ORDER,
    KeyType,
    address_to_int,
    base_mul,
    encode_key_leaf,
    encode_uint256,
    keccak256_int,
    point_add,
    poseidon_hash,
    scalar_mul,
    to_field,
)

from .membership import MembershipProof, verify_membership_proof

logger = logging.getLogger(__name__)

ROTATION_KDF_DOMAIN = b"ZKMultisig.RotationKDF"

CREATION_SIGNALS = ('cmt_root', 'challenge')

VOTING_SIGNALS = (
    'enc_key_x', 'enc_key_y',
    'challenge',
    'proposal_id',
    'cmt_root',
    'c1_x', 'c1_y',
    'c2_x', 'c2_y',
    'decryption_key_share',
    'kdf_message',
    'blinder',
    'nullifier',
    'rotation_key_x', 'rotation_key_y',
)


# ============================================================================
# SHARED DERIVATIONS
# ============================================================================

def compute_challenge(chain_id: int, contract_address: str, proposal_id: int) -> int:
    """keccak(chain id, contract, proposal id) reduced into the hash field"""
    encoded = encode_uint256(chain_id, address_to_int(contract_address), proposal_id)
    return to_field(keccak256_int(encoded))


def challenge_coefficients(challenge: int):
    """(h1, h2) = (H(challenge), H(H(challenge)))"""
    h1 = poseidon_hash([challenge])
    h2 = poseidon_hash([h1])
    return h1, h2


def compute_rotation_kdf_message(chain_id: int, contract_address: str, proposal_id: int) -> int:
    encoded = ROTATION_KDF_DOMAIN + encode_uint256(chain_id, address_to_int(contract_address), proposal_id)
    return to_field(keccak256_int(encoded))


def derive_rotation_secret(kdf_message: int, rotation_secret: int) -> int:
    return (kdf_message + rotation_secret) % SUBGROUP_ORDER


def compute_blinder(permanent_secret: int, proposal_id: int) -> int:
    return poseidon_hash([permanent_secret, proposal_id])


def compute_nullifier(rotation_secret: int) -> int:
    return poseidon_hash([rotation_secret])


def compute_decryption_key_share(challenge: int, permanent_secret: int, rotation_secret: int) -> int:
    h1, h2 = challenge_coefficients(challenge)
    return (h1 * permanent_secret + h2 * rotation_secret) % SUBGROUP_ORDER


# ============================================================================
# PUBLIC SIGNALS
# ============================================================================

def creation_public_signals(cmt_root: int, challenge: int) -> List[int]:
    return [cmt_root, challenge]


def voting_public_signals(
    enc_key: Point,
    challenge: int,
    proposal_id: int,
    cmt_root: int,
    c1: Point,
    c2: Point,
    decryption_key_share: int,
    kdf_message: int,
    blinder: int,
    nullifier: int,
    rotation_key: Point,
) -> List[int]:
    return [
        enc_key[0], enc_key[1],
        challenge,
        proposal_id,
        cmt_root,
        c1[0], c1[1],
        c2[0], c2[1],
        decryption_key_share,
        kdf_message,
        blinder,
        nullifier,
        rotation_key[0], rotation_key[1],
    ]


def label_signals(names, signals: List[int]) -> Dict[str, int]:
    if len(signals) != len(names):
        raise ValueError(f"Expected {len(names)} public signals, got {len(signals)}")
    return dict(zip(names, signals))


# ============================================================================
# WITNESSES AND RELATIONS
# ============================================================================

@dataclass
class CreationWitness:
    """Private inputs of the proposal creation circuit"""
    permanent_secret: int
    membership: MembershipProof


@dataclass
class VotingWitness:
    """Private inputs of the voting circuit"""
    permanent_secret: int
    rotation_secret: int
    new_rotation_secret: int
    vote: Point
    randomness: int
    permanent_membership: MembershipProof
    rotation_membership: MembershipProof


def _proves_membership(proof: MembershipProof, key: Point, key_type: KeyType, cmt_root: int) -> bool:
    leaf = encode_key_leaf(key, key_type)
    return proof.root == cmt_root and verify_membership_proof(proof, leaf)


def check_creation_relation(witness: CreationWitness, public_signals: List[int]) -> bool:
    """The creator owns a permanent key in the set committed by cmt_root"""
    signals = label_signals(CREATION_SIGNALS, public_signals)
    permanent_key = base_mul(witness.permanent_secret)
    if not _proves_membership(witness.membership, permanent_key, KeyType.PERMANENT, signals['cmt_root']):
        logger.debug("Creation witness: permanent key not in membership set")
        return False
    return True


def check_voting_relation(witness: VotingWitness, public_signals: List[int]) -> bool:
    """Joint statement proven by a voter"""
    s = label_signals(VOTING_SIGNALS, public_signals)
    sk1 = witness.permanent_secret
    sk2 = witness.rotation_secret

    if not _proves_membership(witness.permanent_membership, base_mul(sk1), KeyType.PERMANENT, s['cmt_root']):
        logger.debug("Voting witness: permanent key not in membership set")
        return False
    if not _proves_membership(witness.rotation_membership, base_mul(sk2), KeyType.ROTATION, s['cmt_root']):
        logger.debug("Voting witness: rotation key not in membership set")
        return False

    if s['decryption_key_share'] != compute_decryption_key_share(s['challenge'], sk1, sk2):
        logger.debug("Voting witness: decryption key share mismatch")
        return False

    if witness.vote not in (BASE8, IDENTITY):
        logger.debug("Voting witness: ballot is neither approve nor reject")
        return False

    enc_key = (s['enc_key_x'], s['enc_key_y'])
    c1 = base_mul(witness.randomness)
    c2 = point_add(witness.vote, scalar_mul(witness.randomness % SUBGROUP_ORDER, enc_key))
    if c1 != (s['c1_x'], s['c1_y']) or c2 != (s['c2_x'], s['c2_y']):
        logger.debug("Voting witness: ciphertext does not encrypt the ballot")
        return False

    if s['blinder'] != compute_blinder(sk1, s['proposal_id']):
        logger.debug("Voting witness: blinder mismatch")
        return False
    if s['nullifier'] != compute_nullifier(sk2):
        logger.debug("Voting witness: nullifier mismatch")
        return False

    if witness.new_rotation_secret != derive_rotation_secret(s['kdf_message'], sk2):
        logger.debug("Voting witness: rotated secret not derived from kdf message")
        return False
    if base_mul(witness.new_rotation_secret) != (s['rotation_key_x'], s['rotation_key_y']):
        logger.debug("Voting witness: rotation key does not match rotated secret")
        return False

    return True
