"""
Participant-side client

Holds a participant's permanent and rotation secrets and builds the
proofs and vote parameters the multisig expects. The proofs are witnesses
for the reference verifiers; a SNARK prover would consume the same inputs.
"""

import logging
import secrets
from typing import Optional, Tuple

from primitives import KeyType, Point, base_mul, encode_key_leaf
from zk import DEFAULT_PROOF_SIZE, CreationWitness, MembershipProof, VotingWitness, WitnessError
from zk.circuits import (
    compute_blinder,
    compute_decryption_key_share,
    compute_nullifier,
    derive_rotation_secret,
)

from .ballots import APPROVE, REJECT, VoteParams, encrypt_ballot, random_scalar
from .proposals import ProposalContent

logger = logging.getLogger(__name__)


class Participant:
    def __init__(self, permanent_secret: int, rotation_secret: int,
                 proof_size: int = DEFAULT_PROOF_SIZE):
        self.permanent_secret = permanent_secret
        self.rotation_secret = rotation_secret
        # Sibling count of membership proofs fed to the circuits
        self.proof_size = proof_size

    @property
    def permanent_key(self) -> Point:
        return base_mul(self.permanent_secret)

    @property
    def rotation_key(self) -> Point:
        return base_mul(self.rotation_secret)

    @property
    def permanent_leaf(self) -> int:
        return encode_key_leaf(self.permanent_key, KeyType.PERMANENT)

    @property
    def rotation_leaf(self) -> int:
        return encode_key_leaf(self.rotation_key, KeyType.ROTATION)

    def _membership(self, multisig, leaf: int, what: str) -> MembershipProof:
        proof = multisig.get_participants_cmt_proof(leaf, self.proof_size)
        if not proof.existence:
            raise WitnessError(f"{what} key is not registered in multisig {multisig.address}")
        return proof

    # ==================== Proposal creation ====================

    def creation_proof(self, multisig) -> CreationWitness:
        membership = self._membership(multisig, self.permanent_leaf, "Permanent")
        return CreationWitness(permanent_secret=self.permanent_secret, membership=membership)

    def create_proposal(self, multisig, content: ProposalContent, salt: Optional[int] = None) -> int:
        if salt is None:
            salt = secrets.randbits(256)
        return multisig.create(content, salt, self.creation_proof(multisig))

    # ==================== Voting ====================

    def prepare_vote(self, multisig, proposal_id: int, approve: bool,
                     randomness: Optional[int] = None) -> Tuple[VoteParams, int]:
        """Build vote parameters; returns them with the rotated secret"""
        sk1 = self.permanent_secret
        sk2 = self.rotation_secret

        permanent_membership = self._membership(multisig, self.permanent_leaf, "Permanent")
        rotation_membership = self._membership(multisig, self.rotation_leaf, "Rotation")

        if randomness is None:
            randomness = random_scalar()
        ballot = encrypt_ballot(approve, multisig.get_encryption_key(proposal_id), randomness)

        challenge = multisig.get_proposal_challenge(proposal_id)
        new_secret = derive_rotation_secret(multisig.get_rotation_kdf_msg_to_sign(proposal_id), sk2)

        witness = VotingWitness(
            permanent_secret=sk1,
            rotation_secret=sk2,
            new_rotation_secret=new_secret,
            vote=APPROVE if approve else REJECT,
            randomness=randomness,
            permanent_membership=permanent_membership,
            rotation_membership=rotation_membership,
        )

        params = VoteParams(
            encrypted_ballot=ballot,
            decryption_key_share=compute_decryption_key_share(challenge, sk1, sk2),
            rotation_key_nullifier=compute_nullifier(sk2),
            blinder=compute_blinder(sk1, proposal_id),
            cmt_root=permanent_membership.root,
            rotation_key=base_mul(new_secret),
            proof=witness,
        )
        return params, new_secret

    def vote(self, multisig, proposal_id: int, approve: bool = True,
             randomness: Optional[int] = None) -> VoteParams:
        """Cast a vote and switch to the rotated secret once it is accepted"""
        params, new_secret = self.prepare_vote(multisig, proposal_id, approve, randomness)
        multisig.vote(params)
        self.rotation_secret = new_secret
        logger.debug(f"Participant rotated key after voting on {proposal_id:#x}")
        return params
