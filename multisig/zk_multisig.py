"""
ZK threshold multisig

Participants authorize arbitrary calls by anonymous votes. A proposal is
created with a membership proof, every participant casts one encrypted
ballot with a voting proof, the aggregate is revealed against a claimed
approval count, and an accepted proposal's call is dispatched from the
multisig's own address. Membership changes, quorum and verifier updates
are only reachable through that self-call.
"""

import copy
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from chain import Chain, Contract, ZERO_ADDRESS, normalize_address
from primitives import IDENTITY, Point, normalize_point
from zk import DEFAULT_PROOF_SIZE, MembershipProof
from zk.circuits import (
    compute_challenge,
    compute_rotation_kdf_message,
    creation_public_signals,
    voting_public_signals,
)

from .ballots import VoteParams, compute_encryption_key
from .errors import (
    ActiveProposal,
    DuplicateVerifier,
    InvalidCMTRoot,
    InvalidInitialization,
    InvalidProof,
    InvalidQuorum,
    InvalidValue,
    NotAContract,
    NotAuthorizedCall,
    NotInitialized,
    NotVoting,
    ProposalExists,
    ProposalNotAccepted,
    UsedBlinder,
    UsedNullifier,
    VoteCountMismatch,
    ZeroTarget,
    ZeroVerifier,
)
from .ledger import NullifierLedger
from .proposals import (
    PERCENTAGE_100,
    Proposal,
    ProposalBook,
    ProposalContent,
    ProposalStatus,
    compute_proposal_id,
    required_quorum,
)
from .registry import ParticipantRegistry

logger = logging.getLogger(__name__)


@dataclass
class MultisigEvent:
    name: str
    args: Tuple


class ProposalInfo(NamedTuple):
    content: Optional[ProposalContent]
    status: ProposalStatus
    vote_count: int
    required_quorum: int


@dataclass
class MultisigState:
    """Everything a failed call must roll back"""
    initialized: bool = False
    registry: ParticipantRegistry = field(default_factory=ParticipantRegistry)
    proposals: ProposalBook = field(default_factory=ProposalBook)
    ledger: NullifierLedger = field(default_factory=NullifierLedger)
    quorum_percentage: int = 0
    creation_verifier: str = ZERO_ADDRESS
    voting_verifier: str = ZERO_ADDRESS
    events: List[MultisigEvent] = field(default_factory=list)


# ============================================================================
# CALL GUARDS
# ============================================================================

def atomic(func):
    """Restore the contract state if the call raises"""
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        snapshot = copy.deepcopy(self._state)
        try:
            return func(self, *args, **kwargs)
        except Exception:
            self._state = snapshot
            raise
    return wrapper


def only_self(func):
    """Allow the call only when the multisig is calling itself"""
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if self.msg_sender != self.address:
            raise NotAuthorizedCall(self.msg_sender)
        return func(self, *args, **kwargs)
    return wrapper


def initialized(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if not self._state.initialized:
            raise NotInitialized(f"{type(self).__name__} at {self.address} is not initialized")
        return func(self, *args, **kwargs)
    return wrapper


# ============================================================================
# CONTRACT
# ============================================================================

class ZKMultisig(Contract):
    """Anonymous threshold multisig deployed on a `Chain`"""

    EXTERNAL_METHODS = frozenset({
        'add_participants',
        'remove_participants',
        'update_quorum_percentage',
        'update_creation_verifier',
        'update_voting_verifier',
        'reveal',
        'execute',
        'reveal_and_execute',
        'deactivate_proposal',
    })
    PAYABLE_METHODS = frozenset({'execute', 'reveal_and_execute'})

    def __init__(self, chain: Chain):
        super().__init__()
        self.chain = chain
        self._state = MultisigState()
        chain.deploy(self)

    def _emit(self, name: str, *args):
        self._state.events.append(MultisigEvent(name, args))
        logger.debug(f"Event {name}{args}")

    @property
    def events(self) -> List[MultisigEvent]:
        return list(self._state.events)

    # ==================== Initialization ====================

    @atomic
    def initialize(self, permanent_keys: Sequence[Point], rotation_keys: Sequence[Point],
                   quorum_percentage: int, creation_verifier: str, voting_verifier: str):
        """Set the initial participants, quorum and verifiers. Callable once."""
        if self._state.initialized:
            raise InvalidInitialization(f"{self.address} is already initialized")

        self._set_creation_verifier(creation_verifier)
        self._set_voting_verifier(voting_verifier)
        self._set_quorum_percentage(quorum_percentage)
        self._add_participants(permanent_keys, rotation_keys)
        self._state.initialized = True

        logger.info(
            f"Initialized multisig {self.address} with {self.get_participants_count()} participants")

    # ==================== Privileged mutators ====================

    @only_self
    @initialized
    @atomic
    def add_participants(self, permanent_keys: Sequence[Point], rotation_keys: Sequence[Point]):
        self._add_participants(permanent_keys, rotation_keys)

    @only_self
    @initialized
    @atomic
    def remove_participants(self, permanent_keys: Sequence[Point]):
        removed = self._state.registry.remove_participants(permanent_keys)
        for key in removed:
            self._emit('ParticipantRemoved', key)

    @only_self
    @initialized
    @atomic
    def update_quorum_percentage(self, quorum_percentage: int):
        self._set_quorum_percentage(quorum_percentage)
        logger.info(f"Quorum percentage updated to {quorum_percentage}")

    @only_self
    @initialized
    @atomic
    def update_creation_verifier(self, verifier: str):
        self._set_creation_verifier(verifier)
        logger.info(f"Creation verifier updated to {verifier}")

    @only_self
    @initialized
    @atomic
    def update_voting_verifier(self, verifier: str):
        self._set_voting_verifier(verifier)
        logger.info(f"Voting verifier updated to {verifier}")

    def _add_participants(self, permanent_keys, rotation_keys):
        pairs = self._state.registry.add_participants(
            [normalize_point(k) for k in permanent_keys],
            [normalize_point(k) for k in rotation_keys],
        )
        for permanent, rotation in pairs:
            self._emit('ParticipantAdded', permanent, rotation)

    def _set_quorum_percentage(self, quorum_percentage: int):
        if (quorum_percentage <= 0 or quorum_percentage >= PERCENTAGE_100
                or quorum_percentage == self._state.quorum_percentage):
            raise InvalidQuorum(quorum_percentage)
        self._state.quorum_percentage = quorum_percentage

    def _validate_verifier(self, verifier: str, current: str) -> str:
        verifier = normalize_address(verifier)
        if verifier == ZERO_ADDRESS:
            raise ZeroVerifier("Verifier cannot be the zero address")
        if not self.chain.is_contract(verifier):
            raise NotAContract(verifier)
        if verifier == current:
            raise DuplicateVerifier(verifier)
        return verifier

    def _set_creation_verifier(self, verifier: str):
        self._state.creation_verifier = self._validate_verifier(verifier, self._state.creation_verifier)

    def _set_voting_verifier(self, verifier: str):
        self._state.voting_verifier = self._validate_verifier(verifier, self._state.voting_verifier)

    # ==================== Proposal lifecycle ====================

    @initialized
    @atomic
    def create(self, content: ProposalContent, salt: int, creation_proof: Any) -> int:
        """Open a proposal for voting; returns its id"""
        if content.target == ZERO_ADDRESS:
            raise ZeroTarget("Proposal target cannot be the zero address")

        proposal_id = compute_proposal_id(content, salt)
        book = self._state.proposals
        if book.exists(proposal_id):
            raise ProposalExists(proposal_id)

        current = book.current()
        if current is not None and current.status == ProposalStatus.VOTING:
            raise ActiveProposal(current.id)

        registry = self._state.registry
        challenge = self.get_proposal_challenge(proposal_id)
        cmt_root = registry.root()

        verifier = self.chain.get_contract(self._state.creation_verifier)
        if not verifier.verify(creation_proof, creation_public_signals(cmt_root, challenge)):
            logger.warning(f"Rejected creation proof for proposal {proposal_id:#x}")
            raise InvalidProof("Proposal creation proof is invalid")

        participants = registry.participants_count
        proposal = Proposal(
            id=proposal_id,
            content=content,
            challenge=challenge,
            encryption_key=compute_encryption_key(
                challenge, registry.cumulative_permanent_key, registry.cumulative_rotation_key),
            total_eligible=participants,
            required_quorum=required_quorum(participants, self._state.quorum_percentage),
            valid_roots={cmt_root},
        )

        # Votes on this proposal rebuild the rotation key sum from scratch
        registry.reset_rotation_epoch()
        book.record(proposal)
        self._emit('ProposalCreated', proposal_id, content)

        logger.info(
            f"Created proposal {proposal_id:#x} targeting {content.target} "
            f"({participants} eligible, quorum {proposal.required_quorum})")
        return proposal_id

    @initialized
    @atomic
    def vote(self, params: VoteParams):
        """Cast one encrypted ballot on the current proposal"""
        proposal = self._state.proposals.current()
        status = proposal.status if proposal is not None else ProposalStatus.NONE
        if status != ProposalStatus.VOTING:
            raise NotVoting(status)

        ledger = self._state.ledger
        if ledger.is_blinder_used(proposal.id, params.blinder):
            raise UsedBlinder(params.blinder)
        if ledger.is_nullifier_used(params.rotation_key_nullifier):
            raise UsedNullifier(params.rotation_key_nullifier)

        registry = self._state.registry
        if params.cmt_root != registry.root() and params.cmt_root not in proposal.valid_roots:
            raise InvalidCMTRoot(params.cmt_root)

        ballot = params.encrypted_ballot
        signals = voting_public_signals(
            enc_key=proposal.encryption_key,
            challenge=proposal.challenge,
            proposal_id=proposal.id,
            cmt_root=params.cmt_root,
            c1=ballot.c1,
            c2=ballot.c2,
            decryption_key_share=params.decryption_key_share,
            kdf_message=self.get_rotation_kdf_msg_to_sign(proposal.id),
            blinder=params.blinder,
            nullifier=params.rotation_key_nullifier,
            rotation_key=params.rotation_key,
        )
        verifier = self.chain.get_contract(self._state.voting_verifier)
        if not verifier.verify(params.proof, signals):
            logger.warning(f"Rejected voting proof for proposal {proposal.id:#x}")
            raise InvalidProof("Voting proof is invalid")

        ledger.mark_blinder(proposal.id, params.blinder)
        ledger.mark_nullifier(params.rotation_key_nullifier)
        registry.add_rotation_key(params.rotation_key)
        proposal.accumulator.add(ballot, params.decryption_key_share)
        proposal.vote_count += 1
        proposal.valid_roots.add(registry.root())

        self._emit('ProposalVoted', proposal.id, params.blinder)
        logger.debug(
            f"Vote {proposal.vote_count}/{proposal.total_eligible} recorded on {proposal.id:#x}")

    @initialized
    @atomic
    def reveal(self, approval_count: int) -> bool:
        """Settle the current proposal against a claimed approval count"""
        proposal = self._state.proposals.current()
        status = proposal.status if proposal is not None else ProposalStatus.NONE
        if status != ProposalStatus.VOTING:
            raise NotVoting(status)

        if (proposal.vote_count != proposal.total_eligible
                or not proposal.accumulator.matches(approval_count, proposal.total_eligible)):
            raise VoteCountMismatch(approval_count)

        accepted = approval_count >= proposal.required_quorum
        proposal.status = ProposalStatus.ACCEPTED if accepted else ProposalStatus.REJECTED
        self._emit('ProposalRevealed', proposal.id, accepted)

        logger.info(
            f"Revealed proposal {proposal.id:#x}: {approval_count}/{proposal.total_eligible} "
            f"approvals, {proposal.status.name}")
        return accepted

    @initialized
    @atomic
    def execute(self, proposal_id: int, value: int = 0) -> Any:
        """
        Dispatch an accepted proposal's call from the multisig's address.

        `value` must equal the proposal's value; the forwarded amount is paid
        from the multisig's balance.
        """
        proposal = self._state.proposals.get(proposal_id)
        if proposal is None or proposal.status != ProposalStatus.ACCEPTED:
            raise ProposalNotAccepted(proposal_id)

        content = proposal.content
        if value != content.value:
            raise InvalidValue(value, content.value)

        proposal.status = ProposalStatus.EXECUTED
        result = self.chain.call(self.address, content.target, content.value, content.payload)
        self._emit('ProposalExecuted', proposal_id)

        logger.info(f"Executed proposal {proposal_id:#x}")
        return result

    @initialized
    @atomic
    def reveal_and_execute(self, approval_count: int, value: int = 0) -> bool:
        """Reveal the current proposal and execute it if accepted"""
        accepted = self.reveal(approval_count)
        if accepted:
            self.execute(self._state.proposals.current_id, value)
        return accepted

    @atomic
    def deactivate_proposal(self, proposal_id: int):
        """
        Terminate a proposal without executing it. Its id stays taken.

        Reachable through an executed self-call proposal. Anyone may also
        abandon a fully voted proposal whose tally no approval count
        decrypts, since it can never be revealed and would block creation.
        """
        proposal = self._state.proposals.get(proposal_id)
        if self.msg_sender != self.address and not self._is_stuck(proposal):
            raise NotAuthorizedCall(self.msg_sender)
        if proposal is None:
            logger.debug(f"Deactivation of unknown proposal {proposal_id:#x} ignored")
            return
        proposal.status = ProposalStatus.NONE
        logger.info(f"Deactivated proposal {proposal_id:#x}")

    @staticmethod
    def _is_stuck(proposal: Optional[Proposal]) -> bool:
        return (proposal is not None
                and proposal.status == ProposalStatus.VOTING
                and proposal.vote_count == proposal.total_eligible
                and not proposal.accumulator.is_decryptable(proposal.total_eligible))

    # ==================== Participant views ====================

    def get_participants(self) -> Tuple[List[Point], List[Point]]:
        registry = self._state.registry
        return list(registry.permanent_keys), list(registry.rotation_keys)

    def get_participants_count(self) -> int:
        return self._state.registry.participants_count

    def get_cumulative_permanent_key(self) -> Point:
        return self._state.registry.cumulative_permanent_key

    def get_cumulative_rotation_key(self) -> Point:
        return self._state.registry.cumulative_rotation_key

    def get_participants_cmt_root(self) -> int:
        return self._state.registry.root()

    def get_participants_cmt_proof(self, leaf: int, max_depth: int = DEFAULT_PROOF_SIZE) -> MembershipProof:
        return self._state.registry.prove(leaf, max_depth)

    def is_rotation_key_nullifier_used(self, nullifier: int) -> bool:
        return self._state.ledger.is_nullifier_used(nullifier)

    # ==================== Governance views ====================

    def get_quorum_percentage(self) -> int:
        return self._state.quorum_percentage

    def get_required_quorum(self) -> int:
        return required_quorum(self.get_participants_count(), self._state.quorum_percentage)

    def get_creation_verifier(self) -> str:
        return self._state.creation_verifier

    def get_voting_verifier(self) -> str:
        return self._state.voting_verifier

    # ==================== Proposal views ====================

    def compute_proposal_id(self, content: ProposalContent, salt: int) -> int:
        return compute_proposal_id(content, salt)

    def get_proposals_count(self) -> int:
        return len(self._state.proposals.ids)

    def get_proposals_ids(self, offset: int, limit: int) -> List[int]:
        return self._state.proposals.page(offset, limit)

    def get_current_proposal_id(self) -> int:
        return self._state.proposals.current_id

    def get_proposal_status(self, proposal_id: int) -> ProposalStatus:
        return self._state.proposals.status_of(proposal_id)

    def get_proposal_info(self, proposal_id: int) -> ProposalInfo:
        proposal = self._state.proposals.get(proposal_id)
        if proposal is None:
            return ProposalInfo(None, ProposalStatus.NONE, 0, 0)
        return ProposalInfo(proposal.content, proposal.status, proposal.vote_count, proposal.required_quorum)

    def get_proposal_challenge(self, proposal_id: int) -> int:
        return compute_challenge(self.chain.chain_id, self.address, proposal_id)

    def get_rotation_kdf_msg_to_sign(self, proposal_id: int) -> int:
        return compute_rotation_kdf_message(self.chain.chain_id, self.address, proposal_id)

    def get_encryption_key(self, proposal_id: int) -> Point:
        proposal = self._state.proposals.get(proposal_id)
        return proposal.encryption_key if proposal is not None else IDENTITY

    def get_proposal_aggregated_votes(self, proposal_id: int) -> Tuple[Point, Point]:
        proposal = self._state.proposals.get(proposal_id)
        if proposal is None:
            return (IDENTITY, IDENTITY)
        return (proposal.accumulator.c1, proposal.accumulator.c2)

    def get_proposal_decryption_key(self, proposal_id: int) -> int:
        proposal = self._state.proposals.get(proposal_id)
        return proposal.accumulator.decryption_key if proposal is not None else 0

    def get_proposal_blinders(self, proposal_id: int) -> List[int]:
        return self._state.ledger.get_blinders(proposal_id)
