import pytest

from chain import NonPayable, UnknownMethod, ZERO_ADDRESS, encode_call
from conftest import events_named, self_call, vote_all
from multisig import (
    PERCENTAGE_100,
    ActiveProposal,
    DuplicateVerifier,
    InvalidInitialization,
    InvalidQuorum,
    NotAContract,
    NotAuthorizedCall,
    ProposalContent,
    ProposalNotAccepted,
    ProposalStatus,
    RemovingAllParticipants,
    VoteCountMismatch,
    ZeroVerifier,
    percent,
)
from primitives import base_mul, point_sum
from zk import ReferenceCreationVerifier, ReferenceVotingVerifier


def execute_self_call(multisig, participants, method, *args, salt=1):
    content = self_call(multisig, method, *args)
    proposal_id = participants[0].create_proposal(multisig, content, salt=salt)
    vote_all(multisig, participants, proposal_id, approvals=len(participants))
    multisig.reveal_and_execute(len(participants))
    return proposal_id


def open_and_vote(multisig, participants, receiver, approvals, salt):
    proposal_id = participants[0].create_proposal(multisig, ProposalContent(target=receiver.address), salt=salt)
    vote_all(multisig, participants, proposal_id, approvals)
    return proposal_id


class TestAuthorization:

    @pytest.mark.parametrize("method, args", [
        ('add_participants', ([base_mul(11)], [base_mul(12)])),
        ('remove_participants', ([base_mul(1)],)),
        ('update_quorum_percentage', (percent(60),)),
        ('update_creation_verifier', (ZERO_ADDRESS,)),
        ('update_voting_verifier', (ZERO_ADDRESS,)),
        ('deactivate_proposal', (1,)),
    ])
    def test_direct_calls_rejected(self, multisig, method, args):
        with pytest.raises(NotAuthorizedCall):
            getattr(multisig, method)(*args)

    def test_external_caller_rejected(self, multisig, chain, outsider):
        with pytest.raises(NotAuthorizedCall) as exc_info:
            chain.call(outsider, multisig.address, 0, encode_call('update_quorum_percentage', percent(60)))
        assert exc_info.value.caller == outsider
        assert multisig.get_quorum_percentage() == percent(80)

    def test_outsider_cannot_deactivate_open_proposal(self, multisig, participants, chain, outsider, receiver):
        proposal_id = participants[0].create_proposal(multisig, ProposalContent(target=receiver.address), salt=1)
        participants[0].vote(multisig, proposal_id)

        with pytest.raises(NotAuthorizedCall) as exc_info:
            chain.call(outsider, multisig.address, 0, encode_call('deactivate_proposal', proposal_id))
        assert exc_info.value.caller == outsider
        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.VOTING

        for participant in participants[1:]:
            participant.vote(multisig, proposal_id, approve=False)
        assert multisig.reveal(1) is False

        # The following round still decrypts
        second = participants[0].create_proposal(multisig, ProposalContent(target=receiver.address), salt=2)
        vote_all(multisig, participants, second, approvals=5)
        assert multisig.reveal(5) is True

    def test_non_whitelisted_method(self, multisig, chain, outsider):
        with pytest.raises(UnknownMethod):
            chain.call(outsider, multisig.address, 0, encode_call('initialize', [], [], 1, "", ""))

    def test_value_to_non_payable_method(self, multisig, chain, outsider):
        chain.fund(outsider, 5)
        with pytest.raises(NonPayable):
            chain.call(outsider, multisig.address, 5, encode_call('reveal', 1))
        assert chain.balance_of(outsider) == 5

    def test_plain_transfer_is_accepted(self, multisig, chain, outsider):
        chain.fund(outsider, 5)
        chain.call(outsider, multisig.address, 5)
        assert chain.balance_of(multisig.address) == 5

    def test_initialize_once(self, multisig, verifiers, participants):
        creation, voting = verifiers
        with pytest.raises(InvalidInitialization):
            multisig.initialize([base_mul(1)], [base_mul(2)], percent(50), creation.address, voting.address)


class TestQuorumUpdates:

    @pytest.mark.parametrize("value", [0, PERCENTAGE_100, percent(110), percent(80)])
    def test_invalid_quorum(self, multisig, value):
        with multisig.caller(multisig.address):
            with pytest.raises(InvalidQuorum) as exc_info:
                multisig.update_quorum_percentage(value)
        assert exc_info.value.quorum_percentage == value

    def test_update_changes_required_quorum(self, multisig):
        with multisig.caller(multisig.address):
            multisig.update_quorum_percentage(percent(40))
        assert multisig.get_required_quorum() == 2


class TestVerifierUpdates:

    def test_validation(self, multisig, verifiers, outsider):
        creation, voting = verifiers
        with multisig.caller(multisig.address):
            with pytest.raises(ZeroVerifier):
                multisig.update_creation_verifier(ZERO_ADDRESS)
            with pytest.raises(NotAContract) as exc_info:
                multisig.update_voting_verifier(outsider)
            assert exc_info.value.address == outsider
            with pytest.raises(DuplicateVerifier):
                multisig.update_creation_verifier(creation.address)
            with pytest.raises(DuplicateVerifier):
                multisig.update_voting_verifier(voting.address)

    def test_update_through_governance(self, multisig, participants, chain):
        replacement = ReferenceCreationVerifier()
        chain.deploy(replacement)

        execute_self_call(multisig, participants, 'update_creation_verifier', replacement.address)
        assert multisig.get_creation_verifier() == replacement.address

        # Proposals are now checked by the new verifier
        voting = ReferenceVotingVerifier()
        chain.deploy(voting)
        execute_self_call(multisig, participants, 'update_voting_verifier', voting.address, salt=2)
        assert multisig.get_voting_verifier() == voting.address


class TestDeactivation:

    def test_accepted_proposal_deactivated_through_governance(self, multisig, participants, receiver):
        payment = participants[0].create_proposal(multisig, ProposalContent(target=receiver.address), salt=1)
        vote_all(multisig, participants, payment, approvals=5)
        assert multisig.reveal(5) is True

        execute_self_call(multisig, participants, 'deactivate_proposal', payment, salt=2)

        assert multisig.get_proposal_status(payment) == ProposalStatus.NONE
        with pytest.raises(ProposalNotAccepted):
            multisig.execute(payment)
        assert receiver.received == []

    def test_unknown_id_is_ignored(self, multisig):
        with multisig.caller(multisig.address):
            multisig.deactivate_proposal(12345)
        assert multisig.get_proposal_status(12345) == ProposalStatus.NONE
        assert multisig.get_proposals_count() == 0


class TestMembershipUpdates:

    def test_add_is_idempotent_per_key(self, multisig, participants):
        execute_self_call(
            multisig, participants, 'add_participants',
            [(1, 1), (1, 1)],
            [(3, 3), (2, 1)],
        )
        assert multisig.get_participants_count() == 6

        added = events_named(multisig, 'ParticipantAdded')[-2:]
        assert [e.args for e in added] == [((1, 1), (3, 3)), ((1, 1), (2, 1))]

    def test_remove_participant(self, multisig, participants):
        execute_self_call(multisig, participants, 'remove_participants', [participants[4].permanent_key])

        assert multisig.get_participants_count() == 4
        assert events_named(multisig, 'ParticipantRemoved')[-1].args == (participants[4].permanent_key,)
        assert multisig.get_cumulative_permanent_key() == point_sum(p.permanent_key for p in participants[:4])
        assert multisig.get_required_quorum() == 3

        leaf_proof = multisig.get_participants_cmt_proof(participants[4].permanent_leaf)
        assert not leaf_proof.existence

    def test_round_after_removal_is_abandoned(self, multisig, participants, receiver, chain, outsider):
        execute_self_call(multisig, participants, 'remove_participants', [participants[4].permanent_key])
        remaining = participants[:4]

        # The removed participant's rotation key is still part of the encryption key
        stuck = open_and_vote(multisig, remaining, receiver, approvals=4, salt=2)
        for count in range(5):
            with pytest.raises(VoteCountMismatch):
                multisig.reveal(count)
        with pytest.raises(ActiveProposal):
            remaining[0].create_proposal(multisig, ProposalContent(target=receiver.address), salt=3)

        chain.call(outsider, multisig.address, 0, encode_call('deactivate_proposal', stuck))
        assert multisig.get_proposal_status(stuck) == ProposalStatus.NONE

        recovered = open_and_vote(multisig, remaining, receiver, approvals=3, salt=3)
        assert multisig.reveal(3) is True
        assert multisig.get_proposal_status(recovered) == ProposalStatus.ACCEPTED

    def test_remove_unknown_key_emits_nothing(self, multisig, participants):
        execute_self_call(multisig, participants, 'remove_participants', [(1, 2)])
        assert multisig.get_participants_count() == 5
        assert events_named(multisig, 'ParticipantRemoved') == []

    def test_cannot_remove_everyone(self, multisig, participants):
        with multisig.caller(multisig.address):
            with pytest.raises(RemovingAllParticipants):
                multisig.remove_participants([p.permanent_key for p in participants])
        assert multisig.get_participants_count() == 5
