import pytest

from chain import InsufficientBalance, encode_call
from conftest import events_named, self_call, vote_all
from multisig import (
    InvalidQuorum,
    InvalidValue,
    NotVoting,
    Participant,
    ProposalContent,
    ProposalNotAccepted,
    ProposalStatus,
    VoteCountMismatch,
    percent,
)
from primitives import point_sum


def open_round(multisig, participants, content, approvals, salt=1):
    proposal_id = participants[0].create_proposal(multisig, content, salt=salt)
    vote_all(multisig, participants, proposal_id, approvals)
    return proposal_id


class TestReveal:

    def test_accepts_true_count_at_quorum(self, multisig, participants, receiver):
        proposal_id = open_round(multisig, participants, ProposalContent(target=receiver.address), approvals=4)

        assert multisig.reveal(4) is True
        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.ACCEPTED
        assert events_named(multisig, 'ProposalRevealed')[-1].args == (proposal_id, True)

    def test_below_quorum_rejects(self, multisig, participants, receiver):
        proposal_id = open_round(multisig, participants, ProposalContent(target=receiver.address), approvals=3)

        assert multisig.reveal(3) is False
        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.REJECTED
        assert events_named(multisig, 'ProposalRevealed')[-1].args == (proposal_id, False)

    @pytest.mark.parametrize("claimed", [0, 1, 2, 4, 5, 6, -1])
    def test_only_true_count_decrypts(self, multisig, participants, receiver, claimed):
        open_round(multisig, participants, ProposalContent(target=receiver.address), approvals=3)
        with pytest.raises(VoteCountMismatch):
            multisig.reveal(claimed)

    def test_everyone_must_vote(self, multisig, participants, receiver):
        proposal_id = participants[0].create_proposal(multisig, ProposalContent(target=receiver.address), salt=1)
        for participant in participants[:4]:
            participant.vote(multisig, proposal_id)

        with pytest.raises(VoteCountMismatch):
            multisig.reveal(4)

        participants[4].vote(multisig, proposal_id, approve=False)
        assert multisig.reveal(4) is True

    def test_second_round_decrypts_with_rotated_keys(self, multisig, participants, receiver):
        open_round(multisig, participants, ProposalContent(target=receiver.address), approvals=4, salt=1)
        multisig.reveal(4)

        second = open_round(multisig, participants, ProposalContent(target=receiver.address), approvals=2, salt=2)
        with pytest.raises(VoteCountMismatch):
            multisig.reveal(3)
        assert multisig.reveal(2) is False
        assert multisig.get_proposal_status(second) == ProposalStatus.REJECTED

    def test_reveal_twice(self, multisig, participants, receiver):
        open_round(multisig, participants, ProposalContent(target=receiver.address), approvals=5)
        multisig.reveal(5)
        with pytest.raises(NotVoting):
            multisig.reveal(5)


class TestExecute:

    def test_not_accepted(self, multisig, participants, receiver):
        with pytest.raises(ProposalNotAccepted) as exc_info:
            multisig.execute(42)
        assert exc_info.value.proposal_id == 42

        proposal_id = open_round(multisig, participants, ProposalContent(target=receiver.address), approvals=3)
        with pytest.raises(ProposalNotAccepted):
            multisig.execute(proposal_id)

        multisig.reveal(3)
        with pytest.raises(ProposalNotAccepted):
            multisig.execute(proposal_id)

    def test_executes_once(self, multisig, participants, receiver):
        proposal_id = open_round(multisig, participants, ProposalContent(target=receiver.address), approvals=5)
        multisig.reveal(5)

        multisig.execute(proposal_id)
        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.EXECUTED
        assert receiver.received == [(multisig.address, 0, b"")]
        assert events_named(multisig, 'ProposalExecuted')[-1].args == (proposal_id,)

        with pytest.raises(ProposalNotAccepted):
            multisig.execute(proposal_id)

    def test_value_must_match(self, multisig, participants, receiver, chain):
        content = ProposalContent(target=receiver.address, value=10 ** 18)
        proposal_id = open_round(multisig, participants, content, approvals=4)
        multisig.reveal(4)

        with pytest.raises(InvalidValue) as exc_info:
            multisig.execute(proposal_id)
        assert (exc_info.value.sent, exc_info.value.expected) == (0, 10 ** 18)

        with pytest.raises(InvalidValue):
            multisig.execute(proposal_id, value=5 * 10 ** 17)

        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.ACCEPTED

    def test_forwards_value_through_chain_call(self, multisig, participants, receiver, chain, outsider):
        value = 10 ** 18
        chain.fund(multisig.address, value)
        chain.fund(outsider, value)

        content = ProposalContent(target=receiver.address, value=value)
        proposal_id = open_round(multisig, participants, content, approvals=5)
        multisig.reveal(5)

        chain.call(outsider, multisig.address, value, encode_call('execute', proposal_id))

        assert receiver.received == [(multisig.address, value, b"")]
        assert chain.balance_of(receiver.address) == value
        assert chain.balance_of(multisig.address) == value
        assert chain.balance_of(outsider) == 0
        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.EXECUTED

    def test_unfunded_multisig_rolls_back(self, multisig, participants, receiver):
        content = ProposalContent(target=receiver.address, value=100)
        proposal_id = open_round(multisig, participants, content, approvals=5)
        multisig.reveal(5)

        with pytest.raises(InsufficientBalance):
            multisig.execute(proposal_id, value=100)
        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.ACCEPTED
        assert receiver.received == []

    def test_failing_self_call_keeps_proposal_accepted(self, multisig, participants):
        # Current quorum is already 80%
        content = self_call(multisig, 'update_quorum_percentage', percent(80))
        proposal_id = open_round(multisig, participants, content, approvals=5)
        multisig.reveal(5)

        with pytest.raises(InvalidQuorum):
            multisig.execute(proposal_id)
        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.ACCEPTED
        assert events_named(multisig, 'ProposalExecuted') == []


class TestEndToEnd:

    def test_quorum_update_through_governance(self, multisig, participants):
        content = self_call(multisig, 'update_quorum_percentage', percent(50))
        proposal_id = participants[0].create_proposal(multisig, content, salt=7)

        participants[2].vote(multisig, proposal_id, approve=False)
        for participant in (participants[0], participants[1], participants[4], participants[3]):
            participant.vote(multisig, proposal_id, approve=True)

        assert multisig.reveal_and_execute(4) is True

        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.EXECUTED
        assert multisig.get_quorum_percentage() == percent(50)
        assert multisig.get_required_quorum() == 2

    def test_reveal_and_execute_rejected_does_not_execute(self, multisig, participants):
        content = self_call(multisig, 'update_quorum_percentage', percent(50))
        proposal_id = open_round(multisig, participants, content, approvals=1)

        assert multisig.reveal_and_execute(1) is False
        assert multisig.get_proposal_status(proposal_id) == ProposalStatus.REJECTED
        assert multisig.get_quorum_percentage() == percent(80)

    def test_add_participants_then_vote_with_seven(self, multisig, participants):
        newcomers = [Participant(11, 12), Participant(13, 14)]
        content = self_call(
            multisig, 'add_participants',
            [p.permanent_key for p in newcomers],
            [p.rotation_key for p in newcomers],
        )
        proposal_id = open_round(multisig, participants, content, approvals=4)
        multisig.reveal(4)
        multisig.execute(proposal_id)

        added = events_named(multisig, 'ParticipantAdded')[-2:]
        assert [e.args for e in added] == [(p.permanent_key, p.rotation_key) for p in newcomers]
        assert multisig.get_participants_count() == 7
        assert multisig.get_participants()[0][5:] == [p.permanent_key for p in newcomers]

        everyone = participants + newcomers
        second = open_round(multisig, everyone, content_for_receiver(multisig), approvals=6, salt=2)
        info = multisig.get_proposal_info(second)
        assert info.required_quorum == 5
        assert multisig.reveal(6) is True
        assert multisig.get_cumulative_rotation_key() == point_sum(p.rotation_key for p in everyone)


def content_for_receiver(multisig):
    return ProposalContent(target=multisig.chain.create_account("payee"))
