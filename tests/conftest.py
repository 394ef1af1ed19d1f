"""Shared fixtures: a chain, reference verifiers and a five-member multisig"""

import logging
from typing import List

import pytest

from chain import Chain, encode_call
from multisig import Participant, ProposalContent, ZKMultisig, percent
from zk import ReferenceCreationVerifier, ReferenceVotingVerifier

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

CHAIN_ID = 31337


class EthReceiver:
    """Target contract that records plain value transfers"""

    def __init__(self):
        self.received = []

    def receive_call(self, sender, value, data):
        self.received.append((sender, value, data))


@pytest.fixture
def chain():
    return Chain(chain_id=CHAIN_ID)


@pytest.fixture
def verifiers(chain):
    creation = ReferenceCreationVerifier()
    voting = ReferenceVotingVerifier()
    chain.deploy(creation)
    chain.deploy(voting)
    return creation, voting


@pytest.fixture
def participants() -> List[Participant]:
    return [Participant(1, 2), Participant(3, 4), Participant(5, 6), Participant(7, 8), Participant(9, 10)]


@pytest.fixture
def multisig(chain, verifiers, participants):
    creation, voting = verifiers
    contract = ZKMultisig(chain)
    contract.initialize(
        [p.permanent_key for p in participants],
        [p.rotation_key for p in participants],
        percent(80),
        creation.address,
        voting.address,
    )
    return contract


@pytest.fixture
def receiver(chain):
    target = EthReceiver()
    chain.deploy(target)
    return target


@pytest.fixture
def outsider(chain):
    return chain.create_account("outsider")


def self_call(multisig, method: str, *args, value: int = 0) -> ProposalContent:
    """Proposal content that makes the multisig call one of its own methods"""
    return ProposalContent(target=multisig.address, value=value, payload=encode_call(method, *args))


def vote_all(multisig, participants, proposal_id: int, approvals: int):
    """First `approvals` participants approve, the rest reject"""
    for index, participant in enumerate(participants):
        participant.vote(multisig, proposal_id, approve=index < approvals)


def events_named(multisig, name: str):
    return [event for event in multisig.events if event.name == name]
