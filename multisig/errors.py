"""Errors raised by the ZK multisig. Each carries the offending value."""


class ZKMultisigError(Exception):
    """Base exception for multisig operations"""
    pass


# ==================== Input validation ====================

class KeyLenMismatch(ZKMultisigError):
    """Permanent and rotation key lists differ in length"""

    def __init__(self, permanent_count: int, rotation_count: int):
        super().__init__(f"Got {permanent_count} permanent keys and {rotation_count} rotation keys")
        self.permanent_count = permanent_count
        self.rotation_count = rotation_count


class NoParticipantsToProcess(ZKMultisigError):
    """Empty participant batch"""
    pass


class ZeroTarget(ZKMultisigError):
    """Proposal target is the zero address"""
    pass


class ZeroVerifier(ZKMultisigError):
    """Verifier address is the zero address"""
    pass


class NotAContract(ZKMultisigError):
    def __init__(self, address: str):
        super().__init__(f"{address} is not a contract")
        self.address = address


class DuplicateVerifier(ZKMultisigError):
    def __init__(self, address: str):
        super().__init__(f"{address} is already the verifier")
        self.address = address


class InvalidQuorum(ZKMultisigError):
    def __init__(self, quorum_percentage: int):
        super().__init__(f"Invalid quorum percentage: {quorum_percentage}")
        self.quorum_percentage = quorum_percentage


# ==================== State conflicts ====================

class ProposalExists(ZKMultisigError):
    def __init__(self, proposal_id: int):
        super().__init__(f"Proposal {proposal_id} already exists")
        self.proposal_id = proposal_id


class ActiveProposal(ZKMultisigError):
    """Another proposal is still being voted on"""

    def __init__(self, proposal_id: int):
        super().__init__(f"Proposal {proposal_id} is still in voting")
        self.proposal_id = proposal_id


class NotVoting(ZKMultisigError):
    def __init__(self, status):
        super().__init__(f"Proposal is not in voting state: {status!r}")
        self.status = status


class ProposalNotAccepted(ZKMultisigError):
    def __init__(self, proposal_id: int):
        super().__init__(f"Proposal {proposal_id} is not accepted")
        self.proposal_id = proposal_id


class VoteCountMismatch(ZKMultisigError):
    """Claimed tally does not decrypt, or not everyone has voted"""

    def __init__(self, approval_count: int):
        super().__init__(f"Approval count {approval_count} does not match the tally")
        self.approval_count = approval_count


class InvalidInitialization(ZKMultisigError):
    """Contract already initialized"""
    pass


class NotInitialized(ZKMultisigError):
    pass


# ==================== Replay ====================

class UsedBlinder(ZKMultisigError):
    def __init__(self, blinder: int):
        super().__init__(f"Blinder {blinder} already used for this proposal")
        self.blinder = blinder


class UsedNullifier(ZKMultisigError):
    def __init__(self, nullifier: int):
        super().__init__(f"Rotation key nullifier {nullifier} already used")
        self.nullifier = nullifier


# ==================== Authorization ====================

class NotAuthorizedCall(ZKMultisigError):
    """Privileged function called by someone other than the multisig itself"""

    def __init__(self, caller):
        super().__init__(f"Caller {caller} is not the multisig")
        self.caller = caller


# ==================== Cryptographic ====================

class InvalidProof(ZKMultisigError):
    pass


class InvalidCMTRoot(ZKMultisigError):
    def __init__(self, root: int):
        super().__init__(f"Membership root {root} is not accepted for this proposal")
        self.root = root


class InvalidValue(ZKMultisigError):
    def __init__(self, sent: int, expected: int):
        super().__init__(f"Sent value {sent}, proposal requires {expected}")
        self.sent = sent
        self.expected = expected


# ==================== Fatal ====================

class RemovingAllParticipants(ZKMultisigError):
    """Removal would leave the multisig without permanent keys"""
    pass
