class ZKError(Exception):
    """Base exception for ZK operations"""
    pass


class MembershipError(ZKError):
    """Membership set operation failed"""
    pass


class VerifierError(ZKError):
    """Proof verifier misconfigured or unavailable"""
    pass


class WitnessError(ZKError):
    """Witness does not satisfy the circuit relation"""
    pass
