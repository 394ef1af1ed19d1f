class ChainError(Exception):
    """Base exception for the execution environment"""
    pass


class UnknownContract(ChainError):
    """No contract deployed at address"""

    def __init__(self, address: str):
        super().__init__(f"No contract at {address}")
        self.address = address


class InsufficientBalance(ChainError):
    """Sender cannot cover the transferred value"""

    def __init__(self, address: str, balance: int, required: int):
        super().__init__(f"{address} has {balance}, needs {required}")
        self.address = address
        self.balance = balance
        self.required = required


class UnknownMethod(ChainError):
    """Calldata names a method the contract does not expose"""

    def __init__(self, method: str):
        super().__init__(f"Unknown method: {method}")
        self.method = method


class NonPayable(ChainError):
    """Value sent to a method that does not accept it"""

    def __init__(self, method: str):
        super().__init__(f"Method {method} is not payable")
        self.method = method


class MalformedCalldata(ChainError):
    """Calldata could not be decoded"""
    pass
