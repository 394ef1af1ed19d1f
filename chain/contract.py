"""Base class for contracts that accept calldata from the chain"""

import logging
from contextlib import contextmanager
from typing import Any, Optional

from .calldata import decode_call
from .errors import NonPayable, UnknownMethod

logger = logging.getLogger(__name__)


class Contract:
    """
    Dispatches decoded calldata to whitelisted methods.

    While a dispatched method runs, ``msg_sender`` holds the calling address.
    Payable methods receive the transferred amount as the ``value`` keyword.
    """

    EXTERNAL_METHODS: frozenset = frozenset()
    PAYABLE_METHODS: frozenset = frozenset()

    address: str = ""

    def __init__(self):
        self._msg_sender: Optional[str] = None

    @property
    def msg_sender(self) -> Optional[str]:
        return self._msg_sender

    @contextmanager
    def caller(self, sender: str):
        previous = self._msg_sender
        self._msg_sender = sender.lower()
        try:
            yield
        finally:
            self._msg_sender = previous

    def receive_call(self, sender: str, value: int, data: bytes) -> Any:
        if not data:
            return None

        method, args = decode_call(data)
        if method not in self.EXTERNAL_METHODS:
            raise UnknownMethod(method)

        kwargs = {}
        if method in self.PAYABLE_METHODS:
            kwargs['value'] = value
        elif value:
            raise NonPayable(method)

        logger.debug(f"{type(self).__name__}.{method} called by {sender}")
        with self.caller(sender):
            return getattr(self, method)(*args, **kwargs)
