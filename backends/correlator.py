"""
Call Correlator

Maps the opaque token carried through a transport call back to the record
waiting for that call's result. Each backend instance owns its own
correlator; tokens increase monotonically and are never reused.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Pending:
    """A record waiting for one remote call, plus choreography state."""
    subject: Any
    aux: Any = None
    operation: str = ""


class CallCorrelator:
    """Token table for in-flight calls of one backend."""

    def __init__(self, base: int = 1):
        if base < 0:
            raise ValueError("token base must not be negative")
        self._next = base
        self._pending: Dict[int, Pending] = {}
        self._cancelled: set = set()

    def issue(self, subject: Any, aux: Any = None, operation: str = "") -> int:
        """Register a pending record and return the token for its call."""
        token = self._next
        self._next += 1
        self._pending[token] = Pending(subject, aux, operation)
        return token

    def resolve(self, token: Any) -> Optional[Pending]:
        """
        Look up and release a token in one step.

        Returns:
            Pending: The entry, or None if the token is unknown, was
            already resolved or was cancelled.
        """
        return self._pending.pop(token, None)

    def dismiss(self, token: Any) -> bool:
        """
        Consume the cancellation mark of a token.

        Returns:
            bool: True exactly once for the late callback of a cancelled call.
        """
        if token in self._cancelled:
            self._cancelled.discard(token)
            logger.debug(f"Dropping result of cancelled call {token}")
            return True
        return False

    def peek(self, token: Any) -> Optional[Pending]:
        """Look up a token without releasing it."""
        return self._pending.get(token)

    def release(self, token: Any) -> bool:
        """Forget a token. Returns False if it was not pending."""
        return self._pending.pop(token, None) is not None

    def cancel(self, token: Any) -> bool:
        """
        Abandon a pending call. Its late result or fault will be dropped
        without touching the record.
        """
        if self._pending.pop(token, None) is None:
            return False
        self._cancelled.add(token)
        return True

    def tokens_for(self, subject: Any) -> Iterator[int]:
        """Yield the tokens currently pending for a record."""
        return (token for token, entry in list(self._pending.items()) if entry.subject is subject)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, token: Any) -> bool:
        return token in self._pending
