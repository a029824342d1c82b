"""
XML-RPC Backend Plumbing

Base class of the backends that talk XML-RPC. Every remote call is
registered with the call correlator before it is issued; the token is the
value the transport round-trips to the result or fault callback.
"""

import functools
from typing import Any, Callable, List, Optional

from backends.base import Blog, ErrorKind, classify_fault
from backends.correlator import CallCorrelator, Pending
from backends.events import EventHub
from backends.protocols import RpcTransport
from data.models import BlogConfig
from utils.logger import get_logger

logger = get_logger(__name__)

ResultHandler = Callable[[Pending, List[Any]], None]


class XmlRpcBlog(Blog):
    """A blog reached through an RPC transport."""

    def __init__(self, config: BlogConfig, transport: RpcTransport,
                 events: Optional[EventHub] = None,
                 correlator: Optional[CallCorrelator] = None):
        super().__init__(config, events, correlator)
        if transport is None:
            raise ValueError("transport must not be None")
        self.transport = transport

    def _call(self, method: str, args: List[Any], handler: ResultHandler,
              subject: Any = None, aux: Any = None) -> int:
        """
        Register the pending subject and issue one remote call.

        Args:
            method: XML-RPC method name.
            args: Call parameters in protocol order.
            handler: Invoked with the pending entry and the result list.
            subject: Record (or tuple of records) waiting for the result.
            aux: Choreography state carried with the token.

        Returns:
            int: The token of the call, usable with ``cancel``.
        """
        token = self.correlator.issue(subject, aux, method)
        logger.debug(f"{self.interface_name}: calling {method} (call {token})")
        self.transport.call(method, args,
                            functools.partial(self._on_result, handler),
                            self._on_fault, token)
        return token

    def _on_result(self, handler: ResultHandler, result: List[Any], token: Any) -> None:
        entry = self._claim(token, ErrorKind.OTHER,
                            f"Received a result for unknown call {token}.")
        if entry is None:
            return
        logger.debug(f"{self.interface_name}: {entry.operation} answered (call {token})")
        handler(entry, result)

    def _on_fault(self, code: int, message: str, token: Any) -> None:
        kind = classify_fault(code, message)
        text = f"{message} (fault {code})"
        entry = self._claim(token, kind, text)
        if entry is None:
            return
        self._fail_pending(entry, kind, text)
