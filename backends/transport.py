"""
Transports

Default collaborators that carry backend calls over the network:

- XmlRpcTransport: XML-RPC over HTTP POST (requests + xmlrpc.client codec)
- FeedparserLoader: Atom/RSS feeds (requests + feedparser)
- RequestsHttpTransport: plain HTTP requests (requests)

Requests are queued when issued and performed by ``dispatch()``, so a
callback never runs before the backend call that issued it returned.
All callbacks run on the thread that calls ``dispatch()``.
"""

import functools
import xmlrpc.client
from collections import deque
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Deque, Dict, List, Optional
from xml.parsers.expat import ExpatError

import feedparser
import requests

from config import settings
from utils.helpers import truncate_text
from utils.logger import get_logger

logger = get_logger(__name__)

# Codes handed to fault callbacks when no server fault code exists
NETWORK_FAULT = -1
MALFORMED_RESPONSE = -2


class FeedErrorCode(IntEnum):
    """Reasons a feed could not be loaded."""
    NETWORK = 1
    HTTP = 2
    MALFORMED = 3


@dataclass
class _Request:
    perform: Callable[[], Callable[[], None]]
    description: str = ""


class _QueuedTransport:
    """Queue of requests performed later by ``dispatch()``."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self._queue: Deque[_Request] = deque()

    def _enqueue(self, perform: Callable[[], Callable[[], None]], description: str) -> None:
        self._queue.append(_Request(perform, description))
        logger.debug(f"Queued {description} ({len(self._queue)} waiting)")

    @property
    def pending(self) -> int:
        return len(self._queue)

    def dispatch(self, limit: Optional[int] = None) -> int:
        """
        Perform queued requests in issue order and deliver their callbacks.

        Requests queued by callbacks (the next link of a chain, the next
        page of a listing) are performed in the same run.

        Args:
            limit: Stop after this many requests; None drains the queue.

        Returns:
            int: Number of requests performed.
        """
        performed = 0
        while self._queue and (limit is None or performed < limit):
            request = self._queue.popleft()
            logger.debug(f"Performing {request.description}")
            deliver = request.perform()
            performed += 1
            deliver()
        return performed


class XmlRpcTransport(_QueuedTransport):
    """XML-RPC client transport for one endpoint."""

    def __init__(self, url: str, user_agent: str = "",
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        super().__init__(session, timeout)
        self.url = url
        self.user_agent = user_agent

    def call(self, method: str, args: List[Any], on_success: Callable[[List[Any], Any], None],
             on_fault: Callable[[int, str, Any], None], token: Any = None) -> None:
        self._enqueue(lambda: self._perform(method, args, on_success, on_fault, token),
                      f"{method} (call {token})")

    def _perform(self, method, args, on_success, on_fault, token) -> Callable[[], None]:
        headers = {"Content-Type": "text/xml; charset=utf-8"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        try:
            body = xmlrpc.client.dumps(tuple(args), method, allow_none=True).encode("utf-8")
            response = self.session.post(self.url, data=body, headers=headers,
                                         timeout=self.timeout)
            response.raise_for_status()
            params, _ = xmlrpc.client.loads(response.content, use_datetime=True)
        except xmlrpc.client.Fault as e:
            logger.warning(f"{method} faulted: {e.faultString} ({e.faultCode})")
            return functools.partial(on_fault, e.faultCode, e.faultString, token)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else NETWORK_FAULT
            logger.error(f"HTTP error calling {method}: {e}")
            return functools.partial(on_fault, status, str(e), token)
        except requests.RequestException as e:
            logger.error(f"Network error calling {method}: {e}")
            return functools.partial(on_fault, NETWORK_FAULT, str(e), token)
        except (ExpatError, xmlrpc.client.ResponseError) as e:
            logger.error(f"Malformed response to {method}: {e}")
            return functools.partial(on_fault, MALFORMED_RESPONSE, f"Malformed response: {e}", token)
        return functools.partial(on_success, list(params), token)


class FeedparserLoader(_QueuedTransport):
    """Loads feeds with requests and parses them with feedparser."""

    def __init__(self, user_agent: str = "", session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        super().__init__(session, timeout)
        self.user_agent = user_agent

    def load(self, url: str, on_loaded: Callable[[Dict[str, Any], Any], None],
             on_failed: Callable[[int, Any], None], token: Any = None,
             headers: Optional[Dict[str, str]] = None) -> None:
        self._enqueue(lambda: self._perform(url, on_loaded, on_failed, token, headers or {}),
                      f"feed {url} (call {token})")

    def _perform(self, url, on_loaded, on_failed, token, headers) -> Callable[[], None]:
        headers = dict(headers)
        if self.user_agent:
            headers.setdefault("User-Agent", self.user_agent)
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error(f"HTTP error loading {url}: {e}")
            return functools.partial(on_failed, FeedErrorCode.HTTP, token)
        except requests.RequestException as e:
            logger.error(f"Network error loading {url}: {e}")
            return functools.partial(on_failed, FeedErrorCode.NETWORK, token)

        feed = feedparser.parse(response.content)
        if feed.get("bozo") and not feed.get("entries"):
            logger.error(f"Malformed feed at {url}: {feed.get('bozo_exception')}")
            return functools.partial(on_failed, FeedErrorCode.MALFORMED, token)
        logger.debug(f"Loaded {len(feed.get('entries', []))} entries from {url}")
        return functools.partial(on_loaded, feed, token)


class RequestsHttpTransport(_QueuedTransport):
    """Plain HTTP requests for Atom publishing."""

    def request(self, method: str, url: str, body: Optional[bytes], headers: Dict[str, str],
                on_done: Callable[[int, bytes, Any], None],
                on_failed: Callable[[int, str, Any], None], token: Any = None) -> None:
        self._enqueue(lambda: self._perform(method, url, body, headers, on_done, on_failed, token),
                      f"{method} {url} (call {token})")

    def _perform(self, method, url, body, headers, on_done, on_failed, token) -> Callable[[], None]:
        try:
            response = self.session.request(method, url, data=body, headers=headers,
                                            timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Network error on {method} {url}: {e}")
            return functools.partial(on_failed, NETWORK_FAULT, str(e), token)
        if not 200 <= response.status_code < 300:
            message = response.reason or truncate_text(response.text, 200)
            logger.error(f"{method} {url} answered {response.status_code}: {message}")
            return functools.partial(on_failed, response.status_code, message, token)
        return functools.partial(on_done, response.status_code, response.content, token)
