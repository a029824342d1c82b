"""
Shared Test Fixtures for the Blog Client

This module provides common fixtures used across all test modules.
Fixtures include fake transports that record what a backend sends and
let a test deliver results or faults by hand, an event recorder, logging
capture, and factories for posts and feeds.
"""

import pytest
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo
import logging
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backends.events import EVENTS
from data.models import BlogConfig, Post


# =============================================================================
# Fake Transports
# =============================================================================

@dataclass
class RpcCall:
    method: str
    args: List[Any]
    on_success: Callable
    on_fault: Callable
    token: Any


class FakeRpcTransport:
    """
    Records XML-RPC calls instead of sending them.

    Usage:
        rpc.succeed("42")            # answers the last call with ["42"]
        rpc.fault(801, "bad login")  # faults the last call
    """

    def __init__(self):
        self.calls: List[RpcCall] = []

    def call(self, method, args, on_success, on_fault, token=None):
        self.calls.append(RpcCall(method, list(args), on_success, on_fault, token))

    @property
    def methods(self) -> List[str]:
        return [c.method for c in self.calls]

    @property
    def last(self) -> RpcCall:
        return self.calls[-1]

    def succeed(self, value: Any, index: int = -1) -> None:
        call = self.calls[index]
        call.on_success([value], call.token)

    def fault(self, code: int, message: str, index: int = -1) -> None:
        call = self.calls[index]
        call.on_fault(code, message, call.token)


@dataclass
class FeedLoad:
    url: str
    on_loaded: Callable
    on_failed: Callable
    token: Any
    headers: Dict[str, str]


class FakeFeedLoader:
    """Records feed loads; the test delivers feeds or failures."""

    def __init__(self):
        self.loads: List[FeedLoad] = []

    def load(self, url, on_loaded, on_failed, token=None, headers=None):
        self.loads.append(FeedLoad(url, on_loaded, on_failed, token, dict(headers or {})))

    def deliver(self, feed: Dict[str, Any], index: int = -1) -> None:
        load = self.loads[index]
        load.on_loaded(feed, load.token)

    def fail(self, code: int, index: int = -1) -> None:
        load = self.loads[index]
        load.on_failed(code, load.token)


@dataclass
class HttpRequest:
    method: str
    url: str
    body: Optional[bytes]
    headers: Dict[str, str]
    on_done: Callable
    on_failed: Callable
    token: Any


class FakeHttpTransport:
    """Records HTTP requests; the test delivers answers or failures."""

    def __init__(self):
        self.requests: List[HttpRequest] = []

    def request(self, method, url, body, headers, on_done, on_failed, token=None):
        self.requests.append(HttpRequest(method, url, body, dict(headers), on_done, on_failed, token))

    def answer(self, body: bytes = b"", status: int = 200, index: int = -1) -> None:
        request = self.requests[index]
        request.on_done(status, body, request.token)

    def fail(self, status: int, message: str, index: int = -1) -> None:
        request = self.requests[index]
        request.on_failed(status, message, request.token)


@pytest.fixture
def rpc():
    """A fresh fake XML-RPC transport."""
    return FakeRpcTransport()


@pytest.fixture
def feed_loader():
    """A fresh fake feed loader."""
    return FakeFeedLoader()


@pytest.fixture
def http():
    """A fresh fake HTTP transport."""
    return FakeHttpTransport()


# =============================================================================
# Event Recording
# =============================================================================

class EventRecorder:
    """Connects to every event of a blog and remembers what was emitted."""

    def __init__(self, blog):
        self.emitted: List[tuple] = []
        for name in EVENTS:
            blog.connect(name, self._handler(name))

    def _handler(self, name):
        def handle(*args, **kwargs):
            self.emitted.append((name, args, kwargs))
        return handle

    @property
    def names(self) -> List[str]:
        return [name for name, _, _ in self.emitted]

    def of(self, name: str) -> List[tuple]:
        """Positional arguments of every emission of ``name``."""
        return [args for event, args, _ in self.emitted if event == name]

    @property
    def errors(self) -> List[Dict[str, Any]]:
        """Every error event as a dict with kind, message, post, comment and media."""
        found = []
        for event, args, kwargs in self.emitted:
            if event == "error":
                kind, message = args
                found.append(dict(kwargs, kind=kind, message=message))
        return found


@pytest.fixture
def record_events():
    """
    Factory attaching an EventRecorder to a blog.

    Usage:
        def test_something(record_events, rpc, blog_config):
            blog = MetaWeblog(blog_config, rpc)
            events = record_events(blog)
    """
    return EventRecorder


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def blog_config():
    """Connection settings with obvious test values."""
    return BlogConfig(
        url="http://blog.example.com/xmlrpc.php",
        blog_id="1",
        username="test-user",
        password="test-password",
        timezone=ZoneInfo("UTC"),
        application_name="TestApp",
        application_version="0.1",
        profile_id="555",
        full_name="Test User",
        auth_token="test-token",
    )


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Returns:
        list: A list that will contain captured log records.
    """

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    library_logger = logging.getLogger("blogclient")
    original_level = library_logger.level
    library_logger.setLevel(logging.DEBUG)
    library_logger.addHandler(handler)

    yield handler.records

    library_logger.removeHandler(handler)
    library_logger.setLevel(original_level)


# =============================================================================
# Data Model Factories
# =============================================================================

@pytest.fixture
def post_factory():
    """
    Factory for creating Post objects with sensible defaults.

    Usage:
        def test_post(post_factory):
            post = post_factory(title="Custom Title")
    """
    def _create_post(
        title: str = "T",
        content: str = "C",
        categories: Optional[List[str]] = None,
        post_id: str = "",
        is_private: bool = False,
        creation_date_time: Optional[datetime] = None,
        **extra,
    ) -> Post:
        return Post(
            post_id=post_id,
            title=title,
            content=content,
            categories=list(categories) if categories is not None else ["Blogroll"],
            is_private=is_private,
            creation_date_time=creation_date_time or datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
            **extra,
        )

    return _create_post


def make_entry(post_id: str, title: str = "", blog_id: str = "1", published: str = "",
               labels: Optional[List[str]] = None, draft: bool = False,
               content: str = "") -> Dict[str, Any]:
    """Build a feed entry shaped the way feedparser reports Blogger posts."""
    entry = {
        "id": f"tag:blogger.com,1999:blog-{blog_id}.post-{post_id}",
        "title": title or f"Post {post_id}",
        "content": [{"value": content or f"<p>Body of {post_id}</p>", "type": "text/html"}],
        "links": [{"rel": "alternate", "href": f"http://blog.example.com/{post_id}.html"}],
        "tags": [{"term": label, "scheme": "http://www.blogger.com/atom/ns#"}
                 for label in (labels or [])],
    }
    if published:
        entry["published"] = published
    if draft:
        entry["app_draft"] = "yes"
    return entry


def make_feed(entries: List[Dict[str, Any]], next_href: Optional[str] = None) -> Dict[str, Any]:
    """Build a parsed feed with an optional ``next`` page link."""
    links = [{"rel": "self", "href": "http://www.blogger.com/feeds/1/posts/default"}]
    if next_href:
        links.append({"rel": "next", "href": next_href})
    return {"feed": {"links": links}, "entries": entries}
