"""
Backend Protocol Definitions

This module defines typing.Protocol interfaces for the collaborators a blog
backend talks through, and for the capability families backends offer.
These protocols enable loose coupling, dependency injection, and easier
testing: tests hand a backend a fake transport and deliver results by hand.

Protocols defined:
- RpcTransport: issues XML-RPC calls and reports results or faults
- FeedLoader: loads Atom/RSS feeds
- HttpTransport: performs plain HTTP requests (Atom publishing)
- Capability protocols (PostCreator, CategoryAssigner, CommentLister, ...)
"""

from typing import Protocol, Optional, List, Dict, Any, Callable, runtime_checkable

from data.models import Post, Comment, Media

RpcSuccess = Callable[[List[Any], Any], None]
RpcFault = Callable[[int, str, Any], None]
FeedLoaded = Callable[[Dict[str, Any], Any], None]
FeedFailed = Callable[[int, Any], None]
HttpDone = Callable[[int, bytes, Any], None]
HttpFailed = Callable[[int, str, Any], None]


# =============================================================================
# Transport Collaborators
# =============================================================================

class RpcTransport(Protocol):
    """Protocol for XML-RPC transports.

    Implementations must never invoke a callback before ``call`` returns.
    The ``token`` is round-tripped verbatim to whichever callback fires.
    """

    def call(self, method: str, args: List[Any], on_success: RpcSuccess,
             on_fault: RpcFault, token: Any = None) -> None:
        """Issue one remote call.

        Args:
            method: XML-RPC method name, e.g. ``metaWeblog.newPost``.
            args: Ordered call parameters.
            on_success: Receives the decoded response parameters and the token.
            on_fault: Receives the fault code, message and the token.
            token: Correlation value chosen by the caller.
        """
        ...


class FeedLoader(Protocol):
    """Protocol for Atom/RSS feed loaders."""

    def load(self, url: str, on_loaded: FeedLoaded, on_failed: FeedFailed,
             token: Any = None, headers: Optional[Dict[str, str]] = None) -> None:
        """Load one feed.

        Args:
            url: Feed URL.
            on_loaded: Receives the parsed feed (feedparser shape) and the token.
            on_failed: Receives a ``FeedErrorCode`` value and the token.
            token: Correlation value chosen by the caller.
            headers: Extra request headers (authorization).
        """
        ...


class HttpTransport(Protocol):
    """Protocol for plain HTTP transports."""

    def request(self, method: str, url: str, body: Optional[bytes],
                headers: Dict[str, str], on_done: HttpDone, on_failed: HttpFailed,
                token: Any = None) -> None:
        """Perform one HTTP request.

        Args:
            method: HTTP verb.
            url: Target URL.
            body: Request body or None.
            headers: Request headers.
            on_done: Receives the status code, response body and the token
                for any 2xx answer.
            on_failed: Receives the status (or -1), a message and the token.
            token: Correlation value chosen by the caller.
        """
        ...


# =============================================================================
# Capability Families
# =============================================================================

@runtime_checkable
class UserInfoFetcher(Protocol):
    def fetch_user_info(self) -> None: ...


@runtime_checkable
class BlogLister(Protocol):
    def list_blogs(self) -> None: ...


@runtime_checkable
class CategoryLister(Protocol):
    def list_categories(self) -> None: ...


@runtime_checkable
class RecentPostLister(Protocol):
    def list_recent_posts(self, number: int) -> None: ...


@runtime_checkable
class PostCreator(Protocol):
    def create_post(self, post: Optional[Post]) -> None: ...


@runtime_checkable
class PostFetcher(Protocol):
    def fetch_post(self, post: Optional[Post]) -> None: ...


@runtime_checkable
class PostModifier(Protocol):
    def modify_post(self, post: Optional[Post]) -> None: ...


@runtime_checkable
class PostRemover(Protocol):
    def remove_post(self, post: Optional[Post]) -> None: ...


@runtime_checkable
class MediaCreator(Protocol):
    def create_media(self, media: Optional[Media]) -> None: ...


@runtime_checkable
class CategoryAssigner(Protocol):
    """Backends whose protocol sets categories in a call of their own."""

    def set_post_categories(self, post: Optional[Post], publish_after: bool = False) -> None: ...


@runtime_checkable
class CommentLister(Protocol):
    def list_comments(self, post: Optional[Post]) -> None: ...

    def list_all_comments(self) -> None: ...


@runtime_checkable
class CommentCreator(Protocol):
    def create_comment(self, post: Optional[Post], comment: Optional[Comment]) -> None: ...


@runtime_checkable
class CommentRemover(Protocol):
    def remove_comment(self, post: Optional[Post], comment: Optional[Comment]) -> None: ...
