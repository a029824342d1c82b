"""
Blog Backend Base

Common plumbing of every blog backend: configuration access, event
connection, error classification and attribution, and the guards shared
by all operations. Concrete backends translate the abstract operations
into the calls of one protocol.
"""

from abc import ABC, abstractmethod
from datetime import tzinfo
from enum import Enum
from typing import Any, Callable, Optional

from config import settings
from data.mapper import MapResult
from data.models import BlogConfig, Post, Comment, Media
from backends.correlator import CallCorrelator, Pending
from backends.events import EventHub
from utils.logger import get_logger

logger = get_logger(__name__)


class ErrorKind(Enum):
    """Classification carried by every ``error`` event."""
    TRANSPORT_FAULT = "transport_fault"
    PARSING_ERROR = "parsing_error"
    AUTHENTICATION_ERROR = "authentication_error"
    NOT_SUPPORTED = "not_supported"
    OTHER = "other"


def classify_fault(code: int, message: str) -> ErrorKind:
    """
    Decide whether a transport fault means rejected credentials.

    Args:
        code: Fault code or HTTP status reported by the transport.
        message: Fault string.

    Returns:
        ErrorKind: AUTHENTICATION_ERROR or TRANSPORT_FAULT.
    """
    if code in settings.AUTHENTICATION_FAULT_CODES:
        return ErrorKind.AUTHENTICATION_ERROR
    lowered = (message or "").lower()
    if any(phrase in lowered for phrase in settings.AUTHENTICATION_FAULT_PHRASES):
        return ErrorKind.AUTHENTICATION_ERROR
    return ErrorKind.TRANSPORT_FAULT


def build_user_agent(config: BlogConfig) -> str:
    """User agent sent to servers: the application first, then this library."""
    library = f"{settings.LIBRARY_NAME}/{settings.LIBRARY_VERSION}"
    if not config.application_name:
        return library
    application = config.application_name
    if config.application_version:
        application += f"/{config.application_version}"
    return f"{application} {library}"


class Blog(ABC):
    """
    Uniform interface of a remote blog.

    Operations return immediately; their outcome arrives later as exactly
    one completion event or one ``error`` event on the backend's hub.
    """

    interface_name = ""

    def __init__(self, config: BlogConfig, events: Optional[EventHub] = None,
                 correlator: Optional[CallCorrelator] = None):
        if config is None:
            raise ValueError("config must not be None")
        self.config = config
        self.events = events if events is not None else EventHub()
        self.correlator = correlator if correlator is not None \
            else CallCorrelator(settings.CALL_COUNTER_BASE)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self.config.url

    @property
    def blog_id(self) -> str:
        return self.config.blog_id

    @property
    def username(self) -> str:
        return self.config.username

    @property
    def password(self) -> str:
        return self.config.password

    @property
    def timezone(self) -> tzinfo:
        return self.config.timezone

    @property
    def user_agent(self) -> str:
        return build_user_agent(self.config)

    @property
    def pending_calls(self) -> int:
        """Number of calls still waiting for their result."""
        return len(self.correlator)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def connect(self, event: str, handler: Callable[..., Any]) -> None:
        self.events.connect(event, handler)

    def disconnect(self, event: str, handler: Callable[..., Any]) -> None:
        self.events.disconnect(event, handler)

    def _emit(self, event: str, *args: Any) -> None:
        self.events.emit(event, *args)

    def cancel(self, token: int) -> bool:
        """
        Abandon a pending call. Its late result will neither touch the
        record nor emit any event.
        """
        return self.correlator.cancel(token)

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    @staticmethod
    def _attribution(subject: Any) -> dict:
        """Map a pending subject (record or tuple of records) to error kwargs."""
        records = subject if isinstance(subject, tuple) else (subject,)
        found = {}
        for record in records:
            if isinstance(record, Post):
                found["post"] = record
            elif isinstance(record, Comment):
                found["comment"] = record
            elif isinstance(record, Media):
                found["media"] = record
        return found

    def _fail(self, kind: ErrorKind, message: str, post: Optional[Post] = None,
              comment: Optional[Comment] = None, media: Optional[Media] = None) -> None:
        """
        Mark the failed record and emit one ``error`` event.

        For comment operations the comment is the failed record; the post
        it belongs to is only named in the event.
        """
        failed = comment if comment is not None else post
        for record in (failed, media):
            if record is not None:
                record.set_error(message)
        logger.error(f"{self.interface_name}: {kind.value}: {message}")
        self.events.emit("error", kind, message, post=post, comment=comment, media=media)

    def _fail_pending(self, entry: Pending, kind: ErrorKind, message: str) -> None:
        self._fail(kind, message, **self._attribution(entry.subject))

    def _not_supported(self, operation: str, **records: Any) -> None:
        self._fail(ErrorKind.NOT_SUPPORTED,
                   f"{self.interface_name} does not support {operation}.", **records)

    def _require(self, record: Any, what: str) -> bool:
        """Null-record guard: an absent record is an OTHER error and no call is made."""
        if record is None:
            self._fail(ErrorKind.OTHER, f"Could not {what}, no record given.")
            return False
        return True

    def _claim(self, token: Any, kind: ErrorKind, message: str) -> Optional[Pending]:
        """
        Resolve the token of an arriving result or fault.

        Late callbacks of cancelled calls are dropped. Callbacks for unknown
        tokens are reported as an error without a record.
        """
        if self.correlator.dismiss(token):
            return None
        entry = self.correlator.resolve(token)
        if entry is None:
            logger.warning(f"{self.interface_name}: callback for unknown call {token}")
            self._fail(kind, message)
        return entry

    def _accept(self, outcome: MapResult, entry: Pending) -> bool:
        """Turn a failed mapping into a PARSING_ERROR attributed to the pending record."""
        if not outcome.ok:
            self._fail_pending(entry, ErrorKind.PARSING_ERROR, outcome.message)
            return False
        for warning in outcome.warnings:
            logger.warning(f"{self.interface_name}: {warning}")
        return True

    def _empty_listing(self, number: int) -> bool:
        """A non-positive count is answered locally with an empty listing."""
        if number <= 0:
            logger.debug(f"{self.interface_name}: listing {number} posts, nothing to ask")
            self._emit("listed_recent_posts", [])
            return True
        return False

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def fetch_user_info(self) -> None:
        """Emits ``fetched_user_info(info)``."""

    @abstractmethod
    def list_blogs(self) -> None:
        """Emits ``listed_blogs(blogs)``."""

    @abstractmethod
    def list_categories(self) -> None:
        """Emits ``listed_categories(categories)``."""

    @abstractmethod
    def list_recent_posts(self, number: int) -> None:
        """Emits ``listed_recent_posts(posts)``, newest first."""

    @abstractmethod
    def create_post(self, post: Optional[Post]) -> None:
        """Emits ``created_post(post)`` once the server assigned an id."""

    @abstractmethod
    def fetch_post(self, post: Optional[Post]) -> None:
        """Emits ``fetched_post(post)``."""

    @abstractmethod
    def modify_post(self, post: Optional[Post]) -> None:
        """Emits ``modified_post(post)``."""

    @abstractmethod
    def remove_post(self, post: Optional[Post]) -> None:
        """Emits ``removed_post(post)``."""

    @abstractmethod
    def create_media(self, media: Optional[Media]) -> None:
        """Emits ``created_media(media)`` with ``media.url`` set."""
