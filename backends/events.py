"""
Backend Events

A small synchronous event hub. Backends emit completion and error events
through it; callers connect handlers by event name. Handlers run on the
thread that delivers the transport callback.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List

from utils.logger import get_logger

logger = get_logger(__name__)

EVENTS = frozenset([
    "fetched_user_info",
    "listed_blogs",
    "listed_categories",
    "listed_recent_posts",
    "created_post",
    "fetched_post",
    "modified_post",
    "removed_post",
    "created_media",
    "listed_comments",
    "listed_all_comments",
    "created_comment",
    "removed_comment",
    "fetched_profile_id",
    "listed_track_back_pings",
    "listed_moods",
    "listed_picture_keywords",
    "listed_friends",
    "listed_friends_of",
    "added_friend",
    "deleted_friend",
    "assigned_friend_to_category",
    "error",
])


class EventHub:
    """Registry of event handlers shared by a backend and its components."""

    def __init__(self):
        self._handlers: Dict[str, List[Callable[..., Any]]] = defaultdict(list)

    def connect(self, event: str, handler: Callable[..., Any]) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self._handlers[event].append(handler)

    def disconnect(self, event: str, handler: Callable[..., Any]) -> None:
        try:
            self._handlers[event].remove(handler)
        except ValueError:
            logger.debug(f"Handler was not connected to {event}")

    def emit(self, event: str, *args: Any, **kwargs: Any) -> None:
        handlers = list(self._handlers.get(event, ()))
        logger.debug(f"Emitting {event} to {len(handlers)} handler(s)")
        for handler in handlers:
            handler(*args, **kwargs)
