"""
Data Models for the Blog Client

This module contains the domain records (posts, comments, media) that
callers hand to a backend, plus the connection configuration of a blog.
Records are mutated in place by the backend that completes an operation
on them; ownership stays with the caller.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from enum import Enum
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from utils.exceptions import StatusTransitionError


class PostStatus(Enum):
    """Client-side lifecycle of a post."""
    NEW = "new"
    FETCHED = "fetched"
    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"
    ERROR = "error"


class CommentStatus(Enum):
    """Client-side lifecycle of a comment."""
    NEW = "new"
    FETCHED = "fetched"
    CREATED = "created"
    REMOVED = "removed"
    ERROR = "error"


class MediaStatus(Enum):
    """Client-side lifecycle of an uploaded media object."""
    NEW = "new"
    CREATED = "created"
    ERROR = "error"


class _StatusMixin:
    """Forward-only status handling shared by all records.

    Backends may move a record to any state except NEW; only the caller
    returns a record to NEW, through ``reset()``.
    """

    def set_status(self, status) -> None:
        if status is type(status).NEW and self.status is not type(status).NEW:
            raise StatusTransitionError(
                f"{type(self).__name__} cannot go back to NEW from {self.status.name}; use reset()")
        self.status = status

    def set_error(self, message: str) -> None:
        self.error = message
        self.status = type(self.status).ERROR

    def reset(self) -> None:
        """Explicitly return the record to NEW and forget the last error."""
        self.status = type(self.status).NEW
        self.error = ""


@dataclass
class Post(_StatusMixin):
    """A blog post. ``categories[0]`` is the primary category."""
    post_id: str = ""
    title: str = ""
    content: str = ""
    additional_content: str = ""       # mt_text_more of the MovableType API
    slug: str = ""                     # wp_slug, WordPress only
    summary: str = ""
    tags: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    mood: str = ""
    music: str = ""
    perma_link: str = ""
    link: str = ""
    is_private: bool = False
    is_comment_allowed: bool = True
    is_track_back_allowed: bool = True
    creation_date_time: Optional[datetime] = None
    modification_date_time: Optional[datetime] = None
    journal_id: str = ""
    status: PostStatus = PostStatus.NEW
    error: str = ""

    @classmethod
    def from_journal(cls, journal: Dict[str, Any]) -> "Post":
        """
        Build a post from a calendar journal record.

        Args:
            journal: Mapping with ``uid``, ``summary``, ``description``,
                ``description_is_rich``, ``categories``, ``dtstart`` and
                ``custom_properties`` (``{"KBLOG": {"ID": ...}}``).

        Returns:
            Post: A NEW post linked to the journal through ``journal_id``.
        """
        if journal is None:
            raise ValueError("journal must not be None")
        custom = journal.get("custom_properties") or {}
        description = journal.get("description") or ""
        if journal.get("description_is_rich"):
            description = clean_rich_text(description)
        return cls(
            post_id=(custom.get("KBLOG") or {}).get("ID", ""),
            journal_id=journal.get("uid", ""),
            title=journal.get("summary") or "",
            content=description,
            categories=list(journal.get("categories") or []),
            creation_date_time=journal.get("dtstart"),
        )

    def to_journal(self, config: "BlogConfig") -> Dict[str, Any]:
        """
        Convert the post into a calendar journal record.

        Args:
            config: The blog the post belongs to; it makes the uid unique.

        Returns:
            dict: Journal mapping understood by ``from_journal``.
        """
        uid = f"kblog-{config.url}-{config.blog_id}-{config.username}-{self.post_id}"
        return {
            "uid": uid,
            "summary": self.title,
            "description": self.content,
            "description_is_rich": True,
            "categories": list(self.categories),
            "dtstart": self.creation_date_time,
            "custom_properties": {
                "KBLOG": {
                    "URL": config.url,
                    "USER": config.username,
                    "BLOG": config.blog_id,
                    "ID": self.post_id,
                }
            },
        }


@dataclass
class Comment(_StatusMixin):
    """A comment on a post (Atom based backends only)."""
    comment_id: str = ""
    title: str = ""
    content: str = ""
    email: str = ""
    name: str = ""
    url: str = ""
    creation_date_time: Optional[datetime] = None
    modification_date_time: Optional[datetime] = None
    status: CommentStatus = CommentStatus.NEW
    error: str = ""


@dataclass
class Media(_StatusMixin):
    """A file uploaded to the blog. ``url`` is assigned by the server."""
    name: str = ""
    mimetype: str = ""
    data: bytes = b""
    url: str = ""
    status: MediaStatus = MediaStatus.NEW
    error: str = ""


@dataclass
class BlogConfig:
    """Connection settings of one blog. Read-only from a backend's point of view."""
    url: str
    blog_id: str = ""
    username: str = ""
    password: str = ""
    timezone: tzinfo = field(default_factory=lambda: ZoneInfo("UTC"))
    application_name: str = ""
    application_version: str = ""
    profile_id: str = ""
    full_name: str = ""
    auth_token: str = ""

    @classmethod
    def from_settings(cls) -> "BlogConfig":
        """Create a configuration from ``config.settings``."""
        from config import settings

        return cls(
            url=settings.BLOG_URL,
            blog_id=settings.BLOG_ID,
            username=settings.BLOG_USERNAME,
            password=settings.BLOG_PASSWORD,
            timezone=ZoneInfo(settings.BLOG_TIMEZONE),
            application_name=settings.APPLICATION_NAME,
            application_version=settings.APPLICATION_VERSION,
            profile_id=settings.GDATA_PROFILE_ID,
            full_name=settings.GDATA_FULL_NAME,
            auth_token=settings.GDATA_AUTH_TOKEN,
        )


_BODY_RE = re.compile(r"<body[^>]*>(.*)</body>", re.DOTALL)
_STYLED_P_RE = re.compile(r'<p style="[^"]*">')


def clean_rich_text(rich_text: str) -> str:
    """Strip an HTML document down to the inside of its body."""
    match = _BODY_RE.search(rich_text)
    if match:
        rich_text = match.group(1).lstrip()
    rich_text = _STYLED_P_RE.sub("<p>", rich_text)
    if rich_text == "<p></p>":
        return ""
    return rich_text
