"""
GData Backend

Blogger's Atom based API. Listings are feed loads; posts and comments are
written by sending Atom entries over HTTP. Requests are authorized with a
``GoogleLogin`` token supplied by configuration.

Listing recent posts follows the feed's ``next`` links until the requested
number of posts is collected, keeping the server's newest-first order
across page boundaries.
"""

import functools
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

from config import settings
from backends.base import Blog, ErrorKind, classify_fault
from backends.correlator import CallCorrelator, Pending
from backends.events import EventHub
from backends.protocols import FeedLoader, HttpTransport
from data.atom import (
    atom_date, build_comment_entry, build_post_entry, entry_to_blog, entry_to_comment,
    entry_to_post, extract_post_id, next_link, parse_entry_response, parse_feed,
    read_post_from_entry,
)
from data.models import BlogConfig, Post, Comment, Media, PostStatus, CommentStatus
from utils.helpers import to_utc
from utils.logger import get_logger

logger = get_logger(__name__)

_PROFILE_RE = re.compile(r"http://www\.blogger\.com/profile/(\d+)")

FeedHandler = Callable[[Pending, Dict[str, Any]], None]
BodyHandler = Callable[[Pending, bytes], None]


@dataclass
class RecentPostsListing:
    """Pagination state carried from one page load to the next."""
    number: int
    oldest_first: bool = False
    posts: List[Post] = field(default_factory=list)
    pages: int = 1


class GData(Blog):
    """Backend for Blogger's GData (Atom) API."""

    interface_name = "GData"

    def __init__(self, config: BlogConfig, feed_loader: FeedLoader, http: HttpTransport,
                 events: Optional[EventHub] = None,
                 correlator: Optional[CallCorrelator] = None,
                 feed_base: Optional[str] = None):
        super().__init__(config, events, correlator)
        if feed_loader is None or http is None:
            raise ValueError("feed_loader and http must not be None")
        self.feed_loader = feed_loader
        self.http = http
        self.feed_base = (feed_base or settings.GDATA_FEED_BASE).rstrip("/")
        self.profile_id = config.profile_id

    # -------------------------------------------------------------------------
    # URLs and Requests
    # -------------------------------------------------------------------------

    def _posts_url(self, post_id: str = "") -> str:
        url = f"{self.feed_base}/{self.blog_id}/posts/default"
        return f"{url}/{post_id}" if post_id else url

    def _comments_url(self, post: Optional[Post] = None, comment_id: str = "") -> str:
        if post is None:
            return f"{self.feed_base}/{self.blog_id}/comments/default"
        url = f"{self.feed_base}/{self.blog_id}/{post.post_id}/comments/default"
        return f"{url}/{comment_id}" if comment_id else url

    def _headers(self, with_body: bool = False) -> Dict[str, str]:
        headers = {"User-Agent": self.user_agent, "GData-Version": "1"}
        if self.config.auth_token:
            headers["Authorization"] = f"GoogleLogin auth={self.config.auth_token}"
        if with_body:
            headers["Content-Type"] = "application/atom+xml"
        return headers

    def _load(self, url: str, handler: FeedHandler, subject: Any = None, aux: Any = None) -> int:
        token = self.correlator.issue(subject, aux, f"GET {url}")
        logger.debug(f"GData: loading {url} (call {token})")
        self.feed_loader.load(url, functools.partial(self._on_loaded, handler),
                              self._on_load_failed, token, headers=self._headers())
        return token

    def _request(self, method: str, url: str, body: Optional[bytes], handler: BodyHandler,
                 subject: Any = None) -> int:
        token = self.correlator.issue(subject, None, f"{method} {url}")
        logger.debug(f"GData: {method} {url} (call {token})")
        self.http.request(method, url, body, self._headers(with_body=body is not None),
                          functools.partial(self._on_done, handler),
                          self._on_http_failed, token)
        return token

    def _on_loaded(self, handler: FeedHandler, feed: Dict[str, Any], token: Any) -> None:
        entry = self._claim(token, ErrorKind.OTHER, f"Received a feed for unknown call {token}.")
        if entry is not None:
            handler(entry, feed)

    def _on_load_failed(self, code: int, token: Any) -> None:
        message = f"Could not load the feed (error {int(code)})."
        entry = self._claim(token, ErrorKind.TRANSPORT_FAULT, message)
        if entry is not None:
            self._fail_pending(entry, ErrorKind.TRANSPORT_FAULT, message)

    def _on_done(self, handler: BodyHandler, status: int, body: bytes, token: Any) -> None:
        entry = self._claim(token, ErrorKind.OTHER, f"Received an answer for unknown call {token}.")
        if entry is not None:
            handler(entry, body)

    def _on_http_failed(self, status: int, message: str, token: Any) -> None:
        kind = classify_fault(status, message)
        text = f"{message} (HTTP {status})"
        entry = self._claim(token, kind, text)
        if entry is not None:
            self._fail_pending(entry, kind, text)

    # -------------------------------------------------------------------------
    # Not Offered by GData
    # -------------------------------------------------------------------------

    def fetch_user_info(self) -> None:
        self._not_supported("fetching user info")

    def list_categories(self) -> None:
        self._not_supported("listing categories")

    def create_media(self, media: Optional[Media]) -> None:
        self._not_supported("creating media", media=media)

    # -------------------------------------------------------------------------
    # Profile and Blogs
    # -------------------------------------------------------------------------

    def fetch_profile_id(self) -> None:
        """Find the profile id on the blog's front page; emits ``fetched_profile_id``."""
        self._request("GET", self.url, None, self._profile_page_loaded)

    def _profile_page_loaded(self, entry: Pending, body: bytes) -> None:
        page = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else str(body)
        match = _PROFILE_RE.search(page)
        if not match:
            self._fail_pending(entry, ErrorKind.PARSING_ERROR,
                               "Could not find a profile link on the blog page.")
            return
        self.profile_id = match.group(1)
        logger.info(f"Found profile id {self.profile_id}")
        self._emit("fetched_profile_id", self.profile_id)

    def list_blogs(self) -> None:
        if not self.profile_id:
            self._fail(ErrorKind.OTHER, "Could not list blogs, the profile id is unknown.")
            return
        self._load(f"{self.feed_base}/{self.profile_id}/blogs", self._blogs_listed)

    def _blogs_listed(self, entry: Pending, feed: Dict[str, Any]) -> None:
        outcome = parse_feed(feed, entry_to_blog)
        if self._accept(outcome, entry):
            logger.info(f"Listed {len(outcome.value)} blogs")
            self._emit("listed_blogs", outcome.value)

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    def list_recent_posts(self, number: int, labels: Optional[List[str]] = None,
                          published_min: Optional[datetime] = None,
                          published_max: Optional[datetime] = None,
                          updated_min: Optional[datetime] = None,
                          updated_max: Optional[datetime] = None,
                          oldest_first: bool = False) -> None:
        """
        List up to ``number`` posts, newest first.

        Args:
            number: Posts wanted; further pages are loaded until it is met.
            labels: Only posts carrying all of these labels.
            published_min: Lower bound of the publish time.
            published_max: Upper bound of the publish time.
            updated_min: Lower bound of the last update time.
            updated_max: Upper bound of the last update time.
            oldest_first: Reverse the collected posts before emitting them.
        """
        if self._empty_listing(number):
            return
        url = self._posts_url()
        if labels:
            url += "/-/" + "/".join(quote(label, safe="") for label in labels)
        query: Dict[str, Any] = {"max-results": number}
        bounds = (("published-min", published_min), ("published-max", published_max),
                  ("updated-min", updated_min), ("updated-max", updated_max))
        for key, value in bounds:
            if value is not None:
                query[key] = atom_date(to_utc(value, self.timezone))
        if updated_min is not None or updated_max is not None:
            query["orderby"] = "updated"
        self._load(f"{url}?{urlencode(query)}", self._posts_page_loaded,
                   aux=RecentPostsListing(number, oldest_first))

    def _posts_page_loaded(self, entry: Pending, feed: Dict[str, Any]) -> None:
        outcome = parse_feed(feed, entry_to_post)
        if not self._accept(outcome, entry):
            return
        listing = entry.aux
        for post in outcome.value:
            if len(listing.posts) >= listing.number:
                break
            listing.posts.append(post)

        link = next_link(feed)
        if len(listing.posts) < listing.number and link:
            if listing.pages < settings.GDATA_PAGE_LIMIT:
                listing.pages += 1
                self._load(link, self._posts_page_loaded, aux=listing)
                return
            logger.warning(f"Stopped listing posts after {listing.pages} pages")

        posts = list(reversed(listing.posts)) if listing.oldest_first else listing.posts
        logger.info(f"Listed {len(posts)} recent posts from {listing.pages} page(s)")
        self._emit("listed_recent_posts", posts)

    def fetch_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "fetch the post"):
            return
        self._load(self._posts_url(), self._post_searched, subject=post, aux=1)

    def _post_searched(self, entry: Pending, feed: Dict[str, Any]) -> None:
        post = entry.subject
        outcome = parse_feed(feed, lambda item: item)
        if not self._accept(outcome, entry):
            return
        for item in outcome.value:
            if extract_post_id(item.get("id", "")) == post.post_id:
                read_post_from_entry(post, item)
                post.set_status(PostStatus.FETCHED)
                self._emit("fetched_post", post)
                return

        link = next_link(feed)
        if link and entry.aux < settings.GDATA_PAGE_LIMIT:
            self._load(link, self._post_searched, subject=post, aux=entry.aux + 1)
            return
        self._fail_pending(entry, ErrorKind.OTHER,
                           f"Could not find post {post.post_id} in the feed.")

    def create_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "create the post"):
            return
        body = build_post_entry(post, self.blog_id, self.config.full_name, self.username)
        self._request("POST", self._posts_url(), body, self._post_created, subject=post)

    def _post_created(self, entry: Pending, body: bytes) -> None:
        post = entry.subject
        outcome = parse_entry_response(body)
        if not self._accept(outcome, entry):
            return
        self._apply_entry_response(post, outcome.value)
        post.set_status(PostStatus.CREATED)
        logger.info(f"Created post {post.post_id}")
        self._emit("created_post", post)

    def modify_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "modify the post"):
            return
        body = build_post_entry(post, self.blog_id, self.config.full_name, self.username,
                                include_id=True)
        self._request("PUT", self._posts_url(post.post_id), body, self._post_modified,
                      subject=post)

    def _post_modified(self, entry: Pending, body: bytes) -> None:
        post = entry.subject
        outcome = parse_entry_response(body)
        if not self._accept(outcome, entry):
            return
        self._apply_entry_response(post, outcome.value)
        post.set_status(PostStatus.MODIFIED)
        logger.info(f"Modified post {post.post_id}")
        self._emit("modified_post", post)

    @staticmethod
    def _apply_entry_response(post: Post, info: Dict[str, Any]) -> None:
        post.post_id = info["id"]
        if info["link"]:
            post.link = info["link"]
            post.perma_link = info["link"]
        if info["published"] is not None:
            post.creation_date_time = info["published"]
        if info["updated"] is not None:
            post.modification_date_time = info["updated"]

    def remove_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "remove the post"):
            return
        self._request("DELETE", self._posts_url(post.post_id), None, self._post_removed,
                      subject=post)

    def _post_removed(self, entry: Pending, body: bytes) -> None:
        post = entry.subject
        post.set_status(PostStatus.REMOVED)
        logger.info(f"Removed post {post.post_id}")
        self._emit("removed_post", post)

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    def list_comments(self, post: Optional[Post]) -> None:
        if not self._require(post, "list the comments"):
            return
        self._load(self._comments_url(post), self._comments_listed, subject=post)

    def _comments_listed(self, entry: Pending, feed: Dict[str, Any]) -> None:
        outcome = parse_feed(feed, entry_to_comment)
        if self._accept(outcome, entry):
            logger.info(f"Listed {len(outcome.value)} comments of post {entry.subject.post_id}")
            self._emit("listed_comments", entry.subject, outcome.value)

    def list_all_comments(self) -> None:
        self._load(self._comments_url(), self._all_comments_listed)

    def _all_comments_listed(self, entry: Pending, feed: Dict[str, Any]) -> None:
        outcome = parse_feed(feed, entry_to_comment)
        if self._accept(outcome, entry):
            logger.info(f"Listed {len(outcome.value)} comments")
            self._emit("listed_all_comments", outcome.value)

    def create_comment(self, post: Optional[Post], comment: Optional[Comment]) -> None:
        if not self._require(post, "create the comment") or \
                not self._require(comment, "create the comment"):
            return
        self._request("POST", self._comments_url(post), build_comment_entry(comment),
                      self._comment_created, subject=(post, comment))

    def _comment_created(self, entry: Pending, body: bytes) -> None:
        post, comment = entry.subject
        outcome = parse_entry_response(body)
        if not self._accept(outcome, entry):
            return
        comment.comment_id = outcome.value["id"]
        if outcome.value["published"] is not None:
            comment.creation_date_time = outcome.value["published"]
        if outcome.value["updated"] is not None:
            comment.modification_date_time = outcome.value["updated"]
        comment.set_status(CommentStatus.CREATED)
        logger.info(f"Created comment {comment.comment_id} on post {post.post_id}")
        self._emit("created_comment", post, comment)

    def remove_comment(self, post: Optional[Post], comment: Optional[Comment]) -> None:
        if not self._require(post, "remove the comment") or \
                not self._require(comment, "remove the comment"):
            return
        self._request("DELETE", self._comments_url(post, comment.comment_id), None,
                      self._comment_removed, subject=(post, comment))

    def _comment_removed(self, entry: Pending, body: bytes) -> None:
        post, comment = entry.subject
        comment.set_status(CommentStatus.REMOVED)
        logger.info(f"Removed comment {comment.comment_id}")
        self._emit("removed_comment", post, comment)
