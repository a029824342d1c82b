"""
MetaWeblog Backend

Posts travel as structs with a title, categories and dates; media objects
can be uploaded. Account calls and post removal have no MetaWeblog
counterpart and go through the Blogger 1.0 API on the same server.
"""

import xmlrpc.client
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from backends.blogger1 import Blogger1
from backends.correlator import CallCorrelator, Pending
from backends.events import EventHub
from backends.protocols import RpcTransport
from backends.xmlrpc import XmlRpcBlog
from data.mapper import (
    MapResult, read_post_from_map, parse_categories, parse_post, parse_post_list,
    parse_post_id, parse_bool_result, parse_media_url,
)
from data.models import BlogConfig, Post, Media, PostStatus, MediaStatus
from utils.helpers import to_utc
from utils.logger import get_logger

logger = get_logger(__name__)

PostReader = Callable[[Optional[Post], Any], MapResult]


class MetaWeblog(XmlRpcBlog):
    """Backend for servers speaking the ``metaWeblog.*`` API."""

    interface_name = "MetaWeblog"

    def __init__(self, config: BlogConfig, transport: RpcTransport,
                 events: Optional[EventHub] = None,
                 correlator: Optional[CallCorrelator] = None,
                 post_reader: PostReader = read_post_from_map):
        super().__init__(config, transport, events, correlator)
        self.post_reader = post_reader
        # Last listing, used to map category names to server ids
        self.categories: List[Dict[str, str]] = []
        self._blogger = Blogger1(config, transport, self.events, self.correlator)

    def post_struct(self, post: Post, creating: bool) -> Dict[str, Any]:
        """
        Build the post struct of ``newPost``/``editPost``.

        The date key is ``dateCreated`` when creating and ``lastModified``
        when modifying; naive dates are taken in the blog's time zone.
        """
        struct = {
            "categories": list(post.categories),
            "description": post.content,
            "title": post.title,
        }
        if creating:
            struct["dateCreated"] = self._wire_date(post.creation_date_time)
        else:
            struct["lastModified"] = self._wire_date(post.modification_date_time)
        return struct

    def _wire_date(self, value: Optional[datetime]) -> datetime:
        return to_utc(value, self.timezone) or datetime.now(timezone.utc)

    # -------------------------------------------------------------------------
    # Delegated to Blogger 1.0
    # -------------------------------------------------------------------------

    def fetch_user_info(self) -> None:
        self._blogger.fetch_user_info()

    def list_blogs(self) -> None:
        self._blogger.list_blogs()

    def remove_post(self, post: Optional[Post]) -> None:
        self._blogger.remove_post(post)

    # -------------------------------------------------------------------------
    # Categories and Media
    # -------------------------------------------------------------------------

    def list_categories(self) -> None:
        args = [self.blog_id, self.username, self.password]
        self._call("metaWeblog.getCategories", args, self._categories_listed)

    def _categories_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = parse_categories(result)
        if self._accept(outcome, entry):
            self.categories = outcome.value
            logger.info(f"Listed {len(self.categories)} categories")
            self._emit("listed_categories", outcome.value)

    def create_media(self, media: Optional[Media]) -> None:
        if not self._require(media, "create the media"):
            return
        struct = {
            "name": media.name,
            "type": media.mimetype,
            "bits": xmlrpc.client.Binary(media.data),
        }
        args = [self.blog_id, self.username, self.password, struct]
        self._call("metaWeblog.newMediaObject", args, self._media_created, subject=media)

    def _media_created(self, entry: Pending, result: List[Any]) -> None:
        media = entry.subject
        outcome = parse_media_url(result)
        if self._accept(outcome, entry):
            media.url = outcome.value
            media.set_status(MediaStatus.CREATED)
            logger.info(f"Uploaded {media.name} to {media.url}")
            self._emit("created_media", media)

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    def list_recent_posts(self, number: int) -> None:
        if self._empty_listing(number):
            return
        args = [self.blog_id, self.username, self.password, number]
        self._call("metaWeblog.getRecentPosts", args, self._recent_posts_listed, aux=number)

    def _recent_posts_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = parse_post_list(result, entry.aux, self.post_reader)
        if self._accept(outcome, entry):
            logger.info(f"Listed {len(outcome.value)} recent posts")
            self._emit("listed_recent_posts", outcome.value)

    def fetch_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "fetch the post"):
            return
        args = [post.post_id, self.username, self.password]
        self._call("metaWeblog.getPost", args, self._post_fetched, subject=post)

    def _post_fetched(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        if self._accept(parse_post(result, post, self.post_reader), entry):
            post.set_status(PostStatus.FETCHED)
            self._emit("fetched_post", post)

    def create_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "create the post"):
            return
        args = [self.blog_id, self.username, self.password,
                self.post_struct(post, creating=True), not post.is_private]
        self._call("metaWeblog.newPost", args, self._post_created, subject=post)

    def _post_created(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        outcome = parse_post_id(result)
        if self._accept(outcome, entry):
            post.post_id = outcome.value
            post.set_status(PostStatus.CREATED)
            logger.info(f"Created post {post.post_id}")
            self._emit("created_post", post)

    def modify_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "modify the post"):
            return
        args = [post.post_id, self.username, self.password,
                self.post_struct(post, creating=False), not post.is_private]
        self._call("metaWeblog.editPost", args, self._post_modified, subject=post)

    def _post_modified(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        if self._accept(parse_bool_result(result), entry):
            post.set_status(PostStatus.MODIFIED)
            logger.info(f"Modified post {post.post_id}")
            self._emit("modified_post", post)
