"""
Blogger 1.0 Backend

The oldest of the XML-RPC blog APIs. Every call starts with an application
key, posts have no title field (the title travels as a ``<title>`` element
at the front of the content), and there are no categories or media.
"""

from typing import Any, List, Optional

from config import settings
from backends.correlator import CallCorrelator, Pending
from backends.events import EventHub
from backends.protocols import RpcTransport
from backends.xmlrpc import XmlRpcBlog
from data.mapper import (
    embed_blogger_title, read_blogger_post_from_map, parse_post, parse_post_list,
    parse_post_id, parse_bool_result, parse_user_info, parse_blogs,
)
from data.models import BlogConfig, Post, Media, PostStatus
from utils.logger import get_logger

logger = get_logger(__name__)


class Blogger1(XmlRpcBlog):
    """Backend for servers speaking the ``blogger.*`` API."""

    interface_name = "Blogger 1.0"

    def __init__(self, config: BlogConfig, transport: RpcTransport,
                 events: Optional[EventHub] = None,
                 correlator: Optional[CallCorrelator] = None,
                 app_key: Optional[str] = None):
        super().__init__(config, transport, events, correlator)
        self.app_key = app_key if app_key is not None else settings.BLOGGER_APP_KEY

    def _login(self) -> List[Any]:
        return [self.app_key, self.username, self.password]

    # -------------------------------------------------------------------------
    # Account
    # -------------------------------------------------------------------------

    def fetch_user_info(self) -> None:
        self._call("blogger.getUserInfo", self._login(), self._user_info_fetched)

    def _user_info_fetched(self, entry: Pending, result: List[Any]) -> None:
        outcome = parse_user_info(result)
        if self._accept(outcome, entry):
            logger.info(f"Fetched user info of {outcome.value['userid'] or self.username}")
            self._emit("fetched_user_info", outcome.value)

    def list_blogs(self) -> None:
        self._call("blogger.getUsersBlogs", self._login(), self._blogs_listed)

    def _blogs_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = parse_blogs(result)
        if self._accept(outcome, entry):
            logger.info(f"Listed {len(outcome.value)} blogs")
            self._emit("listed_blogs", outcome.value)

    def list_categories(self) -> None:
        self._not_supported("listing categories")

    def create_media(self, media: Optional[Media]) -> None:
        self._not_supported("creating media", media=media)

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    def list_recent_posts(self, number: int) -> None:
        if self._empty_listing(number):
            return
        args = [self.app_key, self.blog_id, self.username, self.password, number]
        self._call("blogger.getRecentPosts", args, self._recent_posts_listed, aux=number)

    def _recent_posts_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = parse_post_list(result, entry.aux, read_blogger_post_from_map)
        if self._accept(outcome, entry):
            logger.info(f"Listed {len(outcome.value)} recent posts")
            self._emit("listed_recent_posts", outcome.value)

    def fetch_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "fetch the post"):
            return
        args = [self.app_key, post.post_id, self.username, self.password]
        self._call("blogger.getPost", args, self._post_fetched, subject=post)

    def _post_fetched(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        if self._accept(parse_post(result, post, read_blogger_post_from_map), entry):
            post.set_status(PostStatus.FETCHED)
            self._emit("fetched_post", post)

    def create_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "create the post"):
            return
        args = [self.app_key, self.blog_id, self.username, self.password,
                embed_blogger_title(post), not post.is_private]
        self._call("blogger.newPost", args, self._post_created, subject=post)

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
        args = [self.app_key, post.post_id, self.username, self.password,
                embed_blogger_title(post), not post.is_private]
        self._call("blogger.editPost", args, self._post_modified, subject=post)

    def _post_modified(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        if self._accept(parse_bool_result(result), entry):
            post.set_status(PostStatus.MODIFIED)
            logger.info(f"Modified post {post.post_id}")
            self._emit("modified_post", post)

    def remove_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "remove the post"):
            return
        args = [self.app_key, post.post_id, self.username, self.password, True]
        self._call("blogger.deletePost", args, self._post_removed, subject=post)

    def _post_removed(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        if self._accept(parse_bool_result(result), entry):
            post.set_status(PostStatus.REMOVED)
            logger.info(f"Removed post {post.post_id}")
            self._emit("removed_post", post)
