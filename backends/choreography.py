"""
MovableType Category Chain

MovableType does not accept categories in the call that writes the post
body. A create or modify therefore runs as a chain of calls:

    newPost/editPost (never published)
        -> mt.setPostCategories
        -> mt.publishPost (only when the caller wants the post public)
        -> created_post / modified_post

Fetching runs ``metaWeblog.getPost`` then ``mt.getPostCategories``.
Each link is issued only from the callback of the previous one, and the
publish flag rides along as the auxiliary state of every new token. A
failing link emits one error and abandons the rest of the chain; earlier
links are not rolled back.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, TYPE_CHECKING

from backends.correlator import Pending
from data.mapper import parse_post, parse_post_id, parse_bool_result, parse_post_categories
from data.models import Post, PostStatus
from utils.logger import get_logger

if TYPE_CHECKING:
    from backends.movabletype import MovableType

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChainState:
    """State carried from one link of a chain to the next."""
    publish: bool
    creating: bool


class CategoryChain:
    """Runs the multi-call create, modify and fetch operations of MovableType."""

    def __init__(self, blog: "MovableType"):
        self.blog = blog

    # -------------------------------------------------------------------------
    # Create / Modify
    # -------------------------------------------------------------------------

    def start_create(self, post: Post) -> int:
        blog = self.blog
        state = ChainState(publish=not post.is_private, creating=True)
        args = [blog.blog_id, blog.username, blog.password,
                blog.post_struct(post, creating=True), False]
        return blog._call("metaWeblog.newPost", args, self._body_written,
                          subject=post, aux=state)

    def start_modify(self, post: Post) -> int:
        blog = self.blog
        state = ChainState(publish=not post.is_private, creating=False)
        args = [post.post_id, blog.username, blog.password,
                blog.post_struct(post, creating=False), False]
        return blog._call("metaWeblog.editPost", args, self._body_written,
                          subject=post, aux=state)

    def _body_written(self, entry: Pending, result: List[Any]) -> None:
        post, state = entry.subject, entry.aux
        if state.creating:
            outcome = parse_post_id(result)
            if not self.blog._accept(outcome, entry):
                return
            post.post_id = outcome.value
            logger.debug(f"Post {post.post_id} created unpublished, assigning categories")
        elif not self.blog._accept(parse_bool_result(result), entry):
            return
        self._assign_categories(post, state)

    def start_assign(self, post: Post, publish: bool) -> int:
        """Set the categories of an existing post, then publish it if asked."""
        return self._assign_categories(post, ChainState(publish=publish, creating=False))

    def _assign_categories(self, post: Post, state: ChainState) -> int:
        blog = self.blog
        args = [post.post_id, blog.username, blog.password, self.category_list(post)]
        return blog._call("mt.setPostCategories", args, self._categories_assigned,
                   subject=post, aux=state)

    def category_list(self, post: Post) -> List[Dict[str, Any]]:
        """Build the ``mt.setPostCategories`` list; the first category is primary."""
        return [{"categoryId": self.blog.category_id(name), "isPrimary": index == 0}
                for index, name in enumerate(post.categories)]

    def _categories_assigned(self, entry: Pending, result: List[Any]) -> None:
        post, state = entry.subject, entry.aux
        if not self.blog._accept(parse_bool_result(result), entry):
            return
        if not state.publish:
            self._complete(post, state)
            return
        blog = self.blog
        args = [post.post_id, blog.username, blog.password]
        blog._call("mt.publishPost", args, self._published, subject=post, aux=state)

    def _published(self, entry: Pending, result: List[Any]) -> None:
        if self.blog._accept(parse_bool_result(result), entry):
            self._complete(entry.subject, entry.aux)

    def _complete(self, post: Post, state: ChainState) -> None:
        if state.creating:
            post.set_status(PostStatus.CREATED)
            logger.info(f"Created post {post.post_id}")
            self.blog._emit("created_post", post)
        else:
            post.set_status(PostStatus.MODIFIED)
            logger.info(f"Modified post {post.post_id}")
            self.blog._emit("modified_post", post)

    # -------------------------------------------------------------------------
    # Fetch
    # -------------------------------------------------------------------------

    def start_fetch(self, post: Post) -> int:
        blog = self.blog
        args = [post.post_id, blog.username, blog.password]
        return blog._call("metaWeblog.getPost", args, self._post_read, subject=post)

    def _post_read(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        if not self.blog._accept(parse_post(result, post, self.blog.post_reader), entry):
            return
        blog = self.blog
        args = [post.post_id, blog.username, blog.password]
        blog._call("mt.getPostCategories", args, self._categories_read, subject=post)

    def _categories_read(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        outcome = parse_post_categories(result)
        if not self.blog._accept(outcome, entry):
            return
        if outcome.value:
            post.categories = outcome.value
        post.set_status(PostStatus.FETCHED)
        self.blog._emit("fetched_post", post)
