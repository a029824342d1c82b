"""
MovableType Backend

MetaWeblog plus the ``mt.*`` extensions: categories are assigned in a
separate call, publishing is a call of its own, and posts carry the
extended ``mt_*`` fields (excerpt, extended text, keywords, comment and
ping switches). WordPress answers this API too and adds ``wp_slug``.
"""

from typing import Any, Dict, List, Optional

from backends.choreography import CategoryChain
from backends.correlator import CallCorrelator, Pending
from backends.events import EventHub
from backends.metaweblog import MetaWeblog
from backends.protocols import RpcTransport
from backends.xmlrpc import XmlRpcBlog
from data.mapper import read_movabletype_post_from_map, parse_track_back_pings
from data.models import BlogConfig, Post, Media
from utils.logger import get_logger

logger = get_logger(__name__)


class MovableType(XmlRpcBlog):
    """Backend for servers speaking the MovableType API."""

    interface_name = "MovableType"

    def __init__(self, config: BlogConfig, transport: RpcTransport,
                 events: Optional[EventHub] = None,
                 correlator: Optional[CallCorrelator] = None):
        super().__init__(config, transport, events, correlator)
        self.post_reader = read_movabletype_post_from_map
        self._metaweblog = MetaWeblog(config, transport, self.events, self.correlator,
                                      post_reader=self.post_reader)
        self.chain = CategoryChain(self)

    @property
    def categories(self) -> List[Dict[str, str]]:
        """Categories of the last ``list_categories`` answer."""
        return self._metaweblog.categories

    def category_id(self, name: str) -> str:
        """Server id of a category name; the name itself when it is not known."""
        for category in self.categories:
            if category.get("name") == name and category.get("categoryId"):
                return category["categoryId"]
        return name

    def post_struct(self, post: Post, creating: bool) -> Dict[str, Any]:
        struct = self._metaweblog.post_struct(post, creating)
        struct.update({
            "mt_allow_comments": 1 if post.is_comment_allowed else 0,
            "mt_allow_pings": 1 if post.is_track_back_allowed else 0,
            "mt_excerpt": post.summary,
            "mt_text_more": post.additional_content,
            "mt_keywords": ", ".join(post.tags),
        })
        if post.slug:
            struct["wp_slug"] = post.slug
        return struct

    # -------------------------------------------------------------------------
    # Delegated to MetaWeblog
    # -------------------------------------------------------------------------

    def fetch_user_info(self) -> None:
        self._metaweblog.fetch_user_info()

    def list_blogs(self) -> None:
        self._metaweblog.list_blogs()

    def list_categories(self) -> None:
        self._metaweblog.list_categories()

    def list_recent_posts(self, number: int) -> None:
        self._metaweblog.list_recent_posts(number)

    def create_media(self, media: Optional[Media]) -> None:
        self._metaweblog.create_media(media)

    def remove_post(self, post: Optional[Post]) -> None:
        self._metaweblog.remove_post(post)

    # -------------------------------------------------------------------------
    # Chained Operations
    # -------------------------------------------------------------------------

    def create_post(self, post: Optional[Post]) -> None:
        if self._require(post, "create the post"):
            self.chain.start_create(post)

    def modify_post(self, post: Optional[Post]) -> None:
        if self._require(post, "modify the post"):
            self.chain.start_modify(post)

    def fetch_post(self, post: Optional[Post]) -> None:
        if self._require(post, "fetch the post"):
            self.chain.start_fetch(post)

    def set_post_categories(self, post: Optional[Post], publish_after: bool = False) -> None:
        if self._require(post, "set the post categories"):
            self.chain.start_assign(post, publish_after)

    # -------------------------------------------------------------------------
    # Track Backs
    # -------------------------------------------------------------------------

    def list_track_back_pings(self, post: Optional[Post]) -> None:
        if not self._require(post, "list the track back pings"):
            return
        self._call("mt.getTrackbackPings", [post.post_id], self._pings_listed, subject=post)

    def _pings_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = parse_track_back_pings(result)
        if self._accept(outcome, entry):
            logger.info(f"Listed {len(outcome.value)} track back pings of {entry.subject.post_id}")
            self._emit("listed_track_back_pings", entry.subject, outcome.value)
