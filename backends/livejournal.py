"""
LiveJournal Backend

LiveJournal's own XML-RPC API (``LJ.XMLRPC.*``). Every call takes a single
struct carrying the credentials; the password is sent as an MD5 digest.
Entries are addressed by numeric item id, the friend groups play the role
of categories, and removing an entry is an edit with an empty body.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config import settings
from backends.base import ErrorKind
from backends.correlator import CallCorrelator, Pending
from backends.events import EventHub
from backends.protocols import RpcTransport
from backends.xmlrpc import XmlRpcBlog
from data.dynamic import expect_list, expect_map, to_bool, to_int, to_string, to_utc_datetime
from data.mapper import MapResult, guarded, expect_struct
from data.models import BlogConfig, Post, Comment, Media, PostStatus
from utils.helpers import md5_hex, to_local
from utils.logger import get_logger

logger = get_logger(__name__)

_EVENT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


# =============================================================================
# Response Readers
# =============================================================================

@guarded
def read_event(post: Optional[Post], info: Any, local_tz=None) -> MapResult:
    """Fill a post from one item of a ``getevents`` answer."""
    if post is None:
        return MapResult.failure("Could not read post, no post given.")
    info = expect_map(info, "an event")
    post.post_id = to_string(info.get("itemid"))
    post.title = to_string(info.get("subject"))
    post.content = to_string(info.get("event"))
    post.link = to_string(info.get("url"))
    post.perma_link = post.link
    post.is_private = to_string(info.get("security"), "public") != "public"

    event_time = to_string(info.get("eventtime"))
    if event_time:
        try:
            local = datetime.strptime(event_time, _EVENT_TIME_FORMAT)
            post.creation_date_time = local.replace(tzinfo=local_tz or timezone.utc) \
                .astimezone(timezone.utc)
        except ValueError:
            pass
    logged = to_utc_datetime(info.get("logtime"))
    if logged is not None:
        post.modification_date_time = logged

    props = info.get("props") if isinstance(info.get("props"), dict) else {}
    post.mood = to_string(props.get("current_mood"))
    post.music = to_string(props.get("current_music"))
    tags = to_string(props.get("taglist"))
    post.tags = [tag.strip() for tag in tags.split(",") if tag.strip()]
    post.is_comment_allowed = not to_bool(props.get("opt_nocomments"))
    return MapResult.success(post)


@guarded
def read_item_id(result: Any) -> MapResult:
    """Read the ``itemid`` of a ``postevent``/``editevent`` answer."""
    info = expect_struct(result, "the event result")
    if not info.ok:
        return info
    item_id = to_string(info.value.get("itemid"))
    if not item_id:
        return MapResult.failure("Could not read the itemid of the event.")
    return MapResult.success({"itemid": item_id, "url": to_string(info.value.get("url"))})


@guarded
def read_list(result: Any, key: str, what: str) -> MapResult:
    """Read a list of structs stored under ``key`` of the answer struct."""
    info = expect_struct(result, what)
    if not info.ok:
        return info
    items = info.value.get(key)
    if items is None:
        return MapResult.success([])
    return MapResult.success([expect_map(item, what) for item in expect_list(items, what)])


class LiveJournal(XmlRpcBlog):
    """Backend for LiveJournal servers."""

    interface_name = "LiveJournal"

    def __init__(self, config: BlogConfig, transport: RpcTransport,
                 events: Optional[EventHub] = None,
                 correlator: Optional[CallCorrelator] = None):
        super().__init__(config, transport, events, correlator)

    def _struct(self, **fields: Any) -> List[Dict[str, Any]]:
        """The single argument of every call: credentials plus ``fields``."""
        struct = {
            "username": self.username,
            "auth_method": "clear",
            "hpassword": md5_hex(self.password),
            "ver": 1,
        }
        struct.update(fields)
        return [struct]

    def _login(self, handler, **flags: Any) -> int:
        return self._call("LJ.XMLRPC.login",
                          self._struct(clientversion=settings.LIVEJOURNAL_CLIENT_VERSION, **flags),
                          handler)

    def _event_fields(self, post: Post) -> Dict[str, Any]:
        when = to_local(post.creation_date_time or datetime.now(timezone.utc), self.timezone)
        return {
            "event": post.content,
            "subject": post.title,
            "lineendings": "unix",
            "security": "private" if post.is_private else "public",
            "year": when.year,
            "mon": when.month,
            "day": when.day,
            "hour": when.hour,
            "min": when.minute,
            "props": {
                "current_mood": post.mood,
                "current_music": post.music,
                "taglist": ", ".join(post.tags),
                "opt_nocomments": not post.is_comment_allowed,
            },
        }

    # -------------------------------------------------------------------------
    # Account
    # -------------------------------------------------------------------------

    def fetch_user_info(self) -> None:
        self._login(self._logged_in)

    def _logged_in(self, entry: Pending, result: List[Any]) -> None:
        outcome = expect_struct(result, "the login result")
        if not self._accept(outcome, entry):
            return
        info = {
            "userid": to_string(outcome.value.get("userid")),
            "fullname": to_string(outcome.value.get("fullname")),
            "nickname": self.username,
            "message": to_string(outcome.value.get("message")),
        }
        logger.info(f"Logged in to LiveJournal as {self.username}")
        self._emit("fetched_user_info", info)

    def list_blogs(self) -> None:
        self._login(self._journals_listed)

    def _journals_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = expect_struct(result, "the login result")
        if not self._accept(outcome, entry):
            return
        journals = [self.username] + \
            [to_string(name) for name in outcome.value.get("usejournals") or []]
        blogs = [{"id": name, "name": name, "url": f"https://{name}.livejournal.com/"}
                 for name in journals if name]
        self._emit("listed_blogs", blogs)

    def list_moods(self) -> None:
        self._login(self._moods_listed, getmoods=0)

    def _moods_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = read_list(result, "moods", "the moods")
        if self._accept(outcome, entry):
            moods = [{"id": to_string(m.get("id")), "name": to_string(m.get("name")),
                      "parent": to_string(m.get("parent"))} for m in outcome.value]
            self._emit("listed_moods", moods)

    def list_picture_keywords(self) -> None:
        self._login(self._picture_keywords_listed, getpickws=1)

    def _picture_keywords_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = expect_struct(result, "the login result")
        if self._accept(outcome, entry):
            keywords = [to_string(k) for k in outcome.value.get("pickws") or []]
            self._emit("listed_picture_keywords", keywords)

    # -------------------------------------------------------------------------
    # Friends
    # -------------------------------------------------------------------------

    def list_categories(self) -> None:
        self._call("LJ.XMLRPC.getfriendgroups", self._struct(), self._friend_groups_listed)

    def _friend_groups_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = read_list(result, "friendgroups", "the friend groups")
        if not self._accept(outcome, entry):
            return
        categories = [{
            "name": to_string(group.get("name")),
            "description": "",
            "htmlUrl": "",
            "rssUrl": "",
            "categoryId": to_string(group.get("id")),
        } for group in outcome.value]
        self._emit("listed_categories", categories)

    def list_friends(self) -> None:
        self._call("LJ.XMLRPC.getfriends", self._struct(), self._friends_listed)

    def _friends_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = read_list(result, "friends", "the friends")
        if self._accept(outcome, entry):
            self._emit("listed_friends", [self._friend(f) for f in outcome.value])

    def list_friends_of(self) -> None:
        self._call("LJ.XMLRPC.friendof", self._struct(), self._friends_of_listed)

    def _friends_of_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = read_list(result, "friendofs", "the friends of")
        if self._accept(outcome, entry):
            self._emit("listed_friends_of", [self._friend(f) for f in outcome.value])

    @staticmethod
    def _friend(info: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "username": to_string(info.get("username")),
            "fullname": to_string(info.get("fullname")),
            "groupmask": to_int(info.get("groupmask")),
        }

    def add_friend(self, username: str, fg_color: str = "#000000",
                   bg_color: str = "#FFFFFF") -> None:
        fields = {"add": [{"username": username, "fgcolor": fg_color, "bgcolor": bg_color}]}
        self._call("LJ.XMLRPC.editfriends", self._struct(**fields), self._friend_added,
                   aux=username)

    def _friend_added(self, entry: Pending, result: List[Any]) -> None:
        if self._accept(expect_struct(result, "the friend result"), entry):
            self._emit("added_friend", entry.aux)

    def delete_friend(self, username: str) -> None:
        self._call("LJ.XMLRPC.editfriends", self._struct(delete=[username]),
                   self._friend_deleted, aux=username)

    def _friend_deleted(self, entry: Pending, result: List[Any]) -> None:
        if self._accept(expect_struct(result, "the friend result"), entry):
            self._emit("deleted_friend", entry.aux)

    def assign_friend_to_category(self, username: str, category_id: int) -> None:
        """Put a friend into one friend group; bit 0 of a group mask is always set."""
        mask = (1 << int(category_id)) | 1
        self._call("LJ.XMLRPC.editfriendgroups",
                   self._struct(groupmasks={username: mask}),
                   self._friend_assigned, aux=(username, category_id))

    def _friend_assigned(self, entry: Pending, result: List[Any]) -> None:
        if self._accept(expect_struct(result, "the friend group result"), entry):
            username, category_id = entry.aux
            self._emit("assigned_friend_to_category", username, category_id)

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    def list_recent_posts(self, number: int) -> None:
        if self._empty_listing(number):
            return
        fields = {"selecttype": "lastn", "howmany": number, "lineendings": "unix"}
        self._call("LJ.XMLRPC.getevents", self._struct(**fields), self._events_listed, aux=number)

    def _events_listed(self, entry: Pending, result: List[Any]) -> None:
        outcome = read_list(result, "events", "the events")
        if not self._accept(outcome, entry):
            return
        posts = []
        for info in outcome.value[:entry.aux]:
            post = Post()
            read = read_event(post, info, self.timezone)
            if not read.ok:
                logger.warning(f"Skipped an event: {read.message}")
                continue
            post.set_status(PostStatus.FETCHED)
            posts.append(post)
        logger.info(f"Listed {len(posts)} recent posts")
        self._emit("listed_recent_posts", posts)

    def fetch_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "fetch the post"):
            return
        fields = {"selecttype": "one", "itemid": to_int(post.post_id), "lineendings": "unix"}
        self._call("LJ.XMLRPC.getevents", self._struct(**fields), self._event_fetched,
                   subject=post)

    def _event_fetched(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        outcome = read_list(result, "events", "the events")
        if not self._accept(outcome, entry):
            return
        if not outcome.value:
            self._fail_pending(entry, ErrorKind.PARSING_ERROR,
                               f"The server returned no event for item {post.post_id}.")
            return
        if self._accept(read_event(post, outcome.value[0], self.timezone), entry):
            post.set_status(PostStatus.FETCHED)
            self._emit("fetched_post", post)

    def create_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "create the post"):
            return
        self._call("LJ.XMLRPC.postevent", self._struct(**self._event_fields(post)),
                   self._event_posted, subject=post)

    def _event_posted(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        outcome = read_item_id(result)
        if not self._accept(outcome, entry):
            return
        post.post_id = outcome.value["itemid"]
        if outcome.value["url"]:
            post.link = outcome.value["url"]
            post.perma_link = outcome.value["url"]
        post.set_status(PostStatus.CREATED)
        logger.info(f"Created post {post.post_id}")
        self._emit("created_post", post)

    def modify_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "modify the post"):
            return
        fields = self._event_fields(post)
        fields["itemid"] = to_int(post.post_id)
        self._call("LJ.XMLRPC.editevent", self._struct(**fields), self._event_edited,
                   subject=post)

    def _event_edited(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        if self._accept(read_item_id(result), entry):
            post.set_status(PostStatus.MODIFIED)
            logger.info(f"Modified post {post.post_id}")
            self._emit("modified_post", post)

    def remove_post(self, post: Optional[Post]) -> None:
        if not self._require(post, "remove the post"):
            return
        fields = {"itemid": to_int(post.post_id), "event": "", "subject": "",
                  "lineendings": "unix"}
        self._call("LJ.XMLRPC.editevent", self._struct(**fields), self._event_removed,
                   subject=post)

    def _event_removed(self, entry: Pending, result: List[Any]) -> None:
        post = entry.subject
        if self._accept(read_item_id(result), entry):
            post.set_status(PostStatus.REMOVED)
            logger.info(f"Removed post {post.post_id}")
            self._emit("removed_post", post)

    # -------------------------------------------------------------------------
    # Not Offered by LiveJournal
    # -------------------------------------------------------------------------

    def create_media(self, media: Optional[Media]) -> None:
        self._not_supported("creating media", media=media)

    def list_comments(self, post: Optional[Post]) -> None:
        self._not_supported("listing comments")

    def list_all_comments(self) -> None:
        self._not_supported("listing comments")

    def create_comment(self, post: Optional[Post], comment: Optional[Comment]) -> None:
        self._not_supported("creating comments", post=post, comment=comment)

    def remove_comment(self, post: Optional[Post], comment: Optional[Comment]) -> None:
        self._not_supported("removing comments", post=post, comment=comment)
