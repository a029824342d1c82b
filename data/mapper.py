"""
Response Mapper Module

Pure functions that validate loosely typed XML-RPC responses and turn them
into domain records. Every public function returns a ``MapResult`` and
never raises: a response with the wrong shape becomes ``ok=False`` with a
human readable message that the backend turns into a ParsingError event.

The ``result`` argument is always the list of decoded response parameters
handed over by the RPC transport.
"""

import functools
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from data.dynamic import (
    ValueKind, kind_of, expect_map, expect_list,
    first_value, to_string, to_bool, to_string_list, to_utc_datetime,
)
from data.models import Post, PostStatus
from utils.exceptions import ParsingError


@dataclass
class MapResult:
    """Outcome of mapping a server response."""
    ok: bool
    value: Any = None
    message: str = ""
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: Any = None, warnings: Optional[List[str]] = None) -> "MapResult":
        return cls(ok=True, value=value, warnings=warnings or [])

    @classmethod
    def failure(cls, message: str) -> "MapResult":
        return cls(ok=False, message=message)


def guarded(func: Callable[..., MapResult]) -> Callable[..., MapResult]:
    """Turn shape errors raised inside a mapper into a failed ``MapResult``."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> MapResult:
        try:
            return func(*args, **kwargs)
        except ParsingError as e:
            return MapResult.failure(str(e))
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            return MapResult.failure(f"Malformed server response: {e}")
    return wrapper


# =============================================================================
# Categories
# =============================================================================

def _category(name: str, info: Any) -> Dict[str, str]:
    info = info if isinstance(info, dict) else {}
    category = {
        "name": name,
        "description": to_string(info.get("description")),
        "htmlUrl": to_string(info.get("htmlUrl")),
        "rssUrl": to_string(info.get("rssUrl")),
    }
    # WordPress and MovableType also report ids, needed for mt.setPostCategories
    for key in ("categoryId", "parentId"):
        if key in info:
            category[key] = to_string(info.get(key))
    return category


@guarded
def parse_categories(result: Any) -> MapResult:
    """
    Read a category listing.

    Compliant MetaWeblog servers answer with a map of maps keyed by category
    name; others (WordPress) answer with a list of maps carrying the name in
    ``categoryName``. The shape is chosen from the top-level value.

    Returns:
        MapResult: ``value`` is a list of category dicts.
    """
    top = first_value(result, "the category list")
    kind = kind_of(top)
    categories = []
    if kind is ValueKind.MAP:
        for name, info in top.items():
            categories.append(_category(to_string(name), info))
    elif kind is ValueKind.LIST:
        for item in top:
            info = expect_map(item, "a category")
            categories.append(_category(to_string(info.get("categoryName")), info))
    else:
        raise ParsingError("Could not list categories out of the result from the server.")
    return MapResult.success(categories)


@guarded
def parse_post_categories(result: Any) -> MapResult:
    """
    Read the answer of ``mt.getPostCategories``.

    Returns:
        MapResult: ``value`` is the list of category names, primary first.
    """
    items = expect_list(first_value(result, "the post categories"), "the post categories")
    primary, others = [], []
    for item in items:
        info = expect_map(item, "a post category")
        name = to_string(info.get("categoryName"))
        if not name:
            continue
        if to_bool(info.get("isPrimary")):
            primary.append(name)
        else:
            others.append(name)
    return MapResult.success(primary + others)


# =============================================================================
# Posts
# =============================================================================

@guarded
def read_post_from_map(post: Optional[Post], info: Any) -> MapResult:
    """
    Fill a post from a MetaWeblog post struct.

    Dates are only assigned when they parse, categories only when the
    server sent some; a malformed nested field keeps its previous value.

    Returns:
        MapResult: failure only when ``post`` is None.
    """
    if post is None:
        return MapResult.failure("Could not read post, no post given.")
    info = info if isinstance(info, dict) else {}

    created = to_utc_datetime(info.get("dateCreated"))
    if created is not None:
        post.creation_date_time = created
    modified = to_utc_datetime(info.get("lastModified"))
    if modified is not None:
        post.modification_date_time = modified

    post.post_id = to_string(info.get("postid"))
    post.title = to_string(info.get("title"))
    post.content = to_string(info.get("description"))

    categories = to_string_list(info.get("categories"))
    if categories:
        post.categories = categories
    return MapResult.success(post)


_TITLE_RE = re.compile(r"<title>(.*?)</title>", re.DOTALL)
_CATEGORY_RE = re.compile(r"<category>(.*?)</category>", re.DOTALL)


def embed_blogger_title(post: Post) -> str:
    """Blogger 1.0 has no title field; the title travels inside the content."""
    content = f"<title>{post.title}</title>"
    if post.categories:
        content += f"<category>{post.categories[0]}</category>"
    return content + post.content


@guarded
def read_blogger_post_from_map(post: Optional[Post], info: Any) -> MapResult:
    """Fill a post from a Blogger 1.0 post struct (title embedded in content)."""
    if post is None:
        return MapResult.failure("Could not read post, no post given.")
    info = info if isinstance(info, dict) else {}

    created = to_utc_datetime(info.get("dateCreated"))
    if created is not None:
        post.creation_date_time = created
        post.modification_date_time = created
    post.post_id = to_string(info.get("postid"))

    content = to_string(info.get("content"))
    title = _TITLE_RE.search(content)
    if title:
        post.title = title.group(1)
        content = _TITLE_RE.sub("", content, count=1)
    category = _CATEGORY_RE.search(content)
    if category:
        post.categories = [category.group(1)]
        content = _CATEGORY_RE.sub("", content, count=1)
    post.content = content
    return MapResult.success(post)


def read_movabletype_extras(post: Post, info: Any) -> None:
    """Copy the ``mt_*`` and WordPress extension fields of a post struct."""
    info = info if isinstance(info, dict) else {}
    if "mt_allow_comments" in info:
        post.is_comment_allowed = to_bool(info.get("mt_allow_comments"), post.is_comment_allowed)
    if "mt_allow_pings" in info:
        post.is_track_back_allowed = to_bool(info.get("mt_allow_pings"), post.is_track_back_allowed)
    if "mt_excerpt" in info:
        post.summary = to_string(info.get("mt_excerpt"))
    if "mt_text_more" in info:
        post.additional_content = to_string(info.get("mt_text_more"))
    if "mt_keywords" in info:
        keywords = to_string(info.get("mt_keywords"))
        post.tags = [tag.strip() for tag in keywords.split(",") if tag.strip()]
    if "wp_slug" in info:
        post.slug = to_string(info.get("wp_slug"))
    if "link" in info:
        post.link = to_string(info.get("link"))
    if "permaLink" in info:
        post.perma_link = to_string(info.get("permaLink"))


@guarded
def read_movabletype_post_from_map(post: Optional[Post], info: Any) -> MapResult:
    """Fill a post from a MovableType post struct."""
    outcome = read_post_from_map(post, info)
    if outcome.ok:
        read_movabletype_extras(post, info)
    return outcome


@guarded
def parse_post(result: Any, post: Optional[Post],
               reader: Callable[[Optional[Post], Any], MapResult] = read_post_from_map) -> MapResult:
    """Read a single post struct (``getPost``) into ``post``."""
    info = expect_map(first_value(result, "the post"),
                      "the post")
    outcome = reader(post, info)
    if not outcome.ok:
        return outcome
    return MapResult.success(post)


@guarded
def parse_post_list(result: Any, count: int,
                    reader: Callable[[Optional[Post], Any], MapResult] = read_post_from_map) -> MapResult:
    """
    Read a ``getRecentPosts`` answer.

    Args:
        result: Transport result list.
        count: Maximum number of posts to keep.
        reader: Function filling one post from one struct.

    Returns:
        MapResult: ``value`` is a list of FETCHED posts, newest first.
    """
    items = expect_list(first_value(result, "the list of posts"), "the list of posts")
    posts, warnings = [], []
    for item in items:
        if len(posts) >= count:
            break
        if not isinstance(item, dict):
            warnings.append(f"Skipped a post entry of kind {kind_of(item).value}.")
            continue
        post = Post()
        outcome = reader(post, item)
        if not outcome.ok:
            warnings.append(outcome.message)
            continue
        post.set_status(PostStatus.FETCHED)
        posts.append(post)
    return MapResult.success(posts, warnings)


# =============================================================================
# Single Value Results
# =============================================================================

@guarded
def parse_post_id(result: Any) -> MapResult:
    """Read the bare string id returned by ``newPost``."""
    value = first_value(result, "the post id")
    if kind_of(value) is not ValueKind.STRING:
        raise ParsingError("Could not read the postId, not a string.")
    return MapResult.success(value)


@guarded
def parse_bool_result(result: Any) -> MapResult:
    """Read the bare boolean returned by ``editPost``, ``deletePost`` and friends."""
    value = first_value(result, "the result")
    if kind_of(value) is not ValueKind.BOOL:
        raise ParsingError("Could not read the result, not a boolean.")
    if not value:
        raise ParsingError("The server reported that the operation did not succeed.")
    return MapResult.success(True)


@guarded
def parse_media_url(result: Any) -> MapResult:
    """Read the url of a freshly uploaded media object."""
    value = first_value(result, "the media result")
    if kind_of(value) is not ValueKind.MAP:
        raise ParsingError("Could not read the result, not a map.")
    url = to_string(value.get("url"))
    if not url:
        raise ParsingError("The server did not return the url of the uploaded media.")
    return MapResult.success(url)


# =============================================================================
# Accounts
# =============================================================================

@guarded
def parse_user_info(result: Any) -> MapResult:
    """Read ``blogger.getUserInfo``."""
    info = expect_map(first_value(result, "the user info"), "the user info")
    keys = ("nickname", "userid", "url", "email", "lastname", "firstname")
    return MapResult.success({key: to_string(info.get(key)) for key in keys})


@guarded
def parse_blogs(result: Any) -> MapResult:
    """Read ``blogger.getUsersBlogs`` into a list of {id, name, url} dicts."""
    items = expect_list(first_value(result, "the list of blogs"), "the list of blogs")
    blogs = []
    for item in items:
        info = expect_map(item, "a blog")
        blogs.append({
            "id": to_string(info.get("blogid")),
            "name": to_string(info.get("blogName")),
            "url": to_string(info.get("url")),
        })
    return MapResult.success(blogs)


@guarded
def parse_track_back_pings(result: Any) -> MapResult:
    """Read ``mt.getTrackbackPings`` into a list of {title, url, ip} dicts."""
    items = expect_list(first_value(result, "the track back pings"), "the track back pings")
    pings = []
    for item in items:
        info = expect_map(item, "a track back ping")
        pings.append({
            "title": to_string(info.get("pingTitle")),
            "url": to_string(info.get("pingURL")),
            "ip": to_string(info.get("pingIP")),
        })
    return MapResult.success(pings)


@guarded
def expect_struct(result: Any, what: str) -> MapResult:
    """Return the first response value if it is a map (LiveJournal answers)."""
    return MapResult.success(expect_map(first_value(result, what), what))

