"""
Atom Mapping for GData Blogs

Converts feedparser entries into posts, comments and blog descriptions,
and builds the Atom entry documents that GData expects when creating or
modifying posts and comments.
"""

import re
import xml.etree.ElementTree as ET
from calendar import timegm
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from data.dynamic import to_utc_datetime
from data.mapper import MapResult, guarded
from data.models import Post, Comment, PostStatus, CommentStatus
from utils.exceptions import ParsingError
from utils.helpers import safe_get

ATOM_NS = "http://www.w3.org/2005/Atom"
APP_NS = "http://purl.org/atom/app#"
LABEL_SCHEME = "http://www.blogger.com/atom/ns#"

ET.register_namespace("", ATOM_NS)
ET.register_namespace("app", APP_NS)

_POST_ID_RE = re.compile(r"post-(\d+)")
_BLOG_ID_RE = re.compile(r"blog-(\d+)")


def _atom(tag: str) -> str:
    return f"{{{ATOM_NS}}}{tag}"


def extract_post_id(entry_id: str) -> str:
    """Return the numeric post (or comment) id from an Atom entry id."""
    match = _POST_ID_RE.search(entry_id or "")
    return match.group(1) if match else ""


def extract_blog_id(entry_id: str) -> str:
    """Return the numeric blog id from an Atom entry id."""
    match = _BLOG_ID_RE.search(entry_id or "")
    return match.group(1) if match else ""


def _entry_date(entry: Dict[str, Any], key: str) -> Optional[datetime]:
    value = to_utc_datetime(entry.get(key))
    if value is not None:
        return value
    parsed = entry.get(f"{key}_parsed")
    if parsed:
        return datetime.fromtimestamp(timegm(parsed), tz=timezone.utc)
    return None


def _link(links: List[Dict[str, Any]], rel: str) -> str:
    for link in links or []:
        if link.get("rel") == rel:
            return link.get("href", "")
    return ""


def _entry_content(entry: Dict[str, Any]) -> str:
    content = safe_get(entry, "content", 0, "value")
    if content is not None:
        return content
    return entry.get("summary", "")


def next_link(feed: Dict[str, Any]) -> str:
    """Return the href of the feed's ``next`` page link, or ""."""
    return _link(safe_get(feed, "feed", "links", default=[]), "next")


def feed_entries(feed: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return the entries of a loaded feed, validating the container."""
    entries = feed.get("entries") if isinstance(feed, dict) else None
    if not isinstance(entries, list):
        raise ParsingError("Could not read entries out of the feed.")
    return entries


def read_post_from_entry(post: Post, entry: Dict[str, Any]) -> Post:
    """Copy the fields of a feed entry into ``post``."""
    post.post_id = extract_post_id(entry.get("id", ""))
    post.title = entry.get("title", "")
    post.content = _entry_content(entry)
    labels = [tag.get("term", "") for tag in entry.get("tags", [])
              if tag.get("term") and tag.get("scheme") in (None, LABEL_SCHEME)]
    if labels:
        post.categories = labels
    created = _entry_date(entry, "published")
    if created is not None:
        post.creation_date_time = created
    modified = _entry_date(entry, "updated")
    if modified is not None:
        post.modification_date_time = modified
    alternate = _link(entry.get("links", []), "alternate")
    post.link = alternate
    post.perma_link = alternate
    # feedparser flattens <app:control><app:draft> into app_draft
    post.is_private = entry.get("app_draft") == "yes"
    return post


def entry_to_post(entry: Dict[str, Any]) -> Post:
    """Build a FETCHED post from a feed entry."""
    post = read_post_from_entry(Post(), entry)
    post.set_status(PostStatus.FETCHED)
    return post


def entry_to_comment(entry: Dict[str, Any]) -> Comment:
    """Build a FETCHED comment from a feed entry."""
    comment = Comment(comment_id=extract_post_id(entry.get("id", "")))
    comment.title = entry.get("title", "")
    comment.content = _entry_content(entry)
    author = entry.get("author_detail") or {}
    comment.name = author.get("name", "")
    comment.email = author.get("email", "")
    comment.url = author.get("href", "")
    comment.creation_date_time = _entry_date(entry, "published")
    comment.modification_date_time = _entry_date(entry, "updated")
    comment.set_status(CommentStatus.FETCHED)
    return comment


def entry_to_blog(entry: Dict[str, Any]) -> Dict[str, str]:
    """Build a {id, name, url} description from a blog list entry."""
    return {
        "id": extract_blog_id(entry.get("id", "")),
        "name": entry.get("title", ""),
        "url": _link(entry.get("links", []), "alternate"),
    }


# =============================================================================
# Entry Documents
# =============================================================================

def atom_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_post_entry(post: Post, blog_id: str, full_name: str = "",
                     email: str = "", include_id: bool = False) -> bytes:
    """
    Build the Atom entry sent to create or modify a post.

    Args:
        post: Source post; private posts are sent as drafts.
        blog_id: Blog the post belongs to, used for the entry id.
        full_name: Author name.
        email: Author email (the GData username).
        include_id: True when modifying an existing post.

    Returns:
        bytes: UTF-8 encoded XML document.
    """
    entry = ET.Element(_atom("entry"))
    if include_id:
        ET.SubElement(entry, _atom("id")).text = \
            f"tag:blogger.com,1999:blog-{blog_id}.post-{post.post_id}"
    if post.creation_date_time is not None:
        ET.SubElement(entry, _atom("published")).text = atom_date(post.creation_date_time)
    if include_id and post.modification_date_time is not None:
        ET.SubElement(entry, _atom("updated")).text = atom_date(post.modification_date_time)
    ET.SubElement(entry, _atom("title"), type="text").text = post.title
    ET.SubElement(entry, _atom("content"), type="html").text = post.content
    for label in post.categories:
        ET.SubElement(entry, _atom("category"), scheme=LABEL_SCHEME, term=label)
    if post.is_private:
        control = ET.SubElement(entry, f"{{{APP_NS}}}control")
        ET.SubElement(control, f"{{{APP_NS}}}draft").text = "yes"
    author = ET.SubElement(entry, _atom("author"))
    ET.SubElement(author, _atom("name")).text = full_name
    ET.SubElement(author, _atom("email")).text = email
    return ET.tostring(entry, encoding="utf-8", xml_declaration=True)


def build_comment_entry(comment: Comment) -> bytes:
    """Build the Atom entry sent to create a comment."""
    entry = ET.Element(_atom("entry"))
    ET.SubElement(entry, _atom("title"), type="text").text = comment.title
    ET.SubElement(entry, _atom("content"), type="html").text = comment.content
    author = ET.SubElement(entry, _atom("author"))
    ET.SubElement(author, _atom("name")).text = comment.name
    ET.SubElement(author, _atom("email")).text = comment.email
    if comment.url:
        ET.SubElement(author, _atom("uri")).text = comment.url
    return ET.tostring(entry, encoding="utf-8", xml_declaration=True)


@guarded
def parse_entry_response(body: Any) -> MapResult:
    """
    Read the Atom entry the server echoes back after a create or modify.

    Returns:
        MapResult: ``value`` is a dict with ``id`` (numeric), ``link``,
        ``published`` and ``updated``.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    if not body:
        raise ParsingError("The server returned an empty entry.")
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ParsingError(f"Could not parse the entry returned by the server: {e}")
    if root.tag != _atom("entry"):
        raise ParsingError(f"Expected an Atom entry, got {root.tag}.")

    entry_id = root.findtext(_atom("id"), default="")
    numeric_id = extract_post_id(entry_id)
    if not numeric_id:
        raise ParsingError(f"Could not read the id out of '{entry_id}'.")

    link = ""
    for element in root.findall(_atom("link")):
        if element.get("rel") == "alternate":
            link = element.get("href", "")
            break
    return MapResult.success({
        "id": numeric_id,
        "link": link,
        "published": to_utc_datetime(root.findtext(_atom("published"))),
        "updated": to_utc_datetime(root.findtext(_atom("updated"))),
    })


@guarded
def parse_feed(feed: Any, convert: Callable[[Dict[str, Any]], Any]) -> MapResult:
    """
    Convert every entry of a loaded feed.

    Returns:
        MapResult: ``value`` is the list of converted entries in feed order.
    """
    return MapResult.success([convert(entry) for entry in feed_entries(feed)])
