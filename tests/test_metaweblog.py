"""
Tests for the MetaWeblog Backend

Tests cover the post struct encoding, the create round trip, category
listings in both server shapes, media upload and the calls delegated to
Blogger 1.0.
"""

import pytest
import xmlrpc.client
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backends.base import ErrorKind
from backends.metaweblog import MetaWeblog
from data.models import Post, Media, PostStatus, MediaStatus


@pytest.fixture
def blog(blog_config, rpc):
    return MetaWeblog(blog_config, rpc)


# =============================================================================
# Posts
# =============================================================================

class TestMetaWeblogPosts:
    """Tests for MetaWeblog post operations."""

    def test_create_round_trip(self, blog, rpc, record_events):
        events = record_events(blog)
        post = Post(title="T", content="C", categories=["Blogroll"])

        blog.create_post(post)
        rpc.succeed("42")

        assert post.post_id == "42"
        assert post.status is PostStatus.CREATED
        assert events.names == ["created_post"]
        assert events.of("created_post") == [(post,)]

    def test_create_post_arguments(self, blog, rpc, post_factory):
        post = post_factory(title="T", content="C", categories=["Blogroll"])
        blog.create_post(post)

        assert rpc.last.method == "metaWeblog.newPost"
        blog_id, user, password, struct, publish = rpc.last.args
        assert (blog_id, user, password, publish) == ("1", "test-user", "test-password", True)
        assert set(struct) == {"categories", "description", "title", "dateCreated"}
        assert struct["categories"] == ["Blogroll"]
        assert struct["description"] == "C"
        assert struct["title"] == "T"
        assert struct["dateCreated"] == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    def test_naive_dates_use_blog_time_zone(self, blog_config, rpc):
        blog_config.timezone = ZoneInfo("Europe/Berlin")
        blog = MetaWeblog(blog_config, rpc)

        blog.create_post(Post(title="T", creation_date_time=datetime(2024, 1, 15, 12, 0)))

        assert rpc.last.args[3]["dateCreated"] == datetime(2024, 1, 15, 11, 0, tzinfo=timezone.utc)

    def test_modify_post_arguments(self, blog, rpc, record_events, post_factory):
        events = record_events(blog)
        post = post_factory(post_id="42", is_private=True)
        blog.modify_post(post)

        assert rpc.last.method == "metaWeblog.editPost"
        post_id, _, _, struct, publish = rpc.last.args
        assert post_id == "42"
        assert publish is False
        assert set(struct) == {"categories", "description", "title", "lastModified"}

        rpc.succeed(True)
        assert post.status is PostStatus.MODIFIED
        assert events.names == ["modified_post"]

    def test_create_post_with_non_string_id(self, blog, rpc, record_events, post_factory):
        events = record_events(blog)
        post = post_factory()
        blog.create_post(post)
        rpc.succeed(42)

        assert post.status is PostStatus.ERROR
        assert events.errors[0]["kind"] is ErrorKind.PARSING_ERROR
        assert events.errors[0]["message"] == "Could not read the postId, not a string."

    def test_fetch_post(self, blog, rpc, record_events):
        events = record_events(blog)
        post = Post(post_id="42")
        blog.fetch_post(post)

        assert rpc.last.method == "metaWeblog.getPost"
        assert rpc.last.args == ["42", "test-user", "test-password"]
        rpc.succeed({"postid": "42", "title": "T", "description": "C", "categories": ["A"]})

        assert (post.title, post.content, post.categories) == ("T", "C", ["A"])
        assert post.status is PostStatus.FETCHED
        assert events.names == ["fetched_post"]

    def test_list_recent_posts(self, blog, rpc, record_events):
        events = record_events(blog)
        blog.list_recent_posts(5)

        assert rpc.last.method == "metaWeblog.getRecentPosts"
        assert rpc.last.args == ["1", "test-user", "test-password", 5]
        rpc.succeed([{"postid": "2", "title": "B"}, {"postid": "1", "title": "A"}])

        (posts,), = events.of("listed_recent_posts")
        assert [p.post_id for p in posts] == ["2", "1"]

    def test_list_zero_posts_is_local(self, blog, rpc, record_events):
        events = record_events(blog)
        blog.list_recent_posts(0)

        assert rpc.calls == []
        assert events.of("listed_recent_posts") == [([],)]


# =============================================================================
# Categories
# =============================================================================

class TestMetaWeblogCategories:
    """Tests for listing categories."""

    def test_map_shape(self, blog, rpc, record_events):
        events = record_events(blog)
        blog.list_categories()

        assert rpc.last.method == "metaWeblog.getCategories"
        assert rpc.last.args == ["1", "test-user", "test-password"]
        rpc.succeed({"News": {"description": "d", "htmlUrl": "h", "rssUrl": "r"}})

        (categories,), = events.of("listed_categories")
        assert categories == [{"name": "News", "description": "d", "htmlUrl": "h", "rssUrl": "r"}]
        assert blog.categories == categories

    def test_list_shape(self, blog, rpc, record_events):
        events = record_events(blog)
        blog.list_categories()
        rpc.succeed([{"categoryName": "A"}, {"categoryName": "B"}])

        (categories,), = events.of("listed_categories")
        assert [c["name"] for c in categories] == ["A", "B"]

    def test_malformed_shape(self, blog, rpc, record_events):
        events = record_events(blog)
        blog.list_categories()
        rpc.succeed("nonsense")

        assert events.of("listed_categories") == []
        assert [e["kind"] for e in events.errors] == [ErrorKind.PARSING_ERROR]


# =============================================================================
# Media
# =============================================================================

class TestMetaWeblogMedia:
    """Tests for media upload."""

    def test_create_media(self, blog, rpc, record_events):
        events = record_events(blog)
        media = Media(name="a.png", mimetype="image/png", data=b"\x89PNG")
        blog.create_media(media)

        assert rpc.last.method == "metaWeblog.newMediaObject"
        struct = rpc.last.args[3]
        assert struct["name"] == "a.png"
        assert struct["type"] == "image/png"
        assert isinstance(struct["bits"], xmlrpc.client.Binary)
        assert struct["bits"].data == b"\x89PNG"

        rpc.succeed({"url": "http://blog.example.com/a.png"})

        assert media.url == "http://blog.example.com/a.png"
        assert media.status is MediaStatus.CREATED
        assert events.of("created_media") == [(media,)]

    def test_media_without_url_is_parsing_error(self, blog, rpc, record_events):
        events = record_events(blog)
        media = Media(name="a.png")
        blog.create_media(media)
        rpc.succeed({"file": "a.png"})

        assert media.status is MediaStatus.ERROR
        assert len(events.errors) == 1
        assert events.errors[0]["kind"] is ErrorKind.PARSING_ERROR
        assert events.errors[0]["media"] is media


# =============================================================================
# Delegated Calls
# =============================================================================

class TestMetaWeblogDelegation:
    """Tests for the calls answered through the Blogger 1.0 API."""

    def test_remove_post_uses_blogger(self, blog, rpc, record_events):
        events = record_events(blog)
        post = Post(post_id="42")
        blog.remove_post(post)

        assert rpc.last.method == "blogger.deletePost"
        rpc.succeed(True)

        assert post.status is PostStatus.REMOVED
        assert events.of("removed_post") == [(post,)]

    def test_user_info_and_blogs_use_blogger(self, blog, rpc):
        blog.fetch_user_info()
        blog.list_blogs()

        assert rpc.methods == ["blogger.getUserInfo", "blogger.getUsersBlogs"]

    def test_delegate_shares_token_table(self, blog, rpc):
        blog.create_post(Post(title="T"))
        blog.remove_post(Post(post_id="1"))

        assert rpc.calls[0].token != rpc.calls[1].token
        assert blog.pending_calls == 2
