"""
Tests for the Response Mapper

Tests cover category listings in both server shapes, post struct reading,
Blogger title embedding, MovableType extension fields and single value
results. Mappers must never raise.
"""

import pytest
from datetime import datetime, timezone
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.mapper import (
    MapResult, parse_categories, parse_post_categories, read_post_from_map,
    embed_blogger_title, read_blogger_post_from_map, read_movabletype_post_from_map,
    parse_post, parse_post_list, parse_post_id, parse_bool_result, parse_media_url,
    parse_user_info, parse_blogs, parse_track_back_pings,
)
from data.models import Post, PostStatus


# =============================================================================
# Categories
# =============================================================================

class TestParseCategories:
    """Tests for parse_categories."""

    def test_map_of_maps_uses_keys_as_names(self):
        result = [{
            "News": {"description": "All news", "htmlUrl": "http://b/news", "rssUrl": "http://b/news.rss"},
            "Misc": {},
        }]

        outcome = parse_categories(result)

        assert outcome.ok
        by_name = {c["name"]: c for c in outcome.value}
        assert set(by_name) == {"News", "Misc"}
        assert by_name["News"]["description"] == "All news"
        assert by_name["News"]["rssUrl"] == "http://b/news.rss"
        assert by_name["Misc"] == {"name": "Misc", "description": "", "htmlUrl": "", "rssUrl": ""}

    def test_list_of_maps_uses_category_name(self):
        result = [[
            {"categoryName": "Blogroll", "categoryId": "1", "description": "Links"},
            {"categoryName": "Uncategorized", "categoryId": "2"},
        ]]

        outcome = parse_categories(result)

        assert outcome.ok
        assert [c["name"] for c in outcome.value] == ["Blogroll", "Uncategorized"]
        assert outcome.value[0]["categoryId"] == "1"
        assert outcome.value[0]["description"] == "Links"

    @pytest.mark.parametrize("top", ["categories", 42, True, None])
    def test_malformed_top_level_fails(self, top):
        outcome = parse_categories([top])

        assert not outcome.ok
        assert outcome.value is None
        assert outcome.message == "Could not list categories out of the result from the server."

    def test_list_element_must_be_map(self):
        outcome = parse_categories([["Blogroll"]])
        assert not outcome.ok

    def test_empty_result_fails_without_raising(self):
        assert not parse_categories([]).ok
        assert not parse_categories(None).ok


class TestParsePostCategories:
    """Tests for parse_post_categories."""

    def test_primary_first(self):
        result = [[
            {"categoryName": "B", "categoryId": "2", "isPrimary": False},
            {"categoryName": "A", "categoryId": "1", "isPrimary": True},
        ]]

        outcome = parse_post_categories(result)

        assert outcome.value == ["A", "B"]

    def test_not_a_list_fails(self):
        assert not parse_post_categories([{"categoryName": "A"}]).ok


# =============================================================================
# Posts
# =============================================================================

class TestReadPostFromMap:
    """Tests for read_post_from_map."""

    def test_reads_fields(self):
        post = Post()
        info = {
            "postid": "42",
            "title": "T",
            "description": "C",
            "categories": ["Blogroll"],
            "dateCreated": datetime(2024, 1, 15, 10, 0),
            "lastModified": "20240116T11:00:00",
        }

        outcome = read_post_from_map(post, info)

        assert outcome.ok
        assert post.post_id == "42"
        assert post.title == "T"
        assert post.content == "C"
        assert post.categories == ["Blogroll"]
        assert post.creation_date_time == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        assert post.modification_date_time == datetime(2024, 1, 16, 11, 0, tzinfo=timezone.utc)

    def test_invalid_dates_keep_existing_values(self):
        created = datetime(2020, 1, 1, tzinfo=timezone.utc)
        post = Post(creation_date_time=created)

        read_post_from_map(post, {"postid": "1", "dateCreated": "garbage"})

        assert post.creation_date_time == created

    def test_empty_categories_keep_existing(self):
        post = Post(categories=["Old"])

        read_post_from_map(post, {"postid": "1", "categories": []})

        assert post.categories == ["Old"]

    def test_postid_assigned_even_when_missing(self):
        post = Post(post_id="old")

        outcome = read_post_from_map(post, {"title": "T"})

        assert outcome.ok
        assert post.post_id == ""

    def test_missing_post_fails(self):
        outcome = read_post_from_map(None, {"postid": "1"})
        assert not outcome.ok


class TestBloggerTitle:
    """Tests for the Blogger 1.0 title embedding."""

    def test_embed_and_read_back(self):
        original = Post(title="Hello", content="<p>World</p>", categories=["News"])
        wire = {"postid": "5", "content": embed_blogger_title(original)}

        post = Post()
        outcome = read_blogger_post_from_map(post, wire)

        assert wire["content"] == "<title>Hello</title><category>News</category><p>World</p>"
        assert outcome.ok
        assert post.title == "Hello"
        assert post.categories == ["News"]
        assert post.content == "<p>World</p>"

    def test_content_without_title(self):
        post = Post()
        read_blogger_post_from_map(post, {"postid": "5", "content": "plain"})
        assert post.title == ""
        assert post.content == "plain"


class TestMovableTypeFields:
    """Tests for read_movabletype_post_from_map."""

    def test_reads_extension_fields(self):
        post = Post()
        info = {
            "postid": "9",
            "title": "T",
            "description": "C",
            "mt_allow_comments": 0,
            "mt_allow_pings": 1,
            "mt_excerpt": "short",
            "mt_text_more": "more",
            "mt_keywords": "a, b,,c",
            "wp_slug": "t-slug",
            "permaLink": "http://b/t",
        }

        outcome = read_movabletype_post_from_map(post, info)

        assert outcome.ok
        assert post.is_comment_allowed is False
        assert post.is_track_back_allowed is True
        assert post.summary == "short"
        assert post.additional_content == "more"
        assert post.tags == ["a", "b", "c"]
        assert post.slug == "t-slug"
        assert post.perma_link == "http://b/t"


class TestParsePostList:
    """Tests for parse_post_list and parse_post."""

    def test_list_is_truncated_and_fetched(self):
        result = [[{"postid": str(i), "title": f"P{i}"} for i in range(5)]]

        outcome = parse_post_list(result, 3)

        assert outcome.ok
        assert [p.post_id for p in outcome.value] == ["0", "1", "2"]
        assert all(p.status is PostStatus.FETCHED for p in outcome.value)

    def test_non_map_items_are_skipped_with_warning(self):
        outcome = parse_post_list([[{"postid": "1"}, "junk"]], 10)

        assert [p.post_id for p in outcome.value] == ["1"]
        assert len(outcome.warnings) == 1

    def test_not_a_list_fails(self):
        assert not parse_post_list([{"postid": "1"}], 10).ok

    def test_parse_post_requires_map(self):
        assert not parse_post(["42"], Post()).ok

    def test_parse_post_fills_post(self):
        post = Post()
        outcome = parse_post([{"postid": "1", "title": "T"}], post)
        assert outcome.value is post
        assert post.title == "T"


# =============================================================================
# Single Values
# =============================================================================

class TestSingleValues:
    """Tests for single value results."""

    def test_post_id(self):
        assert parse_post_id(["42"]).value == "42"

    def test_post_id_not_a_string(self):
        outcome = parse_post_id([42])
        assert not outcome.ok
        assert outcome.message == "Could not read the postId, not a string."

    def test_bool_result_true(self):
        assert parse_bool_result([True]).ok

    @pytest.mark.parametrize("value", [False, "true", 1, None])
    def test_bool_result_anything_else_fails(self, value):
        assert not parse_bool_result([value]).ok

    def test_media_url(self):
        assert parse_media_url([{"url": "http://b/a.png"}]).value == "http://b/a.png"

    @pytest.mark.parametrize("value", [{}, {"url": ""}, "http://b/a.png"])
    def test_media_without_url_fails(self, value):
        assert not parse_media_url([value]).ok


# =============================================================================
# Accounts
# =============================================================================

class TestAccounts:
    """Tests for account related results."""

    def test_user_info(self):
        outcome = parse_user_info([{"nickname": "nick", "userid": "3", "email": "a@b"}])
        assert outcome.value["nickname"] == "nick"
        assert outcome.value["userid"] == "3"
        assert outcome.value["firstname"] == ""

    def test_blogs(self):
        outcome = parse_blogs([[{"blogid": "1", "blogName": "Mine", "url": "http://b"}]])
        assert outcome.value == [{"id": "1", "name": "Mine", "url": "http://b"}]

    def test_track_back_pings(self):
        outcome = parse_track_back_pings([[{"pingTitle": "T", "pingURL": "http://p", "pingIP": "1.2.3.4"}]])
        assert outcome.value == [{"title": "T", "url": "http://p", "ip": "1.2.3.4"}]

    def test_map_result_helpers(self):
        assert MapResult.success(1).ok
        assert MapResult.failure("x").message == "x"
