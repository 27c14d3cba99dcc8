"""Tests for typed Hacker News resources."""

import json

import pytest

from src.integrations.hackernews.resource import (
    Resource,
    decode_story_ids,
    story_resource,
    top_stories_resource,
)
from src.stories.story import Story


class TestResource:
    """Tests for the Resource value object."""

    def test_from_json_parses_bytes(self):
        resource = Resource.from_json("https://example.com/x.json", lambda value: value["a"])

        assert resource.decode(b'{"a": 1}') == 1

    def test_from_json_accepts_structured_data(self):
        resource = Resource.from_json("https://example.com/x.json", lambda value: value["a"])

        assert resource.decode({"a": 2}) == 2

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"{not json",
            b"\xff\xfe\x00",
            b"[" * 100_000 + b"]" * 100_000,
            b"{\"a\": " * 100_000 + b"1" + b"}" * 100_000,
        ],
    )
    def test_invalid_json_decodes_to_none(self, body):
        calls = []
        resource = Resource.from_json("https://example.com/x.json", calls.append)

        assert resource.decode(body) is None
        assert calls == []

    def test_resource_is_immutable(self):
        resource = Resource("https://example.com", lambda raw: raw)

        with pytest.raises(AttributeError):
            resource.location = "https://other.example.com"


class TestTopStoriesResource:
    """Tests for the top stories index resource."""

    def test_location_uses_configured_base_url(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("HN_API_BASE_URL", "http://localhost:9000/v0/")

        assert top_stories_resource().location == "http://localhost:9000/v0/topstories.json"

    def test_location_with_explicit_base_url(self):
        resource = top_stories_resource("https://hn.example.com/v0/")

        assert resource.location == "https://hn.example.com/v0/topstories.json"

    def test_decodes_array_of_ints_in_order(self):
        assert top_stories_resource().decode(b"[9, 3, 7]") == (9, 3, 7)

    def test_empty_array(self):
        assert top_stories_resource().decode(b"[]") == ()

    @pytest.mark.parametrize(
        "payload",
        [
            {"ids": [1, 2]},
            [1, "2", 3],
            [1, 2.5],
            [True, 2],
            None,
            "1,2,3",
        ],
    )
    def test_rejects_anything_but_int_array(self, payload):
        assert top_stories_resource().decode(json.dumps(payload).encode()) is None
        assert decode_story_ids(payload) is None


class TestStoryResource:
    """Tests for the per-item resource."""

    def test_location(self):
        resource = story_resource(8863, "https://hacker-news.firebaseio.com/v0")

        assert resource.location == "https://hacker-news.firebaseio.com/v0/item/8863.json"

    def test_decodes_story(self, item_factory):
        item = item_factory(8863, kids=[8952, 9224])

        story = story_resource(8863).decode(json.dumps(item).encode())

        assert isinstance(story, Story)
        assert story.id == 8863
        assert story.num_comments == len(item["kids"])

    def test_null_item_decodes_to_none(self):
        assert story_resource(1).decode(b"null") is None

    def test_incomplete_item_decodes_to_none(self, item_factory):
        item = item_factory(1)
        del item["title"]

        assert story_resource(1).decode(json.dumps(item).encode()) is None
