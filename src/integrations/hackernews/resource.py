"""Typed remote resources for the Hacker News API.

A ``Resource`` pairs the URL of a JSON document with a decode function.
Decode functions are total: a malformed or incomplete payload decodes
to ``None`` instead of raising.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from src.stories.story import Story
from src.utils.config import get_settings

T = TypeVar("T")


def parse_json_body(raw: Any) -> tuple[bool, Any]:
    """Parse a response body.

    Bytes and bytearrays are parsed as JSON; any other value is taken to be
    already-structured data.

    Returns:
        (ok, value) where ok is False if the bytes were not valid JSON
    """
    if not isinstance(raw, (bytes, bytearray)):
        return True, raw
    try:
        return True, json.loads(raw)
    except (ValueError, RecursionError):  # ValueError covers JSONDecodeError and UnicodeDecodeError
        return False, None


@dataclass(frozen=True)
class Resource(Generic[T]):
    """A remote JSON document and how to decode it.

    Attributes:
        location: Absolute URL of the document
        decode: Raw body (or parsed JSON) to value, None on any mismatch
    """

    location: str
    decode: Callable[[Any], T | None]

    @classmethod
    def from_json(cls, location: str, parse_json: Callable[[Any], T | None]) -> "Resource[T]":
        """Build a resource whose decoder parses JSON before ``parse_json``."""

        def decode(raw: Any) -> T | None:
            ok, value = parse_json_body(raw)
            if not ok:
                return None
            return parse_json(value)

        return cls(location=location, decode=decode)


def decode_story_ids(payload: Any) -> tuple[int, ...] | None:
    """Accept a JSON array of integers, reject anything else."""
    if not isinstance(payload, list):
        return None
    if not all(isinstance(i, int) and not isinstance(i, bool) for i in payload):
        return None
    return tuple(payload)


def _base_url(base_url: str | None) -> str:
    return (base_url or get_settings().HN_API_BASE_URL).rstrip("/")


def top_stories_resource(base_url: str | None = None) -> Resource[tuple[int, ...]]:
    """Ranked ids of the current top stories.

    Args:
        base_url: API root, defaults to HN_API_BASE_URL

    Returns:
        Resource decoding to a tuple of item ids
    """
    return Resource.from_json(f"{_base_url(base_url)}/topstories.json", decode_story_ids)


def story_resource(story_id: int, base_url: str | None = None) -> Resource[Story]:
    """Detail document of one item.

    Args:
        story_id: Hacker News item id
        base_url: API root, defaults to HN_API_BASE_URL

    Returns:
        Resource decoding to a Story
    """
    return Resource.from_json(f"{_base_url(base_url)}/item/{story_id}.json", Story.from_dict)


__all__ = [
    "Resource",
    "decode_story_ids",
    "parse_json_body",
    "story_resource",
    "top_stories_resource",
]
