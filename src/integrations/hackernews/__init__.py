"""Hacker News API resources and fetch client."""

from src.integrations.hackernews.client import FetchClient
from src.integrations.hackernews.resource import (
    Resource,
    decode_story_ids,
    story_resource,
    top_stories_resource,
)

__all__ = [
    "FetchClient",
    "Resource",
    "decode_story_ids",
    "story_resource",
    "top_stories_resource",
]
