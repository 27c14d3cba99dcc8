"""Top stories domain model and list assembly.

This package provides:
- The Story model and its window slot variants
- Error types and retry logic for loading
- The list controller driving a refresh
"""

from src.stories.error_handling import DecodeError, StoriesError, TransportError
from src.stories.story import FailedStory, PendingStory, ResolvedStory, Story

__all__ = [
    "Story",
    "PendingStory",
    "ResolvedStory",
    "FailedStory",
    "StoriesError",
    "TransportError",
    "DecodeError",
]
