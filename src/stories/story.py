"""Story domain model.

Decodes Hacker News item objects into ``Story`` values and defines the
slot variants the list controller uses to track items of a window that
are still loading.

Example:
    >>> story = Story.from_dict({
    ...     "by": "pg", "id": 1, "score": 57, "time": 1160418111,
    ...     "title": "Y Combinator", "url": "http://ycombinator.com", "kids": [15, 234509],
    ... })
    >>> story.num_comments
    2
    >>> story.display_url
    'ycombinator.com'
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Final, Union
from urllib.parse import urlparse

# (seconds per unit, singular name), largest first
TIME_UNITS: Final[tuple[tuple[int, str], ...]] = (
    (365 * 24 * 3600, "year"),
    (30 * 24 * 3600, "month"),
    (24 * 3600, "day"),
    (3600, "hour"),
    (60, "minute"),
)


def _is_int(value: Any) -> bool:
    # bool is an int subclass; JSON true/false is never an id or a count
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_link(value: Any) -> tuple[bool, str | None]:
    """Validate an optional ``url`` field.

    Returns:
        (ok, link) where ok is False if the field is present but unusable
    """
    if value is None:
        return True, None
    if not isinstance(value, str):
        return False, None
    # Kept verbatim; padded URLs are rejected rather than trimmed
    if value != value.strip():
        return False, None
    try:
        parsed = urlparse(value)
    except ValueError:
        return False, None
    if not parsed.scheme or not parsed.netloc:
        return False, None
    return True, value


def format_time_ago(posted_at: int, now: datetime | None = None) -> str:
    """Render a unix timestamp as a relative age, e.g. ``3 hours ago``.

    Args:
        posted_at: Unix timestamp in seconds
        now: Reference time (defaults to the current UTC time)

    Returns:
        Relative age string; future timestamps render as ``just now``
    """
    now = now or datetime.now(timezone.utc)
    elapsed = int(now.timestamp()) - posted_at
    for seconds, name in TIME_UNITS:
        if elapsed >= seconds:
            count = elapsed // seconds
            return f"{count} {name}{'s' if count != 1 else ''} ago"
    return "just now"


@dataclass
class Story:
    """One Hacker News story.

    Attributes:
        id: Item id assigned by Hacker News
        by: Submitter handle
        score: Points, never negative
        posted_at: Submission time as unix seconds
        title: Story title
        link: External URL, None for text posts
        num_comments: Number of direct child comment ids
        index: 1-based display rank, 0 until the story is rendered
    """

    id: int
    by: str
    score: int
    posted_at: int
    title: str
    link: str | None = None
    num_comments: int = 0
    index: int = field(default=0, compare=False)

    @classmethod
    def from_dict(cls, data: Any) -> "Story | None":
        """Build a Story from a decoded item object.

        Any missing or mistyped required field rejects the whole record.
        ``url`` and ``kids`` may be absent (text posts, stories without
        comments).

        Args:
            data: Decoded JSON value for one item

        Returns:
            Story, or None if the object is not a valid story
        """
        if not isinstance(data, dict):
            return None

        by = data.get("by")
        story_id = data.get("id")
        score = data.get("score")
        posted_at = data.get("time")
        title = data.get("title")
        kids = data.get("kids", [])

        if not isinstance(by, str) or not isinstance(title, str):
            return None
        if not all(_is_int(v) for v in (story_id, score, posted_at)):
            return None
        if score < 0:
            return None
        if not isinstance(kids, list) or not all(_is_int(k) for k in kids):
            return None

        ok, link = _parse_link(data.get("url"))
        if not ok:
            return None

        return cls(
            id=story_id,
            by=by,
            score=score,
            posted_at=posted_at,
            title=title,
            link=link,
            num_comments=len(kids),
        )

    @property
    def display_url(self) -> str | None:
        """Host of the link without a leading ``www.``."""
        if not self.link:
            return None
        host = urlparse(self.link).hostname or ""
        if host.startswith("www."):
            host = host[4:]
        return host or None

    @property
    def posted_datetime(self) -> datetime:
        """Submission time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.posted_at, tz=timezone.utc)

    def time_ago(self, now: datetime | None = None) -> str:
        """Relative age of the story, e.g. ``5 minutes ago``."""
        return format_time_ago(self.posted_at, now)


@dataclass(frozen=True)
class PendingStory:
    """Window slot whose detail fetch has not finished."""

    story_id: int


@dataclass(frozen=True)
class ResolvedStory:
    """Window slot holding a loaded story."""

    story: Story

    @property
    def story_id(self) -> int:
        return self.story.id


@dataclass(frozen=True)
class FailedStory:
    """Window slot whose detail fetch failed; never displayed."""

    story_id: int


StorySlot = Union[PendingStory, ResolvedStory, FailedStory]


__all__ = [
    "Story",
    "PendingStory",
    "ResolvedStory",
    "FailedStory",
    "StorySlot",
    "format_time_ago",
]
