"""Top stories list controller.

Loads the ranked id list, selects a window of it, fetches every story in
the window concurrently and assembles the results into the displayed list.

State transitions:
    IDLE → LOADING_INDEX → LOADING_DETAILS → READY
    LOADING_INDEX → FAILED (index could not be loaded)

Every refresh gets a new generation number. Results belonging to an older
generation are dropped, so only the latest refresh reaches the list.
All list mutation happens on the event loop between awaits.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol, Sequence, TypeVar, Union

from src.integrations.hackernews.client import FetchClient
from src.integrations.hackernews.resource import Resource, story_resource, top_stories_resource
from src.stories.story import FailedStory, PendingStory, ResolvedStory, Story, StorySlot
from src.utils.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoadState(str, Enum):
    """Controller load state.

    Attributes:
        IDLE: No refresh started yet
        LOADING_INDEX: Waiting for the top stories id list
        LOADING_DETAILS: Story fetches for the window are in flight
        READY: Every story in the window resolved or failed
        FAILED: The id list could not be loaded
    """

    IDLE = "idle"
    LOADING_INDEX = "loading_index"
    LOADING_DETAILS = "loading_details"
    READY = "ready"
    FAILED = "failed"


class InsertionOrder(str, Enum):
    """Where a loaded story lands in the displayed list.

    Attributes:
        RANK: At its true rank among the stories loaded so far
        ARRIVAL: Appended in completion order
    """

    RANK = "rank"
    ARRIVAL = "arrival"


@dataclass(frozen=True)
class RowInserted:
    """A story was inserted at ``index`` of the displayed list."""

    index: int
    story: Story
    generation: int


@dataclass(frozen=True)
class RowsReset:
    """The displayed list was cleared by a new refresh."""

    generation: int


ListEvent = Union[RowInserted, RowsReset]
ListListener = Callable[[ListEvent], Any]


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one refresh.

    Attributes:
        generation: Refresh sequence number
        status: READY or FAILED
        requested: Story fetches issued for the window
        loaded: Stories that loaded successfully
        failed: Story fetches that failed
        superseded: A newer refresh started before this one finished
    """

    generation: int
    status: LoadState
    requested: int = 0
    loaded: int = 0
    failed: int = 0
    superseded: bool = False


class StoryFetcher(Protocol):
    """Anything that resolves a resource to a value or None."""

    async def fetch(self, resource: Resource[T]) -> T | None: ...


def select_window(story_ids: Sequence[int], start: int, page_size: int) -> tuple[int, ...]:
    """Select the ids fetched by one refresh.

    Half-open: ``story_ids[start:start + page_size]``.

    Args:
        story_ids: Ranked ids
        start: Offset of the first id
        page_size: Maximum number of ids

    Returns:
        Up to ``page_size`` ids in rank order

    Raises:
        ValueError: If start is negative or page_size is not positive
    """
    if page_size <= 0:
        raise ValueError("Page size must be positive")
    if start < 0:
        raise ValueError("Window start cannot be negative")
    return tuple(story_ids[start:start + page_size])


class TopStoriesController:
    """Owns the displayed top stories list.

    The presentation layer reads ``row_count`` and ``story_at(row)`` and
    subscribes with ``add_listener`` to receive ``RowInserted`` and
    ``RowsReset`` events as the list changes.
    """

    def __init__(
        self,
        client: StoryFetcher,
        *,
        page_size: int | None = None,
        start: int | None = None,
        order: InsertionOrder = InsertionOrder.RANK,
        base_url: str | None = None,
    ):
        settings = get_settings()
        self.page_size = page_size if page_size is not None else settings.PAGE_SIZE
        self.start = start if start is not None else settings.WINDOW_START
        if self.page_size <= 0:
            raise ValueError("Page size must be positive")
        if self.start < 0:
            raise ValueError("Window start cannot be negative")

        self.order = InsertionOrder(order)
        self.base_url = base_url
        self.state = LoadState.IDLE
        self.generation = 0
        self.story_ids: tuple[int, ...] = ()
        self.loaded_count = 0
        self.failed_count = 0

        self._client = client
        self._slots: list[StorySlot] = []
        self._rows: list[Story] = []
        self._listeners: list[ListListener] = []
        self._ready = asyncio.Event()

    # Presentation boundary

    @property
    def row_count(self) -> int:
        """Number of stories currently displayed."""
        return len(self._rows)

    def story_at(self, row: int) -> Story:
        """Story displayed at ``row``, with its display rank set.

        Raises:
            IndexError: If row is out of range
        """
        if not 0 <= row < len(self._rows):
            raise IndexError(f"Row {row} out of range (0..{len(self._rows) - 1})")
        story = self._rows[row]
        story.index = row + 1
        return story

    def rows(self) -> list[Story]:
        """All displayed stories in order, ranks assigned 1..row_count."""
        return [self.story_at(row) for row in range(len(self._rows))]

    @property
    def slots(self) -> tuple[StorySlot, ...]:
        """Window slots in true rank order."""
        return tuple(self._slots)

    @property
    def pending_count(self) -> int:
        return sum(isinstance(slot, PendingStory) for slot in self._slots)

    def add_listener(self, listener: ListListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ListListener) -> None:
        self._listeners.remove(listener)

    async def wait_until_ready(self) -> LoadState:
        """Wait until the latest refresh is READY or FAILED."""
        await self._ready.wait()
        return self.state

    # Loading

    async def refresh(self) -> RefreshResult:
        """Reload the list from the top stories index.

        Returns:
            RefreshResult for this refresh. Never raises on network or
            decode failures; a failed index load returns status FAILED.

        Raises:
            Exception: The first error raised by a list listener, after
                every story fetch has finished and the state is READY
        """
        self.generation += 1
        generation = self.generation
        self._reset(generation)
        self.state = LoadState.LOADING_INDEX
        logger.info("Loading top stories index", extra={"generation": generation})

        story_ids = await self._client.fetch(top_stories_resource(self.base_url))

        if generation != self.generation:
            logger.debug("Index result is stale", extra={"generation": generation})
            status = LoadState.FAILED if story_ids is None else LoadState.READY
            return RefreshResult(generation, status, superseded=True)

        if story_ids is None:
            self.state = LoadState.FAILED
            self._ready.set()
            logger.warning("Top stories index unavailable", extra={"generation": generation})
            return RefreshResult(generation, LoadState.FAILED)

        self.story_ids = story_ids
        window = select_window(story_ids, self.start, self.page_size)
        self._slots = [PendingStory(story_id) for story_id in window]
        self.state = LoadState.LOADING_DETAILS
        logger.info(
            "Fetching %d of %d stories", len(window), len(story_ids),
            extra={"generation": generation},
        )

        # Every sibling runs to completion even if a listener raises
        outcomes = await asyncio.gather(
            *(
                self._load_story(generation, position, story_id)
                for position, story_id in enumerate(window)
            ),
            return_exceptions=True,
        )
        errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        loaded = sum(outcome is True for outcome in outcomes)
        failed = sum(outcome is False for outcome in outcomes)

        if generation != self.generation:
            if errors:
                raise errors[0]
            return RefreshResult(
                generation, LoadState.READY, len(window), loaded, failed, superseded=True
            )

        self.state = LoadState.READY
        self._ready.set()

        if errors:
            logger.error(
                "%d story loads raised", len(errors),
                extra={"generation": generation},
            )
            raise errors[0]

        logger.info(
            "Loaded %d stories, %d failed", loaded, failed,
            extra={"generation": generation},
        )
        return RefreshResult(generation, LoadState.READY, len(window), loaded, failed)

    async def _load_story(self, generation: int, position: int, story_id: int) -> bool | None:
        """Fetch one story and place it.

        Returns:
            True if inserted, False if the fetch failed, None if stale
        """
        story = await self._client.fetch(story_resource(story_id, self.base_url))

        if generation != self.generation:
            logger.debug(
                "Dropping stale story", extra={"generation": generation, "story_id": story_id}
            )
            return None

        if story is None:
            self._slots[position] = FailedStory(story_id)
            self.failed_count += 1
            return False

        if self.order is InsertionOrder.RANK:
            row = sum(isinstance(slot, ResolvedStory) for slot in self._slots[:position])
        else:
            row = self.loaded_count

        self._slots[position] = ResolvedStory(story)
        self._rows.insert(row, story)
        self.loaded_count += 1
        self._emit(RowInserted(row, story, generation))
        return True

    def _reset(self, generation: int) -> None:
        self._ready.clear()
        self._slots = []
        self._rows = []
        self.story_ids = ()
        self.loaded_count = 0
        self.failed_count = 0
        try:
            self._emit(RowsReset(generation))
        except Exception:
            self.state = LoadState.FAILED
            self._ready.set()
            raise

    def _emit(self, event: ListEvent) -> None:
        for listener in list(self._listeners):
            listener(event)


async def load_top_stories(
    limit: int | None = None,
    *,
    order: InsertionOrder = InsertionOrder.RANK,
    client: FetchClient | None = None,
) -> list[Story]:
    """Fetch the current top stories once.

    Args:
        limit: Maximum number of stories to fetch, defaults to PAGE_SIZE
        order: Insertion policy for the returned list
        client: Fetch client to use; a short-lived one is created if None

    Returns:
        Loaded stories in display order with ranks assigned.
        Empty if the index could not be loaded.

    Raises:
        ValueError: If limit is not positive
    """
    if limit is None:
        limit = get_settings().PAGE_SIZE
    if limit <= 0:
        raise ValueError("Limit must be positive")

    if client is not None:
        controller = TopStoriesController(client, page_size=limit, start=0, order=order)
        await controller.refresh()
        return controller.rows()

    async with FetchClient() as owned_client:
        controller = TopStoriesController(owned_client, page_size=limit, start=0, order=order)
        await controller.refresh()
        return controller.rows()


__all__ = [
    "InsertionOrder",
    "ListEvent",
    "LoadState",
    "RefreshResult",
    "RowInserted",
    "RowsReset",
    "StoryFetcher",
    "TopStoriesController",
    "load_top_stories",
    "select_window",
]
