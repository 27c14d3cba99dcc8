"""CLI helper functions for showing top stories in a terminal.

Rows follow the layout of the list cell: rank, "Posted by" line with the
link host, title, then "points • comments • age".
"""

from datetime import datetime

from src.stories.list_controller import (
    ListEvent,
    LoadState,
    RefreshResult,
    RowInserted,
    RowsReset,
)
from src.stories.story import Story


def format_story_row(story: Story, now: datetime | None = None) -> str:
    """Format one story as a three line block.

    Args:
        story: Story with its display rank set
        now: Reference time for the relative age

    Example Output:
         1. Posted by pg (ycombinator.com)
            Y Combinator
            57 points • 2 comments • 3 hours ago
    """
    posted_by = f"Posted by {story.by}"
    if story.display_url:
        posted_by += f" ({story.display_url})"

    comments = "comment" if story.num_comments == 1 else "comments"
    points = "point" if story.score == 1 else "points"
    stats = (
        f"{story.score} {points} • {story.num_comments} {comments} • "
        f"{story.time_ago(now)}"
    )

    return "\n".join(
        [
            f"{story.index:>3}. {posted_by}",
            f"     {story.title}",
            f"     {stats}",
        ]
    )


def display_stories(stories: list[Story], now: datetime | None = None) -> None:
    """Print the ranked list of stories."""
    if not stories:
        print("\n⚠️  No stories to show")
        return

    print("\n" + "=" * 70)
    print("🔥 TOP STORIES")
    print("=" * 70)

    for story in stories:
        print()
        print(format_story_row(story, now))

    print("\n" + "=" * 70)


def print_list_event(event: ListEvent) -> None:
    """Listener printing each list change as it happens."""
    if isinstance(event, RowsReset):
        print(f"\n🔄 Refresh #{event.generation} started")
    elif isinstance(event, RowInserted):
        print(f"  + row {event.index:>3}: {event.story.title}")


def display_refresh_summary(result: RefreshResult) -> None:
    """Print how a refresh went, distinguishing failure from an empty list."""
    print("\n" + "=" * 70)
    if result.status is LoadState.FAILED:
        print("❌ Could not load the top stories index")
    elif result.requested == 0:
        print("ℹ️  The top stories index was empty")
    else:
        print(f"✅ Loaded {result.loaded} of {result.requested} stories")
        if result.failed:
            print(f"⚠️  {result.failed} stories could not be loaded")
    print("=" * 70)
