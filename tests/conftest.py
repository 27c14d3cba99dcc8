"""Shared pytest fixtures."""

import shutil
from pathlib import Path

import pytest

from src.stories.story import Story
from src.utils.config import reset_settings


@pytest.fixture(scope="session", autouse=True)
def backup_env_file():
    """Backup .env file during test session to prevent pollution."""
    env_file = Path(".env")
    backup_file = Path(".env.test_backup")

    if env_file.exists():
        shutil.copy(env_file, backup_file)
        env_file.unlink()

    yield

    if backup_file.exists():
        shutil.move(backup_file, env_file)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings from the environment for every test."""
    reset_settings()
    yield
    reset_settings()


def make_item(story_id: int, **overrides) -> dict:
    """Raw item object as returned by /item/{id}.json."""
    item = {
        "by": f"user{story_id}",
        "id": story_id,
        "score": 10 * story_id,
        "time": 1_700_000_000 + story_id,
        "title": f"Story {story_id}",
        "url": f"https://example.com/{story_id}",
        "kids": list(range(story_id)),
        "type": "story",
    }
    item.update(overrides)
    return item


@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def story_factory():
    def factory(story_id: int) -> Story:
        return Story.from_dict(make_item(story_id))

    return factory
