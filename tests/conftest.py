"""
Shared pytest fixtures for casenotifier tests.

This module provides common fixtures used across all test files, including:
- A fixed clock
- Local timezone switching
- An isolated workspace home
- Stores backed by in-memory storage
"""

import os
import time
from datetime import datetime

import pytest
from tzlocal import reload_localzone

from casenotifier.clock import FixedClock
from casenotifier.controller import Controller
from casenotifier.model import AccountStore
from casenotifier.notifier_env import HOME_ENV_VAR, NotifierEnvironment
from casenotifier.storage import MemoryStorage


def local_ts(year, month, day, hour=0, minute=0, second=0) -> int:
    """Unix seconds for a wall-clock time in the current local timezone."""
    return int(datetime(year, month, day, hour, minute, second).timestamp())


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """
    Points CASENOTIFIER_HOME at a temporary directory so config files and
    logs written during a test never land in the working directory.
    """
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv(HOME_ENV_VAR, str(home))
    return home


@pytest.fixture
def set_local_tz():
    """
    Returns a function that switches the process timezone (TZ + tzset).
    The original zone is restored after the test.

    Usage:
        def test_something(set_local_tz):
            set_local_tz("America/New_York")
    """
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    original = os.environ.get("TZ")

    def _set(name: str) -> None:
        os.environ["TZ"] = name
        time.tzset()
        reload_localzone()

    yield _set

    if original is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = original
    time.tzset()
    reload_localzone()


@pytest.fixture
def clock():
    """A FixedClock set to Wednesday 2025-01-15 12:00 local time."""
    return FixedClock(local_ts(2025, 1, 15, 12))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage, clock):
    return AccountStore.load(storage, clock=clock)


@pytest.fixture
def controller(store, clock):
    return Controller(store, clock)


@pytest.fixture
def test_env(isolated_home):
    """A NotifierEnvironment rooted at the isolated home."""
    env = NotifierEnvironment()
    env.ensure(init_config=True)
    return env


class FailingStorage(MemoryStorage):
    """MemoryStorage whose writes fail once ``fail`` is set."""

    def __init__(self, data=None):
        super().__init__(data)
        self.fail = False

    def write(self, data: bytes) -> None:
        from casenotifier.errors import StorageError

        if self.fail:
            raise StorageError("disk full")
        super().write(data)


@pytest.fixture
def failing_storage():
    return FailingStorage()
