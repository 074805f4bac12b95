"""Shared pytest fixtures for rtspview tests."""

from __future__ import annotations

import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest

from rtspview.interfaces import SettingsStore
from rtspview.logging_setup import set_camera_name
from rtspview.supervisor import PlaybackSupervisor
from tests.rtspview.mocks import MockDisplay, MockPlayerFactory

MakeSupervisor = Callable[..., Awaitable[PlaybackSupervisor]]


@pytest.fixture(autouse=True)
def reset_camera_name() -> None:
    """Keep the log camera name from leaking between tests."""
    yield
    set_camera_name(None)


@pytest.fixture
def player_factory() -> MockPlayerFactory:
    return MockPlayerFactory()


@pytest.fixture
def mock_display() -> MockDisplay:
    return MockDisplay()


@pytest.fixture
async def make_supervisor(
    player_factory: MockPlayerFactory,
) -> AsyncGenerator[MakeSupervisor, None]:
    """Build and start supervisors; all of them are shut down after the test."""
    created: list[PlaybackSupervisor] = []

    async def _make(
        store: SettingsStore,
        *,
        factory: MockPlayerFactory | None = None,
        start: bool = True,
        **kwargs: Any,
    ) -> PlaybackSupervisor:
        supervisor = PlaybackSupervisor(store, factory or player_factory, **kwargs)
        created.append(supervisor)
        if start:
            await supervisor.start()
        return supervisor

    yield _make

    for supervisor in created:
        await supervisor.shutdown()
