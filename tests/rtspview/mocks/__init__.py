"""Mock implementations for testing."""

from tests.rtspview.mocks.display import MockDisplay
from tests.rtspview.mocks.player import MockPlayer, MockPlayerFactory

__all__ = [
    "MockDisplay",
    "MockPlayer",
    "MockPlayerFactory",
]
