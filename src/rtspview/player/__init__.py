"""Player backends and registry."""

from rtspview.player.registry import (
    PlayerFactory,
    get_backend_names,
    load_player_factory,
    player_backend,
)

# Importing built-in backends registers them.
from rtspview.player import ffplay  # noqa: E402,F401  isort: skip

__all__ = [
    "PlayerFactory",
    "get_backend_names",
    "load_player_factory",
    "player_backend",
]
