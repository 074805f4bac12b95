"""Player backend registry.

Backends register a class exposing `config_cls` and a `create(config)`
classmethod that returns a zero-argument player factory.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, cast

from pydantic import BaseModel, ValidationError

from rtspview.errors import PlayerBackendError
from rtspview.interfaces import Player

logger = logging.getLogger(__name__)

PlayerFactory = Callable[[], Player]


class PlayerBackend(Protocol):
    config_cls: type[BaseModel]

    @classmethod
    def create(cls, config: Any) -> PlayerFactory: ...


_BACKENDS: dict[str, type[PlayerBackend]] = {}


def player_backend(name: str) -> Callable[[type], type]:
    """Class decorator registering a player backend under `name`."""

    def decorator(cls: type) -> type:
        if not hasattr(cls, "config_cls"):
            raise TypeError(f"Player backend {cls.__name__} must define 'config_cls'")
        if not hasattr(cls, "create"):
            raise TypeError(f"Player backend {cls.__name__} must define 'create' classmethod")
        if name in _BACKENDS:
            raise ValueError(f"Player backend '{name}' is already registered.")
        _BACKENDS[name] = cast(type[PlayerBackend], cls)
        cast(Any, cls).__backend_name__ = name
        logger.debug("Registered player backend: %s", name)
        return cls

    return decorator


def get_backend_names() -> list[str]:
    return sorted(_BACKENDS)


def load_player_factory(
    name: str, config: dict[str, Any] | BaseModel | None = None
) -> PlayerFactory:
    """Validate backend config and return its player factory.

    Raises:
        PlayerBackendError: If the backend is unknown or its config is invalid
    """
    backend = _BACKENDS.get(name)
    if backend is None:
        available = ", ".join(get_backend_names())
        raise PlayerBackendError(name, f"Unknown player backend: '{name}'. Available: {available}")

    if isinstance(config, BaseModel):
        config_dict = config.model_dump()
    else:
        config_dict = dict(config or {})

    try:
        validated = backend.config_cls.model_validate(config_dict)
    except ValidationError as exc:
        raise PlayerBackendError(name, f"Invalid config for player backend '{name}'", exc) from exc
    return backend.create(validated)
