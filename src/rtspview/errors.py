"""Error hierarchy for the rtspview viewer."""

from __future__ import annotations


class ViewerError(Exception):
    """Base exception for viewer errors.

    Preserves stack traces via exception chaining.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause


class SettingsStoreError(ViewerError):
    """Settings store read or write failed."""

    def __init__(self, key: str, cause: Exception) -> None:
        super().__init__(f"Settings store operation failed (key: {key})", cause=cause)
        self.key = key


class CameraNotFoundError(ViewerError):
    """Raised when a camera lookup by id fails."""

    def __init__(self, camera_id: str) -> None:
        super().__init__(f"Camera not found: {camera_id}")
        self.camera_id = camera_id


class InvalidStreamUrlError(ViewerError):
    """Raised when a stream URL is rejected by validation."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(reason)
        self.url = url
        self.reason = reason


class PlayerBackendError(ViewerError):
    """Player backend is unknown or cannot be created."""

    def __init__(self, backend: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, cause=cause)
        self.backend = backend
