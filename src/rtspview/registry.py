"""Camera registry: ordered cameras plus a positional "current" pointer.

All operations are pure and return a new registry. Selection is by
position, not identity: removing a camera before the current one shifts
which camera is current.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from rtspview.models.enums import VideoDisplayMode
from rtspview.models.settings import AppSettings, CameraConfig


def new_camera(
    existing_count: int,
    *,
    url: str = "",
    display_mode: VideoDisplayMode = VideoDisplayMode.FIT,
) -> CameraConfig:
    """Create a camera with a default name derived from the current count."""
    return CameraConfig(name=f"Camera {existing_count + 1}", url=url, display_mode=display_mode)


@dataclass(frozen=True, slots=True)
class CameraRegistry:
    cameras: tuple[CameraConfig, ...] = ()
    current_index: int | None = None

    def __post_init__(self) -> None:
        if not self.cameras:
            object.__setattr__(self, "current_index", None)
        elif self.current_index is None:
            object.__setattr__(self, "current_index", 0)
        elif not 0 <= self.current_index < len(self.cameras):
            clamped = max(0, min(self.current_index, len(self.cameras) - 1))
            object.__setattr__(self, "current_index", clamped)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> CameraRegistry:
        return cls(cameras=tuple(settings.cameras), current_index=settings.current_camera_index)

    def apply_to(self, settings: AppSettings) -> AppSettings:
        """Return `settings` with this registry's cameras and index."""
        return settings.model_copy(
            update={
                "cameras": self.cameras,
                "current_camera_index": self.current_index or 0,
            }
        )

    @property
    def current(self) -> CameraConfig | None:
        if self.current_index is None:
            return None
        return self.cameras[self.current_index]

    def index_of(self, camera_id: str) -> int | None:
        for index, camera in enumerate(self.cameras):
            if camera.id == camera_id:
                return index
        return None

    def add(self, camera: CameraConfig) -> CameraRegistry:
        return replace(self, cameras=(*self.cameras, camera))

    def remove(self, camera_id: str) -> CameraRegistry:
        remaining = tuple(camera for camera in self.cameras if camera.id != camera_id)
        if len(remaining) == len(self.cameras):
            return self
        if not remaining:
            return CameraRegistry()
        index = self.current_index or 0
        if index >= len(remaining):
            index = len(remaining) - 1
        return CameraRegistry(cameras=remaining, current_index=index)

    def update(self, camera: CameraConfig) -> CameraRegistry:
        index = self.index_of(camera.id)
        if index is None:
            return self
        cameras = list(self.cameras)
        cameras[index] = camera
        return replace(self, cameras=tuple(cameras))

    def select(self, index: int) -> CameraRegistry:
        if not 0 <= index < len(self.cameras):
            return self
        return replace(self, current_index=index)

    def next(self) -> CameraRegistry:
        if len(self.cameras) <= 1:
            return self
        index = ((self.current_index or 0) + 1) % len(self.cameras)
        return replace(self, current_index=index)

    def previous(self) -> CameraRegistry:
        if len(self.cameras) <= 1:
            return self
        current = self.current_index or 0
        index = len(self.cameras) - 1 if current <= 0 else current - 1
        return replace(self, current_index=index)
