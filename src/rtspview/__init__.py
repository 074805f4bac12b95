"""rtspview camera viewer."""

__version__ = "0.1.0"

# Export commonly used types
from rtspview.errors import ViewerError
from rtspview.models.playback import PlaybackState, UiState
from rtspview.models.settings import AppSettings, CameraConfig
from rtspview.supervisor import PlaybackSupervisor

__all__ = [
    "AppSettings",
    "CameraConfig",
    "PlaybackState",
    "PlaybackSupervisor",
    "UiState",
    "ViewerError",
    "__version__",
]
