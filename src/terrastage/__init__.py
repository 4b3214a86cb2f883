from __future__ import annotations

from .config import Settings
from .core.geometry import BoundingBox, Ray
from .core.interaction import InteractionState
from .core.viewport import INITIAL_VIEW_STATE, GeoCoord, ViewportState, WebMercatorSurface
from .runner import StageServer, run
from .scene import SceneController
from .sdk.client import RenderClient
from .server import create_app

__all__ = [
    "run",
    "create_app",
    "Settings",
    "StageServer",
    "RenderClient",
    "SceneController",
    "InteractionState",
    "BoundingBox",
    "Ray",
    "GeoCoord",
    "ViewportState",
    "WebMercatorSurface",
    "INITIAL_VIEW_STATE",
]
