from __future__ import annotations

from .assets import AssetSlot, ModelHandle, is_model_filename
from .geometry import GROUND_PLANE, BoundingBox, Plane, Ray
from .interaction import InteractionState, ManipulationStateMachine
from .placement import DragSession, PlacedObject, RotateSession, SelectionGizmo
from .quota import InMemoryQuotaStore, QuotaStatus, QuotaStore, quota_status
from .viewport import (
    INITIAL_VIEW_STATE,
    GeoCoord,
    MapSurface,
    ViewportState,
    WebMercatorSurface,
    coords_to_local,
    local_to_coords,
)

__all__ = [
    "AssetSlot",
    "ModelHandle",
    "is_model_filename",
    "GROUND_PLANE",
    "BoundingBox",
    "Plane",
    "Ray",
    "InteractionState",
    "ManipulationStateMachine",
    "DragSession",
    "RotateSession",
    "PlacedObject",
    "SelectionGizmo",
    "QuotaStore",
    "QuotaStatus",
    "InMemoryQuotaStore",
    "quota_status",
    "INITIAL_VIEW_STATE",
    "GeoCoord",
    "MapSurface",
    "ViewportState",
    "WebMercatorSurface",
    "coords_to_local",
    "local_to_coords",
]
