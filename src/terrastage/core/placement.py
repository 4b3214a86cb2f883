from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .assets import ModelHandle
from .geometry import GROUND_PLANE, BoundingBox, Ray, Vec3, as_vec3, to_tuple


RING_INNER_SCALE = 1.4
RING_OUTER_SCALE = 1.3
DEFAULT_RING_INNER_RADIUS = 3.0
RING_HEIGHT = 0.1
WIREFRAME_SCALE = 1.05


@dataclass(frozen=True)
class SelectionGizmo:
    """Geometry of the selection visuals, in object-local coordinates."""

    box_center: Vec3 | None
    box_size: Vec3 | None
    ring_inner_radius: float
    ring_outer_radius: float
    ring_height: float = RING_HEIGHT

    @property
    def has_wireframe(self) -> bool:
        return self.box_size is not None

    @classmethod
    def for_bounds(cls, bounds: BoundingBox | None) -> "SelectionGizmo":
        if bounds is None:
            inner = DEFAULT_RING_INNER_RADIUS
            return cls(
                box_center=None,
                box_size=None,
                ring_inner_radius=inner,
                ring_outer_radius=inner * RING_OUTER_SCALE,
            )
        sx, sy, sz = bounds.size
        inner = max(sx, sz) * RING_INNER_SCALE
        return cls(
            box_center=bounds.center,
            box_size=(sx * WIREFRAME_SCALE, sy * WIREFRAME_SCALE, sz * WIREFRAME_SCALE),
            ring_inner_radius=float(inner),
            ring_outer_radius=float(inner * RING_OUTER_SCALE),
        )


def ground_angle(center: Vec3, point: Vec3) -> float:
    """Heading of `point` around `center` on the ground, as atan2(dx, dz)."""

    dx = float(point[0]) - float(center[0])
    dz = float(point[2]) - float(center[2])
    return math.atan2(dx, dz)


@dataclass(frozen=True)
class DragSession:
    offset: Vec3

    @classmethod
    def start(cls, position: Vec3, pointer: Vec3) -> "DragSession":
        current = as_vec3(position, name="position")
        p = as_vec3(pointer, name="pointer")
        p[1] = current[1]
        return cls(offset=to_tuple(current - p))

    def position_for(self, ray: Ray) -> Vec3 | None:
        hit = GROUND_PLANE.intersect(ray)
        if hit is None:
            return None
        pos = np.asarray(hit, dtype=np.float64) + np.asarray(self.offset, dtype=np.float64)
        return (float(pos[0]), 0.0, float(pos[2]))


@dataclass(frozen=True)
class RotateSession:
    start_angle: float
    initial_yaw: float

    @classmethod
    def start(cls, center: Vec3, pointer: Vec3, yaw: float) -> "RotateSession":
        return cls(start_angle=ground_angle(center, pointer), initial_yaw=float(yaw))

    def yaw_for(self, center: Vec3, pointer: Vec3) -> float:
        return self.initial_yaw + (ground_angle(center, pointer) - self.start_angle)


@dataclass
class PlacedObject:
    """The single model placed in the scene.

    `position[1]` is always 0: the object sits on the ground plane.
    """

    asset: ModelHandle
    position: Vec3 = (0.0, 0.0, 0.0)
    yaw: float = 0.0
    selected: bool = False
    bounds: BoundingBox | None = None

    def __post_init__(self) -> None:
        x, _, z = as_vec3(self.position, name="position")
        self.position = (float(x), 0.0, float(z))

    @property
    def gizmo(self) -> SelectionGizmo | None:
        if not self.selected:
            return None
        return SelectionGizmo.for_bounds(self.bounds)

    def to_dict(self) -> dict:
        return {
            "name": self.asset.name,
            "position": list(self.position),
            "yaw": float(self.yaw),
            "selected": bool(self.selected),
            "bounds": self.bounds.to_dict() if self.bounds is not None else None,
        }
