from __future__ import annotations

from dataclasses import dataclass

import numpy as np


Vec3 = tuple[float, float, float]


def as_vec3(v: np.ndarray | tuple[float, float, float] | list[float], *, name: str = "vector") -> np.ndarray:
    out = np.asarray(v, dtype=np.float64).reshape(3)
    if not np.all(np.isfinite(out)):
        raise ValueError(f"{name} must contain finite numeric values")
    return out


def to_tuple(v: np.ndarray) -> Vec3:
    return (float(v[0]), float(v[1]), float(v[2]))


@dataclass(frozen=True)
class Ray:
    origin: Vec3
    direction: Vec3

    def at(self, t: float) -> Vec3:
        o = as_vec3(self.origin, name="origin")
        d = as_vec3(self.direction, name="direction")
        return to_tuple(o + float(t) * d)


@dataclass(frozen=True)
class Plane:
    """Plane `dot(normal, p) + constant = 0`."""

    normal: Vec3 = (0.0, 1.0, 0.0)
    constant: float = 0.0

    def intersect(self, ray: Ray) -> Vec3 | None:
        n = as_vec3(self.normal, name="normal")
        o = as_vec3(ray.origin, name="origin")
        d = as_vec3(ray.direction, name="direction")
        denom = float(np.dot(n, d))
        if abs(denom) < 1e-12:
            # Parallel: only hits if the origin already lies on the plane.
            if abs(float(np.dot(n, o)) + self.constant) < 1e-12:
                return to_tuple(o)
            return None
        t = -(float(np.dot(n, o)) + self.constant) / denom
        if t < 0:
            return None
        return ray.at(t)


GROUND_PLANE = Plane()


@dataclass(frozen=True)
class BoundingBox:
    min: Vec3
    max: Vec3

    @classmethod
    def from_points(cls, points: np.ndarray) -> "BoundingBox":
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 3 or pts.shape[0] == 0:
            raise ValueError(f"points must have shape (N,3) with N > 0, got {pts.shape}")
        return cls(min=to_tuple(pts.min(axis=0)), max=to_tuple(pts.max(axis=0)))

    @classmethod
    def from_bounds(cls, bounds: np.ndarray) -> "BoundingBox":
        b = np.asarray(bounds, dtype=np.float64)
        if b.shape != (2, 3):
            raise ValueError(f"bounds must have shape (2,3), got {b.shape}")
        return cls(min=to_tuple(b[0]), max=to_tuple(b[1]))

    @property
    def size(self) -> Vec3:
        return to_tuple(np.asarray(self.max) - np.asarray(self.min))

    @property
    def center(self) -> Vec3:
        return to_tuple((np.asarray(self.max) + np.asarray(self.min)) * 0.5)

    def to_dict(self) -> dict[str, list[float]]:
        return {"min": list(self.min), "max": list(self.max)}
