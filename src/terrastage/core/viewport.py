from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

import numpy as np


EARTH_RADIUS_M = 6378137.0
TILE_SIZE_PX = 512.0
MAX_MERCATOR_LATITUDE = 85.051129


@dataclass(frozen=True)
class GeoCoord:
    longitude: float
    latitude: float
    altitude: float = 0.0


@dataclass(frozen=True)
class ViewportState:
    """Camera state of the map viewport.

    `pitch` and `bearing` are in degrees. The 3D layer keeps its own origin (the
    anchor), so these values only matter for projection and capture.
    """

    longitude: float
    latitude: float
    zoom: float
    pitch: float = 0.0
    bearing: float = 0.0

    @property
    def center(self) -> GeoCoord:
        return GeoCoord(longitude=float(self.longitude), latitude=float(self.latitude))

    def to_dict(self) -> dict[str, float]:
        return {
            "longitude": float(self.longitude),
            "latitude": float(self.latitude),
            "zoom": float(self.zoom),
            "pitch": float(self.pitch),
            "bearing": float(self.bearing),
        }


INITIAL_VIEW_STATE = ViewportState(
    longitude=-122.4194,
    latitude=37.7749,
    zoom=15.0,
    pitch=60.0,
    bearing=-17.6,
)


class MapSurface(Protocol):
    """What the scene needs from the map renderer.

    - `unproject` maps a pixel inside the canvas to a geographic coordinate using the
      current camera.
    - `canvas_origin` is the canvas' top-left corner in client (page) pixels.
    - `read_pixels` returns the composited map + 3D frame as (H, W, 3|4) uint8, or None
      when no drawable is available.
    - `set_viewport` is told about camera moves applied by the scene.
    """

    def unproject(self, pixel: tuple[float, float]) -> GeoCoord: ...

    def canvas_origin(self) -> tuple[float, float]: ...

    def read_pixels(self) -> np.ndarray | None: ...

    def set_viewport(self, viewport: ViewportState) -> None: ...


def coords_to_local(point: GeoCoord, origin: GeoCoord) -> tuple[float, float, float]:
    """Return the offset of `point` from `origin` in local scene meters (x east, y up, -z north)."""

    lat_diff = math.radians(float(point.latitude) - float(origin.latitude)) * EARTH_RADIUS_M
    lon_diff = math.radians(float(point.longitude) - float(origin.longitude)) * EARTH_RADIUS_M
    alt_diff = float(point.altitude) - float(origin.altitude)
    x = lon_diff * math.cos(math.radians(float(origin.latitude)))
    return (float(x), float(alt_diff), float(-lat_diff))


def local_to_coords(position: tuple[float, float, float], origin: GeoCoord) -> GeoCoord:
    x, y, z = (float(v) for v in position)
    cos_lat = math.cos(math.radians(float(origin.latitude)))
    if abs(cos_lat) < 1e-12:
        raise ValueError("origin latitude is too close to a pole")
    lon = float(origin.longitude) + math.degrees(x / (EARTH_RADIUS_M * cos_lat))
    lat = float(origin.latitude) + math.degrees(-z / EARTH_RADIUS_M)
    return GeoCoord(longitude=lon, latitude=lat, altitude=float(origin.altitude) + y)


def _mercator_xy(coord: GeoCoord, world_size: float) -> tuple[float, float]:
    lat = min(max(float(coord.latitude), -MAX_MERCATOR_LATITUDE), MAX_MERCATOR_LATITUDE)
    x = (float(coord.longitude) + 180.0) / 360.0 * world_size
    y = (180.0 - math.degrees(math.log(math.tan(math.pi / 4.0 + math.radians(lat) / 2.0)))) / 360.0 * world_size
    return x, y


class WebMercatorSurface:
    """Top-down web mercator surface.

    This is the headless stand-in for the real map renderer: pitch is ignored, bearing
    rotates the screen around the canvas centre. `frame` is what `read_pixels` returns.
    """

    def __init__(
        self,
        viewport: ViewportState,
        *,
        width: int,
        height: int,
        origin: tuple[float, float] = (0.0, 0.0),
        frame: np.ndarray | None = None,
    ) -> None:
        if int(width) <= 0 or int(height) <= 0:
            raise ValueError("width and height must be positive integers")
        self.viewport = viewport
        self.width = int(width)
        self.height = int(height)
        self._origin = (float(origin[0]), float(origin[1]))
        self.frame = frame

    def canvas_origin(self) -> tuple[float, float]:
        return self._origin

    def read_pixels(self) -> np.ndarray | None:
        return self.frame

    def set_viewport(self, viewport: ViewportState) -> None:
        self.viewport = viewport

    def _world_size(self) -> float:
        return TILE_SIZE_PX * (2.0 ** float(self.viewport.zoom))

    def project(self, coord: GeoCoord) -> tuple[float, float]:
        world = self._world_size()
        cx, cy = _mercator_xy(self.viewport.center, world)
        px, py = _mercator_xy(coord, world)
        dx, dy = px - cx, py - cy
        b = math.radians(float(self.viewport.bearing))
        sx = dx * math.cos(b) + dy * math.sin(b)
        sy = -dx * math.sin(b) + dy * math.cos(b)
        return (sx + self.width / 2.0, sy + self.height / 2.0)

    def unproject(self, pixel: tuple[float, float]) -> GeoCoord:
        world = self._world_size()
        cx, cy = _mercator_xy(self.viewport.center, world)
        sx = float(pixel[0]) - self.width / 2.0
        sy = float(pixel[1]) - self.height / 2.0
        b = math.radians(float(self.viewport.bearing))
        dx = sx * math.cos(b) - sy * math.sin(b)
        dy = sx * math.sin(b) + sy * math.cos(b)
        mx = (cx + dx) / world
        my = (cy + dy) / world
        lon = mx * 360.0 - 180.0
        y2 = 180.0 - my * 360.0
        lat = math.degrees(2.0 * math.atan(math.exp(math.radians(y2)))) - 90.0
        return GeoCoord(longitude=lon, latitude=lat)
