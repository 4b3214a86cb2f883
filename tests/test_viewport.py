from __future__ import annotations

import math

import pytest

from terrastage.core.viewport import (
    EARTH_RADIUS_M,
    INITIAL_VIEW_STATE,
    GeoCoord,
    ViewportState,
    WebMercatorSurface,
    coords_to_local,
    local_to_coords,
)


def test_local_offsets_point_east_and_north() -> None:
    origin = GeoCoord(longitude=-122.4194, latitude=37.7749)
    meters_per_milli_degree = math.radians(0.001) * EARTH_RADIUS_M

    x, y, z = coords_to_local(GeoCoord(longitude=origin.longitude, latitude=origin.latitude + 0.001), origin)
    assert x == pytest.approx(0.0, abs=1e-9)
    assert y == 0.0
    assert z == pytest.approx(-meters_per_milli_degree)

    x, y, z = coords_to_local(GeoCoord(longitude=origin.longitude + 0.001, latitude=origin.latitude), origin)
    assert x == pytest.approx(meters_per_milli_degree * math.cos(math.radians(origin.latitude)))
    assert z == pytest.approx(0.0, abs=1e-9)


def test_local_and_geo_round_trip() -> None:
    origin = INITIAL_VIEW_STATE.center
    geo = local_to_coords((120.0, 3.0, -45.0), origin)

    assert coords_to_local(geo, origin) == pytest.approx((120.0, 3.0, -45.0))


def test_unproject_canvas_centre_is_viewport_centre() -> None:
    surface = WebMercatorSurface(INITIAL_VIEW_STATE, width=800, height=600)
    geo = surface.unproject((400.0, 300.0))

    assert geo.longitude == pytest.approx(INITIAL_VIEW_STATE.longitude)
    assert geo.latitude == pytest.approx(INITIAL_VIEW_STATE.latitude)


def test_project_inverts_unproject_with_bearing() -> None:
    view = ViewportState(longitude=2.35, latitude=48.85, zoom=16.0, bearing=30.0)
    surface = WebMercatorSurface(view, width=640, height=480)

    for pixel in [(0.0, 0.0), (123.0, 456.0), (639.0, 12.0)]:
        assert surface.project(surface.unproject(pixel)) == pytest.approx(pixel, abs=1e-6)


def test_screen_down_is_south_without_bearing() -> None:
    view = ViewportState(longitude=0.0, latitude=0.0, zoom=10.0)
    surface = WebMercatorSurface(view, width=100, height=100)

    below = surface.unproject((50.0, 90.0))
    right = surface.unproject((90.0, 50.0))
    assert below.latitude < 0.0
    assert right.longitude > 0.0


def test_surface_rejects_empty_canvas() -> None:
    with pytest.raises(ValueError):
        WebMercatorSurface(INITIAL_VIEW_STATE, width=0, height=10)
