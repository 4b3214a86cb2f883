from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import httpx

from .core.assets import AssetSlot, ModelHandle, is_model_filename
from .core.geometry import GROUND_PLANE, Ray, Vec3
from .core.interaction import InteractionState, ManipulationStateMachine
from .core.placement import DragSession, PlacedObject, RotateSession, SelectionGizmo
from .core.viewport import INITIAL_VIEW_STATE, GeoCoord, MapSurface, ViewportState, coords_to_local
from .errors import CaptureFailure, RenderRequestError
from .io.glb import GlbModelLoader, ModelLoader
from .io.image import decode_data_uri, encode_frame, to_data_uri
from .sdk.client import RenderClient

logger = logging.getLogger(__name__)


class SceneController:
    """Headless controller for the map + model scene.

    Owns the viewport, the single placed model and its manipulation state, the
    overlay image and the render trigger. Rendering and projection are delegated to a
    `MapSurface`; model parsing to a `ModelLoader`; the proxy call to a `RenderClient`.

    Notes:
    - Camera controls are enabled exactly when no drag/rotate is active.
      `on_camera_controls` is called whenever that flips.
    - Local coordinates are relative to `anchor` (defaults to the initial viewport
      centre), not to the current viewport centre.
    """

    def __init__(
        self,
        surface: MapSurface | None = None,
        *,
        loader: ModelLoader | None = None,
        render_client: RenderClient | None = None,
        viewport: ViewportState = INITIAL_VIEW_STATE,
        anchor: GeoCoord | None = None,
        on_camera_controls: Callable[[bool], None] | None = None,
    ) -> None:
        self.surface = surface
        self.loader: ModelLoader = loader if loader is not None else GlbModelLoader()
        self.render_client = render_client
        self.viewport = viewport
        self.anchor = anchor if anchor is not None else viewport.center

        self.placed: PlacedObject | None = None
        self.overlay_image_url: str | None = None
        self.quota_limit: int | None = None
        self.quota_remaining: int | None = None

        self._assets = AssetSlot()
        self._loading: ModelHandle | None = None
        self._rendering = False
        self._drag: DragSession | None = None
        self._rotate: RotateSession | None = None

        self.interaction = ManipulationStateMachine()
        self._on_camera_controls = on_camera_controls
        self.interaction.add_camera_listener(self._camera_changed)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> InteractionState:
        return self.interaction.state

    @property
    def camera_enabled(self) -> bool:
        return self.interaction.camera_enabled

    @property
    def camera_controls(self) -> dict[str, bool]:
        enabled = self.camera_enabled
        return {"dragPan": enabled, "dragRotate": enabled, "scrollZoom": enabled}

    @property
    def is_loading(self) -> bool:
        return self._loading is not None

    @property
    def is_rendering(self) -> bool:
        return self._rendering

    @property
    def asset(self) -> ModelHandle | None:
        return self._assets.current

    @property
    def gizmo(self) -> SelectionGizmo | None:
        return self.placed.gizmo if self.placed is not None else None

    def _camera_changed(self, enabled: bool) -> None:
        if self._on_camera_controls is not None:
            self._on_camera_controls(enabled)

    def snapshot(self) -> dict:
        return {
            "viewport": self.viewport.to_dict(),
            "interaction": self.state.value,
            "cameraControls": self.camera_controls,
            "object": self.placed.to_dict() if self.placed is not None else None,
            "loading": self.is_loading,
            "rendering": self.is_rendering,
            "overlay": self.overlay_image_url is not None,
            "quota": {"limit": self.quota_limit, "remaining": self.quota_remaining},
        }

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def viewport_moved(self, viewport: ViewportState) -> None:
        """Apply a camera move. Any displayed overlay no longer matches the view."""

        self.viewport = viewport
        if self.surface is not None:
            self.surface.set_viewport(viewport)
        self.overlay_image_url = None

    def drop_position(self, client_xy: tuple[float, float]) -> Vec3:
        """Convert a drop point in client pixels to a local ground position."""

        if self.surface is None:
            return (0.0, 0.0, 0.0)
        left, top = self.surface.canvas_origin()
        pixel = (float(client_xy[0]) - float(left), float(client_xy[1]) - float(top))
        geo = self.surface.unproject(pixel)
        x, _, z = coords_to_local(GeoCoord(longitude=geo.longitude, latitude=geo.latitude), self.anchor)
        return (x, 0.0, z)

    # ------------------------------------------------------------------
    # Model drop / replacement
    # ------------------------------------------------------------------

    async def drop_file(self, name: str, data: bytes, client_xy: tuple[float, float]) -> bool:
        """Load a dropped file and place it at the drop point.

        Returns False (and changes nothing) for non-model files. Returns False as well
        when a newer drop replaced this one while it was loading.
        """

        if not is_model_filename(name):
            logger.debug("Ignoring dropped file %r (not a .glb)", name)
            return False

        position = self.drop_position(client_xy)
        logger.debug("Dropping model %r at %s", name, position)

        handle = ModelHandle(name, data)
        self._discard_object()
        self._assets.replace(handle)
        self._loading = handle

        try:
            loaded = await self.loader.load(handle)
        except Exception:
            if self._assets.is_current(handle):
                self._assets.release()
                self._loading = None
            raise

        if not self._assets.is_current(handle):
            # Superseded by a newer drop; its handle was already released.
            return False

        self._loading = None
        self.placed = PlacedObject(asset=handle, position=position, bounds=loaded.bounds)
        return True

    def _discard_object(self) -> None:
        self.interaction.end()
        self._drag = None
        self._rotate = None
        self.placed = None

    def close(self) -> None:
        """Drop the current object and release its asset handle."""

        self._discard_object()
        self._loading = None
        self._assets.release()

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def click_object(self) -> None:
        if self.placed is not None:
            self.placed.selected = True

    def pointer_missed(self) -> None:
        """A pointer event that hit nothing in the 3D layer."""

        if self.placed is not None:
            self.placed.selected = False

    def pointer_down_object(self, point: Vec3) -> bool:
        """Start dragging from `point`, the pointer hit on the model."""

        obj = self.placed
        if obj is None or not self.interaction.is_idle:
            return False
        obj.selected = True
        self.interaction.begin_drag()
        self._drag = DragSession.start(obj.position, point)
        return True

    def pointer_down_ring(self, point: Vec3) -> bool:
        """Start rotating from `point`, the pointer hit on the selection ring."""

        obj = self.placed
        if obj is None or not obj.selected or not self.interaction.is_idle:
            return False
        self.interaction.begin_rotate()
        self._rotate = RotateSession.start(obj.position, point, obj.yaw)
        return True

    def pointer_move(self, ray: Ray) -> None:
        obj = self.placed
        if obj is None:
            return

        if self.state is InteractionState.DRAGGING and self._drag is not None:
            pos = self._drag.position_for(ray)
            if pos is not None:
                obj.position = pos
        elif self.state is InteractionState.ROTATING and self._rotate is not None:
            hit = GROUND_PLANE.intersect(ray)
            if hit is not None:
                obj.yaw = self._rotate.yaw_for(obj.position, hit)

    def pointer_up(self) -> InteractionState:
        """End any drag/rotate, wherever the pointer was released."""

        self._drag = None
        self._rotate = None
        return self.interaction.end()

    # ------------------------------------------------------------------
    # Capture & render
    # ------------------------------------------------------------------

    def _capture(self) -> str:
        if self.surface is None:
            raise CaptureFailure("map surface not found")
        frame = self.surface.read_pixels()
        if frame is None:
            raise CaptureFailure("map canvas not found")
        data = encode_frame(frame, mime_type="image/png")
        logger.info("Captured map canvas %dx%d", int(frame.shape[1]), int(frame.shape[0]))
        return to_data_uri(data, "image/png")

    def capture(self) -> str | None:
        """Read back the composited map + model frame as a PNG data URI."""

        try:
            return self._capture()
        except CaptureFailure as ex:
            logger.warning("Composite capture failed: %s", ex)
            return None
        except Exception:
            logger.exception("Failed to read map canvas")
            return None

    def save_screenshot(self, path: str | Path) -> Path | None:
        image_data = self.capture()
        if image_data is None:
            return None
        _, raw = decode_data_uri(image_data)
        p = Path(path)
        p.write_bytes(raw)
        return p

    def _apply_quota(self, data: dict) -> None:
        if isinstance(data.get("limit"), int):
            self.quota_limit = int(data["limit"])
        if isinstance(data.get("remaining"), int):
            self.quota_remaining = int(data["remaining"])

    async def refresh_quota(self) -> None:
        if self.render_client is None:
            return
        try:
            self._apply_quota(await self.render_client.get_quota())
        except (RenderRequestError, httpx.HTTPError) as ex:
            # Counts are informational; the render trigger still works without them.
            logger.debug("Could not fetch render quota: %s", ex)

    async def request_render(self) -> str | None:
        """Capture the current view and ask the proxy for a stylized render.

        Returns the overlay image URL, or None when nothing was rendered. A call made
        while another render is in flight returns None without contacting the proxy.
        """

        if self._rendering:
            return None
        if self.render_client is None:
            raise RuntimeError("SceneController has no render_client")

        image_data = self.capture()
        if image_data is None:
            logger.warning("Render skipped: failed to capture composite image")
            return None

        self._rendering = True
        try:
            data = await self.render_client.render(image_data)
        except RenderRequestError as ex:
            logger.error("Render API error %s: %s", ex.status_code, ex.body)
            self._apply_quota(ex.body)
            return None
        except httpx.HTTPError as ex:
            logger.error("Failed to call render API: %s", ex)
            return None
        except Exception:
            logger.exception("Failed to call render API")
            return None
        finally:
            self._rendering = False

        self._apply_quota(data)
        image_url = data.get("imageUrl")
        if image_url:
            self.overlay_image_url = str(image_url)
        return self.overlay_image_url if image_url else None
