from __future__ import annotations

import asyncio
import struct
from dataclasses import dataclass
from io import BytesIO
from typing import Protocol

import numpy as np

from ..core.assets import ModelHandle
from ..core.geometry import BoundingBox


GLB_MAGIC = b"glTF"


@dataclass(frozen=True)
class LoadedModel:
    """A parsed model ready to be placed (no scene position attached)."""

    name: str
    bounds: BoundingBox | None
    geometry_count: int
    vertex_count: int


class ModelLoader(Protocol):
    async def load(self, handle: ModelHandle) -> LoadedModel: ...


def read_glb_header(data: bytes) -> tuple[int, int]:
    """Return (version, declared_length) of a binary glTF container."""

    if len(data) < 12:
        raise ValueError("GLB payload is too short")
    magic, version, length = struct.unpack_from("<4sII", data, 0)
    if magic != GLB_MAGIC:
        raise ValueError("Not a binary glTF (.glb) payload")
    if version != 2:
        raise ValueError(f"Unsupported glTF container version {version}")
    return int(version), int(length)


def load_glb_model(data: bytes, *, name: str = "model.glb") -> LoadedModel:
    """Parse GLB bytes and compute the scene's axis-aligned bounds.

    Requires the optional dependency `trimesh`.
    """

    read_glb_header(data)

    # Import lazily so the proxy server never needs the mesh stack.
    try:
        import trimesh  # type: ignore
    except ModuleNotFoundError as e:
        raise ModuleNotFoundError(
            "GLB loading requires the optional dependency 'trimesh'. "
            "Install it with: pip install 'terrastage[glb]' (or just pip install trimesh)."
        ) from e

    scene = trimesh.load(BytesIO(data), file_type="glb", force="scene")

    bounds: BoundingBox | None = None
    raw_bounds = scene.bounds
    if raw_bounds is not None:
        b = np.asarray(raw_bounds, dtype=np.float64)
        if b.shape == (2, 3) and np.all(np.isfinite(b)):
            bounds = BoundingBox.from_bounds(b)

    vertex_count = 0
    for geom in scene.geometry.values():
        verts = getattr(geom, "vertices", None)
        if verts is not None:
            vertex_count += int(len(verts))

    return LoadedModel(
        name=str(name),
        bounds=bounds,
        geometry_count=int(len(scene.geometry)),
        vertex_count=vertex_count,
    )


class GlbModelLoader:
    """Loads dropped `.glb` files off the event loop."""

    async def load(self, handle: ModelHandle) -> LoadedModel:
        data = handle.read()
        return await asyncio.to_thread(load_glb_model, data, name=handle.name)
