from __future__ import annotations

from .glb import GlbModelLoader, LoadedModel, ModelLoader, load_glb_model, read_glb_header
from .image import decode_data_uri, encode_frame, split_data_uri, to_data_uri

__all__ = [
    "GlbModelLoader",
    "LoadedModel",
    "ModelLoader",
    "load_glb_model",
    "read_glb_header",
    "decode_data_uri",
    "encode_frame",
    "split_data_uri",
    "to_data_uri",
]
