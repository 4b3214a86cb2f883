from __future__ import annotations

import base64
import re
from io import BytesIO

import numpy as np


DEFAULT_MIME_TYPE = "image/png"

_MIME_TO_FORMAT: dict[str, str] = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/webp": "WEBP",
}

_DATA_URI_PREFIX = re.compile(r"^data:(.*?);base64,")


def _normalize_mime_type(mime_type: str | None) -> str:
    mime = str(mime_type or DEFAULT_MIME_TYPE).strip().lower()
    if mime not in _MIME_TO_FORMAT:
        raise ValueError(f"Unsupported mime_type {mime!r}. Supported: {sorted(_MIME_TO_FORMAT.keys())}")
    return mime


def _coerce_u8_image(arr: np.ndarray) -> np.ndarray:
    a = np.asarray(arr)
    if a.ndim not in (2, 3):
        raise ValueError(f"image array must have shape (H,W) or (H,W,C), got {a.shape}")
    if a.ndim == 3 and a.shape[2] not in (1, 3, 4):
        raise ValueError(f"image array channel count must be 1, 3, or 4; got {a.shape[2]}")
    if a.shape[0] == 0 or a.shape[1] == 0:
        raise ValueError("image array must not be empty")
    if np.issubdtype(a.dtype, np.floating):
        a = np.clip(a, 0.0, 1.0) * 255.0
    else:
        a = np.clip(a, 0, 255)
    return np.ascontiguousarray(a, dtype=np.uint8)


def encode_frame(frame: np.ndarray, *, mime_type: str | None = DEFAULT_MIME_TYPE) -> bytes:
    """Encode an RGB/RGBA/grayscale frame read back from the map surface."""

    try:
        from PIL import Image  # type: ignore
    except ModuleNotFoundError as e:
        raise ModuleNotFoundError(
            "Frame encoding requires Pillow. Install it with: pip install Pillow"
        ) from e

    mime = _normalize_mime_type(mime_type)
    arr_u8 = _coerce_u8_image(frame)

    # Pillow infers L / RGB / RGBA from the array shape.
    out = arr_u8
    if out.ndim == 3 and out.shape[2] == 1:
        out = out[:, :, 0]
    elif out.ndim == 3 and out.shape[2] == 4 and _MIME_TO_FORMAT[mime] == "JPEG":
        # JPEG has no alpha channel.
        out = out[:, :, :3]

    img = Image.fromarray(np.ascontiguousarray(out))
    buf = BytesIO()
    img.save(buf, format=_MIME_TO_FORMAT[mime])
    return bytes(buf.getvalue())


def to_data_uri(data: bytes | str, mime_type: str | None = DEFAULT_MIME_TYPE) -> str:
    """Build a `data:<mime>;base64,<payload>` URI.

    `data` may be raw bytes or an already base64-encoded string.
    """

    mime = str(mime_type or DEFAULT_MIME_TYPE)
    payload = data if isinstance(data, str) else base64.b64encode(bytes(data)).decode("ascii")
    return f"data:{mime};base64,{payload}"


def split_data_uri(image_data: str) -> tuple[str, str]:
    """Return (mime_type, base64_payload) for a data URI or a bare base64 string.

    Everything up to the first comma is dropped. The MIME type falls back to
    image/png when the prefix is missing or not a base64 data URI.
    """

    comma = image_data.find(",")
    payload = image_data[comma + 1 :] if comma >= 0 else image_data
    match = _DATA_URI_PREFIX.match(image_data)
    mime = match.group(1) if match and match.group(1) else DEFAULT_MIME_TYPE
    return mime, payload


def decode_data_uri(image_data: str) -> tuple[str, bytes]:
    mime, payload = split_data_uri(image_data)
    try:
        raw = base64.b64decode(payload, validate=False)
    except (ValueError, TypeError) as ex:
        raise ValueError("Invalid base64 image payload") from ex
    return mime, raw
