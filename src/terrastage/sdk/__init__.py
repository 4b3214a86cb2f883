from __future__ import annotations

from .client import RenderClient

__all__ = ["RenderClient"]
