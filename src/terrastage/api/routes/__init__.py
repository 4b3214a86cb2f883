from __future__ import annotations

from .render import client_key, mount_render_api

__all__ = ["client_key", "mount_render_api"]
