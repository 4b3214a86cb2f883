from __future__ import annotations

from typing import Any


class RenderError(Exception):
    """Base class for render proxy failures that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


class QuotaExceeded(RenderError):
    status_code = 429

    def __init__(self, *, limit: int, used: int) -> None:
        super().__init__(
            "Render limit reached for this browser. Please come back later or restart the server.",
            limit=int(limit),
            used=int(used),
            remaining=0,
        )


class InvalidInput(RenderError):
    status_code = 400


class ServiceMisconfigured(RenderError):
    status_code = 500


class UpstreamFailure(RenderError):
    """The image generation service failed or returned no image."""

    status_code = 502

    def __init__(self, message: str, *, status: int | None = None) -> None:
        if status is None:
            super().__init__(message)
        else:
            super().__init__(message, status=int(status))
        self.upstream_status = status


class UnsupportedFile(ValueError):
    """A dropped file is not a loadable model."""


class CaptureFailure(RuntimeError):
    """The composited surface could not be read back."""


class InteractionError(RuntimeError):
    """An illegal manipulation state transition was requested."""


class RenderRequestError(RuntimeError):
    """Raised by `RenderClient` for non-2xx responses from the render proxy."""

    def __init__(self, status_code: int, body: dict[str, Any]) -> None:
        super().__init__(f"Render request failed: {status_code} {body.get('error', '')}".rstrip())
        self.status_code = int(status_code)
        self.body = body
