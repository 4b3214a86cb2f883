from __future__ import annotations

import itertools
from pathlib import Path

from ..errors import UnsupportedFile


MODEL_EXTENSIONS: tuple[str, ...] = (".glb",)

_handle_ids = itertools.count(1)


def is_model_filename(name: str) -> bool:
    return str(name).lower().endswith(MODEL_EXTENSIONS)


class ModelHandle:
    """Transient reference to a dropped model file.

    The handle owns the file bytes until `release()` is called. Reading a released
    handle raises `ValueError`.
    """

    def __init__(self, name: str, data: bytes) -> None:
        if not is_model_filename(name):
            raise UnsupportedFile(f"Not a model file: {name!r}")
        self.id = next(_handle_ids)
        self.name = str(name)
        self._data: bytes | None = bytes(data)

    @classmethod
    def from_path(cls, path: str | Path) -> "ModelHandle":
        p = Path(path)
        if not is_model_filename(p.name):
            raise UnsupportedFile(f"Not a model file: {p.name!r}")
        return cls(p.name, p.read_bytes())

    @property
    def released(self) -> bool:
        return self._data is None

    def read(self) -> bytes:
        if self._data is None:
            raise ValueError(f"Model handle {self.name!r} has been released")
        return self._data

    def release(self) -> None:
        self._data = None

    def __enter__(self) -> "ModelHandle":
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "open"
        return f"ModelHandle(id={self.id}, name={self.name!r}, {state})"


class AssetSlot:
    """Holds at most one open `ModelHandle`.

    Assigning a new handle releases the previous one first.
    """

    def __init__(self) -> None:
        self._current: ModelHandle | None = None

    @property
    def current(self) -> ModelHandle | None:
        return self._current

    def replace(self, handle: ModelHandle) -> ModelHandle:
        previous = self._current
        if previous is not None and previous is not handle:
            previous.release()
        self._current = handle
        return handle

    def is_current(self, handle: ModelHandle) -> bool:
        return self._current is handle

    def release(self) -> None:
        if self._current is not None:
            self._current.release()
            self._current = None
