from __future__ import annotations

import pytest

from terrastage.core.assets import AssetSlot, ModelHandle, is_model_filename
from terrastage.errors import UnsupportedFile


@pytest.mark.parametrize(
    "name,expected",
    [
        ("house.glb", True),
        ("HOUSE.GLB", True),
        ("my.model.Glb", True),
        ("house.gltf", False),
        ("house.obj", False),
        ("house.glb ", False),
        (" house.glb\n", False),
        ("glb", False),
        ("", False),
    ],
)
def test_is_model_filename(name: str, expected: bool) -> None:
    assert is_model_filename(name) is expected


def test_handle_rejects_unsupported_files() -> None:
    with pytest.raises(UnsupportedFile):
        ModelHandle("photo.png", b"...")


def test_handle_release_and_context_manager() -> None:
    with ModelHandle("a.glb", b"abc") as handle:
        assert handle.read() == b"abc"
        assert not handle.released
    assert handle.released
    with pytest.raises(ValueError):
        handle.read()
    assert "released" in repr(handle)


def test_handle_ids_are_unique() -> None:
    a = ModelHandle("a.glb", b"")
    b = ModelHandle("a.glb", b"")
    assert a.id != b.id


def test_from_path(tmp_path) -> None:
    p = tmp_path / "tower.GLB"
    p.write_bytes(b"glTF")
    handle = ModelHandle.from_path(p)
    assert handle.name == "tower.GLB"
    assert handle.read() == b"glTF"

    other = tmp_path / "notes.txt"
    other.write_text("hi")
    with pytest.raises(UnsupportedFile):
        ModelHandle.from_path(other)


def test_slot_releases_previous_handle() -> None:
    slot = AssetSlot()
    first = slot.replace(ModelHandle("a.glb", b"1"))
    second = slot.replace(ModelHandle("b.glb", b"2"))

    assert first.released
    assert not second.released
    assert slot.is_current(second)
    assert not slot.is_current(first)

    # Re-assigning the same handle keeps it open.
    slot.replace(second)
    assert not second.released

    slot.release()
    assert second.released
    assert slot.current is None
    slot.release()
