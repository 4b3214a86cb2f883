import asyncio
import sys
from pathlib import Path

import numpy as np

import terrastage


def _checkerboard(width: int, height: int, cell: int = 32) -> np.ndarray:
    # Stand-in for the satellite tiles the real map would composite.
    yy, xx = np.mgrid[0:height, 0:width]
    board = ((xx // cell + yy // cell) % 2).astype(np.uint8)
    rgb = np.stack([board * 90 + 60, board * 120 + 70, board * 60 + 50], axis=-1)
    return rgb.astype(np.uint8)


async def _main(model_path: Path) -> None:
    server = terrastage.run(port=57794)
    client = server.client() if isinstance(server, terrastage.StageServer) else server

    surface = terrastage.WebMercatorSurface(
        terrastage.INITIAL_VIEW_STATE,
        width=1024,
        height=768,
        frame=_checkerboard(1024, 768),
    )
    scene = terrastage.SceneController(surface, render_client=client)

    placed = await scene.drop_file(model_path.name, model_path.read_bytes(), (512.0, 384.0))
    if not placed:
        print(f"{model_path.name} is not a .glb model")
        return
    print("placed:", scene.placed.to_dict())

    # Drag 20 m east, then turn a quarter.
    scene.pointer_down_object((0.0, 1.0, 0.0))
    scene.pointer_move(terrastage.Ray(origin=(20.0, 100.0, 0.0), direction=(0.0, -1.0, 0.0)))
    scene.pointer_up()

    # Grab the ring behind the model (+z) and swing the pointer round to +x.
    cx, _, cz = scene.placed.position
    scene.pointer_down_ring((cx, 0.1, cz + 5.0))
    scene.pointer_move(terrastage.Ray(origin=(cx + 5.0, 100.0, cz), direction=(0.0, -1.0, 0.0)))
    scene.pointer_up()
    print("moved:", scene.placed.to_dict())

    await scene.refresh_quota()
    print("renders left:", scene.quota_remaining)

    url = await scene.request_render()
    if url is None:
        print("render failed (is GOOGLE_API_KEY set?)")
    else:
        print("render:", url[:80] + "...")
    scene.close()


def main() -> None:
    if len(sys.argv) != 2:
        print("usage: python examples/place_model.py path/to/model.glb")
        raise SystemExit(2)
    asyncio.run(_main(Path(sys.argv[1])))


if __name__ == "__main__":
    main()
