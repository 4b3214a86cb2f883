from __future__ import annotations

import argparse
import logging
import time

from .runner import run


def main() -> None:
    p = argparse.ArgumentParser(prog="terrastage", description="terrastage: map scene render proxy")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--open-browser", action="store_true", help="open the API docs page")
    p.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    args = p.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    srv = run(host=args.host, port=args.port, open_browser=args.open_browser, log_level=args.log_level)
    print(getattr(srv, "url", None) or srv.base_url)

    # Block forever (so it behaves like a normal CLI server)
    while True:
        time.sleep(3600)


if __name__ == "__main__":
    main()
