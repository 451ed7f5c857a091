#!/usr/bin/env python3
"""Run the lane analytics API with uvicorn on $PORT (default 8000)."""

import os
import subprocess
import sys


def _port() -> int:
    raw = os.environ.get("PORT", "8000")
    if raw.isdigit():
        return int(raw)
    print(f"Ignoring non-numeric PORT '{raw}', falling back to 8000", file=sys.stderr)
    return 8000


def main() -> int:
    root = os.path.dirname(os.path.abspath(__file__))
    src = os.path.join(root, "src")
    existing = os.environ.get("PYTHONPATH")
    os.environ["PYTHONPATH"] = os.pathsep.join(filter(None, [src, existing]))

    port = _port()
    print(f"Serving lastmile.main:app on 0.0.0.0:{port}", file=sys.stderr)
    return subprocess.call(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "lastmile.main:app",
            "--host",
            "0.0.0.0",
            "--port",
            str(port),
            "--proxy-headers",
            "--forwarded-allow-ips",
            "*",
        ]
    )


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(0)
