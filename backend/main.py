"""Backend entrypoint.

Reads bind settings from `HOST`/`PORT`. Container deployments serve
`backend/wsgi.py` with a WSGI server; this module is mainly for local runs.
"""

from __future__ import annotations

import os

from vroom_api import create_app


def main() -> None:
    """Start the Flask dev server for local runs."""
    app = create_app()
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "5000"))
    # Each request blocks on its own optimizer process.
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":
    main()
