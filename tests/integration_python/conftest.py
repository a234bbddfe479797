import threading

import pytest
from werkzeug.serving import make_server


@pytest.fixture
def serve():
    """Serve an app on a free local port with one thread per request."""
    servers = []

    def _serve(app) -> str:
        server = make_server("127.0.0.1", 0, app, threaded=True)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_port}"

    yield _serve

    for server in servers:
        server.shutdown()
        server.server_close()
