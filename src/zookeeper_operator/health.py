"""Health check and metrics endpoints for the operator."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from prometheus_client import make_wsgi_app
from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wrappers import Response

Check = Callable[[], bool]


def _always_ok() -> bool:
    return True


def create_combined_wsgi_app(
    liveness: Optional[Check] = None,
    readiness: Optional[Check] = None,
) -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    Args:
        liveness: Returns False when the operator has stalled (e.g. the watch died)
        readiness: Returns False until the operator can serve events

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()
    liveness = liveness or _always_ok
    readiness = readiness or _always_ok

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        """WSGI app that routes /healthz and /readyz, delegates /metrics to prometheus."""
        path = environ.get("PATH_INFO", "")

        if path == "/healthz":
            if liveness():
                response = Response('{"status":"ok"}', mimetype="application/json", status=200)
            else:
                response = Response('{"status":"unhealthy"}', mimetype="application/json", status=503)
            return response(environ, start_response)
        elif path == "/readyz":
            if readiness():
                response = Response('{"status":"ready"}', mimetype="application/json", status=200)
            else:
                response = Response('{"status":"not ready"}', mimetype="application/json", status=503)
            return response(environ, start_response)
        else:
            # Delegate all other paths (including /metrics) to prometheus app
            return metrics_app(environ, start_response)

    return combined_app


def start_http_server(
    port: int,
    liveness: Optional[Check] = None,
    readiness: Optional[Check] = None,
) -> BaseWSGIServer:
    """Serve metrics and health endpoints on a background thread.

    Returns:
        The running server; call ``shutdown()`` to stop it
    """
    app = create_combined_wsgi_app(liveness=liveness, readiness=readiness)
    server = make_server("", port, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, name="metrics-server", daemon=True)
    thread.start()
    return server
