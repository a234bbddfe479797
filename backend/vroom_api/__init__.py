"""Backend application factory.

Configuration comes from environment variables so the same image can run in dev/CI/prod.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .api.routes import BAD_REQUEST_MESSAGE, api
from .core.invoker import build_invoker

TRUTHY = {"1", "true", "True", "yes", "YES"}


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip() in TRUTHY


def _env_float(name: str, default: str) -> float:
    return float(os.environ.get(name, default))


def create_app(config: Mapping[str, Any] | None = None) -> Flask:
    """Create and configure the Flask app.

    Loads config from the environment (then `config`, if given), enables CORS
    (restrict via `CORS_ORIGINS` in prod), builds the optimizer invoker and
    registers routes.

    Raises:
        ValueError: if `VROOM_MODE` names an unknown invocation strategy.
    """
    app = Flask(__name__)

    # Configuration is environment-driven so Compose/local/CI can point at a
    # different binary without code changes.
    app.config["VROOM_BINARY"] = os.environ.get("VROOM_BINARY", "/usr/local/bin/vroom")
    app.config["VROOM_MODE"] = os.environ.get("VROOM_MODE", "file")
    app.config["VROOM_USE_OSRM_LIB"] = _env_flag("VROOM_USE_OSRM_LIB", "1")
    app.config["VROOM_TIMEOUT_S"] = _env_float("VROOM_TIMEOUT_S", "300")
    app.config["VROOM_MAX_CONCURRENT"] = int(os.environ.get("VROOM_MAX_CONCURRENT", "4"))
    threads = os.environ.get("VROOM_THREADS")
    app.config["VROOM_THREADS"] = int(threads) if threads else None
    app.config["VROOM_TMP_DIR"] = os.environ.get("VROOM_TMP_DIR") or None
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO").upper()

    if config:
        app.config.update(config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    cors_origins = os.environ.get("CORS_ORIGINS")
    if cors_origins:
        origins = [o.strip() for o in cors_origins.split(",") if o.strip()]
        CORS(app, origins=origins)
    else:
        CORS(app)

    app.extensions["vroom_invoker"] = build_invoker(app.config)
    app.register_blueprint(api, url_prefix="")

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException) -> Any:
        # Framework-level 400s (e.g. a broken query string) get the same body as /error.
        message = BAD_REQUEST_MESSAGE if exc.code == 400 else exc.name
        return jsonify({"error": message}), exc.code

    @app.errorhandler(Exception)
    def unexpected_error(exc: Exception) -> Any:
        app.logger.exception("Exception when creating response")
        return jsonify({"error": str(exc) or exc.__class__.__name__}), 500

    return app
