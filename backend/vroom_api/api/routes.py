from __future__ import annotations

import itertools
import threading
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request

from ..core.compute import build_compute_request
from ..core.coords import parse_coordinate, parse_coordinates
from ..core.errors import MissingParameter, RouteError, ValidationError
from ..core.invoker import OptimizerInvoker

api = Blueprint("api", __name__)

BAD_REQUEST_MESSAGE = "Bad request"

# Flask adds HEAD and OPTIONS itself; OPTIONS answers CORS preflight.
ROUTE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

_BOOL_VALUES = {
    "true": True,
    "1": True,
    "yes": True,
    "on": True,
    "false": False,
    "0": False,
    "no": False,
    "off": False,
}

# Log correlation only; ids are never reused within a process.
_run_ids = itertools.count(1)
_run_ids_lock = threading.Lock()


def _next_run_id() -> int:
    with _run_ids_lock:
        return next(_run_ids)


def _error(message: str | None, status: int) -> tuple[Any, int]:
    return jsonify({"error": message}), status


def _invoker() -> OptimizerInvoker:
    return current_app.extensions["vroom_invoker"]


def _bool_arg(name: str, default: bool = False) -> bool:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return _BOOL_VALUES[raw.strip().lower()]
    except KeyError:
        raise ValidationError(f"Invalid boolean for {name}: {raw}") from None


@api.get("/health")
def health() -> Any:
    """Health probe for container orchestration and uptime checks.

    Response (200):
        `{"status": "ok"}`
    """
    return jsonify({"status": "ok"})


@api.route("/route", methods=ROUTE_METHODS)
def route() -> Any:
    """Solve a single-vehicle route over the given locations with VROOM.

    Request (query string):
        - `loc` (repeated): `lon,lat` of each job, in the order job ids are assigned
        - `start` (required): `lon,lat` where the vehicle starts
        - `end` (optional): `lon,lat` where the vehicle must finish
        - `includeGeometry` (bool, optional): ask VROOM for route geometry (default: false)

    Response (200):
        The JSON VROOM printed, passed through.

    Failure modes:
        - 400 for missing or malformed parameters; the optimizer is never started.
        - 500 when the configured binary is missing or not executable.
        - 502 when VROOM can't be started, reports an error, or prints invalid JSON.
        - 504 when VROOM exceeds `VROOM_TIMEOUT_S`.
        All bodies are `{"error": "<message>"}`.
    """
    run_id = _next_run_id()

    try:
        start_arg = request.args.get("start")
        if start_arg is None:
            raise MissingParameter("Missing required parameter: start")
        end_arg = request.args.get("end")

        locations = parse_coordinates(request.args.getlist("loc"))
        start = parse_coordinate(start_arg, "start coord")
        end = parse_coordinate(end_arg, "end coord") if end_arg is not None else None
        include_geometry = _bool_arg("includeGeometry")

        compute_request = build_compute_request(start, end, locations)
    except ValidationError as exc:
        current_app.logger.info("Rejected request (%d): %s", run_id, exc)
        return _error(str(exc), exc.status_code)

    try:
        body = _invoker().run(compute_request, include_geometry=include_geometry, run_id=run_id)
    except RouteError as exc:
        current_app.logger.error("Optimizer run failed (%d): %s", run_id, exc)
        return _error(str(exc), exc.status_code)

    return Response(body, mimetype="application/json")


@api.route("/error")
def bad_request() -> Any:
    """Fallback target for requests the framework couldn't bind."""
    return _error(BAD_REQUEST_MESSAGE, 400)
