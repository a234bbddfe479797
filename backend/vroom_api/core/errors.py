"""Failure kinds raised between the HTTP layer and the optimizer process.

Every kind carries the HTTP status the route answers with; the body is always
`{"error": "<message>"}`.
"""

from __future__ import annotations


class RouteError(Exception):
    """Base class for anything that ends a `/route` request early."""

    status_code = 500


class ValidationError(RouteError):
    """The caller sent something we can't turn into a compute request."""

    status_code = 400


class MissingParameter(ValidationError):
    pass


class InvalidCoordinateFormat(ValidationError):
    """Coordinate string doesn't split into exactly `lon,lat`."""


class InvalidCoordinateValue(ValidationError):
    """One of the coordinate components isn't a finite number."""


class BinaryUnavailable(RouteError):
    pass


class BinaryNotExecutable(RouteError):
    pass


class ProcessInvocationFailure(RouteError):
    """The optimizer couldn't be started, or ended without usable output."""

    status_code = 502


class OptimizerTimeout(ProcessInvocationFailure):
    status_code = 504


class OptimizerReportedError(RouteError):
    """The optimizer ran and told us it failed."""

    status_code = 502


OptimizerError = OptimizerReportedError


class MalformedOptimizerOutput(RouteError):
    status_code = 502
