from __future__ import annotations

import math
import re
from collections.abc import Iterable

from .errors import InvalidCoordinateFormat, InvalidCoordinateValue

Coordinate = tuple[float, float]

# Plain ASCII decimal with optional exponent; no underscores, padding or other digit sets.
_NUMBER = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def parse_coordinate(text: str, label: str = "coord") -> Coordinate:
    """Parse a `"lon,lat"` string into a `(lon, lat)` pair.

    `label` names the input in error messages ("coord", "start coord", ...).

    Raises:
        InvalidCoordinateFormat: the string doesn't hold exactly two components.
        InvalidCoordinateValue: a component isn't a finite number.
    """
    parts = text.split(",")
    if len(parts) != 2:
        raise InvalidCoordinateFormat(f"Need both longitude and latitude for {label}: {text}")

    if not all(_NUMBER.fullmatch(part) for part in parts):
        raise InvalidCoordinateValue(f"Invalid {label}: {text}")

    lon, lat = float(parts[0]), float(parts[1])
    # Overflowing exponents such as 1e999 parse to inf.
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise InvalidCoordinateValue(f"Invalid {label}: {text}")
    return lon, lat


def parse_coordinates(texts: Iterable[str]) -> list[Coordinate]:
    """Parse the `loc` list, keeping input order."""
    return [parse_coordinate(text) for text in texts]
