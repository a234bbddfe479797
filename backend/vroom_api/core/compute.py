from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .coords import Coordinate

VEHICLE_ID = 0


@dataclass(frozen=True)
class Vehicle:
    """The single routing agent; `end` is left out of the JSON when unset."""

    id: int
    start: Coordinate
    end: Coordinate | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "start": list(self.start)}
        if self.end is not None:
            out["end"] = list(self.end)
        return out


@dataclass(frozen=True)
class Job:
    id: int
    location: Coordinate

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "location": list(self.location)}


@dataclass(frozen=True)
class ComputeRequest:
    """The exact object handed to the optimizer."""

    vehicles: tuple[Vehicle, ...]
    jobs: tuple[Job, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "vehicles": [v.to_dict() for v in self.vehicles],
            "jobs": [j.to_dict() for j in self.jobs],
        }

    def to_json(self) -> str:
        # Compact; field order comes from to_dict(), so output is stable.
        return json.dumps(self.to_dict(), separators=(",", ":"))


def build_compute_request(
    start: Coordinate, end: Coordinate | None, locations: Sequence[Coordinate]
) -> ComputeRequest:
    """Build the vehicle/job schema for one routing run.

    Job ids are the position of each location in `locations`; that index is the
    only thing tying the optimizer's per-job output back to the caller's input.
    """
    vehicle = Vehicle(id=VEHICLE_ID, start=start, end=end)
    jobs = tuple(Job(id=i, location=loc) for i, loc in enumerate(locations))
    return ComputeRequest(vehicles=(vehicle,), jobs=jobs)
