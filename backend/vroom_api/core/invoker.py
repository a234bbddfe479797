"""Run the VROOM binary for one compute request.

Two strategies share the same argument prefix and process handling:

- file mode writes the request to a temp file and passes `-i <file>`; its
  output is read with the first-line policy.
- inline mode passes the request JSON as the last argument and runs from the
  binary's own directory; its output is read with the accumulate-and-parse
  policy.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shlex
import subprocess
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from typing import Any

from . import mediator
from .compute import ComputeRequest
from .errors import (
    BinaryNotExecutable,
    BinaryUnavailable,
    OptimizerTimeout,
    ProcessInvocationFailure,
)
from .mediator import ProcessOutput

log = logging.getLogger(__name__)

MODE_FILE = "file"
MODE_INLINE = "inline"


def available_cpus() -> int:
    """CPUs this process may run on, which can be fewer than the host has."""
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


@contextlib.contextmanager
def request_file(request: ComputeRequest, directory: str | None = None) -> Iterator[str]:
    """Write `request` to a fresh `vroom_*.json` file and remove it on exit."""
    fd, path = tempfile.mkstemp(prefix="vroom_", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(request.to_json())
            f.write("\n")
        yield path
    finally:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError:
            log.warning("Failed to delete request file: %s", path)


class OptimizerInvoker(ABC):
    """Base strategy: builds the shared flags and runs the process."""

    def __init__(
        self,
        binary: str,
        *,
        use_libosrm: bool = True,
        threads: int | None = None,
        timeout_s: float | None = None,
        max_concurrent: int = 0,
    ) -> None:
        self.binary = os.path.abspath(binary)
        self.use_libosrm = use_libosrm
        self.threads = threads or available_cpus()
        self.timeout_s = timeout_s or None
        self._slots = threading.BoundedSemaphore(max_concurrent) if max_concurrent > 0 else None

    def base_args(self, include_geometry: bool) -> list[str]:
        args = [self.binary]
        if self.use_libosrm:
            args.append("-l")
        args += ["-t", str(self.threads)]
        if include_geometry:
            args.append("-g")
        return args

    def run(self, request: ComputeRequest, *, include_geometry: bool = False, run_id: int = 0) -> str:
        """Invoke the optimizer and return its JSON payload as text."""
        output = self.invoke(request, include_geometry=include_geometry, run_id=run_id)
        return self.mediate(output, run_id)

    @abstractmethod
    def invoke(
        self, request: ComputeRequest, *, include_geometry: bool, run_id: int
    ) -> ProcessOutput:
        ...

    @abstractmethod
    def mediate(self, output: ProcessOutput, run_id: int) -> str:
        ...

    def _slot(self) -> contextlib.AbstractContextManager[Any]:
        return self._slots if self._slots is not None else contextlib.nullcontext()

    def _execute(self, args: list[str], run_id: int, cwd: str | None = None) -> ProcessOutput:
        """Run `args` to completion and capture both streams separately.

        Raises:
            OptimizerTimeout: the run exceeded `timeout_s`; the process is killed.
            ProcessInvocationFailure: the process couldn't be started.
        """
        log.debug("Run (%d): %s", run_id, shlex.join(args))
        with self._slot():
            try:
                proc = subprocess.run(
                    args,
                    cwd=cwd,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    timeout=self.timeout_s,
                )
            except subprocess.TimeoutExpired as exc:
                log.error("Timed out (%d) after %ss", run_id, self.timeout_s)
                raise OptimizerTimeout(
                    f"VROOM binary did not finish within {self.timeout_s:g}s"
                ) from exc
            except OSError as exc:
                log.error("Failed to start (%d): %s", run_id, exc)
                raise ProcessInvocationFailure(f"Could not start VROOM binary: {exc}") from exc

        return ProcessOutput(returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)


class FileModeInvoker(OptimizerInvoker):
    def __init__(self, binary: str, *, tmp_dir: str | None = None, **kwargs: Any) -> None:
        super().__init__(binary, **kwargs)
        self.tmp_dir = tmp_dir

    def check_binary(self) -> None:
        """Fail before spawning anything if the binary can't be run."""
        if not os.path.exists(self.binary):
            log.error("VROOM binary file doesn't exist: %s", self.binary)
            raise BinaryUnavailable("VROOM binary file doesn't exist")
        if os.path.isdir(self.binary) or not os.access(self.binary, os.X_OK):
            log.error("Cannot execute VROOM binary file: %s", self.binary)
            raise BinaryNotExecutable("Cannot execute VROOM binary file")

    def invoke(
        self, request: ComputeRequest, *, include_geometry: bool, run_id: int
    ) -> ProcessOutput:
        self.check_binary()
        with request_file(request, self.tmp_dir) as path:
            args = self.base_args(include_geometry) + ["-i", path]
            return self._execute(args, run_id)

    def mediate(self, output: ProcessOutput, run_id: int) -> str:
        return mediator.first_line(output, run_id)


class InlineModeInvoker(OptimizerInvoker):
    def invoke(
        self, request: ComputeRequest, *, include_geometry: bool, run_id: int
    ) -> ProcessOutput:
        args = self.base_args(include_geometry) + [request.to_json()]
        return self._execute(args, run_id, cwd=os.path.dirname(self.binary))

    def mediate(self, output: ProcessOutput, run_id: int) -> str:
        return mediator.accumulate_and_parse(output, run_id)


def build_invoker(config: Mapping[str, Any]) -> OptimizerInvoker:
    """Create the invoker selected by `VROOM_MODE` from app config."""
    mode = str(config.get("VROOM_MODE", MODE_FILE)).strip().lower()
    kwargs: dict[str, Any] = {
        "use_libosrm": bool(config.get("VROOM_USE_OSRM_LIB", True)),
        "threads": config.get("VROOM_THREADS"),
        "timeout_s": config.get("VROOM_TIMEOUT_S"),
        "max_concurrent": int(config.get("VROOM_MAX_CONCURRENT", 0)),
    }
    binary = str(config["VROOM_BINARY"])

    if mode == MODE_FILE:
        return FileModeInvoker(binary, tmp_dir=config.get("VROOM_TMP_DIR"), **kwargs)
    if mode == MODE_INLINE:
        return InlineModeInvoker(binary, **kwargs)
    raise ValueError(f"VROOM_MODE must be '{MODE_FILE}' or '{MODE_INLINE}', got {mode!r}")
