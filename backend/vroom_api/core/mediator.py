"""Turn a finished optimizer process into a response body or an error.

Two policies exist, one per invocation strategy. Both get stdout and stderr
separately so an error message on stderr is never mistaken for broken JSON.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from .errors import MalformedOptimizerOutput, OptimizerReportedError, ProcessInvocationFailure

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessOutput:
    """Everything captured from one optimizer run."""

    returncode: int
    stdout: str
    stderr: str


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line
    return ""


def _no_output(output: ProcessOutput, run_id: int) -> ProcessInvocationFailure:
    log.error("No output (%d), exit code %d", run_id, output.returncode)
    return ProcessInvocationFailure(
        f"VROOM binary produced no output (exit code {output.returncode})"
    )


def _warn_exit_code(output: ProcessOutput, run_id: int) -> None:
    if output.returncode != 0:
        log.warning("VROOM exited with code %d (%d)", output.returncode, run_id)


def first_line(output: ProcessOutput, run_id: int) -> str:
    """Return the first stdout line verbatim as the JSON payload.

    With nothing on stdout, the first stderr line becomes the error message.
    """
    line = _first_line(output.stdout)
    if line:
        log.debug("Success output (%d): %s", run_id, line)
        _warn_exit_code(output, run_id)
        return line

    err = _first_line(output.stderr)
    if not err:
        raise _no_output(output, run_id)
    log.debug("Error output (%d): %s", run_id, err)
    raise OptimizerReportedError(f"Error output from VROOM binary: {err}")


def accumulate_and_parse(output: ProcessOutput, run_id: int) -> str:
    """Join every stdout line, parse it as JSON, and return it re-serialized.

    Raises:
        OptimizerReportedError: stdout isn't JSON and stderr has something to say.
        MalformedOptimizerOutput: stdout isn't JSON and stderr is silent, or stdout
            parses to something other than an object.
        ProcessInvocationFailure: nothing was written at all.
    """
    text = "".join(output.stdout.splitlines())
    errors = " ".join(line.strip() for line in output.stderr.splitlines() if line.strip())

    if text.strip():
        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            if not errors:
                log.error("Unparseable output (%d): %s", run_id, text)
                raise MalformedOptimizerOutput(f"Invalid JSON from VROOM binary: {exc}") from exc
        else:
            if not isinstance(body, dict):
                log.error("Non-object output (%d): %s", run_id, text)
                raise MalformedOptimizerOutput("VROOM binary output is not a JSON object")
            log.debug("Success output (%d): %s", run_id, text)
            _warn_exit_code(output, run_id)
            return json.dumps(body)

    if errors:
        log.debug("Error output (%d): %s", run_id, errors)
        raise OptimizerReportedError(f"Error output from VROOM binary: {errors}")
    raise _no_output(output, run_id)
