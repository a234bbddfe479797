import sys
import textwrap
from pathlib import Path

import pytest

from vroom_api import create_app

# Stands in for VROOM: reads the request from `-i <file>` or the last argument
# and prints it back with what the process saw.
ECHO_SOURCE = """
import json, os, sys

args = sys.argv[1:]
if "-i" in args:
    path = args[args.index("-i") + 1]
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
else:
    path = None
    payload = json.loads(args[-1])
print(json.dumps({"code": 0, "argv": args, "input": payload, "input_path": path, "cwd": os.getcwd()}))
"""


@pytest.fixture
def request_dir(tmp_path: Path) -> Path:
    path = tmp_path / "requests"
    path.mkdir()
    return path


@pytest.fixture
def make_binary(tmp_path: Path):
    def _make(source: str, name: str = "vroom", mode: int = 0o755) -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        path = bin_dir / name
        path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(source), encoding="utf-8")
        path.chmod(mode)
        return path

    return _make


@pytest.fixture
def echo_binary(make_binary) -> Path:
    return make_binary(ECHO_SOURCE, name="vroom-echo")


@pytest.fixture
def make_app(request_dir: Path):
    def _make(binary: Path, **config):
        settings = {
            "TESTING": True,
            "VROOM_BINARY": str(binary),
            "VROOM_TMP_DIR": str(request_dir),
            "VROOM_THREADS": 2,
        }
        settings.update(config)
        return create_app(settings)

    return _make


@pytest.fixture
def make_client(make_app):
    def _make(binary: Path, **config):
        return make_app(binary, **config).test_client()

    return _make
