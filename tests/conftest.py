"""Shared fixtures: a stand-in for czkawka_cli."""

import stat
import sys
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

FAKE_SCANNER = '''\
#!{python}
import sys
import time

args = sys.argv[1:]
if args == ["--version"]:
    print("czkawka_cli 10.0.0")
    sys.exit(0)

output = args[args.index("-C") + 1]
payload = {payloads!r}.get(args[0], {payload!r})
time.sleep({delay})
if payload is not None:
    with open(output, "w") as f:
        f.write(payload)
sys.stderr.write("scanned " + args[args.index("-d") + 1])
sys.exit({exit_code})
'''


@pytest.fixture
def make_scanner(tmp_path: Path) -> Callable[..., str]:
    """
    Write an executable fake scanner and return its path.

    The script writes ``payloads[mode]`` (or ``payload``) to the -C path;
    a payload of None writes nothing.
    """
    if sys.platform == "win32":
        pytest.skip("fake scanner relies on a shebang line")

    def _make(
        payload: Optional[str] = "{}",
        payloads: Optional[Dict[str, str]] = None,
        exit_code: int = 0,
        delay: float = 0,
        name: str = "czkawka_cli",
    ) -> str:
        script = tmp_path / name
        script.write_text(
            FAKE_SCANNER.format(
                python=sys.executable,
                delay=delay,
                payload=payload,
                payloads=payloads or {},
                exit_code=exit_code,
            )
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP)
        return str(script)

    return _make


@pytest.fixture
def duplicate_payload() -> str:
    """czkawka duplicate output: one size bucket, one group of two files."""
    return DUPLICATE_PAYLOAD


@pytest.fixture
def similar_payload() -> str:
    """czkawka similar-image output: one group with distances 0 and 3."""
    return SIMILAR_PAYLOAD


DUPLICATE_PAYLOAD = """{
    "1000": [[
        {"path": "/a/file1.jpg", "size": 1000, "modified_date": 1705276800, "hash": "abc"},
        {"path": "/b/file1.jpg", "size": 1000, "modified_date": 1705276800, "hash": "abc"}
    ]]
}"""

SIMILAR_PAYLOAD = """[[
    {"path": "/a/img1.jpg", "size": 2000, "width": 1920, "height": 1080, "similarity": 0, "hash": []},
    {"path": "/b/img1.jpg", "size": 1500, "width": 1280, "height": 720, "similarity": 3, "hash": []}
]]"""
