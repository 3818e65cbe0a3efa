"""Shared fixtures for the nvim-macros test suite."""

import os
import stat
import sys
from pathlib import Path

import pytest

from nvim_macros.formatters import find_executable


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep user config, .env files and the executable probe cache out of tests."""
    for name in ("NVIM_MACROS_HOME", "NVIM_MACROS_FILE", "NVIM_MACROS_FORMATTER",
                 "NVIM_MACROS_REGISTER", "NVIM_MACROS_FORMATTER_TIMEOUT", "DEBUG"):
        # setenv first so anything a test (or .env loading) sets is undone
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    find_executable.cache_clear()
    yield
    find_executable.cache_clear()


@pytest.fixture
def macro_file(tmp_path) -> Path:
    return tmp_path / "data" / "macros.json"


_PRETTY = """\
import json, sys
doc = json.load(sys.stdin)
json.dump(doc, sys.stdout, indent=2, ensure_ascii=False)
sys.stdout.write("\\n")
"""

_COMPACT = """\
import json, sys
doc = json.load(sys.stdin)
json.dump(doc, sys.stdout, separators=(",", ":"), ensure_ascii=False)
"""

_FAILING = """\
import sys
sys.stderr.write("parse error: boom\\n")
sys.exit(3)
"""

_HANGING = """\
import time
time.sleep(30)
"""

FORMATTER_SCRIPTS = {
    "compact": _COMPACT,
    "pretty": _PRETTY,
    "fail": _FAILING,
    "hang": _HANGING,
}


@pytest.fixture
def fake_formatter(tmp_path, monkeypatch):
    """
    Install a fake `jq` (or `yq`) on PATH.

    Usage: fake_formatter("jq", read="fail", write="pretty")
    The read or write behaviour is picked by whether `-c` / `-I=0` is in argv.
    """
    if sys.platform == "win32":
        pytest.skip("fake formatter scripts need a POSIX shebang")

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def install(name: str, read: str = "compact", write: str = "pretty") -> Path:
        body = bin_dir / f"{name}_impl.py"
        body.write_text(
            "import sys\n"
            "READ = '-c' in sys.argv or '-I=0' in sys.argv\n"
            f"exec({FORMATTER_SCRIPTS[read]!r} if READ else {FORMATTER_SCRIPTS[write]!r})\n",
            encoding="utf-8",
        )
        script = bin_dir / name
        script.write_text(
            f"#!/bin/sh\nexec \"{sys.executable}\" \"{body}\" \"$@\"\n",
            encoding="utf-8",
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
        find_executable.cache_clear()
        return script

    return install
