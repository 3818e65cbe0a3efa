"""
External JSON formatters.

The backing file can optionally be piped through ``jq`` or ``yq`` on the
way in (normalize) and on the way out (pretty-print). Both are plain
stdin -> stdout filters; the payload fields stay opaque base64 so
reformatting never touches macro bytes.
"""

import functools
import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional

from nvim_macros.errors import (
    ConfigError,
    FormatterError,
    FormatterTimeoutError,
    FormatterUnavailableError,
)

__all__ = [
    "NO_FORMATTER",
    "FORMATTERS",
    "DEFAULT_TIMEOUT",
    "Formatter",
    "get_formatter",
    "find_executable",
    "normalize",
    "pretty_print",
]

logger = logging.getLogger(__name__)

NO_FORMATTER = "none"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class Formatter:
    """How to invoke one external formatter."""

    name: str
    executable: str
    read_args: List[str]
    write_args: List[str]

    def command(self, mode: str) -> List[str]:
        args = self.read_args if mode == "read" else self.write_args
        return [self.executable, *args]


FORMATTERS: Dict[str, Formatter] = {
    "jq": Formatter(
        name="jq",
        executable="jq",
        read_args=["-c", "."],
        write_args=["."],
    ),
    "yq": Formatter(
        name="yq",
        executable="yq",
        read_args=["-p=json", "-o=json", "-I=0", "."],
        write_args=["-p=json", "-o=json", "-I=2", "."],
    ),
}


def get_formatter(name: Optional[str]) -> Optional[Formatter]:
    """
    Resolve a configured formatter name.

    Returns:
        The Formatter, or None for "none"

    Raises:
        ConfigError: Unknown formatter name
    """
    if name is None or name == NO_FORMATTER:
        return None
    try:
        return FORMATTERS[name]
    except KeyError:
        supported = ", ".join([NO_FORMATTER, *FORMATTERS])
        raise ConfigError(f"Unknown json_formatter: {name!r}. Supported: {supported}") from None


@functools.lru_cache(maxsize=None)
def find_executable(executable: str) -> Optional[str]:
    """Locate *executable* on PATH. The result is cached for the process."""
    return shutil.which(executable)


def _run(formatter: Formatter, mode: str, data: bytes, timeout: float) -> bytes:
    path = find_executable(formatter.executable)
    if path is None:
        raise FormatterUnavailableError(
            f"Formatter `{formatter.name}` not found on PATH",
            formatter=formatter.name,
        )

    cmd = [path, *formatter.command(mode)[1:]]
    logger.debug("Running formatter: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            input=data,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise FormatterTimeoutError(
            f"Formatter `{formatter.name}` timed out after {timeout}s",
            formatter=formatter.name,
        ) from exc
    except OSError as exc:
        raise FormatterUnavailableError(
            f"Cannot execute formatter `{formatter.name}`: {exc}",
            formatter=formatter.name,
        ) from exc

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise FormatterError(
            f"Formatter `{formatter.name}` exited with code {result.returncode}",
            formatter=formatter.name,
            returncode=result.returncode,
            stderr=stderr[:2000],
        )
    return result.stdout


def normalize(name: Optional[str], data: bytes, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """Pipe file bytes through the formatter's read invocation."""
    formatter = get_formatter(name)
    if formatter is None:
        return data
    return _run(formatter, "read", data, timeout)


def pretty_print(name: Optional[str], data: bytes, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """Pipe canonical JSON through the formatter's write invocation."""
    formatter = get_formatter(name)
    if formatter is None:
        return data
    return _run(formatter, "write", data, timeout)
