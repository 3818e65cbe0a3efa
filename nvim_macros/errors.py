"""
Exception hierarchy for nvim-macros.
Every error raised by the package is a subclass of MacrosError.
"""

from typing import Optional

__all__ = [
    "MacrosError",
    "CodecError",
    "StoreError",
    "StoreCorruptError",
    "StoreReadError",
    "StoreWriteError",
    "FormatterError",
    "FormatterUnavailableError",
    "FormatterTimeoutError",
    "IndexOutOfRangeError",
    "InvalidMacroError",
    "InvalidRegisterError",
    "ConfigError",
]


class MacrosError(Exception):
    """Root exception for all nvim-macros errors."""


# ── Codec ─────────────────────────────────────────────────────────────────────

class CodecError(MacrosError, ValueError):
    """Raised when encoded text is not valid base64 in the strict sense."""


# ── Store ─────────────────────────────────────────────────────────────────────

class StoreError(MacrosError):
    """Base class for backing-file errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class StoreCorruptError(StoreError):
    """Raised when the file exists but is not JSON or lacks a `macros` list."""


class StoreReadError(StoreError):
    """Raised when the file exists but cannot be read."""


class StoreWriteError(StoreError):
    """Raised when persisting the store fails. The old file is left intact."""


# ── Formatter ─────────────────────────────────────────────────────────────────

class FormatterError(MacrosError):
    """Raised when an external JSON formatter exits with a non-zero code."""

    def __init__(self, message: str, formatter: Optional[str] = None,
                 returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.formatter = formatter
        self.returncode = returncode
        self.stderr = stderr


class FormatterUnavailableError(FormatterError):
    """Raised when the formatter executable is not on PATH."""


class FormatterTimeoutError(FormatterError):
    """Raised when the formatter process exceeds its timeout."""


# ── Records ───────────────────────────────────────────────────────────────────

class IndexOutOfRangeError(MacrosError, IndexError):
    """Raised when a record index is outside the current store bounds."""

    def __init__(self, index: int, size: int):
        super().__init__(f"Macro index {index} out of range (store has {size} macro(s))")
        self.index = index
        self.size = size


class InvalidMacroError(MacrosError):
    """Raised when a macro name or payload is empty."""


class InvalidRegisterError(MacrosError):
    """Raised for register names other than a single [a-z0-9] character."""


# ── Config ────────────────────────────────────────────────────────────────────

class ConfigError(MacrosError):
    """Raised on unknown config keys or invalid config values."""
