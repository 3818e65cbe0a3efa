"""
JSON file storage backend.

File layout::

    {"macros": [{"name": "...", "content": "...", "raw": "<base64>"}, ...]}

The file is the only source of truth: every operation loads it in full,
and every save replaces it in full through a temp file and os.replace(),
so readers never observe a half-written file. There is no locking; two
processes doing load -> modify -> save concurrently race, and the last
save wins for the whole file.
"""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from nvim_macros import formatters
from nvim_macros.errors import (
    FormatterError,
    StoreCorruptError,
    StoreReadError,
    StoreWriteError,
)
from nvim_macros.models import MacroRecord, MacroStore
from nvim_macros.storage import StorageBackend

__all__ = ["JSONStorage", "load_store", "save_store", "parse_store", "serialize_store"]

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def parse_store(data: bytes, path: Optional[str] = None) -> MacroStore:
    """
    Parse backing-file bytes into a MacroStore.

    Raises:
        StoreCorruptError: Not JSON, not an object, no `macros` list,
            or a record field that is not a string
    """
    try:
        document = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise StoreCorruptError(f"Macro file is not valid JSON: {exc}", path=path) from exc

    if not isinstance(document, dict):
        raise StoreCorruptError("Macro file must contain a JSON object", path=path)
    entries = document.get("macros")
    if not isinstance(entries, list):
        raise StoreCorruptError("Macro file has no `macros` array", path=path)

    records = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise StoreCorruptError(f"Macro entry {position} is not an object", path=path)
        for key in MacroRecord.FIELDS:
            if entry.get(key) is not None and not isinstance(entry[key], str):
                raise StoreCorruptError(
                    f"Macro entry {position} field `{key}` is not a string", path=path
                )
        records.append(MacroRecord.from_dict(entry))

    extra = {key: value for key, value in document.items() if key != "macros"}
    return MacroStore(records=records, extra=extra)


def serialize_store(store: MacroStore) -> bytes:
    """Canonical compact JSON: `macros` first, record fields name/content/raw."""
    document: Dict[str, Any] = {"macros": [record.to_dict() for record in store.records]}
    for key, value in store.extra.items():
        if key != "macros":
            document[key] = value
    return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def load_store(path: PathLike, formatter: Optional[str] = formatters.NO_FORMATTER,
               timeout: float = formatters.DEFAULT_TIMEOUT) -> MacroStore:
    """
    Load the macro file at *path*.

    A missing file is an empty store. If the formatter fails for any reason
    the unformatted bytes are parsed instead and the error is attached to
    the result as ``store.formatter_error``.

    Args:
        path: Backing file
        formatter: "none", "jq" or "yq"
        timeout: Seconds allowed for the formatter process

    Returns:
        MacroStore

    Raises:
        StoreCorruptError: File exists but does not hold a macro document
        StoreReadError: File exists but cannot be read
        ConfigError: Unknown formatter name
    """
    file_path = Path(path).expanduser()
    formatters.get_formatter(formatter)

    try:
        raw = file_path.read_bytes()
    except FileNotFoundError:
        logger.debug("No macro file at %s, starting empty", file_path)
        return MacroStore()
    except OSError as exc:
        raise StoreReadError(f"Cannot read macro file: {exc}", path=str(file_path)) from exc

    formatter_error = None
    try:
        data = formatters.normalize(formatter, raw, timeout=timeout)
    except FormatterError as exc:
        logger.warning("%s; reading %s unformatted", exc, file_path)
        formatter_error = exc
        data = raw

    store = parse_store(data, path=str(file_path))
    store.formatter_error = formatter_error
    logger.debug("Loaded %d macro(s) from %s", len(store), file_path)
    return store


def _atomic_write(file_path: Path, data: bytes):
    tmp_name = None
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=str(file_path.parent),
            prefix=f".{file_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if file_path.exists():
            os.chmod(tmp_name, stat.S_IMODE(file_path.stat().st_mode))
        os.replace(tmp_name, file_path)
        tmp_name = None
    except OSError as exc:
        raise StoreWriteError(f"Cannot write macro file: {exc}", path=str(file_path)) from exc
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)


def save_store(path: PathLike, store: MacroStore, formatter: Optional[str] = formatters.NO_FORMATTER,
               timeout: float = formatters.DEFAULT_TIMEOUT) -> None:
    """
    Replace the macro file at *path* with *store*.

    Args:
        path: Backing file (parent directories are created)
        store: Full store to persist; not modified
        formatter: "none", "jq" or "yq"
        timeout: Seconds allowed for the formatter process

    Raises:
        StoreWriteError: Write failed; the previous file is untouched
        FormatterError: Formatter failed; nothing was written
        ConfigError: Unknown formatter name
    """
    file_path = Path(path).expanduser()
    data = formatters.pretty_print(formatter, serialize_store(store), timeout=timeout)
    _atomic_write(file_path, data)
    logger.debug("Saved %d macro(s) to %s", len(store), file_path)


class JSONStorage(StorageBackend):
    """JSON file-based storage backend."""

    def __init__(self, storage_path: PathLike, formatter: str = formatters.NO_FORMATTER,
                 timeout: float = formatters.DEFAULT_TIMEOUT):
        """
        Initialize JSON storage.

        Args:
            storage_path: Path to macros.json file
            formatter: External formatter name ("none", "jq", "yq")
            timeout: Formatter process timeout in seconds
        """
        formatters.get_formatter(formatter)
        self.storage_path = Path(storage_path).expanduser()
        self.formatter = formatter
        self.timeout = timeout

    def load(self) -> MacroStore:
        return load_store(self.storage_path, self.formatter, timeout=self.timeout)

    def save(self, store: MacroStore) -> None:
        save_store(self.storage_path, store, self.formatter, timeout=self.timeout)
