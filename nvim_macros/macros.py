"""
Macro management for nvim-macros.
Each operation loads the backing file, applies one change, and saves it
back, so indices always refer to the store as it is on disk right now.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from nvim_macros.codec import decode, encode
from nvim_macros.errors import InvalidMacroError, InvalidRegisterError
from nvim_macros.keys import keytrans, strip_capture_marker
from nvim_macros.models import MacroRecord
from nvim_macros.storage import StorageBackend
from nvim_macros.storage.factory import get_storage_backend

logger = logging.getLogger(__name__)

_REGISTER_RE = re.compile(r"[a-z0-9]")


def validate_register(register: Optional[str]) -> str:
    """
    Check a register name.

    Returns:
        The register name, unchanged

    Raises:
        InvalidRegisterError: Not a single lowercase letter or digit
    """
    if not register or not _REGISTER_RE.fullmatch(register):
        raise InvalidRegisterError(
            f"Invalid register: `{register}`. Register must be a single lowercase letter or number 0-9."
        )
    return register


def setreg_command(register: str, data: bytes) -> str:
    r"""
    Vim command that loads *data* into *register*.

    Bytes outside printable ASCII are written as ``\xNN`` escapes in a
    double-quoted Vim string, so the register receives the exact bytes.
    """
    validate_register(register)
    parts = []
    for byte in data:
        char = chr(byte)
        if char in ('"', "\\"):
            parts.append("\\" + char)
        elif 0x20 <= byte < 0x7f:
            parts.append(char)
        else:
            parts.append(f"\\x{byte:02x}")
    return f"call setreg('{register}', \"{''.join(parts)}\")"


def build_record(name: str, register_content: bytes) -> MacroRecord:
    """
    Turn captured register bytes into a macro record.

    The recording marker is stripped before both representations are
    derived, so content and raw always describe the same keys.
    """
    if not name or not name.strip():
        raise InvalidMacroError("Invalid or empty macro name.")
    keys = strip_capture_marker(register_content or b"")
    if not keys:
        raise InvalidMacroError("Register is empty or invalid!")
    return MacroRecord(name=name, content=keytrans(keys), raw=encode(keys))


class MacroManager:
    """Runs macro operations against a storage backend."""

    def __init__(self, storage_backend: Optional[StorageBackend] = None,
                 storage_path: Optional[Path] = None, config: Optional[Dict[str, Any]] = None):
        """
        Initialize macro manager.

        Args:
            storage_backend: Optional StorageBackend instance (if None, will create from config)
            storage_path: Path to macros JSON file, used when no config is given
            config: Configuration dictionary for storage backend creation
        """
        if storage_backend:
            self.storage = storage_backend
        elif config:
            self.storage = get_storage_backend(config)
        else:
            if storage_path is None:
                storage_path = Path.home() / ".nvim-macros" / "macros.json"
            self.storage = get_storage_backend({"json_file_path": storage_path})

    def save_macro(self, name: str, register_content: bytes) -> MacroRecord:
        """
        Store the keys captured in a register under *name*.

        Args:
            name: Display name (duplicates are allowed)
            register_content: Raw register bytes

        Returns:
            The appended MacroRecord
        """
        record = build_record(name, register_content)
        store = self.storage.load()
        store.add(record)
        self.storage.save(store)
        logger.info("Macro `%s` saved.", name)
        return record

    def delete_macro(self, index: int) -> MacroRecord:
        """
        Delete the macro at *index* of the freshly loaded store.

        Raises:
            IndexOutOfRangeError: No macro at that position
        """
        store = self.storage.load()
        removed = store.remove(index)
        self.storage.save(store)
        logger.info("Macro `%s` deleted.", removed.name)
        return removed

    def list_macros(self) -> List[MacroRecord]:
        """Return all macros in file order."""
        return self.storage.load().list()

    def get(self, index: int) -> MacroRecord:
        return self.storage.load()[index]

    def get_raw(self, index: int) -> bytes:
        """Decode the exact register bytes of the macro at *index*."""
        return decode(self.get(index).raw)

    def get_content(self, index: int) -> str:
        """Return the printable key notation of the macro at *index*."""
        return self.get(index).content

    def setreg_command(self, index: int, register: str) -> str:
        """Vim command that yanks the macro at *index* into *register*."""
        return setreg_command(register, self.get_raw(index))

    def choices(self) -> List[Tuple[str, int]]:
        """Picker labels paired with the index they select."""
        return self.storage.load().choices()

    def search(self, query: str) -> List[Tuple[int, MacroRecord]]:
        """Search macros by name or content."""
        return self.storage.load().search(query)

    def find_fuzzy(self, query: str, threshold: int = 70) -> Optional[Tuple[int, MacroRecord]]:
        """Find the macro whose name best matches *query*."""
        return self.storage.load().find_fuzzy(query, threshold=threshold)

    def count(self) -> int:
        """Return number of macros."""
        return len(self.storage.load())
