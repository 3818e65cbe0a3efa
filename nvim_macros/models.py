"""
Macro records and the ordered in-memory store they live in.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from thefuzz import fuzz

from nvim_macros.errors import FormatterError, IndexOutOfRangeError

__all__ = ["MacroRecord", "MacroStore", "CHOICE_PREVIEW_LENGTH"]

# Picker labels show at most this much of a macro's content.
CHOICE_PREVIEW_LENGTH = 150


@dataclass
class MacroRecord:
    """A named macro: printable key notation plus the encoded raw bytes."""

    name: str
    content: str
    raw: str  # codec-encoded register bytes

    FIELDS = ("name", "content", "raw")

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "content": self.content,
            "raw": self.raw,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MacroRecord":
        return cls(
            name=data.get("name", "") or "",
            content=data.get("content", "") or "",
            raw=data.get("raw", "") or "",
        )

    @property
    def is_complete(self) -> bool:
        """True when all three fields are present and non-empty."""
        return bool(self.name and self.content and self.raw)

    def choice_label(self) -> str:
        """Display text used by pickers: ``name | content``."""
        return f"{self.name} | {self.content[:CHOICE_PREVIEW_LENGTH]}"


@dataclass
class MacroStore:
    """
    Ordered collection of macros as loaded from the backing file.

    Order is insertion order and doubles as the index space for remove().
    Indices are only meaningful for the store instance they came from;
    callers reload before every mutating operation.

    ``extra`` holds unknown top-level keys of the backing file so that a
    load/save cycle does not drop them. ``formatter_error`` is set by the
    loader when the configured formatter failed and the raw file bytes
    were parsed instead.
    """

    records: List[MacroRecord] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)
    formatter_error: Optional[FormatterError] = field(default=None, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[MacroRecord]:
        return iter(self.records)

    def __getitem__(self, index: int) -> MacroRecord:
        self._check_index(index)
        return self.records[index]

    def _check_index(self, index: int):
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self.records):
            raise IndexOutOfRangeError(index, len(self.records))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, record: MacroRecord) -> MacroRecord:
        """Append *record*. Duplicate names are allowed."""
        self.records.append(record)
        return record

    def remove(self, index: int) -> MacroRecord:
        """
        Remove and return the record at *index*.

        Raises:
            IndexOutOfRangeError: index not in [0, len(store)); the store
                is left unchanged.
        """
        self._check_index(index)
        return self.records.pop(index)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def list(self) -> List[MacroRecord]:
        """Return all records in display order."""
        return list(self.records)

    def complete(self) -> List[Tuple[int, MacroRecord]]:
        """Return (index, record) pairs for records with every field set."""
        return [(i, r) for i, r in enumerate(self.records) if r.is_complete]

    def choices(self) -> List[Tuple[str, int]]:
        """Picker labels for complete records, paired with their index."""
        return [(r.choice_label(), i) for i, r in self.complete()]

    def find_by_content_prefix(self, prefix: str) -> List[Tuple[int, MacroRecord]]:
        """Return (index, record) pairs whose content starts with *prefix*."""
        return [(i, r) for i, r in enumerate(self.records) if r.content.startswith(prefix)]

    def find_by_name(self, name: str) -> Optional[Tuple[int, MacroRecord]]:
        """
        Look up a macro by exact name.

        Names are not unique; the most recently added match wins.
        """
        for i in range(len(self.records) - 1, -1, -1):
            if self.records[i].name == name:
                return i, self.records[i]
        return None

    def search(self, query: str) -> List[Tuple[int, MacroRecord]]:
        """Case-insensitive substring search over name and content."""
        query_lower = query.lower()
        return [
            (i, r) for i, r in enumerate(self.records)
            if query_lower in r.name.lower() or query_lower in r.content.lower()
        ]

    def find_fuzzy(self, query: str, threshold: int = 70) -> Optional[Tuple[int, MacroRecord]]:
        """
        Find the macro whose name best matches *query*.

        Args:
            query: Search query
            threshold: Minimum similarity score (0-100)

        Returns:
            (index, record) of the best match, or None
        """
        query_normalized = query.lower().strip()
        best_match = None
        best_score = threshold

        for i, record in enumerate(self.records):
            score = fuzz.ratio(query_normalized, record.name.lower())
            if score > best_score:
                best_score = score
                best_match = (i, record)

        return best_match
