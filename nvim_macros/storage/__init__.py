"""
Storage abstraction layer for nvim-macros.
A backend materializes a full MacroStore and persists a full MacroStore;
there is no incremental write.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nvim_macros.models import MacroStore


class StorageBackend(ABC):
    """Abstract base class for all storage backends."""

    @abstractmethod
    def load(self) -> 'MacroStore':
        """
        Read the whole store.

        Returns:
            MacroStore (empty if nothing has been saved yet)

        Raises:
            StoreCorruptError: Stored data exists but cannot be parsed
            StoreReadError: Stored data exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, store: 'MacroStore') -> None:
        """
        Replace the stored data with *store*.

        Args:
            store: Full store to persist

        Raises:
            StoreWriteError: Persisting failed; previous data is intact
            FormatterError: The configured formatter failed
        """
        pass
