"""Named category lists for lookup-table rules."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Sequence

from synthgen.core.exceptions import LookupTableNotFound
from .constants import BUILTIN_LOOKUP_TABLES

logger = logging.getLogger(__name__)


class LookupRegistry:
    """Stores named lookup tables.

    Tables are stored as tuples so that callers sharing the registry across
    worker threads only ever see read-only sequences.
    """

    def __init__(self, tables: dict[str, Iterable[str]] | None = None):
        self._tables: dict[str, tuple] = {}
        self._lock = threading.RLock()
        for name, values in (tables or {}).items():
            self.register(name, values)

    @classmethod
    def with_builtins(cls) -> LookupRegistry:
        """Create a registry pre-loaded with the built-in tables."""
        return cls(BUILTIN_LOOKUP_TABLES)

    def register(self, name: str, values: Iterable) -> None:
        """Register or replace a lookup table.

        Raises:
            ValueError: If the name is blank or the table is empty.
        """
        if not name or not name.strip():
            raise ValueError("Lookup table name must not be empty")
        table = tuple(values)
        if not table:
            raise ValueError(f"Lookup table '{name}' must not be empty")

        with self._lock:
            replaced = name in self._tables
            self._tables[name] = table

        logger.debug(
            "%s lookup table %s (%d values)",
            "Replaced" if replaced else "Registered",
            name,
            len(table),
        )

    def get(self, name: str) -> Sequence:
        """Get a lookup table by name.

        Raises:
            LookupTableNotFound: If no table is registered under the name.
        """
        with self._lock:
            table = self._tables.get(name)
        if table is None:
            raise LookupTableNotFound(name)
        return table

    def names(self) -> list[str]:
        """List registered table names."""
        with self._lock:
            return sorted(self._tables)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tables

    def __len__(self) -> int:
        with self._lock:
            return len(self._tables)
