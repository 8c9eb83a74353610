"""
lu_replay — Component Catalog

Looks up which component kinds a template (lot) has. The catalog is the
game's client database (cdclient, converted to SQLite):

    select component_type from ComponentsRegistry where id = ?

Results are memoized per lot for the life of the catalog object; the
database is assumed not to change during a run.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Callable

from lu_replay.errors import CatalogUnavailable

log = logging.getLogger(__name__)

COMPONENTS_QUERY = "select component_type from ComponentsRegistry where id = ?"

QueryFn = Callable[[int], list[int]]


class ComponentCatalog:
    """Memoizing client for per-lot component sets.

    Usage:
        with ComponentCatalog.open("cdclient.sqlite") as catalog:
            kinds = catalog.lookup(1)
    """

    def __init__(self, query: QueryFn, close: Callable[[], None] | None = None):
        self._query = query
        self._close = close
        self._cache: dict[int, tuple[int, ...]] = {}
        self.query_count = 0

    @classmethod
    def open(cls, path: str | Path) -> ComponentCatalog:
        """Open a SQLite cdclient database read-only."""
        path = Path(path)
        if not path.is_file():
            raise CatalogUnavailable(f"catalog database not found: {path}")
        try:
            conn = sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"cannot open catalog {path}: {e}") from e

        def query(lot: int) -> list[int]:
            rows = conn.execute(COMPONENTS_QUERY, (lot,)).fetchall()
            return [row[0] for row in rows]

        return cls(query, close=conn.close)

    # ---- Context manager ----

    def __enter__(self) -> ComponentCatalog:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._close is not None:
            self._close()
            self._close = None

    # ---- Lookup ----

    def lookup(self, lot: int) -> tuple[int, ...]:
        """Component kinds for `lot`, in the order the catalog returned them."""
        kinds = self._cache.get(lot)
        if kinds is None:
            self.query_count += 1
            try:
                kinds = tuple(self._query(lot))
            except (sqlite3.Error, OSError) as e:
                raise CatalogUnavailable(f"component query for lot {lot} failed: {e}") from e
            log.debug("lot %d -> components %s", lot, list(kinds))
            self._cache[lot] = kinds
        return kinds

    def __contains__(self, lot: int) -> bool:
        return lot in self._cache

    def __len__(self) -> int:
        return len(self._cache)
