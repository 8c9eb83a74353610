"""Shared fixtures for lu_replay tests."""

import sqlite3

import pytest

from lu_replay.data.catalog import ComponentCatalog
from builders import PLAYER_COMPONENTS, PLAYER_LOT


class SpyQuery:
    """Dict-backed catalog query that records every lot it was asked for."""

    def __init__(self, table: dict[int, list[int]]):
        self.table = table
        self.calls: list[int] = []

    def __call__(self, lot: int) -> list[int]:
        self.calls.append(lot)
        return list(self.table.get(lot, []))


@pytest.fixture
def spy_query() -> SpyQuery:
    return SpyQuery({
        PLAYER_LOT: PLAYER_COMPONENTS,
        6010: [1, 7],   # physics + destroyable, no character
        9999: [1, 5],   # 5 has no decoder
    })


@pytest.fixture
def catalog(spy_query) -> ComponentCatalog:
    return ComponentCatalog(spy_query)


@pytest.fixture
def cdclient_db(tmp_path):
    """A cdclient SQLite file with a ComponentsRegistry table."""
    path = tmp_path / "cdclient.sqlite"
    conn = sqlite3.connect(path)
    conn.execute(
        "create table ComponentsRegistry (id integer, component_type integer, component_id integer)"
    )
    conn.executemany(
        "insert into ComponentsRegistry values (?, ?, ?)",
        [(PLAYER_LOT, kind, 0) for kind in PLAYER_COMPONENTS] + [(6010, 1, 3), (6010, 7, 4)],
    )
    conn.commit()
    conn.close()
    return path
