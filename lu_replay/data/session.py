"""
Session Schema Cache — network id -> decode recipe, per capture unit.

Serialization packets identify their object only by network id. The only
way to know their layout is to remember what the construction packet for
that network id said, so each construction records the object's lot and
its (pre-resolved) serialization recipe here.

Network ids are only meaningful within one capture; a fresh cache is used
for every capture unit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lu_replay.data.catalog import ComponentCatalog
from lu_replay.protocol.components import Context, DecodeRecipe, resolve

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectSchema:
    """What a construction packet established about one network id."""
    network_id: int
    lot: int
    construction: DecodeRecipe
    serialization: DecodeRecipe


class SessionSchemaCache:
    """Recipes for the objects constructed so far in one capture unit."""

    def __init__(self, catalog: ComponentCatalog):
        self.catalog = catalog
        self._objects: dict[int, ObjectSchema] = {}

    def record(self, network_id: int, lot: int) -> ObjectSchema:
        """Bind `network_id` to `lot`'s recipes. A later construction replaces it."""
        kinds = self.catalog.lookup(lot)
        schema = ObjectSchema(
            network_id=network_id,
            lot=lot,
            construction=resolve(kinds, Context.CONSTRUCTION, lot=lot),
            serialization=resolve(kinds, Context.SERIALIZATION, lot=lot),
        )
        self._objects[network_id] = schema
        log.debug("network id %d -> lot %d (%d update steps)",
                  network_id, lot, len(schema.serialization))
        return schema

    def recipe_for_update(self, network_id: int) -> DecodeRecipe | None:
        """Serialization recipe for `network_id`, or None if never constructed."""
        schema = self._objects.get(network_id)
        return schema.serialization if schema else None

    def get(self, network_id: int) -> ObjectSchema | None:
        return self._objects.get(network_id)

    def reset(self) -> None:
        self._objects.clear()

    def __contains__(self, network_id: int) -> bool:
        return network_id in self._objects

    def __len__(self) -> int:
        return len(self._objects)
