"""
lu_replay — Packet Router

Classifies capture entries by their tag (the entry's name in the capture)
and routes each to the schema family that can decode it.

Tags embed the packet's leading bytes, e.g. "[53-05-00-02]" for a
service message (0x53, service 5, message 2) or "[24]" for a replica
construction. The rule table is empirical: captures contain packets that
are truncated, duplicated, or have no schema yet, and those are listed
explicitly so replay skips them instead of failing.

Rules are checked in order:
  - a rule matches when its marker and all `require` markers are in the tag
  - a matching rule whose `deny` list hits falls through to the next rule
  - no rule matches -> IGNORED
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum

from lu_replay.protocol.packet_types import Service

log = logging.getLogger(__name__)


class Category(Enum):
    SYSTEM_HANDSHAKE = "system_handshake"
    WORLD_SYSTEM = "world_system"
    OBJECT_CONSTRUCTION = "object_construction"
    OBJECT_UPDATE = "object_update"
    IGNORED = "ignored"


# Services each service-message category may carry
CATEGORY_SERVICES: dict[Category, set[int]] = {
    Category.SYSTEM_HANDSHAKE: {Service.GENERAL, Service.AUTH},
    Category.WORLD_SYSTEM: {Service.GENERAL, Service.CHAT, Service.WORLD, Service.CLIENT},
}


@dataclass(frozen=True)
class TagRule:
    """One row of the classification table."""
    marker: str
    category: Category
    deny: tuple[str, ...] = ()
    require: tuple[str, ...] = ()

    def matches(self, tag: str) -> bool:
        if self.marker not in tag:
            return False
        if any(r not in tag for r in self.require):
            return False
        return not any(d in tag for d in self.deny)


# ---- Known-bad sub-codes, per bucket ----

WORLD_SERVER_DENY = (
    "[53-04-00-16]",
    "[e6-00]", "[6b-03]", "[16-04]", "[49-04]", "[ad-04]", "[1c-05]",
    "[230]", "[875]", "[1046]", "[1097]", "[1197]", "[1308]",
)

CLIENT_DENY = (
    "[53-05-00-00]", "[53-05-00-15]", "[53-05-00-31]",
    "[76-00]", "[e6-00]", "[ff-00]", "[a1-01]", "[7f-02]", "[a3-02]",
    "[cc-02]", "[35-03]", "[36-03]", "[4d-03]", "[6d-03]", "[91-03]",
    "[1a-05]", "[e6-05]", "[16-06]", "[1c-06]", "[6f-06]", "[70-06]",
    "[118]", "[230]", "[255]", "[417]", "[639]", "[675]", "[716]",
    "[821]", "[822]", "[845]", "[877]", "[913]", "[1306]", "[1510]",
    "[1558]", "[1564]", "[1647]", "[1648]",
)

DEFAULT_RULES: tuple[TagRule, ...] = (
    # "n of m" split-packet fragments
    TagRule("of", Category.IGNORED),
    TagRule("[53-01-", Category.SYSTEM_HANDSHAKE),
    TagRule("[53-04-", Category.WORLD_SYSTEM, deny=WORLD_SERVER_DENY),
    TagRule("[53-02-", Category.WORLD_SYSTEM),
    TagRule("[53-05-", Category.WORLD_SYSTEM, deny=CLIENT_DENY),
    # constructions are only replayed for the player template
    TagRule("[24]", Category.OBJECT_CONSTRUCTION, require=("(1)",)),
    TagRule("[27]", Category.OBJECT_UPDATE),
)


def classify(tag: str, rules: tuple[TagRule, ...] = DEFAULT_RULES) -> Category:
    """Category for a capture entry tag."""
    for rule in rules:
        if rule.matches(tag):
            return rule.category
    return Category.IGNORED


class PacketClassifier:
    """Classifies tags and keeps a tally per category."""

    def __init__(self, rules: tuple[TagRule, ...] = DEFAULT_RULES):
        self.rules = rules
        self.counts: Counter[Category] = Counter()

    def classify(self, tag: str) -> Category:
        category = classify(tag, self.rules)
        self.counts[category] += 1
        log.debug("%s -> %s", tag, category.value)
        return category
