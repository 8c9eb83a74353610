"""
lu_replay — Capture Replay

Replays captures through the decoders and checks every routed payload is
consumed exactly. Fails fast: the first decode error or leftover byte
aborts the whole run.

Architecture:
    capture dir ──► CaptureReplayer._visit (depth-first, sorted)
                        │
    capture unit ──► replay_capture ── fresh SessionSchemaCache per unit
                        │
    entry ──► PacketClassifier ──► IGNORED            (not read)
                                ├► SYSTEM/WORLD        decode_message
                                ├► OBJECT_CONSTRUCTION envelope → catalog → record → recipe
                                └► OBJECT_UPDATE       envelope → cached recipe (or skip)
                        │
                    full-consumption check
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from lu_replay.capture.capture import CAPTURE_SUFFIXES, CaptureEntry, CaptureUnit, is_capture_unit, open_capture
from lu_replay.data.catalog import ComponentCatalog
from lu_replay.data.router import CATEGORY_SERVICES, Category, PacketClassifier
from lu_replay.data.session import SessionSchemaCache
from lu_replay.errors import IncompleteConsumption, UnderrunOrMalformedPayload
from lu_replay.protocol.packet_types import decode_message
from lu_replay.protocol.reader import BitStream
from lu_replay.protocol.replica import (
    read_construction_header, read_serialization_header, run_recipe,
)

log = logging.getLogger(__name__)

PacketCallback = Callable[[str, CaptureEntry, dict], None]
ProgressCallback = Callable[[Path, int, int], None]


# ---- Configuration ----

@dataclass
class ReplayConfig:
    """Replay behavior configuration."""
    # Hand every decoded packet to the on_packet callbacks
    print_packets: bool = False
    # File suffixes treated as capture units when walking directories
    capture_suffixes: tuple[str, ...] = CAPTURE_SUFFIXES


@dataclass
class ReplayStats:
    packet_count: int = 0
    elapsed: float = 0.0
    captures: int = 0
    ignored: int = 0
    # updates skipped because their network id was never constructed
    unknown_handle_updates: int = 0
    by_category: Counter = field(default_factory=Counter)


# ---- Replayer ----

class CaptureReplayer:
    """Drives classification, schema resolution and decoding over captures."""

    def __init__(self, catalog: ComponentCatalog, config: ReplayConfig | None = None):
        self.catalog = catalog
        self.config = config or ReplayConfig()
        self.classifier = PacketClassifier()
        self.stats = ReplayStats()
        self._packet_callbacks: list[PacketCallback] = []
        self._progress_callbacks: list[ProgressCallback] = []

    def on_packet(self, callback: PacketCallback) -> None:
        """Register a callback for decoded packets. Args: (capture, entry, decoded)."""
        self._packet_callbacks.append(callback)

    def on_progress(self, callback: ProgressCallback) -> None:
        """Register a callback run after each directory member. Args: (path, count, level)."""
        self._progress_callbacks.append(callback)

    def replay(self, root: str | Path) -> ReplayStats:
        """Replay a capture file or every capture below a directory."""
        root = Path(root)
        self.stats = ReplayStats()
        self.classifier = PacketClassifier()

        start = time.monotonic()
        if root.is_dir():
            self._visit(root, 0)
        elif is_capture_unit(root, self.config.capture_suffixes):
            self.replay_capture(open_capture(root))
        else:
            raise ValueError(f"not a capture file or directory: {root}")
        self.stats.elapsed = time.monotonic() - start
        self.stats.by_category = Counter(self.classifier.counts)
        return self.stats

    def _visit(self, directory: Path, level: int) -> int:
        packet_count = 0
        for path in sorted(directory.iterdir()):
            if path.is_dir():
                packet_count += self._visit(path, level + 1)
            elif is_capture_unit(path, self.config.capture_suffixes):
                packet_count += self.replay_capture(open_capture(path))
            else:
                log.debug("Skipping %s: not a capture", path)
            # every member reports, skipped files included
            for cb in self._progress_callbacks:
                cb(path, packet_count, level)
        return packet_count

    def replay_capture(self, unit: CaptureUnit) -> int:
        """Replay one capture unit in stored order. Returns packets decoded."""
        log.info("Replaying %s", unit.name)
        schemas = SessionSchemaCache(self.catalog)
        packet_count = 0

        for entry in unit.entries():
            category = self.classifier.classify(entry.tag)
            if category is Category.IGNORED:
                self.stats.ignored += 1
                continue
            try:
                decoded = self.replay_entry(unit.name, entry, category, schemas)
            except UnderrunOrMalformedPayload as e:
                e.locate(unit.name, entry.tag, entry.size)
                raise
            packet_count += 1
            if self.config.print_packets:
                for cb in self._packet_callbacks:
                    cb(unit.name, entry, decoded)

        self.stats.captures += 1
        self.stats.packet_count += packet_count
        log.info("%s: %d packets, %d objects constructed", unit.name, packet_count, len(schemas))
        return packet_count

    def replay_entry(
        self, capture: str, entry: CaptureEntry, category: Category, schemas: SessionSchemaCache,
    ) -> dict:
        """Decode one routed entry and enforce full consumption."""
        payload = entry.read()
        if len(payload) != entry.size:
            raise UnderrunOrMalformedPayload(
                f"payload is {len(payload)} bytes, declared {entry.size}"
            )
        reader = BitStream(payload)
        check = True

        match category:
            case Category.SYSTEM_HANDSHAKE | Category.WORLD_SYSTEM:
                decoded = decode_message(reader, CATEGORY_SERVICES[category])
            case Category.OBJECT_CONSTRUCTION:
                decoded = self._decode_construction(reader, schemas)
            case Category.OBJECT_UPDATE:
                decoded, check = self._decode_update(reader, schemas)
                if not check:
                    self.stats.unknown_handle_updates += 1
                    log.debug("%s: network id %d never constructed, not checked",
                              entry.tag, decoded["network_id"])
            case _:
                raise ValueError(f"category {category} is not decodable")

        if check and reader.remaining_bytes:
            raise IncompleteConsumption(capture, entry.tag, entry.size, reader.remaining_bytes)
        return decoded

    def _decode_construction(self, reader: BitStream, schemas: SessionSchemaCache) -> dict:
        decoded = read_construction_header(reader)
        schema = schemas.record(decoded["network_id"], decoded["lot"])
        decoded["components"] = run_recipe(reader, schema.construction)
        return decoded

    def _decode_update(self, reader: BitStream, schemas: SessionSchemaCache) -> tuple[dict, bool]:
        """Returns (decoded, checkable); unknown network ids decode nothing past the envelope."""
        decoded = read_serialization_header(reader)
        recipe = schemas.recipe_for_update(decoded["network_id"])
        if recipe is None:
            return decoded, False
        decoded["components"] = run_recipe(reader, recipe)
        return decoded, True
