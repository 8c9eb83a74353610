"""
lu_replay — Capture Sources

A capture unit is one recorded session: an ordered list of entries, each
a tag (the packet's label, e.g. "0042_[53-05-00-02].bin") and a payload.
Two on-disk forms are read:

  - .zip   one archive member per packet, in archive order
  - .json  {"name": ..., "packets": [{"tag": ..., "payload_hex": ...}, ...]}

Payloads are loaded lazily; entries the router ignores are never read.
"""

from __future__ import annotations

import json
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Protocol

from lu_replay.errors import UnderrunOrMalformedPayload

CAPTURE_SUFFIXES = (".zip", ".json")


@dataclass
class CaptureEntry:
    """One packet occurrence in a capture."""
    tag: str
    size: int  # declared payload size
    loader: Callable[[], bytes] = field(repr=False)
    reads: int = 0

    @classmethod
    def from_bytes(cls, tag: str, payload: bytes, size: int | None = None) -> CaptureEntry:
        return cls(tag=tag, size=len(payload) if size is None else size, loader=lambda: payload)

    def read(self) -> bytes:
        self.reads += 1
        return self.loader()


class CaptureUnit(Protocol):
    name: str

    def entries(self) -> Iterator[CaptureEntry]: ...


class ZipCapture:
    """A capture stored as a zip archive, one member per packet."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.name = str(self.path)

    def entries(self) -> Iterator[CaptureEntry]:
        try:
            zf = zipfile.ZipFile(self.path)
        except (zipfile.BadZipFile, OSError) as e:
            raise UnderrunOrMalformedPayload(f"{self.name}: unreadable zip capture: {e}") from e
        with zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                yield CaptureEntry(
                    tag=info.filename,
                    size=info.file_size,
                    loader=lambda info=info: self._read_member(zf, info),
                )

    @staticmethod
    def _read_member(zf: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
        try:
            return zf.read(info)
        except (zipfile.BadZipFile, zlib.error, OSError) as e:
            raise UnderrunOrMalformedPayload(f"corrupt archive member: {e}") from e


def _unhex(text: str) -> bytes:
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise UnderrunOrMalformedPayload(f"bad payload_hex: {e}") from e


class JsonCapture:
    """A capture stored as JSON with hex payloads.

    Payloads are decoded from hex only when read, so a bad payload is
    reported against its own entry.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.name = str(self.path)

    def _load(self) -> list:
        try:
            data = json.loads(self.path.read_text())
        except (ValueError, OSError) as e:
            raise UnderrunOrMalformedPayload(f"{self.name}: unreadable JSON capture: {e}") from e
        packets = data.get("packets", []) if isinstance(data, dict) else None
        if not isinstance(packets, list):
            raise UnderrunOrMalformedPayload(f"{self.name}: \"packets\" is not a list")
        return packets

    def entries(self) -> Iterator[CaptureEntry]:
        for i, p in enumerate(self._load()):
            if not isinstance(p, dict) or not isinstance(p.get("tag"), str):
                raise UnderrunOrMalformedPayload(f"{self.name}: packet {i} has no tag")
            hex_text = p.get("payload_hex", "")
            if not isinstance(hex_text, str):
                raise UnderrunOrMalformedPayload(f"{self.name}: packet {i} payload_hex is not a string")
            yield CaptureEntry(
                tag=p["tag"],
                size=p.get("size", len(hex_text) // 2),
                loader=lambda hex_text=hex_text: _unhex(hex_text),
            )


def is_capture_unit(path: Path, suffixes: tuple[str, ...] = CAPTURE_SUFFIXES) -> bool:
    return path.is_file() and path.suffix.lower() in suffixes


def open_capture(path: str | Path) -> CaptureUnit:
    """Open a capture unit by file type."""
    path = Path(path)
    match path.suffix.lower():
        case ".zip":
            return ZipCapture(path)
        case ".json":
            return JsonCapture(path)
        case _:
            raise ValueError(f"not a capture file: {path}")
