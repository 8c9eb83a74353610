"""
Bit Stream Reader — cursor over a captured payload.

Replica packets are bit-packed: presence flags are single bits and the
values after them are not byte-aligned. Bits are taken most-significant
first within each byte; multi-byte values are little-endian byte
sequences, each byte assembled from the next 8 bits when unaligned.
"""

from __future__ import annotations

import struct

from lu_replay.errors import TruncatedError


class BitStream:
    """Read bits, integers and strings from a byte payload."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0  # in bits

    def __repr__(self) -> str:
        return f"BitStream(bit {self._pos}/{len(self._data) * 8})"

    # ---- Cursor ----

    @property
    def bit_position(self) -> int:
        return self._pos

    @property
    def remaining_bits(self) -> int:
        return len(self._data) * 8 - self._pos

    @property
    def remaining_bytes(self) -> int:
        """Whole bytes the cursor has not touched yet."""
        return len(self._data) - (self._pos + 7) // 8

    def done(self) -> bool:
        return self.remaining_bytes == 0

    def align(self) -> None:
        """Skip to the next byte boundary."""
        self._pos = (self._pos + 7) & ~7

    def _need(self, bits: int) -> None:
        if bits > self.remaining_bits:
            raise TruncatedError(
                f"read of {bits} bits at bit {self._pos} "
                f"overruns {len(self._data)}-byte payload"
            )

    # ---- Bits ----

    def read_bit(self) -> bool:
        self._need(1)
        byte = self._data[self._pos >> 3]
        bit = (byte >> (7 - (self._pos & 7))) & 1
        self._pos += 1
        return bool(bit)

    def read_bits(self, count: int) -> int:
        """Read `count` bits, first bit read is the most significant."""
        self._need(count)
        result = 0
        for _ in range(count):
            byte = self._data[self._pos >> 3]
            result = (result << 1) | ((byte >> (7 - (self._pos & 7))) & 1)
            self._pos += 1
        return result

    def read_bytes(self, count: int) -> bytes:
        self._need(count * 8)
        if self._pos & 7 == 0:
            start = self._pos >> 3
            self._pos += count * 8
            return self._data[start:start + count]
        return bytes(self.read_bits(8) for _ in range(count))

    # ---- Fixed-width numbers (little-endian) ----

    def _unpack(self, fmt: str):
        return struct.unpack(fmt, self.read_bytes(struct.calcsize(fmt)))[0]

    def read_u8(self) -> int:
        return self._unpack("<B")

    def read_u16(self) -> int:
        return self._unpack("<H")

    def read_u32(self) -> int:
        return self._unpack("<I")

    def read_u64(self) -> int:
        return self._unpack("<Q")

    def read_i8(self) -> int:
        return self._unpack("<b")

    def read_i16(self) -> int:
        return self._unpack("<h")

    def read_i32(self) -> int:
        return self._unpack("<i")

    def read_i64(self) -> int:
        return self._unpack("<q")

    def read_f32(self) -> float:
        return self._unpack("<f")

    def read_f64(self) -> float:
        return self._unpack("<d")

    # ---- Text ----

    def read_str(self, size: int) -> str:
        """Fixed-length 8-bit text, cut at the first NUL."""
        raw = self.read_bytes(size)
        return raw.split(b"\x00", 1)[0].decode("latin-1")

    def read_wstr(self, length: int) -> str:
        """Fixed-length UTF-16LE text of `length` code units, cut at the first NUL."""
        raw = self.read_bytes(length * 2)
        text = raw.decode("utf-16-le", errors="replace")
        return text.split("\x00", 1)[0]

    def _read_prefix(self, prefix: str) -> int:
        match prefix:
            case "u8":
                return self.read_u8()
            case "u16":
                return self.read_u16()
            case "u32":
                return self.read_u32()
            case _:
                raise ValueError(f"unsupported length prefix: {prefix}")

    def read_var_bytes(self, prefix: str = "u32") -> bytes:
        return self.read_bytes(self._read_prefix(prefix))

    def read_var_str(self, prefix: str = "u8") -> str:
        return self.read_var_bytes(prefix).decode("latin-1")

    def read_var_wstr(self, prefix: str = "u8") -> str:
        length = self._read_prefix(prefix)
        return self.read_bytes(length * 2).decode("utf-16-le", errors="replace")
