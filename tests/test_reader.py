"""Tests for BitStream — bit order, little-endian values, consumption."""

import pytest

from lu_replay.errors import TruncatedError, UnderrunOrMalformedPayload
from lu_replay.protocol.reader import BitStream
from builders import BitWriter


def test_bits_are_msb_first():
    r = BitStream(b"\xa0")  # 1010 0000
    assert r.read_bit() is True
    assert r.read_bit() is False
    assert r.read_bits(2) == 0b10
    assert r.bit_position == 4


def test_u16_little_endian_aligned():
    assert BitStream(b"\x34\x12").read_u16() == 0x1234


def test_u16_after_one_bit():
    data = BitWriter().bit(1).u16(0x1234).getvalue()
    r = BitStream(data)
    assert r.read_bit()
    assert r.read_u16() == 0x1234


def test_signed_and_float():
    data = BitWriter().bit(0).i32(-5).f32(1.5).i64(-2).getvalue()
    r = BitStream(data)
    r.read_bit()
    assert r.read_i32() == -5
    assert r.read_f32() == 1.5
    assert r.read_i64() == -2


def test_read_past_end_is_truncated():
    r = BitStream(b"\x01")
    with pytest.raises(TruncatedError):
        r.read_u16()


def test_truncated_is_malformed():
    assert issubclass(TruncatedError, UnderrunOrMalformedPayload)


def test_single_bit_past_end():
    r = BitStream(b"")
    with pytest.raises(TruncatedError):
        r.read_bit()


def test_remaining_bytes_counts_partial_byte_as_consumed():
    r = BitStream(b"\x80\x00")
    assert r.remaining_bytes == 2
    r.read_bit()
    assert r.remaining_bytes == 1
    r.read_bits(7)
    assert r.remaining_bytes == 1
    r.read_bit()
    assert r.remaining_bytes == 0
    assert r.done()


def test_align():
    r = BitStream(b"\xff\x07")
    r.read_bits(3)
    r.align()
    assert r.bit_position == 8
    assert r.read_u8() == 7


def test_fixed_wstr_cut_at_nul():
    data = BitWriter().wstr("kaja", 33).getvalue()
    r = BitStream(data)
    assert r.read_wstr(33) == "kaja"
    assert r.done()


def test_fixed_str_cut_at_nul():
    r = BitStream(b"abc\x00xyz\x00")
    assert r.read_str(8) == "abc"
    assert r.done()


def test_var_wstr_u8_prefix_unaligned():
    data = BitWriter().bit(1).var_wstr8("Kaja").getvalue()
    r = BitStream(data)
    r.read_bit()
    assert r.read_var_wstr("u8") == "Kaja"
    assert r.done()


def test_var_bytes_u32_prefix():
    r = BitStream(b"\x03\x00\x00\x00abc")
    assert r.read_var_bytes() == b"abc"


def test_var_length_overrun():
    r = BitStream(b"\x10ab")
    with pytest.raises(TruncatedError):
        r.read_var_str()


def test_unsupported_prefix():
    with pytest.raises(ValueError):
        BitStream(b"\x00").read_var_bytes("u24")
