import io
import struct

import pytest

from ltrader.streambuf import BufferFullError, StreamCarbureter, StreamExtractor


def decode(buffer):
    out = io.StringIO()
    StreamExtractor(buffer).out(out)
    return out.getvalue()


def test_round_trip_of_mixed_values():
    buffer = bytearray(64)
    StreamCarbureter(buffer).push(42).push(" ").push("hello").push(-3)
    assert decode(buffer) == "42 hello-3"


def test_lshift_chains_like_push():
    buffer = bytearray(64)
    writer = StreamCarbureter(buffer)
    writer << "rb" << 2405
    assert decode(buffer) == "rb2405"


def test_bool_layout_in_buffer():
    buffer = bytearray(8)
    StreamCarbureter(buffer).push(True)
    assert buffer[0] == 1
    assert buffer[1] == 0
    assert buffer[2] == 1
    assert decode(buffer) == "1"


def test_string_is_nul_terminated():
    buffer = bytearray(16)
    StreamCarbureter(buffer).push("ab")
    assert bytes(buffer[:5]) == b"\x01\x0bab\x00"


def test_float_round_trip():
    buffer = bytearray(32)
    StreamCarbureter(buffer).push(1.5)
    assert decode(buffer) == "1.5"


def test_overflow_raises_buffer_full():
    buffer = bytearray(4)
    writer = StreamCarbureter(buffer)
    with pytest.raises(BufferFullError):
        writer.push(7)
    assert buffer[0] == 0


def test_string_needs_room_for_terminator():
    buffer = bytearray(5)
    writer = StreamCarbureter(buffer)
    with pytest.raises(BufferFullError):
        writer.push("abcd")
    writer.push("ab")
    assert decode(buffer) == "ab"


def test_unsupported_type_raises():
    with pytest.raises(TypeError):
        StreamCarbureter(bytearray(32)).push([1])


def test_clear_zeroes_buffer():
    buffer = bytearray(16)
    writer = StreamCarbureter(buffer)
    writer.push(5)
    writer.clear()
    assert buffer == bytearray(16)
    writer.push("x")
    assert decode(buffer) == "x"


def test_reset_allows_decoding_again():
    buffer = bytearray(32)
    StreamCarbureter(buffer).push("abc").push(9)
    extractor = StreamExtractor(buffer)
    first = io.StringIO()
    extractor.out(first)
    extractor.reset()
    second = io.StringIO()
    extractor.out(second)
    assert first.getvalue() == second.getvalue() == "abc9"


def test_decodes_narrow_integer_and_char_types():
    buffer = bytearray([3]) + bytes([5]) + struct.pack("<i", -7)
    buffer += bytes([2, 65]) + bytes([1]) + b"z"
    assert decode(buffer) == "-7Az"


def test_unknown_type_id_raises():
    with pytest.raises(ValueError):
        decode(bytearray([1, 99, 0, 0]))