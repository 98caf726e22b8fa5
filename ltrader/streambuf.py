"""Compact typed encoding of log arguments into a byte buffer.

Layout: byte 0 holds the number of encoded values. Each value follows as a
one-byte type id and its little-endian payload; strings are NUL-terminated.
"""

from __future__ import annotations

import struct
from typing import TextIO

# type id -> struct format; id 11 is a NUL-terminated string
_FORMATS = {
    0: "<?",   # bool
    1: "<c",   # char
    2: "<B",   # unsigned char
    3: "<h",   # short
    4: "<H",   # unsigned short
    5: "<i",   # int
    6: "<I",   # unsigned int
    7: "<q",   # long long
    8: "<Q",   # unsigned long long
    9: "<f",   # float
    10: "<d",  # double
}
_BOOL, _CHAR, _UCHAR = 0, 1, 2
_LONG_LONG, _ULONG_LONG, _DOUBLE, _STRING = 7, 8, 10, 11
_MAX_COUNT = 0xFF


class BufferFullError(IndexError):
    """Raised when a value does not fit into the remaining buffer space."""


class StreamCarbureter:
    """Encodes values one after another into a caller-supplied buffer."""

    def __init__(self, buffer: bytearray, max_size: int | None = None) -> None:
        self._buffer = buffer
        self._max_size = len(buffer) if max_size is None else max_size
        self._used = 1

    def clear(self) -> None:
        """Zero the buffer and start encoding from the beginning."""
        self._used = 1
        self._buffer[: self._max_size] = bytes(self._max_size)

    def push(self, value: bool | int | float | str) -> StreamCarbureter:
        """Append ``value``; bools, ints, floats and strings are supported."""
        if isinstance(value, bool):
            self._put(_BOOL, struct.pack(_FORMATS[_BOOL], value))
        elif isinstance(value, int):
            if -(1 << 63) <= value < (1 << 63):
                self._put(_LONG_LONG, struct.pack(_FORMATS[_LONG_LONG], value))
            elif 0 <= value < (1 << 64):
                self._put(_ULONG_LONG, struct.pack(_FORMATS[_ULONG_LONG], value))
            else:
                raise OverflowError(f"integer out of 64-bit range: {value}")
        elif isinstance(value, float):
            self._put(_DOUBLE, struct.pack(_FORMATS[_DOUBLE], value))
        elif isinstance(value, str):
            if "\0" in value:
                raise ValueError("strings may not contain NUL characters")
            self._put(_STRING, value.encode("utf-8") + b"\0")
        else:
            raise TypeError(f"cannot encode value of type {type(value).__name__}")
        return self

    __lshift__ = push

    def _put(self, type_id: int, payload: bytes) -> None:
        if self._used + len(payload) + 1 > self._max_size or self._buffer[0] >= _MAX_COUNT:
            raise BufferFullError("buffer full")
        self._buffer[self._used] = type_id
        self._used += 1
        self._buffer[self._used : self._used + len(payload)] = payload
        self._used += len(payload)
        self._buffer[0] += 1


def _render(type_id: int, value: object) -> str:
    if type_id == _BOOL:
        return "1" if value else "0"
    if type_id == _CHAR:
        return value.decode("latin-1")  # type: ignore[union-attr]
    if type_id == _UCHAR:
        return chr(value)  # type: ignore[arg-type]
    if isinstance(value, float):
        return format(value, "g")
    return str(value)


class StreamExtractor:
    """Decodes a buffer written by :class:`StreamCarbureter` as text."""

    def __init__(self, buffer: bytes | bytearray, max_size: int | None = None) -> None:
        self._buffer = bytes(buffer)
        self._max_size = len(buffer) if max_size is None else max_size
        self._freed = 1

    def reset(self) -> None:
        """Start decoding from the first value again."""
        self._freed = 1

    def out(self, stream: TextIO) -> None:
        """Write every encoded value, in order, to ``stream``."""
        for _ in range(self._buffer[0]):
            type_id = self._buffer[self._freed]
            self._freed += 1
            if type_id == _STRING:
                end = self._buffer.index(b"\0", self._freed)
                stream.write(self._buffer[self._freed : end].decode("utf-8"))
                self._freed = end + 1
                continue
            fmt = _FORMATS.get(type_id)
            if fmt is None:
                raise ValueError(f"unknown type id {type_id}")
            (value,) = struct.unpack_from(fmt, self._buffer, self._freed)
            self._freed += struct.calcsize(fmt)
            stream.write(_render(type_id, value))