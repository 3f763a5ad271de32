"""Binary stream helpers for transporting metrics between nodes.

Doubles are written as 8-byte big-endian IEEE-754 values, so a value written
with :meth:`StreamOutput.write_double` reads back bit-for-bit. Strings are
UTF-8 encoded and prefixed with their byte length as a variable-length int.
"""

from __future__ import annotations

import io
import struct
from typing import BinaryIO, Optional

_DOUBLE_STRUCT = struct.Struct(">d")


class StreamFormatError(ValueError):
    """Raised when a stream ends early or carries an invalid encoding."""


class StreamOutput:
    def __init__(self, sink: Optional[BinaryIO] = None) -> None:
        self._sink = sink if sink is not None else io.BytesIO()

    def write_bytes(self, data: bytes) -> None:
        self._sink.write(data)

    def write_double(self, value: float) -> None:
        self._sink.write(_DOUBLE_STRUCT.pack(value))

    def write_vint(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"vint must be non-negative, got {value}")
        while value & ~0x7F:
            self._sink.write(bytes(((value & 0x7F) | 0x80,)))
            value >>= 7
        self._sink.write(bytes((value,)))

    def write_string(self, value: str) -> None:
        encoded = value.encode("utf-8")
        self.write_vint(len(encoded))
        self._sink.write(encoded)

    def getvalue(self) -> bytes:
        if not isinstance(self._sink, io.BytesIO):
            raise TypeError("getvalue() is only available for in-memory streams")
        return self._sink.getvalue()


class StreamInput:
    def __init__(self, source: "bytes | BinaryIO") -> None:
        self._source = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source

    def read_bytes(self, length: int) -> bytes:
        data = self._source.read(length)
        if len(data) != length:
            raise StreamFormatError(f"Expected {length} bytes, got {len(data)}")
        return data

    def read_double(self) -> float:
        (value,) = _DOUBLE_STRUCT.unpack(self.read_bytes(_DOUBLE_STRUCT.size))
        return value

    def read_vint(self) -> int:
        result = 0
        shift = 0
        while True:
            byte = self.read_bytes(1)[0]
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result
            shift += 7
            if shift > 35:
                raise StreamFormatError("vint is too long")

    def read_string(self) -> str:
        length = self.read_vint()
        try:
            return self.read_bytes(length).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StreamFormatError("String is not valid UTF-8") from exc
