"""
Binary encoding of the account list.

    record := name_bytes 0x00 last_event (u64, little-endian)
    stream := record*

There is no header, count or version tag; end of input ends the stream.
Names are UTF-8 and must not contain the 0x00 terminator.
"""

from __future__ import annotations

import struct
from typing import Iterable, NamedTuple

from .errors import CorruptStream, InvalidName, InvalidTimestamp

TERMINATOR = b"\x00"
TIMESTAMP = struct.Struct("<Q")
U64_MAX = 2**64 - 1


class Record(NamedTuple):
    name: str
    last_event: int


class DecodeResult(NamedTuple):
    records: list[Record]
    error: CorruptStream | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def check_name(name: str) -> str:
    if "\x00" in name:
        raise InvalidName(f"account name may not contain a NUL byte: {name!r}")
    return name


def check_timestamp(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTimestamp(value, "not an integer")
    if not 0 <= value <= U64_MAX:
        raise InvalidTimestamp(value, "outside the unsigned 64-bit range")
    return value


def encode_record(name: str, last_event: int) -> bytes:
    return (
        check_name(name).encode("utf-8")
        + TERMINATOR
        + TIMESTAMP.pack(check_timestamp(last_event))
    )


def encode(records: Iterable[tuple[str, int]]) -> bytes:
    """Serialize (name, last_event) pairs into one byte string."""
    return b"".join(encode_record(name, last_event) for name, last_event in records)


def decode(data: bytes) -> DecodeResult:
    """
    Parse a byte stream into records.

    Decoding stops at the first malformed record; everything parsed before
    it is returned together with the ``CorruptStream`` describing the fault.
    """
    records: list[Record] = []
    pos = 0
    end = len(data)
    while pos < end:
        stop = data.find(TERMINATOR, pos)
        if stop < 0:
            return DecodeResult(
                records, CorruptStream("unterminated account name", pos)
            )
        try:
            name = data[pos:stop].decode("utf-8")
        except UnicodeDecodeError:
            return DecodeResult(records, CorruptStream("account name is not UTF-8", pos))

        start = stop + 1
        if end - start < TIMESTAMP.size:
            return DecodeResult(
                records,
                CorruptStream(
                    f"truncated timestamp ({end - start} of {TIMESTAMP.size} bytes)",
                    start,
                ),
            )
        (last_event,) = TIMESTAMP.unpack_from(data, start)
        records.append(Record(name, last_event))
        pos = start + TIMESTAMP.size
    return DecodeResult(records)
