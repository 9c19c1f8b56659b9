"""Hash/count record model and its fixed-width binary encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator

DIGEST_SIZE = 20
MAX_COUNT = 0xFFFFFFFF

# 20 raw digest bytes followed by a big-endian unsigned 32-bit count
RECORD_STRUCT = struct.Struct(f">{DIGEST_SIZE}sI")
RECORD_SIZE = RECORD_STRUCT.size


@dataclass(frozen=True, slots=True, order=True)
class HashCount:
    """One known SHA1 digest and how often it appeared in breach corpora."""

    digest: bytes
    count: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.digest, bytes) or len(self.digest) != DIGEST_SIZE:
            raise ValueError(f"digest must be {DIGEST_SIZE} bytes")
        if not 0 <= self.count <= MAX_COUNT:
            raise ValueError(f"count out of range: {self.count}")

    @property
    def hexdigest(self) -> str:
        return self.digest.hex().upper()

    def __str__(self) -> str:
        return f"{self.hexdigest}:{self.count}"


def encode(record: HashCount) -> bytes:
    return RECORD_STRUCT.pack(record.digest, record.count)


def decode(data: bytes) -> HashCount:
    if len(data) != RECORD_SIZE:
        raise ValueError(f"record must be {RECORD_SIZE} bytes, got {len(data)}")
    digest, count = RECORD_STRUCT.unpack(data)
    return HashCount(digest, count)


def encode_many(records: Iterable[HashCount]) -> bytes:
    return b"".join(RECORD_STRUCT.pack(r.digest, r.count) for r in records)


def decode_many(data: bytes) -> list[HashCount]:
    """Decode a complete byte stream; trailing partial records are an error."""

    if len(data) % RECORD_SIZE:
        raise ValueError(
            f"stream length {len(data)} is not a multiple of {RECORD_SIZE}"
        )
    return [HashCount(digest, count) for digest, count in RECORD_STRUCT.iter_unpack(data)]


def write_records(stream: BinaryIO, records: Iterable[HashCount]) -> int:
    """Write records to a binary stream and return how many were written."""

    written = 0
    for record in records:
        stream.write(RECORD_STRUCT.pack(record.digest, record.count))
        written += 1
    return written


def read_records(stream: BinaryIO, chunk_records: int = 4096) -> Iterator[HashCount]:
    """Lazily decode records from a binary stream."""

    chunk_size = RECORD_SIZE * chunk_records
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return
        if len(chunk) % RECORD_SIZE:
            raise ValueError("stream ends with a truncated record")
        for digest, count in RECORD_STRUCT.iter_unpack(chunk):
            yield HashCount(digest, count)


__all__ = [
    "DIGEST_SIZE",
    "HashCount",
    "MAX_COUNT",
    "RECORD_SIZE",
    "decode",
    "decode_many",
    "encode",
    "encode_many",
    "read_records",
    "write_records",
]
