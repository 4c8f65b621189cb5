"""Stats snapshot wire format packing and parsing."""

import struct
import time
from datetime import timedelta
from typing import Iterable, Optional, Sequence

import msgpack
import zstandard as zstd

from ..errors import SnapshotFormatError

_HEADER = struct.Struct("<IIQ")
_BLOB_LEN = struct.Struct("<I")

# Decompression cap when the zstd frame lacks content size.
# Microsecond ints pack to at most 9 bytes each, so 64x is generous.
_MAX_EXPANSION = 64

Section = tuple[str, Sequence[tuple[str, Sequence[timedelta]]]]


def _micros(d: timedelta) -> int:
    return (d.days * 86_400 + d.seconds) * 1_000_000 + d.microseconds


def pack_stats_snapshot(
    peer_id: str,
    window_size: int,
    sections: Iterable[Section],
    timestamp_ms: Optional[int] = None,
) -> bytes:
    """
    Pack per-peer sample windows into binary format.

    Wire format: [count:u32][window_size:u32][timestamp_ms:u64][blob_len:u32][blob]...
    Each blob is zstd-compressed msgpack. The first is ["peer", peer_id],
    then one per section: [name, [[peer, [micros, ...]], ...]]
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    cctx = zstd.ZstdCompressor()

    blobs = [cctx.compress(msgpack.packb(["peer", peer_id], use_bin_type=True))]
    for name, windows in sections:
        payload = [name, [[peer, [_micros(d) for d in samples]] for peer, samples in windows]]
        blobs.append(cctx.compress(msgpack.packb(payload, use_bin_type=True)))

    out = bytearray(_HEADER.pack(len(blobs), window_size, timestamp_ms))
    for blob in blobs:
        out += _BLOB_LEN.pack(len(blob))
        out += blob
    return bytes(out)


def unpack_stats_snapshot(data: bytes) -> dict:
    """
    Unpack a stats snapshot produced by pack_stats_snapshot().

    Returns dict with peer_id, window_size, timestamp_ms and sections,
    where sections maps section name -> {peer: [timedelta, ...]}.
    """
    try:
        count, window_size, timestamp_ms = _HEADER.unpack_from(data, 0)
        offset = _HEADER.size
        dctx = zstd.ZstdDecompressor()
        blocks = []

        for _ in range(count):
            blob_len = _BLOB_LEN.unpack_from(data, offset)[0]
            offset += _BLOB_LEN.size
            blob = data[offset : offset + blob_len]
            offset += blob_len
            decompressed = dctx.decompress(blob, max_output_size=max(blob_len * _MAX_EXPANSION, 1024))
            blocks.append(msgpack.unpackb(decompressed, raw=False))

        if offset != len(data):
            raise SnapshotFormatError(f"Trailing data: {len(data) - offset} bytes after last blob")

        if not blocks or blocks[0][0] != "peer":
            raise SnapshotFormatError("Snapshot missing peer header")

        sections = {}
        for name, windows in blocks[1:]:
            sections[name] = {
                peer: [timedelta(microseconds=us) for us in samples] for peer, samples in windows
            }
    except (struct.error, zstd.ZstdError, msgpack.exceptions.UnpackException, ValueError, TypeError, IndexError) as e:
        raise SnapshotFormatError(f"Malformed snapshot: {e}") from e

    return {
        "peer_id": blocks[0][1],
        "window_size": window_size,
        "timestamp_ms": timestamp_ms,
        "sections": sections,
    }
