"""Bounds-checked little-endian access to a fully buffered response payload.

The legacy trip response is a pointer/offset structure that has to be
navigated by absolute offsets, while the transport only delivers a forward
byte stream. The whole decompressed payload is therefore buffered first and
every read afterwards is plain offset arithmetic on the buffer.
"""

import gzip
import io
import logging
import struct
import zlib

from hafas_trips.domain.exceptions import InvalidPayloadError, TruncatedPayloadError

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


class ByteArena:
    """Immutable payload with a movable cursor.

    Any offset or length that leaves the buffered region raises
    TruncatedPayloadError; adjacent memory is never read.
    """

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def position(self) -> int:
        return self._pos

    def seek(self, offset: int) -> "ByteArena":
        """Jump to an absolute offset."""
        if offset < 0 or offset > len(self._data):
            raise TruncatedPayloadError(
                f"offset {offset} outside buffered payload of {len(self._data)} bytes"
            )
        self._pos = offset
        return self

    def skip(self, count: int) -> None:
        self.seek(self._pos + count)

    def _take(self, count: int) -> bytes:
        end = self._pos + count
        if count < 0 or end > len(self._data):
            raise TruncatedPayloadError(
                f"read of {count} bytes at offset {self._pos} exceeds "
                f"buffered payload of {len(self._data)} bytes"
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def read_bytes(self, count: int) -> bytes:
        return self._take(count)

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_u16(self) -> int:
        return _U16.unpack(self._take(2))[0]

    def read_u32(self) -> int:
        return _U32.unpack(self._take(4))[0]

    def read_i32(self) -> int:
        return _I32.unpack(self._take(4))[0]

    def slice(self, start: int, end: int) -> bytes:
        """Copy the absolute region [start, end) without moving the cursor."""
        if start < 0 or end < start or end > len(self._data):
            raise TruncatedPayloadError(
                f"region [{start}, {end}) outside buffered payload of {len(self._data)} bytes"
            )
        return self._data[start:end]


def load_payload(body: bytes, size_hint: int) -> ByteArena:
    """Buffer a response body into an arena.

    GZIP bodies are decompressed. ``size_hint`` sizes the first read (taken
    from the previous continuation token, or a generous default); if the
    payload turns out larger, the remainder is read in a second pass so the
    arena always holds the complete payload.

    Args:
        body: Raw HTTP body, GZIP-compressed or already decompressed.
        size_hint: Expected decompressed size in bytes.

    Returns:
        ByteArena over the complete decompressed payload.
    """
    if not body.startswith(GZIP_MAGIC):
        logger.debug(f"Response body is not GZIP-compressed, using {len(body)} bytes as-is")
        return ByteArena(body)

    try:
        with gzip.GzipFile(fileobj=io.BytesIO(body)) as stream:
            data = stream.read(max(size_hint, 0))
            remainder = stream.read()
    except (OSError, EOFError, zlib.error) as e:
        raise InvalidPayloadError(f"cannot decompress response body: {e}") from e

    if remainder:
        logger.info(
            f"Buffer hint of {size_hint} bytes was too small, "
            f"read {len(remainder)} more bytes ({len(data) + len(remainder)} total)"
        )
        data += remainder

    return ByteArena(data)
