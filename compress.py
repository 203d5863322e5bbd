"""
Every stored object is compressed with zlib, exactly like git's loose objects.
"""

import zlib

from errors import CorruptStream

def compress(data):
    return zlib.compress(data)

def decompress(data):
    """
    Inverse of compress(). A stream that stops before its end marker, or carries bytes after it,
    is rejected instead of silently returning a partial result.
    """
    decompressor = zlib.decompressobj()
    try:
        result = decompressor.decompress(data) + decompressor.flush()
    except zlib.error as e:
        raise CorruptStream(f"Invalid zlib stream: {e}") from e

    if not decompressor.eof:
        raise CorruptStream("Truncated zlib stream")
    if decompressor.unused_data:
        raise CorruptStream(f"{len(decompressor.unused_data)} bytes of trailing data after zlib stream")

    return result
