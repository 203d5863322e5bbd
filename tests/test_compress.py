import zlib

import pytest

from compress import compress, decompress
from errors import CorruptStream


@pytest.mark.parametrize("data", [b"", b"abc", b"\x00\xff" * 1000, bytes(range(256))])
def test_roundtrip(data):
    assert decompress(compress(data)) == data

def test_compression_is_stable():
    assert compress(b"blob 3\x00abc") == compress(b"blob 3\x00abc")

def test_reads_plain_zlib():
    assert decompress(zlib.compress(b"hello", 9)) == b"hello"

def test_truncated_stream():
    stream = compress(b"some content that is long enough" * 10)
    with pytest.raises(CorruptStream):
        decompress(stream[:len(stream) // 2])

def test_garbage():
    with pytest.raises(CorruptStream):
        decompress(b"this is not zlib")

def test_empty_input_is_not_a_stream():
    with pytest.raises(CorruptStream):
        decompress(b"")

def test_trailing_data():
    with pytest.raises(CorruptStream):
        decompress(compress(b"abc") + b"junk")
