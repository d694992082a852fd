import io
import random

import pytest

import huffman as huff
from bitio import BitReader, BitWriter
from compressor import (
    compress,
    compress_bytes,
    compress_file,
    decode_file,
    decompress,
    decompress_bytes,
    decompress_file,
    encode_file,
)


class TrackingStore(huff.NodeStore):
    """NodeStore that remembers every node it handed out and got back."""

    def __init__(self):
        super().__init__()
        self.outstanding = set()

    def new_leaf(self, symbol, weight):
        node = super().new_leaf(symbol, weight)
        self.outstanding.add(id(node))
        return node

    def new_internal(self, zero, one):
        node = super().new_internal(zero, one)
        self.outstanding.add(id(node))
        return node

    def release(self, node):
        assert id(node) in self.outstanding, "node released twice or never allocated"
        self.outstanding.discard(id(node))
        super().release(node)


@pytest.mark.parametrize("data", [
    b"",
    b"a",
    b"aaab",
    b"A" * 10 * 1024,
    b"Hello World" * 50,
    bytes(range(256)),
    bytes(range(256)) * 3 + b"\x00\xff",
])
def test_round_trip(data):
    assert decompress_bytes(compress_bytes(data)) == data


def test_round_trip_random():
    rng = random.Random(7)
    for n in (1, 2, 3, 100, 5000):
        data = bytes(rng.getrandbits(8) for _ in range(n))
        assert decompress_bytes(compress_bytes(data)) == data


def test_aaab_payload_is_seven_bits():
    out = io.BytesIO()
    stats = compress(io.BytesIO(b"aaab"), out)
    assert stats.payload_bits == 7
    assert stats.header_bytes == len(b"2 a3 b1 ")
    assert stats.unique_symbols == 3
    # a=1, b=00, EOF=01 -> 1 1 1 00 01 packed LSB first plus one padding bit
    assert out.getvalue() == b"2 a3 b1 " + bytes([0b01000111])
    assert stats.output_bytes == len(out.getvalue())


def test_empty_input_payload_is_eof_code_only():
    out = io.BytesIO()
    stats = compress(io.BytesIO(b""), out)
    assert stats.input_bytes == 0
    assert stats.payload_bits == 1
    assert out.getvalue() == b"0 \x00"
    assert decompress_bytes(out.getvalue()) == b""


def test_compress_rewinds_to_original_position():
    src = io.BytesIO(b"skip-me|payload")
    src.seek(8)
    out = io.BytesIO()
    stats = compress(src, out)
    assert stats.input_bytes == len(b"payload")
    assert decompress_bytes(out.getvalue()) == b"payload"


def test_encode_file_unknown_byte():
    root = huff.build_encoding_tree({ord("a"): 2, huff.END_OF_STREAM: 1})
    with pytest.raises(huff.UnencodableSymbolError) as excinfo:
        encode_file(io.BytesIO(b"ab"), root, BitWriter(io.BytesIO()))
    assert excinfo.value.symbol == ord("b")


def test_encode_decode_with_shared_tree():
    data = b"mississippi"
    ft = huff.get_frequency_table(io.BytesIO(data))
    root = huff.build_encoding_tree(ft)

    packed = io.BytesIO()
    w = BitWriter(packed)
    nbits = encode_file(io.BytesIO(data), root, w)
    w.flush()
    assert nbits == huff.weighted_code_length(ft, huff.generate_huffman_codes(root))

    out = io.BytesIO()
    assert decode_file(BitReader(io.BytesIO(packed.getvalue())), root, out) == len(data)
    assert out.getvalue() == data


def test_truncated_payload():
    compressed = compress_bytes(b"This is a test" * 100)
    with pytest.raises(huff.MalformedStreamError):
        decompress_bytes(compressed[:-3])


def test_payload_missing_entirely():
    compressed = compress_bytes(b"abc")
    header_only = compressed[:compressed.index(b"c1 ") + 3]
    with pytest.raises(huff.MalformedStreamError):
        decompress_bytes(header_only)


def test_invalid_bit_for_single_leaf_tree():
    # only END_OF_STREAM is known, whose code is "0"; a 1 bit can never match
    with pytest.raises(huff.MalformedStreamError):
        decompress_bytes(b"0 \x01")


def test_corrupted_header():
    compressed = bytearray(compress_bytes(b"Hello World" * 50))
    compressed[0] ^= 0xFF
    with pytest.raises(huff.HuffmanError):
        decompress_bytes(bytes(compressed))


@pytest.mark.parametrize("data", [b"", b"aaab", bytes(range(256)) * 2])
def test_no_nodes_left_after_round_trip(data):
    store = TrackingStore()
    packed = io.BytesIO()
    compress(io.BytesIO(data), packed, store=store)
    assert store.live == 0 and not store.outstanding
    compressed_allocs = store.allocated

    out = io.BytesIO()
    decompress(io.BytesIO(packed.getvalue()), out, store=store)
    assert out.getvalue() == data
    assert store.live == 0 and not store.outstanding
    assert store.allocated == 2 * compressed_allocs


def test_no_nodes_left_after_failures():
    store = TrackingStore()
    with pytest.raises(huff.MalformedStreamError):
        decompress(io.BytesIO(compress_bytes(b"truncate me please")[:-1]), io.BytesIO(), store=store)
    assert store.live == 0 and not store.outstanding
    assert store.allocated > 0


def test_file_helpers(tmp_path):
    src = tmp_path / "in.txt"
    packed = tmp_path / "in.huf"
    restored = tmp_path / "out.txt"
    data = b"the quick brown fox jumps over the lazy dog\n" * 20
    src.write_bytes(data)

    stats = compress_file(src, packed)
    assert stats.output_bytes == packed.stat().st_size
    assert stats.compression_ratio < 1.0
    assert decompress_file(packed, restored) == len(data)
    assert restored.read_bytes() == data
