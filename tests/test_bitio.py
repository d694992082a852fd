import io

from bitio import CHUNK_SIZE, BitReader, BitWriter


def test_bits_fill_bytes_lsb_first():
    out = io.BytesIO()
    w = BitWriter(out)
    w.write_bits("10000000" + "0101")
    w.flush()
    assert out.getvalue() == bytes([0x01, 0x0A])
    assert w.bits_written == 12


def test_writer_does_not_flush_partial_byte():
    out = io.BytesIO()
    w = BitWriter(out)
    w.write_bits("101")
    assert out.getvalue() == b""
    assert w.pad_bits == 5
    w.flush()
    assert out.getvalue() == bytes([0b101])


def test_flush_leaves_stream_open():
    out = io.BytesIO()
    with BitWriter(out) as w:
        w.write_bit(1)
    assert not out.closed
    assert out.getvalue() == b"\x01"


def test_reader_returns_none_at_end():
    r = BitReader(io.BytesIO(bytes([0b00000110])))
    assert [r.read_bit() for _ in range(8)] == [0, 1, 1, 0, 0, 0, 0, 0]
    assert r.read_bit() is None
    assert r.read_bit() is None


def test_reader_on_empty_stream():
    assert BitReader(io.BytesIO(b"")).read_bit() is None


def test_large_bitstream_crosses_chunk_boundaries():
    pattern = "1101001"
    nbits = (CHUNK_SIZE * 3) * 8 + 5
    bits = (pattern * (nbits // len(pattern) + 1))[:nbits]

    out = io.BytesIO()
    w = BitWriter(out)
    w.write_bits(bits)
    w.flush()
    assert len(out.getvalue()) == (nbits + 7) // 8

    r = BitReader(io.BytesIO(out.getvalue()))
    back = "".join(str(r.read_bit()) for _ in range(nbits))
    assert back == bits
    # remaining bits are zero padding
    assert [r.read_bit() for _ in range(3)] == [0, 0, 0]
    assert r.read_bit() is None
