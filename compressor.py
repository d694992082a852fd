"""
Whole-file Huffman compression.

compress():   frequency scan -> tree -> header -> rewind -> payload bits
decompress(): header -> tree -> payload bits until END_OF_STREAM

Both calls own the tree they build and release it before returning, whether
they succeed or fail.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

import huffman as huff
from bitio import BitReader, BitWriter
from file_header import read_file_header, write_file_header

logger = logging.getLogger(__name__)

OUTPUT_CHUNK = 4096


@dataclass
class CompressionStats:
    input_bytes: int
    header_bytes: int
    payload_bits: int
    output_bytes: int
    unique_symbols: int  # including END_OF_STREAM

    @property
    def compression_ratio(self) -> float:
        return self.output_bytes / max(1, self.input_bytes)


def encode_file(source: BinaryIO, root: huff.HuffmanNode, sink: BitWriter) -> int:
    """
    Write the code of every byte of `source`, then the END_OF_STREAM code.
    The sink is not flushed. Returns the number of bits written.
    """
    codes = huff.generate_huffman_codes(root)
    nbits = 0
    while True:
        chunk = source.read(huff.CHUNK_SIZE)
        if not chunk:
            break
        for b in chunk:
            code = codes.get(b)
            if code is None:
                raise huff.UnencodableSymbolError(b)
            sink.write_bits(code)
            nbits += len(code)

    eof_code = codes.get(huff.END_OF_STREAM)
    if eof_code is None:
        raise huff.UnencodableSymbolError(huff.END_OF_STREAM)
    sink.write_bits(eof_code)
    return nbits + len(eof_code)


def decode_file(source: BitReader, root: huff.HuffmanNode, out: BinaryIO) -> int:
    """
    Read bits until the END_OF_STREAM code and write the decoded bytes to
    `out`. Returns the number of bytes written.
    """
    decoded_bits = huff.invert_codes(huff.generate_huffman_codes(root))
    max_len = max(len(code) for code in decoded_bits)

    buf = bytearray()
    written = 0
    current_code = ""
    while True:
        bit = source.read_bit()
        if bit is None:
            raise huff.MalformedStreamError("Malformed stream: payload ended before end-of-stream code")

        current_code += "1" if bit else "0"
        symbol = decoded_bits.get(current_code)
        if symbol is None:
            if len(current_code) >= max_len:
                raise huff.MalformedStreamError(f"Malformed stream: invalid code {current_code}")
            continue

        if symbol == huff.END_OF_STREAM:
            break
        buf.append(symbol)
        current_code = ""
        if len(buf) >= OUTPUT_CHUNK:
            out.write(buf)
            written += len(buf)
            buf = bytearray()

    if buf:
        out.write(buf)
        written += len(buf)
    return written


def compress(infile: BinaryIO, outfile: BinaryIO, store: Optional[huff.NodeStore] = None) -> CompressionStats:
    """Compress seekable binary stream `infile` into `outfile`."""
    store = store if store is not None else huff.NodeStore()

    start = infile.tell()
    frequencies = huff.get_frequency_table(infile)
    input_bytes = infile.tell() - start

    root = huff.build_encoding_tree(frequencies, store)
    try:
        header_bytes = write_file_header(outfile, frequencies)
        infile.seek(start)

        writer = BitWriter(outfile)
        payload_bits = encode_file(infile, root, writer)
        writer.flush()
    finally:
        huff.free_tree(root, store)

    stats = CompressionStats(
        input_bytes=input_bytes,
        header_bytes=header_bytes,
        payload_bits=payload_bits,
        output_bytes=header_bytes + (payload_bits + 7) // 8,
        unique_symbols=len(frequencies),
    )
    logger.debug("compressed %d bytes -> %d bytes (%d payload bits)",
                 stats.input_bytes, stats.output_bytes, stats.payload_bits)
    return stats


def decompress(infile: BinaryIO, outfile: BinaryIO, store: Optional[huff.NodeStore] = None) -> int:
    """Decompress `infile` (header + payload) into `outfile`. Returns bytes written."""
    store = store if store is not None else huff.NodeStore()

    frequencies = read_file_header(infile)
    root = huff.build_encoding_tree(frequencies, store)
    try:
        written = decode_file(BitReader(infile), root, outfile)
    finally:
        huff.free_tree(root, store)

    logger.debug("decompressed %d bytes", written)
    return written


# In-memory and path helpers

def compress_bytes(data: bytes) -> bytes:
    out = io.BytesIO()
    compress(io.BytesIO(data), out)
    return out.getvalue()


def decompress_bytes(data: bytes) -> bytes:
    out = io.BytesIO()
    decompress(io.BytesIO(data), out)
    return out.getvalue()


def compress_file(src: Union[str, Path], dst: Union[str, Path]) -> CompressionStats:
    with open(src, "rb") as fin, open(dst, "wb") as fout:
        return compress(fin, fout)


def decompress_file(src: Union[str, Path], dst: Union[str, Path]) -> int:
    with open(src, "rb") as fin, open(dst, "wb") as fout:
        return decompress(fin, fout)
