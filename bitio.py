from typing import BinaryIO, Optional

CHUNK_SIZE = 4096


class BitWriter:
    """
    Packs single bits into bytes on top of a binary stream.

    Bits fill each byte from the least significant end. A partial byte is
    only written by flush() (or close()), never automatically.
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self._acc = 0
        self._nbits = 0  # bits currently in _acc (0..7)
        self._buf = bytearray()
        self.bits_written = 0

    def write_bit(self, bit: int) -> None:
        if bit:
            self._acc |= 1 << self._nbits
        self._nbits += 1
        self.bits_written += 1
        if self._nbits == 8:
            self._buf.append(self._acc)
            self._acc = 0
            self._nbits = 0
            if len(self._buf) >= CHUNK_SIZE:
                self.stream.write(self._buf)
                self._buf = bytearray()

    def write_bits(self, bits: str) -> None:
        """Write a string of '0'/'1' characters in order."""
        for ch in bits:
            self.write_bit(1 if ch == '1' else 0)

    @property
    def pad_bits(self) -> int:
        return (8 - self._nbits) % 8

    def flush(self) -> None:
        """Write out all complete bytes and the last partial byte, zero padded."""
        if self._nbits:
            self._buf.append(self._acc)
            self._acc = 0
            self._nbits = 0
        if self._buf:
            self.stream.write(self._buf)
            self._buf = bytearray()

    def close(self) -> None:
        self.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class BitReader:
    """Reads single bits back in the order BitWriter wrote them."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self._data = b""
        self._i = 0
        self._bit = 0  # bit index in current byte (0..7), LSB first
        self.bits_read = 0

    def read_bit(self) -> Optional[int]:
        """Return 0 or 1, or None once the stream has no more data."""
        if self._i >= len(self._data):
            self._data = self.stream.read(CHUNK_SIZE)
            self._i = 0
            if not self._data:
                return None
        b = (self._data[self._i] >> self._bit) & 1
        self._bit += 1
        if self._bit == 8:
            self._bit = 0
            self._i += 1
        self.bits_read += 1
        return b
