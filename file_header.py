import logging
from typing import BinaryIO, Dict

from huffman import END_OF_STREAM, ConfigurationError, MalformedStreamError

logger = logging.getLogger(__name__)

# Header layout (all ASCII except the symbol byte):
#   <count> ' ' then <count> times: <symbol: 1 raw byte> <frequency> ' '
# END_OF_STREAM is never written, its frequency is always 1.
# write_file_header and read_file_header must change together.
SEPARATOR = b" "


def write_file_header(out: BinaryIO, frequencies: Dict[int, int]) -> int:
    """
    Write the frequency table to the front of `out` and return the number of
    bytes written.
    """
    if END_OF_STREAM not in frequencies:
        raise ConfigurationError("missing end-of-stream sentinel")

    symbols = sorted(s for s in frequencies if s != END_OF_STREAM)
    header = bytearray(str(len(symbols)).encode("ascii") + SEPARATOR)
    for symbol in symbols:
        if not (0 <= symbol <= 255):
            raise ConfigurationError(f"symbol {symbol} is not a byte value")
        header.append(symbol)
        header += str(frequencies[symbol]).encode("ascii") + SEPARATOR
    out.write(header)
    logger.debug("header: %d entries, %d bytes", len(symbols), len(header))
    return len(header)


def _read_byte(inp: BinaryIO) -> int:
    b = inp.read(1)
    if not b:
        raise MalformedStreamError("Malformed stream: header truncated")
    return b[0]


def _read_int(inp: BinaryIO) -> int:
    # ASCII digits terminated by a single space
    digits = bytearray()
    while True:
        b = _read_byte(inp)
        if b == SEPARATOR[0]:
            break
        if not (0x30 <= b <= 0x39):
            raise MalformedStreamError(f"Malformed stream: unexpected byte {b:#04x} in header number")
        digits.append(b)
    if not digits:
        raise MalformedStreamError("Malformed stream: empty number in header")
    return int(digits)


def read_file_header(inp: BinaryIO) -> Dict[int, int]:
    """Inverse of write_file_header. Leaves `inp` at the first payload byte."""
    count = _read_int(inp)
    if count > 256:
        raise MalformedStreamError(f"Malformed stream: header claims {count} symbols")

    result: Dict[int, int] = {}
    for _ in range(count):
        symbol = _read_byte(inp)
        frequency = _read_int(inp)
        if frequency == 0:
            raise MalformedStreamError(f"Malformed stream: symbol {symbol} has zero frequency")
        if symbol in result:
            raise MalformedStreamError(f"Malformed stream: symbol {symbol} listed twice in header")
        result[symbol] = frequency

    result[END_OF_STREAM] = 1
    return result
