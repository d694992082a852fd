import heapq
import logging
from typing import BinaryIO, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

# Symbols are byte values 0..255 plus two reserved values outside that range
END_OF_STREAM = 256
NOT_A_SYMBOL = -1

CHUNK_SIZE = 64 * 1024 # bytes per read() when scanning a stream


class HuffmanError(ValueError):
    """Base class for every error raised while compressing or decompressing."""


class ConfigurationError(HuffmanError):
    pass


class MalformedStreamError(HuffmanError):
    pass


class UnencodableSymbolError(HuffmanError):
    def __init__(self, symbol: int):
        super().__init__(f"symbol {symbol} has no code in the encoding tree")
        self.symbol = symbol


class HuffmanNode: # Node for Huffman encoding tree
    __slots__ = ("symbol", "weight", "zero", "one")

    def __init__(self, symbol, weight, zero=None, one=None):
        self.symbol = symbol    # byte, END_OF_STREAM or NOT_A_SYMBOL
        self.weight = weight
        self.zero = zero
        self.one = one

    def is_leaf(self) -> bool:
        return self.zero is None and self.one is None

    def __repr__(self):
        return f"HuffmanNode(symbol={self.symbol}, weight={self.weight})"


class NodeStore:
    """
    Allocates and releases encoding tree nodes.

    Every node of a tree is created through a store and handed back to it by
    free_tree(), so `live` is the number of nodes still owned by some tree.
    """

    def __init__(self):
        self.live = 0
        self.allocated = 0

    def new_leaf(self, symbol: int, weight: int) -> HuffmanNode:
        self.live += 1
        self.allocated += 1
        return HuffmanNode(symbol, weight)

    def new_internal(self, zero: HuffmanNode, one: HuffmanNode) -> HuffmanNode:
        self.live += 1
        self.allocated += 1
        return HuffmanNode(NOT_A_SYMBOL, zero.weight + one.weight, zero, one)

    def release(self, node: HuffmanNode) -> None:
        node.zero = None
        node.one = None
        self.live -= 1


# Frequency table

def frequency_table_from_bytes(data: bytes, frequencies: Optional[Dict[int, int]] = None) -> Dict[int, int]:
    ft = {} if frequencies is None else frequencies
    for b in data:
        ft[b] = ft.get(b, 0) + 1
    return ft


def get_frequency_table(source: BinaryIO) -> Dict[int, int]:
    """
    Count every byte of `source` until it is exhausted and add END_OF_STREAM
    with a count of 1. The stream is left at its end; rewind before reusing it.
    """
    ft: Dict[int, int] = {}
    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        frequency_table_from_bytes(chunk, ft)
    ft[END_OF_STREAM] = 1
    logger.debug("frequency table: %d distinct symbols", len(ft))
    return ft


# Encoding tree

def build_encoding_tree(frequencies: Dict[int, int], store: Optional[NodeStore] = None) -> HuffmanNode:
    """
    Build an optimal prefix tree by repeatedly merging the two lightest nodes.

    Heap entries are (weight, sequence, node). Leaves get their sequence in
    ascending symbol order and merged nodes after them, so equal weights are
    extracted first-in first-out and the tree is the same on every platform.
    """
    if not frequencies:
        raise ValueError("cannot build an encoding tree from an empty frequency table")
    store = store if store is not None else NodeStore()

    priority_queue = []
    for seq, symbol in enumerate(sorted(frequencies)):
        priority_queue.append((frequencies[symbol], seq, store.new_leaf(symbol, frequencies[symbol])))
    heapq.heapify(priority_queue)
    seq = len(priority_queue)

    while len(priority_queue) > 1:
        _, _, zero = heapq.heappop(priority_queue)
        _, _, one = heapq.heappop(priority_queue)
        merged = store.new_internal(zero, one)
        heapq.heappush(priority_queue, (merged.weight, seq, merged))
        seq += 1

    root = priority_queue[0][2]
    logger.debug("encoding tree built: %d leaves, root weight %d", len(frequencies), root.weight)
    return root


def free_tree(root: Optional[HuffmanNode], store: NodeStore) -> None:
    # Explicit stack so very skewed trees cannot hit the recursion limit
    stack = [root] if root is not None else []
    while stack:
        node = stack.pop()
        if node.zero is not None:
            stack.append(node.zero)
        if node.one is not None:
            stack.append(node.one)
        store.release(node)


# Code tables

def generate_huffman_codes(root: HuffmanNode) -> Dict[int, str]:
    """
    Map every leaf symbol to its path from the root ('0' = zero child,
    '1' = one child). A tree that is a single leaf gets the code "0" so that
    every symbol costs at least one bit.
    """
    if root.is_leaf():
        return {root.symbol: "0"}

    codes: Dict[int, str] = {}
    stack = [(root, "")]
    while stack:
        node, code = stack.pop()
        if node.is_leaf():
            codes[node.symbol] = code
            continue
        # one pushed first so the zero side is visited first
        stack.append((node.one, code + "1"))
        stack.append((node.zero, code + "0"))
    return codes


def invert_codes(codes: Dict[int, str]) -> Dict[str, int]:
    return {code: symbol for symbol, code in codes.items()}


def code_lengths(codes: Dict[int, str]) -> Dict[int, int]:
    return {symbol: len(code) for symbol, code in codes.items()}


def weighted_code_length(frequencies: Dict[int, int], codes: Dict[int, str]) -> int:
    # total number of bits needed to write every counted symbol once per occurrence
    return sum(frequencies[s] * len(codes[s]) for s in frequencies)


def iter_leaves(root: HuffmanNode) -> Iterable[HuffmanNode]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf():
            yield node
        else:
            stack.append(node.one)
            stack.append(node.zero)
