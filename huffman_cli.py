# Command-line front end for the Huffman compressor
#
# How to run:
#   python huffman_cli.py compress input.txt input.huf
#   python huffman_cli.py decompress input.huf restored.txt
#   python huffman_cli.py -v compress --force big.bin big.huf

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from compressor import compress_file, decompress_file
from huffman import HuffmanError

logger = logging.getLogger("huffman_cli")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffman", description="Static Huffman file compressor")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    for name, help_text in (("compress", "Compress SRC into DST"),
                            ("decompress", "Restore SRC (a compressed file) into DST")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("src", type=Path)
        p.add_argument("dst", type=Path)
        p.add_argument("-f", "--force", action="store_true", help="Overwrite DST if it exists")
    return ap


def run(args: argparse.Namespace) -> int:
    if args.src.resolve() == args.dst.resolve():
        logger.error("%s: source and destination are the same file", args.src)
        return 1
    if args.dst.exists() and not args.force:
        logger.error("%s already exists (use --force to overwrite)", args.dst)
        return 1

    # DST only appears once the whole file has been written
    tmp = args.dst.with_name(args.dst.name + ".part")
    try:
        if args.command == "compress":
            stats = compress_file(args.src, tmp)
        else:
            written = decompress_file(args.src, tmp)
        tmp.replace(args.dst)
    except BaseException:
        if tmp.exists():
            tmp.unlink()
        raise

    if args.command == "compress":
        print(f"{args.src} -> {args.dst}: {stats.input_bytes} -> {stats.output_bytes} bytes "
              f"(ratio {stats.compression_ratio:.3f}, {stats.unique_symbols} symbols)")
    else:
        print(f"{args.src} -> {args.dst}: {args.src.stat().st_size} -> {written} bytes")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        return run(args)
    except (HuffmanError, OSError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
