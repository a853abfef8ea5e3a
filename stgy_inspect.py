#!/usr/bin/env python3
"""
Decode a strategy board share code and summarise what is inside.

Besides the console summary, the tool can keep the intermediate artefacts
around so new board layouts can be examined byte by byte:

    python stgy_inspect.py "[stgy:a...]" --raw board.bin --dump-sections board.sections.txt
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from stratboard import BoardError, SectionTraceLogger, describe_board, parse_board, unpack_board


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect a strategy board share code.")
    parser.add_argument("code", help="Share code in the form [stgy:a...]")
    parser.add_argument("--json", type=Path, help="Write the decoded board as JSON to this path")
    parser.add_argument("--raw", type=Path, help="Write the inflated board buffer to this path")
    parser.add_argument(
        "--dump-sections",
        type=Path,
        help="Write the offset/tag/count of every parsed section to this path",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    trace = SectionTraceLogger(args.dump_sections) if args.dump_sections else None
    try:
        data = unpack_board(args.code.strip())
        print(f"[+] Inflated board buffer ({len(data)} bytes)")
        if args.raw:
            args.raw.write_bytes(data)
            print(f"[+] Raw buffer written to {args.raw}")
        board = parse_board(data, trace=trace)
    except BoardError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    finally:
        if trace:
            trace.flush()

    for line in describe_board(board):
        print(line)
    if trace and trace.lines:
        print(f"[i] Section trace written to {args.dump_sections}")
    if args.json:
        args.json.write_text(json.dumps(board.to_dict(), indent=2), encoding="utf-8")
        print(f"[+] JSON written to {args.json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
