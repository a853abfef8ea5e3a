#!/usr/bin/env python3
"""
Render a strategy board share code to PNG/JPEG (or dump it as JSON).

    python stgy_to_png.py "[stgy:a...]" -o board.png --assets assets.zip
    echo "[stgy:a...]" | python stgy_to_png.py --format json

Exit codes:
    0 -> success
    1 -> malformed share code, missing asset, or bad arguments
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from stratboard import BoardError, encode_image, load_board, open_asset_provider, render_board

DEFAULT_ASSETS = Path("assets.zip")
OUTPUT_FORMATS = ("png", "jpeg", "jpg", "json")


def read_share_code(args: argparse.Namespace) -> str:
    if args.code:
        return args.code.strip()
    if args.input_file:
        return args.input_file.read_text(encoding="utf-8").strip()
    if not sys.stdin.isatty():
        return sys.stdin.read().strip()
    raise SystemExit("Provide a share code, --input-file, or pipe the code on stdin.")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a strategy board share code.")
    parser.add_argument("code", nargs="?", help="Share code in the form [stgy:a...]")
    parser.add_argument("--input-file", type=Path, help="Read the share code from this file")
    parser.add_argument(
        "--assets",
        type=Path,
        default=DEFAULT_ASSETS,
        help="Asset directory or zip archive (default: assets.zip)",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="png",
        help="Output format (default: png)",
    )
    parser.add_argument("-o", "--output", type=Path, help="Destination file (defaults to stdout when piped)")
    return parser.parse_args(argv)


def _write_output(data: bytes, output: Path | None, *, binary: bool) -> None:
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(data)
        print(f"[+] Wrote {len(data)} bytes to {output}")
        return
    if binary and sys.stdout.isatty():
        raise SystemExit("Refusing to write image data to a terminal; pass --output.")
    sys.stdout.buffer.write(data)
    sys.stdout.flush()


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    code = read_share_code(args)
    try:
        board = load_board(code)
        if args.format == "json":
            payload = json.dumps(board.to_dict(), indent=2).encode("utf-8")
            _write_output(payload, args.output, binary=False)
            return 0
        assets = open_asset_provider(args.assets)
        image = render_board(board, assets)
        _write_output(encode_image(image, args.format), args.output, binary=True)
    except BoardError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
