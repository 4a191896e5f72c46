"""
Command-line interface.

Usage:
    python -m tokenization encode tokenizer.json "Hello world"
    python -m tokenization encode tokenizer.json "question" --pair "context" \
        --max-length 128 --stride 32
    python -m tokenization decode tokenizer.json 15496 995 --skip-special-tokens

The log level comes from --verbose or the TOKENIZATION_LOG_LEVEL
environment variable.
"""

import argparse
import logging
import os
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from .config import TruncationConfig
from .core.types import Encoding
from .loader import load_tokenizer

logger = logging.getLogger(__name__)

console = Console()

LOG_LEVEL_ENV = "TOKENIZATION_LOG_LEVEL"


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tokenization",
        description="Encode text to token ids and decode ids back to text",
    )
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Encode text and print ids, tokens and attention")
    enc.add_argument("tokenizer", type=str, help="Path to tokenizer.json")
    enc.add_argument("text", type=str, help="Input text")
    enc.add_argument("--pair", type=str, default=None, help="Second sequence of a pair")
    enc.add_argument("--no-special-tokens", action="store_true", help="Do not insert special tokens")
    enc.add_argument("--max-length", type=int, default=None, help="Sliding-window length")
    enc.add_argument("--stride", type=int, default=0, help="Overlap between windows")
    enc.add_argument("--direction", choices=["right", "left"], default="right", help="Window anchor")

    dec = sub.add_parser("decode", help="Decode token ids to text")
    dec.add_argument("tokenizer", type=str, help="Path to tokenizer.json")
    dec.add_argument("ids", type=int, nargs="+", help="Token ids")
    dec.add_argument("--skip-special-tokens", action="store_true", help="Leave out special tokens")
    return p


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def render_encoding(encoding: Encoding, title: str) -> Table:
    table = Table(title=title, box=box.MINIMAL_DOUBLE_HEAD)
    table.add_column("#", justify="right")
    table.add_column("id", justify="right")
    table.add_column("token")
    table.add_column("attention", justify="center")
    for i, (token_id, token, attention) in enumerate(
        zip(encoding.ids, encoding.tokens, encoding.attention_mask)
    ):
        table.add_row(str(i), str(token_id), Text(repr(token)), str(attention))
    return table


def run_encode(args: argparse.Namespace) -> int:
    truncation = None
    if args.max_length is not None:
        truncation = TruncationConfig(
            max_length=args.max_length,
            stride=args.stride,
            direction=args.direction,
        )

    pipeline = load_tokenizer(args.tokenizer, truncation=truncation)
    encoding = pipeline.encode(args.text, args.pair, add_special_tokens=not args.no_special_tokens)

    windows = [encoding] + encoding.overflowing
    for i, window in enumerate(windows):
        title = "Encoding" if len(windows) == 1 else f"Window {i + 1}/{len(windows)}"
        console.print(render_encoding(window, title))
    return 0


def run_decode(args: argparse.Namespace) -> int:
    pipeline = load_tokenizer(args.tokenizer)
    text = pipeline.decode(args.ids, skip_special_tokens=args.skip_special_tokens)
    console.print(text, markup=False, highlight=False)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.command == "encode":
            return run_encode(args)
        return run_decode(args)
    except (OSError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
