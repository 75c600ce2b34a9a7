"""
Command-Line Interface
======================
``imfx EXPRESSION IMAGE [IMAGE ...]``

Compiles the expression, loads the images, evaluates the expression and writes
the resulting image to stdout (PNG by default, see :mod:`imfx.config`).

Why is the order fixed?
-----------------------
The expression is parsed before any image is decoded, so a typo fails fast.
Nothing is written to stdout until the final image has been fully encoded, so a
failed run never leaves a truncated file behind a shell redirection.

Exit codes: 0 on success, 1 on any usage, expression, decode or encode error.
"""
import argparse
import logging
import sys
from typing import NoReturn, Optional, Sequence

from imfx import config
from imfx.backend import imaging
from imfx.errors import ImfxError, UsageError
from imfx.lang import dump_words, evaluate, parse, render_tree
from imfx.logging_config import setup_logging

logger = logging.getLogger(__name__)

PROG = "imfx"


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that raises :class:`UsageError` instead of exiting with code 2."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog=PROG,
        description="Compose images with a one-line expression, e.g. '0.fl(640x480).gb(150).pi(1.ft(200x200))'.",
    )
    parser.add_argument("expression", help="composition expression")
    parser.add_argument("images", nargs="+", metavar="image", help="input images, referenced as 0, 1, ... 9")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    parser.add_argument("--log-file", default=None, help="also write the log to this file")
    parser.add_argument("--tree", action="store_true", help="print the encoded expression to stderr")
    return parser


def compose(
    expression: str,
    image_paths: Sequence[str],
    show_tree: bool = False,
    fmt: str = config.OUTPUT_FORMAT,
) -> bytes:
    """
    Run the whole pipeline and return the encoded result image.

    Raises:
        IllegalExpression: If the expression is invalid for this many images.
        DecodeError: If an input image cannot be read.
        EncodeError: If the result cannot be encoded.
    """
    encoded = parse(expression, image_count=len(image_paths))
    if show_tree:
        print(f"----- RAW\n{dump_words(encoded)}\n----- TREE\n{render_tree(encoded)}", file=sys.stderr)

    images = []
    for index, path in enumerate(image_paths):
        logger.debug(f"Loading image {index} from {path}")
        images.append(imaging.load_image(path))

    result = evaluate(encoded, images)
    logger.info(f"Result is {result.shape[1]}x{result.shape[0]}.")
    return imaging.encode_image(result, fmt)


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point returning the process exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        print(f"{PROG}: error: {e} (usage: {PROG} <expression> <image>...)", file=sys.stderr)
        return 1

    setup_logging(level=logging.DEBUG if args.verbose else config.LOG_LEVEL, log_file=args.log_file)

    try:
        data = compose(args.expression, args.images, show_tree=args.tree)
    except ImfxError as e:
        logger.debug("Composition failed.", exc_info=True)
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    try:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    except OSError as e:
        print(f"{PROG}: cannot write result: {e}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
