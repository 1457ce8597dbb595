"""Command line interface: ``hicolor (encode|decode|quantize|info|version|serve)``."""

from __future__ import annotations

import argparse
import logging
import sys

from hicolor.codec.errors import HiColorError
from hicolor.codec.types import DitherPolicy, FormatVariant
from hicolor.config import VERSION, settings
from hicolor.convert import hicolor_to_png, png_to_hicolor, quantize_png, read_info

logger = logging.getLogger(__name__)

DITHER_CHOICES = [policy.value for policy in DitherPolicy]


def _add_variant_flags(parser: argparse.ArgumentParser, help_suffix: str = "") -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-5",
        "--15-bit",
        dest="variant",
        action="store_const",
        const=FormatVariant.V15.value,
        help="5-5-5 bits per pixel" + help_suffix,
    )
    group.add_argument(
        "-6",
        "--16-bit",
        dest="variant",
        action="store_const",
        const=FormatVariant.V16.value,
        help="5-6-5 bits per pixel" + help_suffix,
    )


def _add_variant_options(parser: argparse.ArgumentParser) -> None:
    _add_variant_flags(parser)
    parser.add_argument(
        "-d",
        "--dither",
        choices=DITHER_CHOICES,
        default=None,
        help=f"Dithering method (default: {settings.default_dither})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hicolor",
        description="Convert PNG images to and from the 15/16-bit HiColor format.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    commands = parser.add_subparsers(dest="command", required=True)

    encode = commands.add_parser("encode", help="PNG -> HiColor")
    _add_variant_options(encode)
    encode.add_argument("src")
    encode.add_argument("dest", nargs="?", help="Defaults to SRC.hic")

    decode = commands.add_parser("decode", help="HiColor -> PNG")
    # The variant comes from the file header; the flags are accepted and ignored.
    _add_variant_flags(decode, " (ignored, read from the header)")
    decode.add_argument("src")
    decode.add_argument("dest", nargs="?", help="Defaults to SRC.png")

    quantize = commands.add_parser("quantize", help="PNG -> PNG with HiColor colors")
    _add_variant_options(quantize)
    quantize.add_argument("src")
    quantize.add_argument("dest")

    info = commands.add_parser("info", help="Print variant, width and height")
    info.add_argument("file")

    commands.add_parser("version", help="Print the version")
    commands.add_parser("serve", help="Run the HTTP API")

    return parser


def _resolve_options(args: argparse.Namespace) -> tuple[FormatVariant, DitherPolicy]:
    variant = FormatVariant.from_marker(args.variant or settings.default_variant)
    dither = DitherPolicy(args.dither or settings.default_dither)
    return variant, dither


def _serve() -> None:
    import uvicorn

    uvicorn.run("hicolor.main:app", host="0.0.0.0", port=settings.port, log_level=settings.log_level)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logger.debug("Running %s", args.command)

    try:
        if args.command == "version":
            print(VERSION)
        elif args.command == "serve":
            _serve()
        elif args.command == "info":
            meta = read_info(args.file)
            print(f"{meta.variant.value} {meta.width} {meta.height}")
        elif args.command == "encode":
            variant, dither = _resolve_options(args)
            png_to_hicolor(args.src, args.dest or f"{args.src}.hic", variant, dither)
        elif args.command == "decode":
            hicolor_to_png(args.src, args.dest or f"{args.src}.png")
        elif args.command == "quantize":
            variant, dither = _resolve_options(args)
            quantize_png(args.src, args.dest, variant, dither)
        return 0
    except (HiColorError, ValueError) as exc:
        print(f"{args.command}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
