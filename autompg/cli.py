"""Command line entry point: ``collect`` and ``viz``."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from autompg import viz


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {text}")
    return value


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the ``autompg`` command."""
    parser = argparse.ArgumentParser(
        prog="autompg", description="Automatic MPG tank measurement and analysis"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    collect = commands.add_parser("collect", help="Collect weight and COG data from hardware")
    collect.add_argument("--psu-port", default="/dev/ttyACM0", help="PSU serial port")
    collect.add_argument("--scale-port", default="/dev/ttyUSB2", help="Scale serial port")
    collect.add_argument("--gtr-port", default="/dev/ttyUSB0", help="GTR serial port")
    collect.add_argument(
        "--stable-secs", type=_non_negative_int, default=5, help="Stability time in seconds"
    )
    collect.add_argument("--output", default="tank_run.csv", help="Output CSV file")

    plot = commands.add_parser("viz", help="Visualize collected data")
    plot.add_argument("--input", default="tank_run.csv", help="Input CSV file")
    plot.add_argument("--output", default="tank_analysis.png", help="Output image file")
    plot.add_argument("--width", type=_positive_int, default=1200, help="Image width")
    plot.add_argument("--height", type=_positive_int, default=800, help="Image height")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command given by ``argv``; return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "collect":
        parser.error(
            f"collect: no driver is available for the power supply on {args.psu_port} "
            f"or the GTR on {args.gtr_port}"
        )
    try:
        viz.run(args.input, args.output, args.width, args.height)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())