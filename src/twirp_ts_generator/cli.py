"""Command-line interface for generating TypeScript Twirp clients from descriptor sets.

Notes:
    - Descriptor sets are written by `protoc --include_imports --descriptor_set_out=service.pb service.proto`.
    - Inside a protoc invocation, use the `protoc-gen-twirp_typescript` plugin instead.
"""

from __future__ import annotations

import argparse
import logging
import os.path
from collections.abc import Sequence

from twirp_ts_generator.model import GeneratorError
from twirp_ts_generator.run import run

logger = logging.getLogger(__name__)


def _add_recursive_argument(parser: argparse.ArgumentParser):
    """Add a recursive argument to a parser.

    Args:
        parser (argparse.ArgumentParser): The parser to add the argument to.
    """
    parser.add_argument(
        "-r",
        "--recursive",
        dest="recursive",
        default=False,
        action="store_true",
        help="recursively search for descriptor sets with a given glob expression.",
    )


def setup_parser() -> argparse.ArgumentParser:
    """Setup for the parser.

    Returns:
        argparse.ArgumentParser: The parser after setup.
    """
    parser = argparse.ArgumentParser(description="Generate TypeScript Twirp clients from protobuf descriptor sets.")

    parser.add_argument(
        "-c",
        "--clean",
        type=str,
        nargs="+",
        default=[],
        help="path or glob expressions matching files to remove before generation. Directories are left alone.",
    )

    parser.add_argument(
        "-p",
        "--paths",
        type=str,
        nargs="+",
        default=["**/*.pb"],
        help="path or glob expressions that match descriptor set files for generation.",
    )

    parser.add_argument(
        "-e",
        "--excludes",
        type=str,
        nargs="+",
        default=[],
        help="path or glob expressions to exclude from path matches.",
    )

    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default="",
        help="directory to write all generated outputs; defaults to alongside each descriptor set if omitted.",
    )

    parser.add_argument(
        "--twirp-version",
        type=str,
        default="",
        help="Twirp version of the target server; 'v6' addresses routes without the '/twirp' prefix.",
    )

    parser.add_argument(
        "--package-name",
        type=str,
        default="",
        help="also generate index.ts, tsconfig.json and a package.json with this npm package name.",
    )

    parser.add_argument(
        "--tsc",
        dest="tsc",
        default=False,
        action="store_true",
        help="type-check generated clients with tsc.",
    )

    _add_recursive_argument(parser)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the client generator.

    Args:
        argv (Sequence[str] | None, optional): Run arguments. Defaults to None.

    Returns:
        int: Error code.
    """
    logging.basicConfig(level=logging.INFO)

    root_directory = os.getcwd()
    logging.info("Working from root directory: %s", root_directory)

    parser = setup_parser()
    args = parser.parse_args(argv)

    try:
        run(args, root_directory)

    except GeneratorError as e:
        logger.error("%s", e)
        return 1

    return 0
