#!/usr/bin/env python3
"""
Codebase Skeleton Packer
Generates a compressed, LLM-optimized XML skeleton for a list of source files.

The caller (a file enumerator, a shell pipeline, ...) supplies the paths; this
tool parses each supported file with tree-sitter, keeps imports, comments,
type declarations and signatures, and writes one deterministic artifact.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import tiktoken

from .config import (
    DEFAULT_OUTPUT_FILE,
    MAX_FILE_SIZE_FOR_PARSING,
    PROGRESS_REPORT_INTERVAL,
    Config,
)
from .errors import SkeletonError
from .generator import SkeletonGenerator
from .languages import supported_extensions


def setup_logging(log_file: str, enable_logging: bool = True):
    """Configure logging with specified settings."""
    if enable_logging:
        logging.basicConfig(
            filename=log_file,
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(threadName)s - %(message)s",
            filemode="w",
        )
    else:
        logging.basicConfig(level=logging.ERROR, handlers=[logging.NullHandler()])


class TokenCounter:
    """Token counting utility."""

    def __init__(self):
        try:
            self.encoder = tiktoken.get_encoding("cl100k_base")
        except Exception as e:
            logging.warning(f"tiktoken encoding unavailable, estimating tokens: {str(e)}")
            self.encoder = None

    def count(self, text: str) -> int:
        """Count tokens in text."""
        if self.encoder:
            return len(self.encoder.encode(text, disallowed_special=()))
        # Rough approximation: 4 chars per token
        return len(text) // 4


def read_path_list(source: str) -> List[str]:
    """Read newline-separated paths from a file, or from stdin for '-'."""
    if source == "-":
        lines = sys.stdin.read().splitlines()
    else:
        lines = Path(source).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a compressed XML skeleton of source files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Supported extensions: {", ".join(supported_extensions())} (and CMakeLists.txt)

Examples:
  %(prog)s src/main.rs src/lib.rs
  git ls-files | %(prog)s --files-from - --output=ai-pack/skeleton.xml
  %(prog)s --files-from files.txt --verbose --workers 4
        """,
    )

    parser.add_argument("paths", nargs="*", help="Source files to skeletonize")
    parser.add_argument(
        "--files-from",
        type=str,
        default=None,
        help="File with one path per line ('-' reads stdin)",
    )
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT_FILE,
        help=f"Output file path (default: {DEFAULT_OUTPUT_FILE})",
    )
    parser.add_argument(
        "--max-file-size",
        type=int,
        default=MAX_FILE_SIZE_FOR_PARSING,
        help="Skip files larger than this many bytes (default: 5MB)",
    )
    parser.add_argument(
        "--progress-interval",
        type=int,
        default=PROGRESS_REPORT_INTERVAL,
        help=f"Report progress every N parsed files (default: {PROGRESS_REPORT_INTERVAL})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker threads (default: one per CPU)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Report progress and skip counts"
    )

    # Logging configuration
    parser.add_argument(
        "--enable-logging",
        action="store_true",
        default=False,
        help="Enable detailed logging to file",
    )
    parser.add_argument(
        "--log-file",
        default="skeleton_processing.log",
        help="Log file path (default: skeleton_processing.log)",
    )
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_file, args.enable_logging)

    paths = list(args.paths)
    if args.files_from:
        try:
            paths.extend(read_path_list(args.files_from))
        except OSError as e:
            print(f"Error: Cannot read path list {args.files_from}: {e}", file=sys.stderr)
            return 1

    config = Config(
        max_file_size=args.max_file_size,
        progress_interval=args.progress_interval,
        max_workers=args.workers,
        verbose=args.verbose,
    )

    try:
        generator = SkeletonGenerator(config)
        summary = generator.generate(paths, args.output)
    except SkeletonError as e:
        logging.error(f"Skeleton generation failed: {str(e)}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(summary)

    try:
        artifact = Path(args.output).read_text(encoding="utf-8")
        total_tokens = TokenCounter().count(artifact)
        print(f"Total tokens: {total_tokens:,}")
    except OSError as e:
        logging.error(f"Error reading output file: {str(e)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
