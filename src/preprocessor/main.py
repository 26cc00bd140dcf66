"""PyPP Main Entry Point

Command-line interface for the preprocessor.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from ..loader.cache import ProcessedCache
from .config import PreprocessorConfig
from .engine import PreProcessor
from .errors import PreprocessorError

VERSION = "PyPP v0.1.0"

console = Console(stderr=True)


def preprocess_path(input_path: Path, output_path: Optional[Path],
                    config: PreprocessorConfig, cache_dir: Optional[Path] = None) -> bool:
    """Preprocess one file to *output_path* (stdout when None).

    Returns:
        True if preprocessing succeeded, False otherwise
    """
    try:
        if cache_dir is not None:
            result = ProcessedCache(cache_dir, config).fetch(input_path)
        else:
            result = PreProcessor(config).process_file(input_path)
    except PreprocessorError as e:
        console.print(str(e), style="red", markup=False, highlight=False)
        return False
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"Error reading '{input_path}': {e}", style="red", markup=False, highlight=False)
        return False

    if output_path is None:
        sys.stdout.write(result)
        return True

    with open(output_path, 'w', encoding=config.encoding, newline='') as f:
        f.write(result)
    console.print(f"Preprocessed: {input_path} -> {output_path}", style="green", markup=False, highlight=False)
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pypp",
        description="PyPP - conditional compilation for Python sources via directive comments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pypp module.ppy                          # Write processed source to stdout
  pypp module.ppy -o module.py             # Write to a file
  pypp module.ppy -D DEBUG -D LEVEL=3      # Predefine macros
  pypp module.ppy --cache-dir .pypp_cache  # Reuse output while the source is unchanged
"""
    )

    parser.add_argument(
        "input",
        type=Path,
        help="Input source file"
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output file (default: stdout)"
    )

    parser.add_argument(
        "-D", "--define",
        action="append",
        metavar="NAME[=VALUE]",
        help="Predefine a macro (value defaults to 1); may be repeated"
    )

    parser.add_argument(
        "--base-dir",
        type=Path,
        help="Directory for relative #include paths in string input"
    )

    parser.add_argument(
        "--flat-conditionals",
        action="store_true",
        help="Track a single suppression flag instead of nested blocks"
    )

    parser.add_argument(
        "--recursive-includes",
        action="store_true",
        help="Preprocess #include targets instead of splicing them verbatim"
    )

    parser.add_argument(
        "--cache-dir",
        type=Path,
        help="Cache processed output in this directory"
    )

    parser.add_argument(
        "--encoding",
        default="utf-8",
        help="Source encoding (default: utf-8)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=VERSION
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the preprocessor."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    try:
        config = PreprocessorConfig.from_args(args)
    except ValueError as e:
        console.print(f"Error: {e}", style="red", markup=False, highlight=False)
        return 2

    success = preprocess_path(args.input, args.output, config, args.cache_dir)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
