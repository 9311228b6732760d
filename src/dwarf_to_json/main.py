"""Command-line entry point for dwarf-to-json."""

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from .core import DwarfToJsonError, convert
from .infrastructure.config import Config
from .infrastructure.logging import LoggerSetup, get_logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="dwarf-to-json",
        description="Convert DWARF debug sections of a WebAssembly module "
        "to a source map",
        epilog="""
Examples:
  # Print the source map to stdout
  dwarf-to-json module.wasm

  # Write it next to the module, including the DWARF scope tree
  dwarf-to-json module.wasm -o module.wasm.map --x-scopes

  # Using .env file for configuration
  echo 'DWARF_TO_JSON_INPUT=module.wasm' > .env
  dwarf-to-json -o module.wasm.map
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        help="WebAssembly module with DWARF sections (optional if using .env)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file for the source map (default: stdout)",
    )
    parser.add_argument(
        "--x-scopes",
        action="store_true",
        help="Include the DWARF scope tree as the x-scopes extension",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output with debug logs",
    )
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    """
    Run one conversion.

    Returns:
        Process exit status
    """
    args = parse_args(argv)

    try:
        config = Config.from_args(
            input_path=args.input,
            output_path=args.output,
            x_scopes=args.x_scopes,
            verbose=args.verbose,
        )
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    LoggerSetup.initialize(config.log_dir, verbose=config.verbose)
    logger = get_logger(__name__)

    logger.debug(f"Input module: {config.input_path}")
    logger.debug(f"Output: {config.output_path or '<stdout>'}")

    try:
        module_bytes = config.input_path.read_bytes()
        json_bytes = convert(module_bytes, config.x_scopes)
    except OSError as e:
        logger.error(f"Cannot read input module: {e}")
        return 1
    except DwarfToJsonError as e:
        logger.error(f"Conversion failed ({type(e).__name__}): {e}")
        log_file = LoggerSetup.get_log_file_path()
        if log_file is not None:
            logger.error(f"Details in {log_file}")
        return 1

    if config.output_path is None:
        sys.stdout.buffer.write(json_bytes)
        sys.stdout.buffer.flush()
    else:
        config.ensure_output_dir()
        config.output_path.write_bytes(json_bytes)
        logger.info(f"Wrote {len(json_bytes)} bytes to {config.output_path}")

    return 0


def main() -> NoReturn:
    """Console script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
