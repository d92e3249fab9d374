"""Command line interface for PER Log Parser."""

import argparse
import os
import sys

from . import __version__
from .config import DBC_EXTENSION, ExportConfig, OUTPUT_FORMATS, BIN_WIDTH_MS, MAX_JUMP_MS, LOG_EXTENSION
from .core import export_logs
from .dbc import DatabaseLoadError
from .utils import setup_logging


class InvalidPathError(ValueError):
    """A command line path has the wrong type or extension."""


def create_parser() -> argparse.ArgumentParser:
    """Create the command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Export binary CAN bus logs as time-binned CSV tables, one per session",
        epilog="For interactive plotting of an exported table, use: per-log-plot <table>"
    )

    parser.add_argument(
        'dbc_file',
        help="Path to the .dbc file (must exist and be a file)"
    )

    parser.add_argument(
        'input_dir',
        help="Path to an input folder (must exist and be a directory)"
    )

    parser.add_argument(
        'output_dir',
        help="Path to an output folder (created if missing; if it exists it must be a directory)"
    )

    parser.add_argument(
        '-f', '--format',
        choices=sorted(OUTPUT_FORMATS),
        default='csv',
        help="Output format (default: csv)"
    )

    parser.add_argument(
        '--bin-width',
        type=int,
        default=BIN_WIDTH_MS,
        metavar='MS',
        help=f"Width of one table row in milliseconds (default: {BIN_WIDTH_MS})"
    )

    parser.add_argument(
        '--max-jump',
        type=int,
        default=MAX_JUMP_MS,
        metavar='MS',
        help=f"Time gap in milliseconds that starts a new session (default: {MAX_JUMP_MS})"
    )

    parser.add_argument(
        '--extension',
        default=LOG_EXTENSION,
        help=f"Extension of the log files to read (default: {LOG_EXTENSION})"
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=1,
        help="Increase verbosity level (-v for debug output)"
    )

    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help="Quiet mode (errors only)"
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'per-log-parser {__version__}'
    )

    return parser


def validate_paths(dbc_file: str, input_dir: str, output_dir: str) -> None:
    """Validate the three positional paths before any processing starts."""
    if not os.path.exists(dbc_file):
        raise FileNotFoundError(f"DBC file does not exist: {dbc_file}")
    if not os.path.isfile(dbc_file):
        raise InvalidPathError(f"DBC path is not a file: {dbc_file}")
    if os.path.splitext(dbc_file)[1] != DBC_EXTENSION:
        raise InvalidPathError(f"DBC file does not have {DBC_EXTENSION} extension: {dbc_file}")

    if not os.path.exists(input_dir):
        raise FileNotFoundError(f"Input directory does not exist: {input_dir}")
    if not os.path.isdir(input_dir):
        raise InvalidPathError(f"Input path is not a directory: {input_dir}")

    if os.path.exists(output_dir) and not os.path.isdir(output_dir):
        raise InvalidPathError(f"Output path exists but is not a directory: {output_dir}")


def main() -> int:
    """Main entry point for the CLI."""
    try:
        parser = create_parser()
        args = parser.parse_args()

        verbosity_level = 0 if args.quiet else args.verbose
        logger = setup_logging(verbosity_level)

        validate_paths(args.dbc_file, args.input_dir, args.output_dir)

        try:
            config = ExportConfig(
                bin_width_ms=args.bin_width,
                max_jump_ms=args.max_jump,
                log_extension=args.extension,
                output_format=args.format,
            )
        except ValueError as e:
            parser.error(str(e))

        written = export_logs(args.dbc_file, args.input_dir, args.output_dir,
                              config=config, logger=logger)
        logger.info("Export completed: %d table(s) in %s", len(written), args.output_dir)

        return 0

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except PermissionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 13
    except DatabaseLoadError as e:
        print(f"Error parsing DBC file: {e.cause}", file=sys.stderr)
        return 1
    except (InvalidPathError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
