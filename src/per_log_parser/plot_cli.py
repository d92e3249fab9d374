"""Command line interface for plotting exported session tables."""

import argparse
import os
import sys

from . import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the command line argument parser for plotting."""
    parser = argparse.ArgumentParser(
        description="Generate interactive plots from exported PER log tables"
    )

    parser.add_argument(
        'input_file',
        help="Exported session table (.csv or .tsv)"
    )

    parser.add_argument(
        '-s', '--signal',
        action='append',
        dest='signals',
        help="Signal to plot as Message.Signal (repeatable; default: every signal with data)"
    )

    parser.add_argument(
        '-o', '--output-dir',
        default='.',
        help="Output directory for the HTML file (default: current directory)"
    )

    parser.add_argument(
        '--list',
        action='store_true',
        help="List the signals in the table and exit"
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'per-log-plot {__version__}'
    )

    return parser


def main() -> int:
    """Main entry point for the plotting CLI."""
    try:
        parser = create_parser()
        args = parser.parse_args()

        try:
            from .plotting import SessionPlotter
            plotter = SessionPlotter(args.input_file)
        except ImportError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if args.list:
            for label in plotter.signals:
                print(label)
            return 0

        os.makedirs(args.output_dir, exist_ok=True)
        base_name = os.path.splitext(os.path.basename(args.input_file))[0]
        output_file = os.path.join(args.output_dir, f"{base_name}.html")
        plotter.write_html(output_file, labels=args.signals)
        print(f"Generated: {output_file}")

        return 0

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (KeyError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
