# main.py
"""Entry point for the calculate shells.

Responsibilities:
- Parse command line flags
- Load configuration (fatal errors exit with status 1)
- Hand over to the terminal shell or, with --gui, to the Qt window
"""
import logging
import sys
from argparse import ArgumentParser

from calculate import config_manager
from calculate import error as E
from calculate import Shell


def check_files_exist():
    """Return the names of files the GUI needs but cannot find."""
    REQUIRED = [
        config_manager.config_json,
        config_manager.ui_strings,
    ]
    return [file_path.name for file_path in REQUIRED if not file_path.exists()]


def build_parser():
    parser = ArgumentParser(description="Arbitrary-precision decimal calculator")
    parser.add_argument("expressions", nargs="*", help="expressions to evaluate; omit for an interactive shell")
    parser.add_argument("--gui", action="store_true", help="open the graphical calculator")
    parser.add_argument("--debug", action="store_true", help="log tokens, trees and results")
    parser.add_argument("--precision", type=int, help="significant digits for division and functions")
    parser.add_argument("--places", type=int, dest="decimal_places", help="decimal places shown")
    parser.add_argument("--degrees", action="store_const", const=True, help="trigonometry in degrees")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = config_manager.load_settings({
            "precision": args.precision,
            "decimal_places": args.decimal_places,
            "degrees": args.degrees,
        })
    except E.ConfigError as e:
        print(f"error {e.code}: {e}", file=sys.stderr)
        return 1

    if args.gui:
        missing_files = check_files_exist()
        if missing_files:
            print("Error: The following files are missing or in the wrong location:", file=sys.stderr)
            for file_name in missing_files:
                print(f"- {file_name}", file=sys.stderr)
            return 1
        # Qt is only needed here; the terminal shell works without the gui extra.
        from calculate import UI
        return UI.main(settings)

    return Shell.run(args.expressions, settings)


if __name__ == "__main__":
    sys.exit(main())
