"""Entry point for mdnav."""

import logging
import sys

from .cli import build_parser, run_cli, wants_tui
from .config import Config
from .errors import DocumentLoadError
from .loader import load_document


def configure_logging(log_file, verbose: bool) -> None:
    """Log to a file only; the terminal belongs to the TUI."""
    if log_file is None:
        return
    logging.basicConfig(
        filename=str(log_file),
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for mdnav."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file, args.verbose)

    try:
        document = load_document(args.file)
    except DocumentLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not wants_tui(args):
        return run_cli(args, document)

    try:
        config = Config.load()

        from .app import run_app

        run_app(config, document)
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
