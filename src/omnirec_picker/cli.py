"""Command-line interface for the OmniRec picker.

Entry point flow:
1. Parse arguments (before touching GTK, so --help works without a display)
2. Introspection flags short-circuit
3. Load config, set up logging and events
4. Dry-run: ask for consent only. Otherwise run the selection workflow.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .client import get_socket_path
from .config import (
    config_defaults,
    config_schema,
    config_to_dict,
    load_config,
    validate_config_file,
)
from .consent import select_provider
from .emit import EVENT_CATALOG, configure, emit
from .logfile import setup_logging
from .workflow import SelectionWorkflow, dry_run

log = logging.getLogger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="omnirec-picker",
        description="OmniRec source picker for xdg-desktop-portal-hyprland",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                   # Normal mode (invoked by XDPH)
  %(prog)s --dry-run                         # Test the consent dialog
  %(prog)s --dry-run --source-type window --source-id 0x55df589f63d0
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"omnirec-picker {__version__}",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: platform config dir)",
    )

    # Introspection
    parser.add_argument(
        "--print-defaults",
        action="store_true",
        help="Print default configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-config-schema",
        action="store_true",
        help="Print configuration schema as JSON and exit",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit",
    )
    parser.add_argument(
        "--print-resolved",
        action="store_true",
        help="Print resolved configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-event-catalog",
        action="store_true",
        help="Print event catalog as JSON and exit",
    )

    # Dry run
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Test the consent dialog without contacting the service",
    )
    parser.add_argument(
        "--source-type",
        choices=["monitor", "window", "region"],
        default="monitor",
        help="Source type for --dry-run (default: monitor)",
    )
    parser.add_argument(
        "--source-id",
        metavar="ID",
        default="DP-1",
        help="Source identifier for --dry-run (default: DP-1)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def _emit_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _handle_introspection(args: argparse.Namespace) -> Optional[int]:
    config_path = Path(args.config).expanduser() if args.config else None

    if args.print_defaults:
        _emit_json(config_defaults())
        return 0

    if args.print_config_schema:
        _emit_json(config_schema())
        return 0

    if args.validate_config:
        try:
            errors = validate_config_file(config_path)
        except ValueError as e:
            errors = [str(e)]
        if errors:
            for error in errors:
                print(error, file=sys.stderr)
            return 1
        return 0

    if args.print_resolved:
        config = load_config(config_path=config_path)
        _emit_json(config_to_dict(config))
        return 0

    if args.print_event_catalog:
        _emit_json({"catalog": EVENT_CATALOG})
        return 0

    return None


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    result = _handle_introspection(parsed_args)
    if result is not None:
        return result

    config_path = Path(parsed_args.config).expanduser() if parsed_args.config else None
    config = load_config(config_path=config_path)

    setup_logging(debug=parsed_args.debug, log_file=config.log_file)
    configure("omnirec-picker", stderr=config.emit_events)

    if parsed_args.dry_run:
        emit("picker.invoked", {"mode": "dry-run", "socket_path": None})
        return dry_run(select_provider(config), parsed_args.source_type, parsed_args.source_id)

    socket_path = config.socket_path or get_socket_path()
    log.info("=== Picker started (PID %d) ===", os.getpid())
    log.debug("Service socket: %s", socket_path)
    emit("picker.invoked", {"mode": "picker", "socket_path": str(socket_path)})

    return SelectionWorkflow.from_config(config).run()


if __name__ == "__main__":
    sys.exit(main())
