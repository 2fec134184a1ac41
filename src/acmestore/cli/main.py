"""acmestore command-line entry point.

Usage::

    acmestore -c /etc/acmestore/config.yaml db status
    acmestore -c config.yaml db init
    acmestore -c config.yaml --validate-only
    acmestore -c config.yaml inspect account --email admin@example.com
    acmestore -c config.yaml inspect certificate --domain www.example.com
    python -m acmestore -c config.yaml db status
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

log = logging.getLogger(__name__)


def _get_version() -> str:
    from acmestore import __version__

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="acmestore",
        description="acmestore: ACME account and certificate record store",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # db
    db_parser = subparsers.add_parser("db", help="Store management")
    db_sub = db_parser.add_subparsers(dest="db_command")
    db_sub.add_parser("status", help="Check store connectivity")
    db_sub.add_parser("init", help="Connect and create indexes")

    # inspect
    inspect_parser = subparsers.add_parser("inspect", help="Inspect stored records")
    inspect_sub = inspect_parser.add_subparsers(dest="inspect_command")

    account = inspect_sub.add_parser("account", help="Inspect an account")
    account_key = account.add_mutually_exclusive_group(required=True)
    account_key.add_argument("--email", help="Account email")
    account_key.add_argument("--id", dest="record_id", help="Account identifier")

    certificate = inspect_sub.add_parser("certificate", help="Inspect a certificate")
    certificate_key = certificate.add_mutually_exclusive_group(required=True)
    certificate_key.add_argument("--domain", help="Any domain the certificate covers")
    certificate_key.add_argument("--id", dest="record_id", help="Certificate identifier")

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    sys.stderr.write(f"acmestore: error: {message}\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, dispatches."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # -- resolve config path ---
    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(1)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    # -- load & validate config ---
    try:
        from acmestore.config import AcmestoreConfig, ConfigValidationError

        config = AcmestoreConfig(config_file=str(config_path))
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)
    except Exception as exc:
        if args.debug:
            raise
        _print_error(f"failed to load configuration: {exc}")
        sys.exit(1)

    # -- replace bootstrap logging with structured logging ---
    from acmestore.logging import configure_logging

    configure_logging(config.settings.logging, debug=args.debug)

    if args.validate_only:
        _print_settings_summary(config)
        sys.exit(0)

    command = args.command

    if command == "db":
        from acmestore.cli.commands.db import run_db

        run_db(config, args)
    elif command == "inspect":
        from acmestore.cli.commands.inspect import run_inspect

        run_inspect(config, args)
    else:
        parser.print_help(sys.stderr)
        sys.exit(2)


def _print_settings_summary(config) -> None:
    """Print a short summary of the loaded configuration."""
    from acmestore.collections.mongo import sanitize_mongodb_url

    store = config.settings.store
    lines = [
        "Configuration OK",
        f"  backend:      {store.backend}",
        f"  url:          {sanitize_mongodb_url(store.url)}",
        f"  database:     {store.database}",
        f"  accounts:     {store.accounts_collection}",
        f"  certificates: {store.certificates_collection}",
    ]
    sys.stdout.write("\n".join(lines) + "\n")
