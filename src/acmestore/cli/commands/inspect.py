"""Inspect subcommand: look up stored records for debugging.

Usage::

    acmestore -c config.yaml inspect account --email admin@example.com
    acmestore -c config.yaml inspect account --id 3f2a...
    acmestore -c config.yaml inspect certificate --domain www.example.com

Key material is redacted before printing.
"""

from __future__ import annotations

import json
import sys


def run_inspect(config, args) -> None:
    """Dispatch to the appropriate inspect sub-handler."""
    sub = getattr(args, "inspect_command", None)
    if sub is None:
        sys.stderr.write("acmestore: error: inspect requires a subcommand\n")
        sys.exit(1)

    from acmestore.db import RecordStore

    store = RecordStore(config.settings.store)
    try:
        if sub == "account":
            record = _inspect_account(store, args)
        elif sub == "certificate":
            record = _inspect_certificate(store, args)
        else:
            sys.exit(1)
    finally:
        store.close()

    if record is None:
        sys.stderr.write("acmestore: not found\n")
        sys.exit(1)
    _print_record(record)


def _inspect_account(store, args) -> dict | None:
    from acmestore.core.query import ByEmail, ById
    from acmestore.repositories import AccountRepository

    query = ById(args.record_id) if args.record_id else ByEmail(args.email)
    account = AccountRepository(store).resolve_account(query)
    return account.to_document() if account else None


def _inspect_certificate(store, args) -> dict | None:
    from acmestore.core.query import ByDomains, ById, normalize_domains
    from acmestore.repositories import CertificateRepository

    if args.record_id:
        query = ById(args.record_id)
    else:
        query = ByDomains(normalize_domains(args.domain))
    record = CertificateRepository(store).resolve_certificate(query)
    return record.to_document() if record else None


def _print_record(record: dict) -> None:
    from acmestore.logging import redact_record

    sys.stdout.write(json.dumps(redact_record(record), indent=2, default=str) + "\n")
