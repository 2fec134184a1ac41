"""Store management subcommands."""

from __future__ import annotations

import logging
import sys

log = logging.getLogger(__name__)


def run_db(config, args) -> None:
    """Handle db subcommands."""
    if args.db_command == "status":
        _db_status(config)
    elif args.db_command == "init":
        _db_init(config)
    else:
        sys.stderr.write("acmestore: error: db requires a subcommand (status, init)\n")
        sys.exit(1)


def _db_status(config) -> None:
    """Check store connectivity and report the collections in use."""
    from acmestore.core.types import RecordKind
    from acmestore.db import RecordStore
    from acmestore.errors import StoreUnavailableError

    settings = config.settings.store
    store = RecordStore(settings)
    try:
        for kind in RecordKind:
            store.require(kind)
    except StoreUnavailableError as exc:
        sys.stderr.write(f"acmestore: store unavailable: {exc}\n")
        sys.exit(1)
    finally:
        store.close()

    sys.stdout.write(
        f"ok: backend={settings.backend} database={settings.database} "
        f"accounts={settings.accounts_collection} "
        f"certificates={settings.certificates_collection}\n",
    )


def _db_init(config) -> None:
    """Connect and create every index, failing loudly on any setup error."""
    from acmestore.db import init_store
    from acmestore.errors import SetupError

    try:
        store = init_store(config.settings.store)
    except SetupError as exc:
        sys.stderr.write(f"acmestore: {exc}\n")
        sys.exit(1)
    store.close()
    sys.stdout.write("ok: indexes created\n")
