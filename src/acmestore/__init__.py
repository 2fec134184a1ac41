"""acmestore: account and certificate record store for ACME clients.

Public API::

    from acmestore import create_store

    store = create_store({"store": {"backend": "memory"}})
    store.accounts.set_keypair({"email": "a@x.com"}, {"privateKeyPem": pem})
    store.certificates.check({"domains": ["www.example.com"]})
"""

__version__ = "1.0.0"

from acmestore.db import RecordStore  # noqa: E402
from acmestore.store import Store, create_store  # noqa: E402

__all__ = [
    "RecordStore",
    "Store",
    "__version__",
    "create_store",
]
