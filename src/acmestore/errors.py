"""Exception hierarchy for the record store.

"Not found" is never an exception: lookups return ``None``.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for every error raised by acmestore."""


class StoreUnavailableError(StoreError):
    """No backend connection is available."""


class SetupError(StoreError):
    """Connection or index setup failed.

    Collects every failure seen during setup so that one broken index
    does not hide another.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Store setup failed:\n{body}")


class MalformedQueryError(StoreError):
    """A query carried no recognised lookup key."""
