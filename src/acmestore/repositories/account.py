"""Account repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from acmestore.core.pem import enrich_keypair
from acmestore.core.query import ACCOUNT_PRECEDENCE, ByAccountId, ById
from acmestore.core.types import FIELD_ACCOUNT_ID, FIELD_ID, FIELD_KEYPAIR, RecordKind
from acmestore.models.account import Account, Keypair
from acmestore.repositories.base import BaseRepository

if TYPE_CHECKING:
    from collections.abc import Mapping

    from acmestore.core.query import Query


class AccountRepository(BaseRepository):
    kind = RecordKind.ACCOUNT
    precedence = ACCOUNT_PRECEDENCE
    protected_fields = BaseRepository.protected_fields | {FIELD_ACCOUNT_ID}

    def _to_filter(self, query: Query) -> dict[str, Any]:
        # On accounts, accountId names the account's own identifier.
        if isinstance(query, ByAccountId):
            return {FIELD_ID: query.account_id}
        return query.to_filter()

    def _creates(self, query: Query) -> bool:
        return not isinstance(query, (ById, ByAccountId))

    def resolve_account(self, query: Query | Mapping[str, Any]) -> Account | None:
        """Find an account by id, accountId, email or domains."""
        doc = self.find_document(query)
        return Account.from_document(doc) if doc else None

    def resolve_keypair(self, query: Query | Mapping[str, Any]) -> Keypair | None:
        """Return the keypair of the matching account, or ``None``."""
        account = self.resolve_account(query)
        return account.keypair if account else None

    def upsert_keypair(
        self,
        query: Query | Mapping[str, Any],
        keypair_fields: Mapping[str, Any],
    ) -> Account | None:
        """Merge *keypair_fields* under ``keypair``, creating the account if needed.

        Members not named in *keypair_fields* are left as stored.
        """
        keypair = enrich_keypair(dict(keypair_fields))
        fields = {f"{FIELD_KEYPAIR}.{key}": value for key, value in keypair.items()}
        doc = self.upsert_document(query, fields)
        return Account.from_document(doc) if doc else None

    def upsert_account(
        self,
        query: Query | Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> Account | None:
        """Merge registration *fields* (receipt, agreeTos, ...) into the account.

        Caller-supplied ``id`` / ``accountId`` are ignored.
        """
        payload = self.strip_protected(fields)
        keypair = payload.get(FIELD_KEYPAIR)
        if isinstance(keypair, dict):
            payload[FIELD_KEYPAIR] = enrich_keypair(keypair)
        doc = self.upsert_document(query, payload)
        return Account.from_document(doc) if doc else None
