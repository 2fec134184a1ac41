"""Lookup query variants.

Callers historically passed one dict that doubled as a filter by email,
by identifier or by domain set depending on which keys were present.
This module turns that shape into an explicit variant::

    ById | ByAccountId | ByEmail | ByDomains

Each repository declares which raw keys it accepts and in what order of
precedence.  :func:`query_candidates` returns one variant per usable key,
in that order, and :func:`parse_query` picks the first.  A query with no
usable key raises :class:`MalformedQueryError` instead of degenerating
into an unconstrained filter.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from acmestore.core.types import (
    FIELD_ACCOUNT_ID,
    FIELD_DOMAINS,
    FIELD_EMAIL,
    FIELD_ID,
)
from acmestore.errors import MalformedQueryError


@dataclass(frozen=True)
class ById:
    id: str

    def to_filter(self) -> dict[str, Any]:
        return {FIELD_ID: self.id}


@dataclass(frozen=True)
class ByAccountId:
    account_id: str

    def to_filter(self) -> dict[str, Any]:
        return {FIELD_ACCOUNT_ID: self.account_id}


@dataclass(frozen=True)
class ByEmail:
    email: str

    def to_filter(self) -> dict[str, Any]:
        return {FIELD_EMAIL: self.email}


@dataclass(frozen=True)
class ByDomains:
    """Set-membership lookup: matches a record listing *any* of the domains."""

    domains: tuple[str, ...]

    def to_filter(self) -> dict[str, Any]:
        return {FIELD_DOMAINS: {"$in": list(self.domains)}}


Query = ById | ByAccountId | ByEmail | ByDomains

_VARIANTS = (ById, ByAccountId, ByEmail, ByDomains)

ACCOUNT_PRECEDENCE: tuple[str, ...] = (FIELD_ID, FIELD_ACCOUNT_ID, FIELD_EMAIL, FIELD_DOMAINS)
CERTIFICATE_PRECEDENCE: tuple[str, ...] = (FIELD_ID, FIELD_DOMAINS, FIELD_ACCOUNT_ID, FIELD_EMAIL)


def normalize_domains(domains: str | Iterable[str]) -> tuple[str, ...]:
    """Return *domains* stripped, lower-cased and de-duplicated, in order."""
    if isinstance(domains, str):
        domains = [domains]
    seen: dict[str, None] = {}
    for name in domains:
        if not isinstance(name, str):
            msg = f"domain names must be strings (got {type(name).__name__})"
            raise MalformedQueryError(msg)
        cleaned = name.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


def _build(key: str, value: Any) -> Query | None:  # noqa: ANN401
    if key == FIELD_DOMAINS:
        domains = normalize_domains(value)
        return ByDomains(domains) if domains else None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    if not value:
        return None
    if key == FIELD_ID:
        return ById(value)
    if key == FIELD_ACCOUNT_ID:
        return ByAccountId(value)
    return ByEmail(value)


def query_candidates(
    raw: Query | Mapping[str, Any],
    precedence: tuple[str, ...],
) -> tuple[Query, ...]:
    """Convert a legacy query mapping into its :data:`Query` variants.

    One variant per key in *precedence* that carries a usable value, in
    precedence order; ``None``, empty strings and empty domain lists are
    skipped.  A variant passed in is returned alone.

    Raises
    ------
    MalformedQueryError
        If no key in *precedence* carries a usable value.

    """
    if isinstance(raw, _VARIANTS):
        return (raw,)
    if not isinstance(raw, Mapping):
        msg = f"query must be a mapping or a query variant (got {type(raw).__name__})"
        raise MalformedQueryError(msg)

    candidates = []
    for key in precedence:
        value = raw.get(key)
        if value is None:
            continue
        query = _build(key, value)
        if query is not None:
            candidates.append(query)

    if not candidates:
        msg = f"query has no usable lookup key; expected one of {list(precedence)}"
        raise MalformedQueryError(msg)
    return tuple(candidates)


def parse_query(
    raw: Query | Mapping[str, Any],
    precedence: tuple[str, ...],
) -> Query:
    """Return the highest-precedence variant of *raw*."""
    return query_candidates(raw, precedence)[0]
