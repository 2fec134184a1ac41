"""Entity models for the acmestore persistence layer.

All models are frozen dataclasses built from stored documents with
``from_document()``; ``to_document()`` returns the camelCase document
shape the upstream workflow consumes.
"""

from acmestore.models.account import Account, Keypair
from acmestore.models.certificate import CertificateRecord

__all__ = [
    "Account",
    "CertificateRecord",
    "Keypair",
]
