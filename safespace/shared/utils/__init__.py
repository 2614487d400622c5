"""Shared utilities for the SafeSpace platform."""
from .clock import Clock, from_iso, to_iso, utc_now
from .identifiers import (
    configure_identifier_salt,
    hash_identifier,
    is_identifier_salt_configured,
    new_record_id,
)

__all__ = [
    "Clock",
    "from_iso",
    "to_iso",
    "utc_now",
    "configure_identifier_salt",
    "hash_identifier",
    "is_identifier_salt_configured",
    "new_record_id",
]
