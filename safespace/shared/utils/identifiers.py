"""Identifier pseudonymisation for logs.

Member ids are never written to logs in the clear. Every log line that
needs to correlate events for one member uses hash_identifier() instead.
"""
import hashlib
import hmac
import logging
import uuid
from typing import Optional

logger = logging.getLogger(__name__)


_IDENTIFIER_SALT: Optional[bytes] = None


def configure_identifier_salt(salt: str) -> None:
    """Configure the secret used to hash member identifiers.

    Must be called during application startup before anything is logged.

    Args:
        salt: Secret value, at least 32 characters

    Raises:
        ValueError: If salt is empty or too short
    """
    global _IDENTIFIER_SALT
    if not salt or len(salt) < 32:
        logger.critical(
            "IDENTIFIER_SALT_CONFIGURATION_FAILED",
            extra={"reason": "Salt too short or empty", "min_length": 32}
        )
        raise ValueError("Identifier salt must be at least 32 characters")

    _IDENTIFIER_SALT = salt.encode()
    logger.info("IDENTIFIER_SALT_CONFIGURED", extra={"salt_length": len(salt)})


def is_identifier_salt_configured() -> bool:
    return _IDENTIFIER_SALT is not None


def hash_identifier(value: Optional[str]) -> Optional[str]:
    """Hash a member identifier for safe logging.

    Args:
        value: Raw identifier (user id, reporter id, moderator id)

    Returns:
        Truncated HMAC-SHA256 hex digest, or None when value is None

    Raises:
        RuntimeError: If the salt has not been configured
    """
    if value is None:
        return None
    if _IDENTIFIER_SALT is None:
        logger.critical(
            "IDENTIFIER_HASH_FAILED",
            extra={"reason": "Salt not configured", "action": "call configure_identifier_salt()"}
        )
        raise RuntimeError(
            "Identifier salt not configured. Call configure_identifier_salt() first."
        )

    digest = hmac.new(_IDENTIFIER_SALT, value.encode(), hashlib.sha256).hexdigest()
    return digest[:16]


def new_record_id() -> str:
    return str(uuid.uuid4())
