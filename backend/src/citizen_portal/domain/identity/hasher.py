"""Identity hashing for caller network addresses.

Caller addresses are never stored or logged in plaintext. The only form that
reaches the database is an HMAC-SHA256 digest keyed by a process-wide secret
salt, which is deterministic for a (salt, address) pair and cannot be
reversed without the salt.
"""

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Insecure fallback, accepted outside production only
DEV_HASH_SALT = "dev-salt-change-me"


class ConfigurationError(Exception):
    """Raised when a security-critical setting is missing or invalid."""
    pass


class IdentityHasher:
    """One-way transform of a client address into a storage-safe token.

    The salt is encoded once at construction; ``digest`` keeps no per-call
    state and is safe to share across concurrent requests.

    Example:
        hasher = IdentityHasher("s3cret")
        hasher.digest("203.0.113.7")  # 64 hex chars
    """

    def __init__(self, salt: str):
        if not salt:
            raise ConfigurationError("Identity hasher salt must not be empty")
        self._key = salt.encode("utf-8")

    def digest(self, address: str) -> str:
        """Return the hex digest for ``address``.

        Args:
            address: Caller network address (IPv4, IPv6 or a placeholder)

        Returns:
            str: 64-character lowercase hex HMAC-SHA256 digest
        """
        return hmac.new(self._key, address.encode("utf-8"), hashlib.sha256).hexdigest()


def build_identity_hasher(salt: Optional[str], production: bool) -> IdentityHasher:
    """Create the process-wide hasher from configuration.

    Args:
        salt: Configured HASH_SALT (may be None)
        production: Whether the process runs in production

    Returns:
        IdentityHasher: Hasher keyed by the configured salt

    Raises:
        ConfigurationError: If the salt is missing in production
    """
    if salt:
        return IdentityHasher(salt)

    if production:
        raise ConfigurationError(
            "HASH_SALT must be set in production. "
            "Caller address digests cannot be computed without it."
        )

    logger.warning(
        "HASH_SALT is not set; using the insecure development salt. "
        "Never run production with this configuration."
    )
    return IdentityHasher(DEV_HASH_SALT)
