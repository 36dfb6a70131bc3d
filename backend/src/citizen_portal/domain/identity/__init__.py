"""Identity domain module - one-way digests of caller addresses"""

from .hasher import IdentityHasher, ConfigurationError, DEV_HASH_SALT, build_identity_hasher

__all__ = ["IdentityHasher", "ConfigurationError", "DEV_HASH_SALT", "build_identity_hasher"]
