"""Unit tests for caller address hashing"""

import hashlib
import hmac
import logging

import pytest

from citizen_portal.domain.identity import (
    DEV_HASH_SALT,
    ConfigurationError,
    IdentityHasher,
    build_identity_hasher,
)


class TestIdentityHasher:
    """Test the HMAC-SHA256 digest"""

    def test_digest_is_deterministic(self):
        """Same salt and address always give the same digest"""
        hasher = IdentityHasher("salt-one")
        assert hasher.digest("203.0.113.7") == hasher.digest("203.0.113.7")
        assert IdentityHasher("salt-one").digest("203.0.113.7") == hasher.digest("203.0.113.7")

    def test_digest_depends_on_salt(self):
        """Different salts give different digests for the same address"""
        assert IdentityHasher("salt-one").digest("203.0.113.7") != IdentityHasher("salt-two").digest("203.0.113.7")

    def test_digest_depends_on_address(self):
        hasher = IdentityHasher("salt-one")
        assert hasher.digest("203.0.113.7") != hasher.digest("203.0.113.8")

    def test_digest_format(self):
        """Digest is 64 lowercase hex characters and never contains the address"""
        digest = IdentityHasher("salt-one").digest("2001:db8::1")
        assert len(digest) == 64
        assert all(ch in "0123456789abcdef" for ch in digest)

    def test_digest_matches_hmac_sha256(self):
        expected = hmac.new(b"salt-one", b"anonymous", hashlib.sha256).hexdigest()
        assert IdentityHasher("salt-one").digest("anonymous") == expected

    def test_empty_salt_rejected(self):
        with pytest.raises(ConfigurationError):
            IdentityHasher("")


class TestBuildIdentityHasher:
    """Test construction from configuration"""

    def test_configured_salt_used(self):
        hasher = build_identity_hasher("configured", production=True)
        assert hasher.digest("10.0.0.1") == IdentityHasher("configured").digest("10.0.0.1")

    def test_missing_salt_fails_in_production(self):
        with pytest.raises(ConfigurationError):
            build_identity_hasher(None, production=True)

    def test_missing_salt_falls_back_outside_production(self, caplog):
        """Development falls back to the insecure salt with a warning"""
        with caplog.at_level(logging.WARNING):
            hasher = build_identity_hasher(None, production=False)

        assert hasher.digest("10.0.0.1") == IdentityHasher(DEV_HASH_SALT).digest("10.0.0.1")
        assert any("HASH_SALT" in record.getMessage() for record in caplog.records)
