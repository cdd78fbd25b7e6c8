"""Tests for token signing and verification."""

from datetime import timedelta

import pytest
from jose import jwt

from account_service.errors import InvalidToken, TokenExpired
from account_service.services.jwt import TokenClass, TokenSigner

TEST_SECRET = "test-secret-key"


class TestTokenSigner:
    def test_access_token_claims(self, signer: TokenSigner):
        token = signer.sign("user-1", "alice", TokenClass.ACCESS)
        claims = signer.verify(token)
        assert claims.subject_id == "user-1"
        assert claims.username == "alice"
        assert claims.token_class is TokenClass.ACCESS

    def test_payload_carries_standard_fields(self, signer: TokenSigner):
        token = signer.sign("user-1", "alice", TokenClass.ACCESS)
        payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
        assert payload["sub"] == "user-1"
        assert payload["username"] == "alice"
        assert "iat" in payload
        assert "exp" in payload

    def test_expiry_differs_by_class(self, signer: TokenSigner):
        access = signer.verify(signer.sign("user-1", "alice", TokenClass.ACCESS))
        refresh = signer.verify(signer.sign("user-1", "alice", TokenClass.REFRESH))
        assert access.expires_at - access.issued_at == timedelta(hours=1)
        assert refresh.expires_at - refresh.issued_at == timedelta(days=7)

    def test_tokens_are_unique(self, signer: TokenSigner):
        """Two tokens for the same user in the same second still differ."""
        assert signer.sign("user-1", "alice", TokenClass.REFRESH) != signer.sign("user-1", "alice", TokenClass.REFRESH)

    def test_expired_token(self):
        signer = TokenSigner(secret_key=TEST_SECRET, access_ttl=timedelta(seconds=-5))
        token = signer.sign("user-1", "alice", TokenClass.ACCESS)
        with pytest.raises(TokenExpired):
            signer.verify(token)

    def test_wrong_secret(self, signer: TokenSigner):
        other = TokenSigner(secret_key="another-secret")
        token = other.sign("user-1", "alice", TokenClass.ACCESS)
        with pytest.raises(InvalidToken):
            signer.verify(token)

    def test_garbage_token(self, signer: TokenSigner):
        with pytest.raises(InvalidToken):
            signer.verify("invalid.token.here")

    def test_class_mismatch_rejected(self, signer: TokenSigner):
        refresh = signer.sign("user-1", "alice", TokenClass.REFRESH)
        with pytest.raises(InvalidToken):
            signer.verify(refresh, expected_class=TokenClass.ACCESS)

    def test_missing_claims_rejected(self, signer: TokenSigner):
        token = jwt.encode({"sub": "user-1"}, TEST_SECRET, algorithm="HS256")
        with pytest.raises(InvalidToken):
            signer.verify(token)
