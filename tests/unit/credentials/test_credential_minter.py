"""
Tests for webhook credential minting.
"""

import jwt
import pytest

from src.contact_relay.core.credentials import CredentialMinter
from src.contact_relay.core.exceptions import ConfigurationError

SECRET = "minter_test_secret_0123456789abcdef0123456789"


class TestCredentialMinter:

    def test_token_carries_only_iat_and_exp(self) -> None:
        minter = CredentialMinter(SECRET, clock=lambda: 1_760_000_000.9)
        credential = minter.mint()

        claims = jwt.decode(
            credential.token,
            SECRET,
            algorithms=["HS256"],
            options={"verify_exp": False},
        )
        assert claims == {"iat": 1_760_000_000, "exp": 1_760_000_300}
        assert credential.issued_at == 1_760_000_000
        assert credential.expires_at == credential.issued_at + 300

    def test_header_is_hs256(self) -> None:
        credential = CredentialMinter(SECRET).mint()
        assert jwt.get_unverified_header(credential.token)["alg"] == "HS256"

    def test_fresh_token_verifies_now(self) -> None:
        credential = CredentialMinter(SECRET).mint()
        claims = jwt.decode(credential.token, SECRET, algorithms=["HS256"])
        assert claims["exp"] - claims["iat"] == 300

    def test_wrong_secret_fails_verification(self) -> None:
        credential = CredentialMinter(SECRET).mint()
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(credential.token, "another_secret_0123456789abcdef0123", algorithms=["HS256"])

    def test_expired_token_is_rejected_by_verifier(self) -> None:
        credential = CredentialMinter(SECRET, clock=lambda: 1_000_000).mint()
        with pytest.raises(jwt.ExpiredSignatureError):
            jwt.decode(credential.token, SECRET, algorithms=["HS256"])

    def test_authorization_header(self) -> None:
        credential = CredentialMinter(SECRET).mint()
        assert credential.authorization_header() == f"Bearer {credential.token}"

    def test_empty_secret_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            CredentialMinter("")
