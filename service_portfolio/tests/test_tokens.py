"""
Unit tests for token issuance, validation and auth configuration.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from pydantic import SecretStr

from shared.config import get_config
from shared.errors import ConfigurationError
from shared.test_helpers import TEST_JWT_SECRET, MockTokenGenerator, TestUser
from service_portfolio.app.auth import (
    AuthConfig,
    Identity,
    TokenIssuer,
    TokenRejection,
    TokenValidator,
)


class FakeClock:
    """UTC clock advanced by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta):
        self.now += delta


class TestAuthConfig:
    """Test cases for AuthConfig."""

    def test_defaults(self):
        config = AuthConfig(signing_secret=TEST_JWT_SECRET)
        assert config.algorithm == "HS256"
        assert config.token_lifetime == timedelta(hours=24)

    def test_empty_secret_rejected(self):
        with pytest.raises(ConfigurationError):
            AuthConfig(signing_secret="")

    def test_asymmetric_algorithm_rejected(self):
        with pytest.raises(ConfigurationError):
            AuthConfig(signing_secret=TEST_JWT_SECRET, algorithm="RS256")

    def test_non_positive_lifetime_rejected(self):
        with pytest.raises(ConfigurationError):
            AuthConfig(signing_secret=TEST_JWT_SECRET, token_lifetime=timedelta(0))

    def test_from_settings(self):
        settings = get_config("portfolio", 8020, jwt_secret=SecretStr(TEST_JWT_SECRET), token_lifetime_hours=2)

        config = AuthConfig.from_settings(settings)

        assert config.signing_secret == TEST_JWT_SECRET
        assert config.token_lifetime == timedelta(hours=2)

    def test_from_settings_without_secret_is_fatal(self, monkeypatch):
        monkeypatch.delenv("SKILLSNAP_JWT_SECRET", raising=False)
        monkeypatch.delenv("JWT_KEY", raising=False)
        settings = get_config("portfolio", 8020, jwt_secret=None)

        with pytest.raises(ConfigurationError) as exc_info:
            AuthConfig.from_settings(settings)
        assert "JWT_KEY" in exc_info.value.message

    def test_secret_read_from_jwt_key(self, monkeypatch):
        monkeypatch.delenv("SKILLSNAP_JWT_SECRET", raising=False)
        monkeypatch.setenv("JWT_KEY", "secret-from-legacy-variable")

        settings = get_config("portfolio", 8020)

        assert AuthConfig.from_settings(settings).signing_secret == "secret-from-legacy-variable"


class TestTokenRoundTrip:
    """Test cases for TokenIssuer and TokenValidator together."""

    @pytest.fixture
    def clock(self):
        return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))

    @pytest.fixture
    def config(self):
        return AuthConfig(signing_secret=TEST_JWT_SECRET)

    @pytest.fixture
    def issuer(self, config, clock):
        return TokenIssuer(config, clock=clock)

    @pytest.fixture
    def validator(self, config, clock):
        return TokenValidator(config, clock=clock)

    def test_issued_token_validates_to_same_identity(self, issuer, validator):
        identity = Identity.of("u1", "a@x.com", ["Admin", "User"])

        result = validator.validate(issuer.issue(identity))

        assert result.valid
        assert result.identity == identity
        assert result.rejection is None

    def test_claims_shape(self, issuer, config, clock):
        token = issuer.issue(Identity.of("u1", "a@x.com", ["User", "Admin"]))

        claims = jwt.decode(token, config.signing_secret, algorithms=["HS256"], options={"verify_exp": False})

        assert claims["sub"] == "u1"
        assert claims["email"] == "a@x.com"
        assert claims["roles"] == ["Admin", "User"]
        assert claims["iat"] == int(clock.now.timestamp())
        assert claims["exp"] == int((clock.now + timedelta(hours=24)).timestamp())
        assert claims["jti"]

    def test_tokens_issued_in_same_second_differ(self, issuer):
        identity = Identity.of("u1", "a@x.com")
        assert issuer.issue(identity) != issuer.issue(identity)

    def test_valid_until_expiry_then_rejected(self, issuer, validator, clock):
        token = issuer.issue(Identity.of("u1", "a@x.com"))

        clock.advance(timedelta(hours=24) - timedelta(seconds=1))
        assert validator.validate(token).valid

        clock.advance(timedelta(seconds=1))
        result = validator.validate(token)
        assert not result.valid
        assert result.rejection is TokenRejection.EXPIRED

    def test_identity_without_roles(self, issuer, validator):
        result = validator.validate(issuer.issue(Identity.of("u2", "b@x.com")))

        assert result.valid
        assert result.identity.roles == frozenset()
        assert not result.identity.is_admin


class TestTokenValidator:
    """Test cases for rejected tokens."""

    @pytest.fixture
    def validator(self):
        return TokenValidator(AuthConfig(signing_secret=TEST_JWT_SECRET))

    @pytest.fixture
    def generator(self):
        return MockTokenGenerator()

    @pytest.fixture
    def user(self):
        return TestUser(subject_id="u1", email="a@x.com", roles=["User"])

    def test_foreign_signature(self, validator, generator, user):
        result = validator.validate(generator.generate_foreign_token(user))
        assert result.rejection is TokenRejection.BAD_SIGNATURE

    def test_tampered_payload(self, validator, generator, user):
        header, _, signature = generator.generate_access_token(user).split(".")
        forged = generator.generate_raw_token({**generator.claims_for(user), "roles": ["Admin"]})
        _, forged_payload, _ = forged.split(".")

        result = validator.validate(f"{header}.{forged_payload}.{signature}")

        assert result.rejection is TokenRejection.BAD_SIGNATURE

    def test_unexpected_algorithm(self, validator, user, generator):
        token = jwt.encode(generator.claims_for(user), TEST_JWT_SECRET, algorithm="HS512")
        assert validator.validate(token).rejection is TokenRejection.BAD_SIGNATURE

    @pytest.mark.parametrize("token", ["", "   ", "not-a-jwt", "a.b.c"])
    def test_garbage(self, validator, token):
        result = validator.validate(token)
        assert result.rejection is TokenRejection.MALFORMED

    def test_missing_required_claim(self, validator, generator, user):
        claims = generator.claims_for(user)
        del claims["jti"]

        assert validator.validate(generator.generate_raw_token(claims)).rejection is TokenRejection.MALFORMED

    def test_roles_not_a_list(self, validator, generator, user):
        claims = {**generator.claims_for(user), "roles": "Admin"}

        assert validator.validate(generator.generate_raw_token(claims)).rejection is TokenRejection.MALFORMED

    def test_expired_with_real_clock(self, validator, generator, user):
        result = validator.validate(generator.generate_expired_token(user))
        assert result.rejection is TokenRejection.EXPIRED

    def test_mock_token_accepted(self, validator, generator, user):
        result = validator.validate(generator.generate_access_token(user))

        assert result.valid
        assert result.identity.subject_id == "u1"
        assert result.identity.has_role("User")
