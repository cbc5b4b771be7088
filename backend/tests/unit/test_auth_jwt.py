"""Unit tests for access token creation and credential verification

Tests cover:
- Token creation with valid claims
- Verification of valid, absent, malformed and expired credentials
- Claim validation (sub, org_id, role)
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from solardesk.auth.jwt import (
    AuthenticationError,
    CredentialAbsentError,
    CredentialExpiredError,
    CredentialMalformedError,
    create_access_token,
    decode_token,
    verify_credential,
)
from solardesk.auth.roles import UserRole
from solardesk.config import get_settings


def _sign(payload: dict, secret: str = None) -> str:
    settings = get_settings()
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _future_exp() -> int:
    return int((datetime.now(timezone.utc) + timedelta(minutes=5)).timestamp())


class TestCreateAccessToken:
    """Test JWT token creation"""

    def test_token_contains_correct_claims(self):
        user_id = uuid4()
        org_id = uuid4()

        token = create_access_token(user_id=user_id, org_id=org_id, role="SALES", email="sales@test.com")

        payload = jwt.decode(token, options={"verify_signature": False})
        assert payload['sub'] == str(user_id)
        assert payload['org_id'] == str(org_id)
        assert payload['role'] == "SALES"
        assert payload['email'] == "sales@test.com"
        assert 'iat' in payload
        assert 'exp' in payload

    def test_token_expiration_time(self):
        before = datetime.now(timezone.utc)
        token = create_access_token(user_id="u1", org_id=uuid4(), role="ADMIN")

        payload = jwt.decode(token, options={"verify_signature": False})
        exp_time = datetime.fromtimestamp(payload['exp'], tz=timezone.utc)
        expected_exp = before + timedelta(minutes=get_settings().JWT_EXPIRY_MINUTES)
        assert abs((exp_time - expected_exp).total_seconds()) < 5

    def test_token_uses_hs256_algorithm(self):
        token = create_access_token(user_id="u1", org_id=uuid4(), role="ADMIN")
        assert jwt.get_unverified_header(token)['alg'] == 'HS256'

    def test_email_claim_is_optional(self):
        token = create_access_token(user_id="u1", org_id=uuid4(), role="VIEWER")
        assert 'email' not in jwt.decode(token, options={"verify_signature": False})


class TestVerifyCredential:
    """Test verify_credential outcomes"""

    def test_valid_token_returns_identity(self):
        org_id = uuid4()
        token = create_access_token(user_id="user-42", org_id=org_id, role="MANAGER", email="m@test.com")

        identity = verify_credential(token)

        assert identity.actor_id == "user-42"
        assert identity.organization_id == org_id
        assert identity.role == UserRole.MANAGER
        assert identity.email == "m@test.com"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_absent_credential(self, raw):
        with pytest.raises(CredentialAbsentError):
            verify_credential(raw)

    def test_expired_token(self):
        token = create_access_token(
            user_id="u1", org_id=uuid4(), role="ADMIN", expires_delta=timedelta(minutes=-5)
        )
        with pytest.raises(CredentialExpiredError):
            verify_credential(token)

    def test_garbage_token_is_malformed(self):
        with pytest.raises(CredentialMalformedError):
            verify_credential("not-a-jwt")

    def test_wrong_signature_is_malformed(self):
        token = _sign(
            {"sub": "u1", "org_id": str(uuid4()), "role": "ADMIN", "exp": _future_exp()},
            secret="some-other-secret-that-is-long-enough-for-hs256",
        )
        with pytest.raises(CredentialMalformedError):
            verify_credential(token)

    def test_org_id_not_uuid_is_malformed(self):
        token = _sign({"sub": "u1", "org_id": "acme", "role": "ADMIN", "exp": _future_exp()})
        with pytest.raises(CredentialMalformedError):
            verify_credential(token)

    def test_missing_org_id_is_malformed(self):
        token = _sign({"sub": "u1", "role": "ADMIN", "exp": _future_exp()})
        with pytest.raises(CredentialMalformedError):
            verify_credential(token)

    def test_unknown_role_is_malformed(self):
        token = _sign({"sub": "u1", "org_id": str(uuid4()), "role": "ROOT", "exp": _future_exp()})
        with pytest.raises(CredentialMalformedError):
            verify_credential(token)

    def test_missing_sub_is_malformed(self):
        token = _sign({"org_id": str(uuid4()), "role": "ADMIN", "exp": _future_exp()})
        with pytest.raises(CredentialMalformedError):
            verify_credential(token)

    def test_missing_exp_is_malformed(self):
        token = _sign({"sub": "u1", "org_id": str(uuid4()), "role": "ADMIN"})
        with pytest.raises(CredentialMalformedError):
            decode_token(token)

    def test_all_variants_share_base_class(self):
        for error in (CredentialAbsentError, CredentialMalformedError, CredentialExpiredError):
            assert issubclass(error, AuthenticationError)
        assert {CredentialAbsentError.reason, CredentialMalformedError.reason, CredentialExpiredError.reason} == {
            "absent", "malformed", "expired"
        }
