"""JWT token generation and credential verification

This module verifies bearer credentials and extracts the caller's identity.
Tokens carry user id, organization id, role and email claims.

JWT Token Claims Structure:
===========================

Standard JWT Claims:
- sub (Subject): User ID as string
  Example: "550e8400-e29b-41d4-a716-446655440000"

- iat (Issued At): Unix timestamp when token was created

- exp (Expiration): Unix timestamp when token expires
  Example: iat + JWT_EXPIRY_MINUTES

Custom Claims (SolarDesk-specific):
- org_id: Organization (tenant) ID as UUID string
  Purpose: Multi-tenant isolation - every data access is bound to this org_id

- role: User's role within the organization
  Values: "ADMIN" | "MANAGER" | "SALES" | "VIEWER"

- email: User's email address (optional)

Verification outcomes:
- valid      -> Identity
- absent     -> CredentialAbsentError   (no token supplied)
- malformed  -> CredentialMalformedError (decode/signature failure, bad claims)
- expired    -> CredentialExpiredError  (valid signature, past expiry)

Verification is a pure function over the token and the configured secret;
it never touches the database.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
from uuid import UUID

import jwt

from ..config import get_settings
from .roles import UserRole


class AuthenticationError(Exception):
    """Base class for credential verification failures."""
    reason = "invalid"


class CredentialAbsentError(AuthenticationError):
    reason = "absent"


class CredentialMalformedError(AuthenticationError):
    reason = "malformed"


class CredentialExpiredError(AuthenticationError):
    reason = "expired"


@dataclass(frozen=True)
class Identity:
    """Verified caller identity extracted from an access token."""
    actor_id: str
    organization_id: UUID
    role: UserRole
    email: Optional[str] = None


def create_access_token(
    user_id,
    org_id: UUID,
    role: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token.

    Token issuance belongs to the identity provider; this helper exists for
    tests, scripts and local development.

    Args:
        user_id: User identifier (UUID or string)
        org_id: Organization's UUID
        role: User's role (ADMIN, MANAGER, SALES, VIEWER)
        email: User's email address
        expires_delta: Override of the configured token lifetime; negative
            values produce an already-expired token

    Returns:
        str: Signed JWT token
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
    expiration = now + expires_delta

    payload = {
        'sub': str(user_id),
        'org_id': str(org_id),
        'role': role,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp()),
    }
    if email:
        payload['email'] = email

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload with claims

    Raises:
        CredentialExpiredError: If token has expired
        CredentialMalformedError: If token is invalid or tampered
    """
    settings = get_settings()

    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise CredentialExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise CredentialMalformedError(f"Invalid token: {str(e)}")


def verify_credential(raw_token: Optional[str]) -> Identity:
    """Verify a bearer credential and extract the caller's identity.

    Args:
        raw_token: Token string without the "Bearer " prefix, or None

    Returns:
        Identity: actor id, organization id, role and email

    Raises:
        CredentialAbsentError: No token supplied
        CredentialMalformedError: Undecodable token, bad signature, or missing /
            ill-typed claims (sub, org_id, role)
        CredentialExpiredError: Valid signature, past expiry

    Example:
        >>> identity = verify_credential(create_access_token("u1", org_id, "SALES"))
        >>> identity.role
        <UserRole.SALES: 'SALES'>
    """
    if raw_token is None or not raw_token.strip():
        raise CredentialAbsentError("No credential supplied")

    payload = decode_token(raw_token.strip())

    actor_id = payload.get("sub")
    if not isinstance(actor_id, str) or not actor_id:
        raise CredentialMalformedError("Invalid token: missing user ID claim")

    try:
        organization_id = UUID(str(payload.get("org_id")))
    except ValueError:
        raise CredentialMalformedError("Invalid token: org_id claim is not a UUID")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise CredentialMalformedError("Invalid token: unknown role claim")

    email = payload.get("email")
    return Identity(
        actor_id=actor_id,
        organization_id=organization_id,
        role=role,
        email=email if isinstance(email, str) else None,
    )
