"""JWT access token validation (ES256).

The portal does not log anyone in.  Tokens are minted by the upstream
identity provider; this module verifies them against its public key.
``create_access_token`` signs with the local dev key pair and exists for
local development and tests.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from portal.core.config import SETTINGS

# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------
# Dev/test: generate an ephemeral EC key pair on import.
# Production: JWT_PUBLIC_KEY holds the provider's PEM-encoded public key.
_private_key = ec.generate_private_key(ec.SECP256R1())

if SETTINGS.jwt_public_key:
    _public_key = serialization.load_pem_public_key(
        SETTINGS.jwt_public_key.encode()
    )
else:
    _public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = SETTINGS.jwt_issuer
AUDIENCE = SETTINGS.jwt_audience
ACCESS_TOKEN_TTL_MIN = 15


def create_access_token(
    *,
    sub: str,
    username: str,
    roles: list[str] | None = None,
    ttl: timedelta = timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
) -> str:
    """Build and sign an access token with the local key pair.

    Claims: sub, username, roles, iss, aud, exp, iat, jti.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "username": username,
        "roles": roles or ["applicant"],
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + ttl,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins algorithm to ES256 to prevent alg:none and alg-switching attacks.
    Validates exp, iss, and aud automatically via PyJWT options.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat"]},
    )
