"""JWT access token validation (ES256).

Tokens are issued by the platform's auth service.  The engine only
verifies them against the issuer's public key (JWT_PUBLIC_KEY).

In dev and test, with no key configured, an ephemeral EC key pair is
generated on import so `create_access_token` can mint tokens locally.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from progression.core.config import SETTINGS, Settings

ALGORITHM = "ES256"
ISSUER = "auth-service"
AUDIENCE = "progression-engine"
ACCESS_TOKEN_TTL_MIN = 15


def load_keys(
    settings: Settings,
) -> tuple[ec.EllipticCurvePrivateKey | None, ec.EllipticCurvePublicKey]:
    """Return (signing key or None, verification key) for `settings`."""
    if settings.jwt_public_key is not None:
        key = serialization.load_pem_public_key(settings.jwt_public_key.encode())
        if not isinstance(key, ec.EllipticCurvePublicKey):
            raise ValueError("JWT_PUBLIC_KEY must be an EC public key")
        return None, key
    if settings.is_prod:
        raise ValueError("JWT_PUBLIC_KEY is required when APP_ENV=prod")
    private_key = ec.generate_private_key(ec.SECP256R1())
    return private_key, private_key.public_key()


_private_key, _public_key = load_keys(SETTINGS)


def create_access_token(*, sub: str, roles: list[str] | None = None) -> str:
    """Build and sign an access token.  `sub` is the learner's UUID.

    Only available with the ephemeral dev/test key.
    """
    if _private_key is None:
        raise RuntimeError("no signing key: tokens come from the auth service")
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles or ["student"],
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to ES256; exp, iss and aud are checked by PyJWT.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
