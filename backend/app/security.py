from __future__ import annotations
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any
import jwt
from app.config import settings

DEV_ALG = "HS256"
CLERK_ALG = "RS256"
# shared-secret tokens are only honoured here
DEV_ENVIRONMENTS = ("dev", "test")

@lru_cache(maxsize=1)
def _jwks_client(url: str) -> jwt.PyJWKClient:
    # PyJWKClient caches the fetched key set itself
    return jwt.PyJWKClient(url)

def decode_session_token(token: str) -> dict[str, Any]:
    """
    Verify a Clerk session token and return its claims.
    RS256 against the instance JWKS when CLERK_JWKS_URL is set, HS256 with
    CLERK_JWT_KEY otherwise, which is refused outside DEV_ENVIRONMENTS.
    """
    options = {"require": ["sub", "exp"]}
    issuer = settings.clerk_issuer or None
    if settings.clerk_jwks_url:
        key = _jwks_client(settings.clerk_jwks_url).get_signing_key_from_jwt(token).key
        return jwt.decode(token, key, algorithms=[CLERK_ALG], issuer=issuer, options=options)
    if settings.environment not in DEV_ENVIRONMENTS:
        raise jwt.InvalidTokenError(f"CLERK_JWKS_URL is required when ENVIRONMENT={settings.environment}")
    return jwt.decode(token, settings.clerk_jwt_key, algorithms=[DEV_ALG], issuer=issuer, options=options)

def make_dev_token(sub: str, ttl_min: int = 60, **claims: Any) -> str:
    """Mint an HS256 token shaped like a Clerk session token. Dev/test only."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
        **claims,
    }
    if settings.clerk_issuer:
        payload["iss"] = settings.clerk_issuer
    return jwt.encode(payload, settings.clerk_jwt_key, algorithm=DEV_ALG)
