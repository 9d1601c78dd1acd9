"""
Bearer token handling.

Authentication itself lives outside this service: the frontend signs in with
Supabase Auth, and internal tooling/tests mint tokens with create_access_token.
Either way the only thing the core needs is the owner identity in the `sub`
claim.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

from jose import JWTError, jwt

from invoicer.config import settings

# JWT claim names
CLAIM_SUB = "sub"
CLAIM_EMAIL = "email"
CLAIM_TYPE = "type"
CLAIM_EXP = "exp"
CLAIM_ISS = "iss"
CLAIM_JTI = "jti"

TYPE_ACCESS = "access"
ISSUER_INTERNAL = "invoicer-internal"


def create_access_token(
    owner_id,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create an internal access token whose subject is the owner id."""
    now = datetime.now(timezone.utc)
    delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        CLAIM_SUB: str(owner_id),
        CLAIM_EMAIL: email,
        CLAIM_JTI: str(uuid4()),
        CLAIM_TYPE: TYPE_ACCESS,
        CLAIM_ISS: ISSUER_INTERNAL,
        CLAIM_EXP: now + delta,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_internal_token(token: str) -> Optional[dict]:
    """Decode and verify an internal JWT. Returns payload dict or None."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_iss": True},
            issuer=ISSUER_INTERNAL,
        )
    except JWTError:
        return None
    if not payload.get(CLAIM_SUB):
        return None
    return payload


def decode_supabase_token(token: str) -> Optional[dict]:
    """Decode and verify Supabase JWT if SUPABASE_JWT_SECRET is set. Returns payload or None."""
    secret = settings.SUPABASE_JWT_SECRET
    if not secret:
        return None
    try:
        # Supabase signs with HS256; issuer/audience vary per project
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            options={"verify_iss": False, "verify_aud": False},
        )
    except JWTError:
        return None


def decode_token_dual(token: str) -> Optional[dict]:
    """Try internal JWT first, then Supabase JWT."""
    payload = decode_internal_token(token)
    if payload:
        return payload
    return decode_supabase_token(token)


def owner_id_from_token(token: Optional[str]) -> Optional[UUID]:
    """Owner UUID from a bearer token, or None if the token is missing/invalid."""
    if not token:
        return None
    payload = decode_token_dual(token)
    if not payload or not payload.get(CLAIM_SUB):
        return None
    try:
        return UUID(str(payload[CLAIM_SUB]))
    except (ValueError, TypeError):
        return None
