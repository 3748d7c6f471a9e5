# cathealth/core/security.py
"""
Verification of access tokens issued by the external auth provider.

The provider signs HS256 JWTs with a shared secret; ``sub`` is the user id and
``email`` the address the user signed in with.  We never issue tokens for real
users ourselves; ``create_access_token`` exists for local development and tests.
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt

from cathealth.core.exceptions import AuthRequired

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
ALGORITHM = os.getenv("ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")


def _secret_key() -> str:
    secret = os.getenv("JWT_SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing JWT_SECRET_KEY environment variable")
    return secret


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a token shaped like the ones the auth provider hands out."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": user_id,
        "email": email,
        "aud": JWT_AUDIENCE,
        "role": "authenticated",
        "exp": expire,
    }
    return jwt.encode(to_encode, _secret_key(), algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT, enforcing algorithm and audience. Expiry is checked by jose."""
    try:
        payload = jwt.decode(
            token,
            _secret_key(),
            algorithms=[ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except JWTError:
        raise AuthRequired("Could not validate credentials")
    if not payload.get("sub"):
        raise AuthRequired("Invalid token payload")
    return payload
