# cathealth/core/dependencies.py

import logging
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from cathealth.auth.session import Identity, TokenAuthSession
from cathealth.core.exceptions import AuthRequired

logger = logging.getLogger(__name__)
bearer_scheme = HTTPBearer(auto_error=False)

def get_auth_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenAuthSession:
    """FastAPI dependency: a session wrapping the request's bearer token (possibly none)."""
    return TokenAuthSession(credentials.credentials if credentials else None)

def get_current_identity(session: TokenAuthSession = Depends(get_auth_session)) -> Identity:
    """FastAPI dependency: the signed-in identity, or 401."""
    identity = session.get_current()
    if identity is None:
        logger.warning("Request rejected: no valid session")
        raise AuthRequired()
    logger.debug(f"Authenticated request for user {identity.user_id}")
    return identity

def get_optional_identity(session: TokenAuthSession = Depends(get_auth_session)) -> Optional[Identity]:
    """FastAPI dependency: identity if a valid token is present, else None."""
    return session.get_current()
