# cathealth/auth/session.py
"""
The session seam between CatHealth and the external auth provider.

Code that needs to know "who is signed in right now" takes an ``AuthSession``
instead of reaching for request globals, so the wizard and the submission
service can run against a real token or a test double.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from cathealth.core.exceptions import AuthRequired
from cathealth.core.security import decode_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str] = None


AuthListener = Callable[[Optional[Identity]], None]


class AuthSession:
    """
    ``get_current()`` answers from the provider every time it is called; it is
    not a cache.  ``on_change`` registers a listener and returns a callable that
    removes it.
    """

    def __init__(self):
        self._listeners: List[AuthListener] = []

    def get_current(self) -> Optional[Identity]:
        raise NotImplementedError

    def on_change(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self, identity: Optional[Identity]) -> None:
        for listener in list(self._listeners):
            listener(identity)


class TokenAuthSession(AuthSession):
    """Session backed by a bearer token; re-validated (signature and expiry) on every call."""

    def __init__(self, token: Optional[str] = None):
        super().__init__()
        self._token = token

    def get_current(self) -> Optional[Identity]:
        if not self._token:
            return None
        try:
            payload = decode_token(self._token)
        except AuthRequired as e:
            logger.info(f"Session token rejected: {e.message}")
            return None
        return Identity(user_id=str(payload["sub"]), email=payload.get("email"))

    def set_token(self, token: Optional[str]) -> None:
        """Swap the token (sign-in, refresh, sign-out) and notify listeners."""
        self._token = token
        self._emit(self.get_current())
