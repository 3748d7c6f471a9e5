# wizard/resume.py
"""
Carries the wizard across the sign-in redirect.

Signing in is a full-page round trip, so before leaving the wizard saves its
answers and position through the FormStateStore and asks the sign-in provider
to come back to ``<wellness_path>?resume=true``.  On return the controller
sees a live session plus the marker, restores the saved state and, when the
user had reached the last input step, submits on their behalf.  The marker is
removed from the address bar as soon as it is read so a reload does not
resume twice.
"""
import asyncio
import logging
import os
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from cathealth.auth.session import AuthSession, Identity
from cathealth.wizard.form_state import FormStateStore
from cathealth.wizard.state_machine import WellnessWizard
from cathealth.wizard.steps import INPUT_STEPS

logger = logging.getLogger(__name__)

RESUME_PARAM = "resume"
RESUME_VALUE = "true"
DEFAULT_SIGNIN_PATH = "/signin"


class Navigator:
    """Browser navigation as seen by the controller."""

    def redirect(self, url: str) -> None:
        raise NotImplementedError

    def replace_url(self, url: str) -> None:
        """Change the address bar without reloading or adding a history entry."""
        raise NotImplementedError


def has_resume_marker(url: str) -> bool:
    query = parse_qsl(urlsplit(url).query, keep_blank_values=True)
    return any(key == RESUME_PARAM and value.lower() == RESUME_VALUE for key, value in query)


def strip_resume_marker(url: str) -> str:
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != RESUME_PARAM]
    return urlunsplit(parts._replace(query=urlencode(query)))


def resume_url(wellness_path: str) -> str:
    return f"{wellness_path}?{urlencode({RESUME_PARAM: RESUME_VALUE})}"


def signin_url(callback_url: str, signin_path: Optional[str] = None) -> str:
    path = signin_path or os.getenv("SIGNIN_PATH", DEFAULT_SIGNIN_PATH)
    return f"{path}?{urlencode({'callbackUrl': callback_url})}"


class AuthResumeController:

    def __init__(
        self,
        wizard: WellnessWizard,
        auth_session: AuthSession,
        form_store: FormStateStore,
        navigator: Navigator,
        resume_delay: float = 0.5,
        wellness_path: str = "/wellness",
        signin_path: Optional[str] = None,
    ):
        self.wizard = wizard
        self.auth_session = auth_session
        self.form_store = form_store
        self.navigator = navigator
        self.resume_delay = resume_delay
        self.wellness_path = wellness_path
        self.signin_path = signin_path

        self.authenticated = False
        self.resume_requested = False
        self.pending_submission: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def mount(self, url: str) -> None:
        self.authenticated = self.auth_session.get_current() is not None
        self.resume_requested = has_resume_marker(url)
        self._unsubscribe = self.auth_session.on_change(self._on_auth_change)

        if self.resume_requested:
            # single use: a reload of the cleaned URL is an ordinary visit
            self.navigator.replace_url(strip_resume_marker(url))

        if not self.authenticated:
            # the marker waits for the session to arrive through on_change
            return

        if not self.resume_requested:
            self.form_store.clear()
            return

        self._resume()

    def _resume(self) -> None:
        self.resume_requested = False
        if self.wizard.plan_generated:
            self.form_store.clear()
            return

        profile, position = self.form_store.load()
        logger.info(f"Resuming wellness wizard after sign-in (saved step: {position})")
        self.wizard.restore(profile, position)
        if position == INPUT_STEPS:
            self.pending_submission = asyncio.create_task(self._auto_submit())

    async def _auto_submit(self) -> None:
        # let the restored state settle before submitting
        await asyncio.sleep(self.resume_delay)
        if self.wizard.disposed:
            return
        await self.wizard.submit()

    def _on_auth_change(self, identity: Optional[Identity]) -> None:
        was_authenticated = self.authenticated
        self.authenticated = identity is not None

        if self.authenticated and not was_authenticated:
            if self.resume_requested:
                self._resume()
            else:
                self.form_store.clear()
        elif not self.authenticated:
            self.wizard.on_signed_out()

    def sign_in(self) -> None:
        self.form_store.save(self.wizard.profile, self.wizard.position)
        target = signin_url(resume_url(self.wellness_path), self.signin_path)
        logger.info(f"Redirecting to sign-in from step {self.wizard.position}")
        self.navigator.redirect(target)

    async def generate(self) -> bool:
        """The Generate button: submit, or go through sign-in first when the session is gone."""
        if await self.wizard.submit():
            return True
        if self.wizard.sign_in_required:
            self.sign_in()
        return False

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.pending_submission is not None and not self.pending_submission.done():
            self.pending_submission.cancel()
        self.wizard.dispose()
