# wizard/state_machine.py
"""
WellnessWizard: steps 1-5 collect a FormProfile, step 6 shows the plan.

The wizard is driven from a single asyncio loop.  Blocking work (AI calls,
database, email) runs in a worker thread via ``asyncio.to_thread``; while a
submission is outstanding ``is_submitting`` is set and further submissions
are ignored.  Once ``dispose()`` has been called, results that arrive late
are dropped without touching wizard state.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from cathealth.auth.session import AuthSession
from cathealth.core.exceptions import AuthRequired, CatHealthError, UpstreamError, ValidationError
from cathealth.models.wellness import FormProfile, GeneratedPlan
from cathealth.services.email_service import PlanEmailService
from cathealth.services.submission import PlanSubmissionService
from cathealth.wizard.form_state import FormStateStore
from cathealth.wizard.steps import INPUT_STEPS, RESULTS_STEP, StepDefinition, step_definition

logger = logging.getLogger(__name__)

SESSION_ERROR_KEY = "session"


@dataclass
class Notification:
    kind: str  # "success" or "error"
    message: str


class WellnessWizard:

    def __init__(
        self,
        auth_session: AuthSession,
        form_store: FormStateStore,
        submission: Optional[PlanSubmissionService] = None,
        email_service: Optional[PlanEmailService] = None,
        notify: Optional[Callable[[Notification], None]] = None,
    ):
        self.auth_session = auth_session
        self.form_store = form_store
        self.submission = submission or PlanSubmissionService(auth_session, form_store=form_store)
        self.email_service = email_service or PlanEmailService()
        self._notify_callback = notify

        self.position = 1
        self.profile = FormProfile()
        self.plan: Optional[GeneratedPlan] = None
        self.errors: Dict[str, CatHealthError] = {}
        self.notifications: List[Notification] = []
        self.last_error: Optional[CatHealthError] = None
        self.is_submitting = False
        self.is_sending_email = False
        self.disposed = False

    # -- read-only views -----------------------------------------------------

    @property
    def plan_generated(self) -> bool:
        return self.plan is not None

    @property
    def sign_in_required(self) -> bool:
        return isinstance(self.errors.get(SESSION_ERROR_KEY), AuthRequired)

    @property
    def progress(self) -> float:
        return (self.position - 1) / INPUT_STEPS * 100

    @property
    def current_step(self) -> Optional[StepDefinition]:
        return step_definition(self.position)

    # -- editing ---------------------------------------------------------------

    def update(self, field: str, value: Any) -> None:
        attr = FormProfile.attribute_for(field)
        self.profile = FormProfile.model_validate({**self.profile.model_dump(), attr: value})
        self.errors.pop(field, None)
        self.errors.pop(FormProfile.model_fields[attr].alias, None)

    def toggle(self, field: str, tag: str) -> None:
        """Add ``tag`` to a multi-choice field, or remove it if already selected."""
        attr = FormProfile.attribute_for(field)
        if attr not in FormProfile.MULTI_CHOICE_FIELDS:
            raise KeyError(f"{field} is not a multi-choice field")
        tags = list(getattr(self.profile, attr))
        if tag in tags:
            tags.remove(tag)
        else:
            tags.append(tag)
        self.update(attr, tags)

    # -- navigation --------------------------------------------------------------

    def next(self) -> bool:
        if self.position >= INPUT_STEPS:
            return False
        failures = self.current_step.validate(self.profile)
        if failures:
            self.errors = {e.field: e for e in failures}
            return False
        self.errors = {}
        self.position += 1
        return True

    def prev(self) -> bool:
        if self.position <= 1:
            return False
        self.position -= 1
        return True

    def reset(self) -> None:
        self.position = 1
        self.plan = None
        self.profile = FormProfile()
        self.errors = {}
        self.last_error = None
        self.form_store.clear()

    def restore(self, profile: Optional[FormProfile], position: Optional[int]) -> None:
        """Apply state loaded from durable storage after the sign-in round trip."""
        if profile is not None:
            self.profile = profile
        if position is not None:
            # nothing to show on the results step without a plan
            if position == RESULTS_STEP and self.plan is None:
                position = INPUT_STEPS
            self._enter(position)

    def _enter(self, position: int) -> None:
        if position == RESULTS_STEP and self.auth_session.get_current() is None:
            logger.info("Results step requires a live session, returning to step 5")
            self.position = INPUT_STEPS
            self._report(AuthRequired("Your session has expired. Please sign in again to view your plan."))
            return
        self.position = position

    def on_signed_out(self) -> None:
        """The session ended: the plan may no longer be shown or reused."""
        self.plan = None
        if self.position == RESULTS_STEP:
            self.position = INPUT_STEPS
            self._report(AuthRequired("Your session has expired. Please sign in again to view your plan."))

    # -- async actions -------------------------------------------------------------

    async def submit(self) -> bool:
        """Generate the plan from step 5. Returns True when the wizard reaches step 6."""
        if self.disposed or self.is_submitting or self.position != INPUT_STEPS:
            return False
        self.errors.pop(SESSION_ERROR_KEY, None)

        if self.plan is not None:
            self._enter(RESULTS_STEP)
            return self.position == RESULTS_STEP

        if self.auth_session.get_current() is None:
            self._report(AuthRequired("Please sign in to generate your cat's wellness plan"))
            return False

        self.is_submitting = True
        try:
            plan = await asyncio.to_thread(self.submission.submit, self.profile)
        except CatHealthError as e:
            if self.disposed:
                logger.info(f"Discarding failed submission after dispose: {e.message}")
                return False
            self._report(e)
            return False
        finally:
            self.is_submitting = False

        if self.disposed:
            logger.info("Discarding wellness plan that arrived after dispose")
            return False

        self.plan = plan
        self.last_error = None
        self.form_store.clear()
        self._enter(RESULTS_STEP)
        return self.position == RESULTS_STEP

    async def send_email(self, address: str) -> bool:
        if self.disposed or self.is_sending_email or self.plan is None:
            return False
        identity = self.auth_session.get_current()
        if identity is None:
            self._report(AuthRequired("Please sign in to email your wellness plan"))
            return False

        self.is_sending_email = True
        try:
            message = await asyncio.to_thread(
                self.email_service.send,
                identity,
                address,
                self.plan.wellness_plan,
                self.plan.plan_id,
                self.profile.cat_name,
            )
        except CatHealthError as e:
            if not self.disposed:
                self._report(e)
            return False
        finally:
            self.is_sending_email = False

        if self.disposed:
            return False
        self.errors.pop("userEmail", None)
        self._notify(Notification("success", message))
        return True

    def dispose(self) -> None:
        self.disposed = True

    # -- reporting -----------------------------------------------------------------

    def _report(self, error: CatHealthError) -> None:
        self.last_error = error
        if isinstance(error, ValidationError):
            self.errors[error.field or "form"] = error
        elif isinstance(error, AuthRequired):
            self.errors[SESSION_ERROR_KEY] = error
        else:
            if not isinstance(error, UpstreamError):
                logger.error(f"Unexpected wizard error: {error.message}")
            self._notify(Notification("error", error.message))

    def _notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        if self._notify_callback:
            self._notify_callback(notification)

    def dismiss(self, notification: Notification) -> None:
        if notification in self.notifications:
            self.notifications.remove(notification)
