# services/submission.py
import logging
from typing import Optional, TYPE_CHECKING

import cathealth.db.db_access as db
from cathealth.auth.session import AuthSession
from cathealth.core.exceptions import AuthRequired, ValidationError
from cathealth.models.wellness import FormProfile, GeneratedPlan
from cathealth.services.wellness_plan import WellnessPlanGenerator

if TYPE_CHECKING:
    from cathealth.wizard.form_state import FormStateStore

logger = logging.getLogger(__name__)


class PlanSubmissionService:
    """
    Turns a completed FormProfile into a GeneratedPlan.

    The session is asked again on every submit: the page may have been open
    long enough for the sign-in to expire.  A plan is saved (upserted per user
    and cat name) only when the identity carries an email address; failing to
    save never fails the submission.
    """

    def __init__(
        self,
        auth_session: AuthSession,
        generator: Optional[WellnessPlanGenerator] = None,
        form_store: Optional["FormStateStore"] = None,
    ):
        self.auth_session = auth_session
        self.generator = generator or WellnessPlanGenerator()
        self.form_store = form_store

    def submit(self, profile: FormProfile) -> GeneratedPlan:
        identity = self.auth_session.get_current()
        if identity is None:
            logger.warning("Plan submission rejected: no valid session")
            raise AuthRequired()

        if not profile.cat_name.strip():
            raise ValidationError("Cat name is required", field="catName")

        plan = self.generator.generate(profile)

        if identity.email:
            result = db.upsert_wellness_plan(
                user_id=identity.user_id,
                user_email=identity.email,
                cat_data=profile.to_wire(),
                plan_content=plan.wellness_plan,
                plan_data=plan.wellness_plan_data.model_dump(by_alias=True),
            )
            if result:
                plan.plan_id = result.id
                logger.info(f"{result.message} for user {identity.user_id} ({plan.plan_id})")
            else:
                logger.error(f"Wellness plan not saved for user {identity.user_id}: {result.message}")
        else:
            logger.info(f"User {identity.user_id} has no email address, plan not saved")

        if self.form_store is not None:
            self.form_store.clear()
        return plan
