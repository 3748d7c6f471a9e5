# cathealth/api/wellness_email.py

from fastapi import APIRouter, Depends
import logging

from cathealth.auth.session import Identity
from cathealth.core.dependencies import get_current_identity
from cathealth.models.wellness import BaseResponse, EmailPlanRequest
from cathealth.services.email_service import PlanEmailService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/wellness", tags=["Wellness Email"])

email_service = PlanEmailService()


@router.post("/email", response_model=BaseResponse)
def email_wellness_plan(
    request: EmailPlanRequest,
    identity: Identity = Depends(get_current_identity),
):
    """Send a plan to the given address and mark the saved plan (if any) as emailed."""
    logger.info(f"Email request from user {identity.user_id} for plan {request.plan_id}")
    message = email_service.send(
        identity,
        request.user_email,
        request.wellness_plan,
        plan_id=request.plan_id,
        cat_name=request.cat_name,
    )
    return BaseResponse(success=True, message=message)
