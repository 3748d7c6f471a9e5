# cathealth/api/wellness.py

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import Response
from typing import List
import logging

import cathealth.db.db_access as db
from cathealth.auth.session import Identity, TokenAuthSession
from cathealth.core.dependencies import get_auth_session, get_current_identity
from cathealth.core.exceptions import AuthRequired, UpstreamError, ValidationError
from cathealth.models.wellness import FormProfile, PlanDocumentRequest, WellnessPlanResponse
from cathealth.services.document import DocumentSynthesizer, document_filename
from cathealth.services.pdf_renderer import render_pdf
from cathealth.services.submission import PlanSubmissionService
from cathealth.services.wellness_plan import WellnessPlanGenerator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/wellness", tags=["Wellness"])

# Initialize the plan generator and document synthesizer
plan_generator = WellnessPlanGenerator()
document_synthesizer = DocumentSynthesizer()


def form_profile(
    cat_name: str = Form("", alias="catName"),
    cat_age: str = Form("", alias="catAge"),
    cat_breed: str = Form("", alias="catBreed"),
    cat_sex: str = Form("", alias="catSex"),
    cat_neutered: str = Form("", alias="catNeutered"),
    cat_weight: str = Form("", alias="catWeight"),
    cat_diet: str = Form("", alias="catDiet"),
    cat_feeding: str = Form("", alias="catFeeding"),
    cat_activity: str = Form("", alias="catActivity"),
    cat_environment: str = Form("", alias="catEnvironment"),
    behavior_issues: List[str] = Form([], alias="behaviorIssues"),
    behavior_details: str = Form("", alias="behaviorDetails"),
    cat_training: str = Form("", alias="catTraining"),
    play_time: str = Form("", alias="playTime"),
    favorite_activities: List[str] = Form([], alias="favoriteActivities"),
    home_enrichment: List[str] = Form([], alias="homeEnrichment"),
    other_pets: str = Form("", alias="otherPets"),
    primary_goal: str = Form("", alias="primaryGoal"),
) -> FormProfile:
    """Collect the multipart wizard fields (repeated keys for multi-choice tags) into a FormProfile."""
    return FormProfile(
        cat_name=cat_name,
        cat_age=cat_age,
        cat_breed=cat_breed,
        cat_sex=cat_sex,
        cat_neutered=cat_neutered,
        cat_weight=cat_weight,
        cat_diet=cat_diet,
        cat_feeding=cat_feeding,
        cat_activity=cat_activity,
        cat_environment=cat_environment,
        behavior_issues=behavior_issues,
        behavior_details=behavior_details,
        cat_training=cat_training,
        play_time=play_time,
        favorite_activities=favorite_activities,
        home_enrichment=home_enrichment,
        other_pets=other_pets,
        primary_goal=primary_goal,
    )


@router.post("", response_model=WellnessPlanResponse, response_model_by_alias=True)
def create_wellness_plan(
    profile: FormProfile = Depends(form_profile),
    session: TokenAuthSession = Depends(get_auth_session),
):
    """Generate (and save) a wellness plan. Requires a signed-in user."""
    submission = PlanSubmissionService(session, generator=plan_generator)
    try:
        plan = submission.submit(profile)
    except (AuthRequired, ValidationError):
        raise
    except Exception as e:
        logger.error(f"Error processing wellness plan: {str(e)}")
        raise UpstreamError("Failed to process the wellness plan") from e

    return WellnessPlanResponse(
        wellness_plan=plan.wellness_plan,
        wellness_plan_data=plan.wellness_plan_data,
        is_authenticated=True,
        plan_id=plan.plan_id,
    )


@router.get("/plans")
def list_wellness_plans(identity: Identity = Depends(get_current_identity)):
    """Summaries of the caller's saved plans, most recently updated first."""
    plans = db.get_user_wellness_plans(identity.user_id)
    logger.info(f"Fetched {len(plans)} wellness plans for user {identity.user_id}")
    return {"plans": plans}


@router.get("/plans/{plan_id}")
def get_wellness_plan(plan_id: str, identity: Identity = Depends(get_current_identity)):
    plan = db.get_wellness_plan(plan_id, identity.user_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Wellness plan not found")
    return plan


@router.post("/pdf")
def download_wellness_plan_pdf(request: PlanDocumentRequest):
    """Lay out the plan as a printable document and return it as a PDF download."""
    document = document_synthesizer.synthesize(request.wellness_plan, request.cat_name)
    try:
        pdf = render_pdf(document)
    except Exception as e:
        logger.error(f"Error rendering wellness plan PDF: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate the PDF")

    filename = document_filename(request.cat_name)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
