# models/__init__.py
"""
Pydantic models for request/response validation
"""

from .wellness import (
    FormProfile,
    HealthRecommendations,
    EnrichmentPlan,
    FollowUpWeek,
    WellnessPlanData,
    FALLBACK_WELLNESS_PLAN_DATA,
    fallback_plan_data,
    GeneratedPlan,
    WellnessPlanResponse,
    EmailPlanRequest,
    PlanDocumentRequest,
    BaseResponse,
)

from .diagnosis import (
    PossibleCause,
    RecommendedAction,
    DiagnosisData,
    FALLBACK_DIAGNOSIS_DATA,
    fallback_diagnosis_data,
    DiagnosisResponse,
)

__all__ = [
    # Wellness
    "FormProfile",
    "HealthRecommendations",
    "EnrichmentPlan",
    "FollowUpWeek",
    "WellnessPlanData",
    "FALLBACK_WELLNESS_PLAN_DATA",
    "fallback_plan_data",
    "GeneratedPlan",
    "WellnessPlanResponse",
    "EmailPlanRequest",
    "PlanDocumentRequest",
    "BaseResponse",

    # Diagnosis
    "PossibleCause",
    "RecommendedAction",
    "DiagnosisData",
    "FALLBACK_DIAGNOSIS_DATA",
    "fallback_diagnosis_data",
    "DiagnosisResponse",
]
