# models/wellness.py
import copy
from typing import ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FormProfile(BaseModel):
    """
    Everything the wellness wizard collects about a cat.

    Attributes are snake_case; the wire format (multipart fields, durable
    storage, saved ``cat_data``) uses the camelCase aliases.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    MULTI_CHOICE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "behavior_issues",
        "favorite_activities",
        "home_enrichment",
    )

    # Basic information
    cat_name: str = Field("", alias="catName")
    cat_age: str = Field("", alias="catAge")
    cat_breed: str = Field("", alias="catBreed")
    cat_sex: str = Field("", alias="catSex")
    cat_neutered: str = Field("", alias="catNeutered")

    # Health & Lifestyle
    cat_weight: str = Field("", alias="catWeight")
    cat_diet: str = Field("", alias="catDiet")
    cat_feeding: str = Field("", alias="catFeeding")
    cat_activity: str = Field("", alias="catActivity")
    cat_environment: str = Field("", alias="catEnvironment")

    # Behavior & Training
    behavior_issues: List[str] = Field(default_factory=list, alias="behaviorIssues")
    behavior_details: str = Field("", alias="behaviorDetails")
    cat_training: str = Field("", alias="catTraining")

    # Enrichment & Routine
    play_time: str = Field("", alias="playTime")
    favorite_activities: List[str] = Field(default_factory=list, alias="favoriteActivities")
    home_enrichment: List[str] = Field(default_factory=list, alias="homeEnrichment")
    other_pets: str = Field("", alias="otherPets")

    # Owner's goals
    primary_goal: str = Field("", alias="primaryGoal")

    @field_validator("behavior_issues", "favorite_activities", "home_enrichment", mode="before")
    @classmethod
    def _unique_tags(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        # a set of tags, kept in the order the user picked them
        return list(dict.fromkeys(str(tag) for tag in value if tag))

    @field_validator(
        "cat_name", "cat_age", "cat_breed", "cat_sex", "cat_neutered",
        "cat_weight", "cat_diet", "cat_feeding", "cat_activity", "cat_environment",
        "behavior_details", "cat_training", "play_time", "other_pets", "primary_goal",
        mode="before",
    )
    @classmethod
    def _none_is_blank(cls, value):
        return "" if value is None else value

    @classmethod
    def attribute_for(cls, name: str) -> str:
        """Resolve a wire name (``catName``) or attribute name to the attribute."""
        if name in cls.model_fields:
            return name
        for attr, info in cls.model_fields.items():
            if info.alias == name:
                return attr
        raise KeyError(name)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


# ------------------------------------------------------------------
# Structured plan data returned by the second AI call
# ------------------------------------------------------------------

class HealthRecommendations(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nutrition: str
    exercise: str
    preventive_care: str = Field(alias="preventiveCare")
    environment: str


class EnrichmentPlan(BaseModel):
    play: str
    toys: str
    environment: str
    social: str
    rest: str


class FollowUpWeek(BaseModel):
    week: int
    tasks: List[str]


class WellnessPlanData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    health_recommendations: HealthRecommendations = Field(alias="healthRecommendations")
    behavior_training: Dict[str, str] = Field(alias="behaviorTraining")
    enrichment_plan: EnrichmentPlan = Field(alias="enrichmentPlan")
    follow_up_schedule: List[FollowUpWeek] = Field(alias="followUpSchedule")


FALLBACK_WELLNESS_PLAN_DATA = {
    "healthRecommendations": {
        "nutrition": "Feed a balanced, high-quality cat food appropriate for your cat's age and weight.",
        "exercise": "Engage in daily play sessions to keep your cat active and healthy.",
        "preventiveCare": "Schedule regular veterinary check-ups and keep vaccinations current.",
        "environment": "Provide a clean, safe environment with appropriate scratching surfaces.",
    },
    "behaviorTraining": {
        "general": "Use positive reinforcement to encourage good behavior.",
    },
    "enrichmentPlan": {
        "play": "Regular interactive play sessions with wand toys or laser pointers.",
        "toys": "Rotate toys weekly to maintain interest.",
        "environment": "Provide climbing spaces, scratching posts, and hiding spots.",
        "social": "Spend quality time with your cat daily for bonding.",
        "rest": "Ensure quiet spaces for undisturbed rest and relaxation.",
    },
    "followUpSchedule": [
        {"week": 1, "tasks": ["Implement new feeding schedule", "Introduce new toys"]},
        {"week": 2, "tasks": ["Increase play time", "Begin training exercises"]},
        {"week": 3, "tasks": ["Evaluate progress", "Adjust plan as needed"]},
    ],
}


def fallback_plan_data() -> WellnessPlanData:
    return WellnessPlanData.model_validate(copy.deepcopy(FALLBACK_WELLNESS_PLAN_DATA))


class GeneratedPlan(BaseModel):
    """Narrative plan plus its structured summary, as produced for one submission."""
    wellness_plan: str
    wellness_plan_data: WellnessPlanData
    plan_id: Optional[str] = None
    used_fallback: bool = False


# ------------------------------------------------------------------
# API payloads
# ------------------------------------------------------------------

class WellnessPlanResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wellness_plan: str = Field(alias="wellnessPlan")
    wellness_plan_data: WellnessPlanData = Field(alias="wellnessPlanData")
    is_authenticated: bool = Field(alias="isAuthenticated")
    plan_id: Optional[str] = Field(None, alias="planId")


class EmailPlanRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_email: str = Field("", alias="userEmail")
    wellness_plan: str = Field("", alias="wellnessPlan")
    plan_id: Optional[str] = Field(None, alias="planId")
    cat_name: Optional[str] = Field(None, alias="catName")


class PlanDocumentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wellness_plan: str = Field("", alias="wellnessPlan")
    cat_name: str = Field("", alias="catName")


class BaseResponse(BaseModel):
    success: bool
    message: str
