# wizard/steps.py
"""
The wellness wizard's steps, as data.

Each step lists the FormProfile fields it collects and, per field, the
validators that must pass before the user may leave the step.  Only step 1
requires anything today (a cat name); making another field mandatory means
adding an entry to ``required`` below.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from cathealth.core.exceptions import ValidationError
from cathealth.models.wellness import FormProfile

# returns an error message, or None when the value is acceptable
Validator = Callable[[Any], Optional[str]]


def non_empty(message: str) -> Validator:
    def check(value: Any) -> Optional[str]:
        if isinstance(value, str):
            value = value.strip()
        return None if value else message
    return check


@dataclass(frozen=True)
class StepDefinition:
    number: int
    title: str
    fields: Tuple[str, ...]
    required: Dict[str, Validator] = field(default_factory=dict)

    def validate(self, profile: FormProfile) -> List[ValidationError]:
        errors = []
        for name, check in self.required.items():
            message = check(getattr(profile, FormProfile.attribute_for(name)))
            if message:
                errors.append(ValidationError(message, field=name))
        return errors


# Choices offered by each step. Advisory only: any string is accepted.
AGE_CHOICES = ("Kitten (0-1 year)", "Adult (1-7 years)", "Senior (8+ years)")
SEX_CHOICES = ("Male", "Female")
NEUTERED_CHOICES = ("Yes", "No")
WEIGHT_CHOICES = ("Underweight", "Ideal Weight", "Overweight")
DIET_CHOICES = ("Dry kibble only", "Wet food only", "Mix of dry and wet")
FEEDING_CHOICES = ("Free-fed (always available)", "Specific mealtimes", "Combination")
ACTIVITY_CHOICES = (
    "Low (couch potato)",
    "Medium (occasional play)",
    "High (very playful)",
    "Extreme (constant zoomies)",
)
ENVIRONMENT_CHOICES = ("Indoor only", "Indoor-Outdoor (comes and goes)")
BEHAVIOR_ISSUE_CHOICES = (
    "Scratching furniture",
    "Not using litter box consistently",
    "Aggression (hissing/biting)",
    "Anxiety or fearfulness",
    "Excessive meowing",
)
TRAINING_CHOICES = ("No formal training", "Knows some tricks or commands")
PLAY_TIME_CHOICES = ("Hardly any", "5-10 minutes", "10-30 minutes", "30+ minutes")
FAVORITE_ACTIVITY_CHOICES = ("Chasing toys", "Climbing", "Watching birds", "Snuggling & petting")
HOME_ENRICHMENT_CHOICES = (
    "Has scratching post/tree",
    "Has puzzle feeders or treat toys",
    "Has hideaways (boxes/tunnels)",
    "Regular new toys or rotation",
)
OTHER_PETS_CHOICES = ("No", "Another cat", "One or more dogs", "Other species")
PRIMARY_GOAL_CHOICES = (
    "Improve behavior issue",
    "Help my cat exercise more",
    "Nutrition or weight management",
    "General wellness & happiness",
    "Reduce anxiety/stress",
    "Other",
)

CHOICES: Dict[str, Tuple[str, ...]] = {
    "catAge": AGE_CHOICES,
    "catSex": SEX_CHOICES,
    "catNeutered": NEUTERED_CHOICES,
    "catWeight": WEIGHT_CHOICES,
    "catDiet": DIET_CHOICES,
    "catFeeding": FEEDING_CHOICES,
    "catActivity": ACTIVITY_CHOICES,
    "catEnvironment": ENVIRONMENT_CHOICES,
    "behaviorIssues": BEHAVIOR_ISSUE_CHOICES,
    "catTraining": TRAINING_CHOICES,
    "playTime": PLAY_TIME_CHOICES,
    "favoriteActivities": FAVORITE_ACTIVITY_CHOICES,
    "homeEnrichment": HOME_ENRICHMENT_CHOICES,
    "otherPets": OTHER_PETS_CHOICES,
    "primaryGoal": PRIMARY_GOAL_CHOICES,
}

WELLNESS_STEPS: Tuple[StepDefinition, ...] = (
    StepDefinition(
        1, "Basic Information",
        ("catName", "catAge", "catBreed", "catSex", "catNeutered"),
        required={"catName": non_empty("Please enter your cat's name")},
    ),
    StepDefinition(
        2, "Health & Lifestyle",
        ("catWeight", "catDiet", "catFeeding", "catActivity", "catEnvironment"),
    ),
    StepDefinition(
        3, "Behavior & Training",
        ("behaviorIssues", "behaviorDetails", "catTraining"),
    ),
    StepDefinition(
        4, "Enrichment & Routine",
        ("playTime", "favoriteActivities", "homeEnrichment", "otherPets"),
    ),
    StepDefinition(
        5, "Goals & Preferences",
        ("primaryGoal",),
    ),
)

INPUT_STEPS = len(WELLNESS_STEPS)
RESULTS_STEP = INPUT_STEPS + 1


def step_definition(number: int) -> Optional[StepDefinition]:
    if 1 <= number <= INPUT_STEPS:
        return WELLNESS_STEPS[number - 1]
    return None
