# services/wellness_plan.py
import logging
from typing import Optional

from cathealth.models.wellness import (
    FormProfile,
    GeneratedPlan,
    WellnessPlanData,
    fallback_plan_data,
)
from cathealth.services.ai_client import AIClient, parse_structured

logger = logging.getLogger(__name__)

PLAN_SYSTEM_PROMPT = """You are a professional feline behavior and wellness expert that creates personalized wellness and behavior plans for cats based on owner-provided information.

Your task is to:
1. Analyze the cat's profile, behavior issues, enrichment details, and owner's goals.
2. Create a comprehensive wellness plan with the following sections:
   - Greeting & Cat Overview (a friendly intro with a summary of the cat's profile and main goals)
   - Health & Wellness Recommendations (nutrition, exercise, preventive care, grooming)
   - Behavior Training & Advice (address each behavior issue with positive, actionable tips)
   - Enrichment & Environment (how to keep the cat mentally stimulated and happy)
   - Follow-Up & Maintenance (timeline or checklist for implementing changes)

Format your response in markdown with clear sections. Be informative, supportive, and personalized.
Address the cat by name throughout the plan. Make specific recommendations based on the cat's age, breed, behavior issues, etc.
Your tone should be friendly yet professional, as if speaking to a fellow cat lover."""

STRUCTURED_SYSTEM_PROMPT = "You are a helpful assistant that generates JSON data based on wellness plans."

STRUCTURED_PROMPT_TEMPLATE = """Based on the following cat wellness and behavior plan, generate structured data in JSON format:

{plan}

Please provide the following structures:
1. healthRecommendations with subsections for nutrition, exercise, preventiveCare, and environment
2. behaviorTraining with a key for each behavior issue and value for the recommendation
3. enrichmentPlan with subsections for play, toys, environment, social, and rest
4. followUpSchedule with week numbers and tasks for each week (3-4 weeks)

Return ONLY valid JSON in this exact format without any explanation:
{{
  "healthRecommendations": {{
    "nutrition": "string",
    "exercise": "string",
    "preventiveCare": "string",
    "environment": "string"
  }},
  "behaviorTraining": {{
    "issue1": "string",
    "issue2": "string"
  }},
  "enrichmentPlan": {{
    "play": "string",
    "toys": "string",
    "environment": "string",
    "social": "string",
    "rest": "string"
  }},
  "followUpSchedule": [
    {{ "week": 1, "tasks": ["string", "string"] }}
  ]
}}"""

NOT_SPECIFIED = "Not specified"


def _or_unset(value: str, default: str = NOT_SPECIFIED) -> str:
    return value if value else default


def _tags(values, default: str = NOT_SPECIFIED) -> str:
    return ", ".join(values) if values else default


def build_plan_prompt(profile: FormProfile) -> str:
    """Render the owner's answers into the user message for the narrative call."""
    sex = _or_unset(profile.cat_sex)
    if profile.cat_neutered:
        sex = f"{sex} ({profile.cat_neutered})"

    lines = [
        "I need a wellness and behavior plan for my cat with the following details:",
        "",
        "**Basic Information:**",
        f"- Name: {profile.cat_name}",
        f"- Age: {_or_unset(profile.cat_age)}",
        f"- Breed: {_or_unset(profile.cat_breed)}",
        f"- Sex: {sex}",
        "",
        "**Health & Lifestyle:**",
        f"- Weight/Body Condition: {_or_unset(profile.cat_weight)}",
        f"- Diet: {_or_unset(profile.cat_diet)}",
        f"- Feeding Schedule: {_or_unset(profile.cat_feeding)}",
        f"- Activity Level: {_or_unset(profile.cat_activity)}",
        f"- Living Environment: {_or_unset(profile.cat_environment)}",
        "",
        f"**Behavior Issues:** {_tags(profile.behavior_issues, 'None mentioned')}",
    ]
    if profile.behavior_details:
        lines.append(f"**Behavior Details:** {profile.behavior_details}")
    lines += [
        "",
        f"**Training:** {_or_unset(profile.cat_training)}",
        "",
        "**Enrichment & Routine:**",
        f"- Daily Playtime: {_or_unset(profile.play_time)}",
        f"- Favorite Activities: {_tags(profile.favorite_activities)}",
        f"- Home Enrichment: {_tags(profile.home_enrichment)}",
        f"- Other Pets: {_or_unset(profile.other_pets)}",
        "",
        f"**Primary Goal:** {_or_unset(profile.primary_goal, 'General wellness and happiness')}",
        "",
        "Please create a detailed, personalized wellness and behavior plan that addresses these "
        "specific details and provides actionable recommendations.",
    ]
    return "\n".join(lines)


class WellnessPlanGenerator:
    """Produces the narrative plan and its structured summary with two sequential AI calls."""

    def __init__(self, ai: Optional[AIClient] = None):
        self.ai = ai or AIClient()

    def generate(self, profile: FormProfile) -> GeneratedPlan:
        logger.info(f"Generating wellness plan for cat '{profile.cat_name}'")
        plan_text = self.ai.complete(
            PLAN_SYSTEM_PROMPT,
            build_plan_prompt(profile),
            max_tokens=2000,
        )

        raw_json = self.ai.complete(
            STRUCTURED_SYSTEM_PROMPT,
            STRUCTURED_PROMPT_TEMPLATE.format(plan=plan_text),
            max_tokens=1000,
            json_mode=True,
        )
        outcome = parse_structured(raw_json, WellnessPlanData, fallback_plan_data)
        if outcome.used_fallback:
            logger.info(f"Structured plan data for '{profile.cat_name}' replaced with defaults")

        return GeneratedPlan(
            wellness_plan=plan_text,
            wellness_plan_data=outcome.data,
            used_fallback=outcome.used_fallback,
        )
