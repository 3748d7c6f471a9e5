# services/diagnosis.py
import base64
import logging
from typing import Optional

from cathealth.core.exceptions import ValidationError
from cathealth.models.diagnosis import DiagnosisData, DiagnosisResponse, fallback_diagnosis_data
from cathealth.services.ai_client import AIClient, parse_structured

logger = logging.getLogger(__name__)

VISUALIZATION_SYSTEM_PROMPT = (
    "You are a helpful assistant that generates JSON data for visualizations based on medical diagnoses."
)

VISUALIZATION_PROMPT_TEMPLATE = """Based on the following cat health diagnosis, generate visualization data in JSON format:

{diagnosis}

Please provide:
1. A severity score between 0.1 and 0.9
2. A list of 3-5 possible causes with probability scores between 0.1 and 0.9
3. A list of 3-4 recommended actions with urgency scores between 0.1 and 0.9

The severity score should reflect how serious the condition is.
The probability scores should reflect how likely each cause is.
The urgency scores should reflect how urgent each action is.

Return ONLY valid JSON in this exact format without any explanation:
{{
  "severityScore": 0.5,
  "possibleCauses": [
    {{ "name": "string", "probability": 0.5 }}
  ],
  "recommendedActions": [
    {{ "action": "string", "urgency": 0.5 }}
  ]
}}"""


def build_system_prompt(has_image: bool) -> str:
    if has_image:
        first = "Analyze the image of the cat's health concern"
        second = "Consider the symptoms described by the owner"
    else:
        first = "Consider the symptoms described by the owner"
        second = "Analyze the symptoms in detail"
    return (
        "You are a veterinary assistant AI that helps identify potential health issues in cats based on "
        f"{'images and ' if has_image else ''}symptoms described.\n\n"
        "Your task is to:\n"
        f"1. {first}\n"
        f"2. {second}\n"
        "3. Provide a preliminary assessment of what the issue might be\n"
        "4. Suggest potential causes\n"
        "5. Recommend appropriate next steps (when to see a vet, home care tips, etc.)\n"
        "6. Include any warning signs to watch for\n"
        "Mention the name of the cat in the response\n\n"
        "Format your response in markdown with clear sections - be helpful and concise in your response\n\n"
        "Be professional, compassionate, and helpful without being alarmist."
    )


def build_user_prompt(pet_name: str, pet_age: str, symptoms: str, has_image: bool) -> str:
    age = f" who is {pet_age} old" if pet_age else ""
    photo = "I've attached a photo of the affected area. " if has_image else ""
    return (
        f"I'm concerned about my cat {pet_name}{age}.\n\n"
        f"Symptoms: {symptoms}\n\n"
        f"{photo}Can you help identify what might be wrong and what I should do?"
    )


class DiagnosisService:
    """Preliminary, non-authoritative assessment of a cat's symptoms and/or photo."""

    def __init__(self, ai: Optional[AIClient] = None):
        self.ai = ai or AIClient()

    def diagnose(
        self,
        pet_name: str,
        symptoms: str,
        pet_age: str = "",
        image: Optional[bytes] = None,
        image_type: Optional[str] = None,
    ) -> DiagnosisResponse:
        symptoms = (symptoms or "").strip()
        has_image = bool(image)
        if not has_image and not symptoms:
            raise ValidationError("Either an image or symptoms description is required", field="symptoms")

        prompt = build_user_prompt(pet_name, pet_age, symptoms, has_image)
        if has_image:
            data_uri = f"data:{image_type or 'image/jpeg'};base64,{base64.b64encode(image).decode('ascii')}"
            user_content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": data_uri}},
            ]
        else:
            user_content = prompt

        logger.info(f"Diagnosing '{pet_name}' (image: {has_image})")
        diagnosis = self.ai.complete(build_system_prompt(has_image), user_content, max_tokens=1000)

        raw_json = self.ai.complete(
            VISUALIZATION_SYSTEM_PROMPT,
            VISUALIZATION_PROMPT_TEMPLATE.format(diagnosis=diagnosis),
            max_tokens=500,
            json_mode=True,
        )
        outcome = parse_structured(raw_json, DiagnosisData, fallback_diagnosis_data)
        return DiagnosisResponse(diagnosis=diagnosis, diagnosis_data=outcome.data)
