# models/diagnosis.py
import copy
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PossibleCause(BaseModel):
    name: str
    probability: float


class RecommendedAction(BaseModel):
    action: str
    urgency: float


class DiagnosisData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    severity_score: float = Field(alias="severityScore")
    possible_causes: List[PossibleCause] = Field(alias="possibleCauses")
    recommended_actions: List[RecommendedAction] = Field(alias="recommendedActions")


FALLBACK_DIAGNOSIS_DATA = {
    "severityScore": 0.5,
    "possibleCauses": [
        {"name": "Unknown Cause", "probability": 0.5},
    ],
    "recommendedActions": [
        {"action": "Consult Veterinarian", "urgency": 0.7},
    ],
}


def fallback_diagnosis_data() -> DiagnosisData:
    return DiagnosisData.model_validate(copy.deepcopy(FALLBACK_DIAGNOSIS_DATA))


class DiagnosisResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    diagnosis: str
    diagnosis_data: Optional[DiagnosisData] = Field(None, alias="diagnosisData")
