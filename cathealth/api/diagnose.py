# cathealth/api/diagnose.py

from fastapi import APIRouter, File, Form, UploadFile
from typing import Optional
import logging

from cathealth.core.exceptions import UpstreamError, ValidationError
from cathealth.models.diagnosis import DiagnosisResponse
from cathealth.services.diagnosis import DiagnosisService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Diagnosis"])

# Initialize the diagnosis service
diagnosis_service = DiagnosisService()


@router.post("/diagnose", response_model=DiagnosisResponse, response_model_by_alias=True)
def diagnose(
    image: Optional[UploadFile] = File(None),
    symptoms: str = Form(""),
    pet_name: str = Form("", alias="petName"),
    pet_age: str = Form("", alias="petAge"),
):
    """Preliminary assessment from a symptom description and/or a photo. No sign-in needed."""
    image_bytes = None
    image_type = None
    # browsers post an empty file part when nothing was picked
    if image is not None and image.filename:
        image_bytes = image.file.read()
        image_type = image.content_type

    logger.info(f"Received diagnosis request for '{pet_name}' (image: {bool(image_bytes)})")
    try:
        return diagnosis_service.diagnose(
            pet_name=pet_name or "my cat",
            symptoms=symptoms,
            pet_age=pet_age,
            image=image_bytes,
            image_type=image_type,
        )
    except ValidationError:
        raise
    except Exception as e:
        logger.error(f"Error processing diagnosis: {str(e)}")
        raise UpstreamError("Failed to process the diagnosis") from e
