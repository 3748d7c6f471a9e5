# wizard/form_state.py
import json
import logging
from typing import Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from cathealth.models.wellness import FormProfile
from cathealth.wizard.storage import DurableStorage

logger = logging.getLogger(__name__)

FORM_DATA_KEY = "cathealth.wellness.formData"
CURRENT_STEP_KEY = "cathealth.wellness.currentStep"

FIRST_STEP = 1
RESULTS_STEP = 6


class FormStateStore:
    """
    Saves the wizard's answers and position across the sign-in redirect.

    Anything unreadable on ``load`` is treated as absent and removed, so a bad
    slot can never block the wizard.
    """

    def __init__(self, storage: DurableStorage):
        self.storage = storage

    def save(self, profile: FormProfile, position: int) -> None:
        self.storage.set_item(FORM_DATA_KEY, json.dumps(profile.to_wire()))
        self.storage.set_item(CURRENT_STEP_KEY, str(position))
        logger.debug(f"Saved wizard state at step {position}")

    def load(self) -> Tuple[Optional[FormProfile], Optional[int]]:
        return self._load_profile(), self._load_position()

    def clear(self) -> None:
        self.storage.remove_item(FORM_DATA_KEY)
        self.storage.remove_item(CURRENT_STEP_KEY)

    def _load_profile(self) -> Optional[FormProfile]:
        raw = self.storage.get_item(FORM_DATA_KEY)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError("saved form data is not an object")
            return FormProfile.model_validate(payload)
        except (ValueError, PydanticValidationError) as e:
            logger.warning(f"Discarding unreadable saved form data: {e}")
            self.storage.remove_item(FORM_DATA_KEY)
            return None

    def _load_position(self) -> Optional[int]:
        raw = self.storage.get_item(CURRENT_STEP_KEY)
        if raw is None:
            return None
        try:
            position = int(raw.strip())
        except ValueError:
            position = None
        if position is None or not FIRST_STEP <= position <= RESULTS_STEP:
            logger.warning(f"Discarding invalid saved wizard step: {raw!r}")
            self.storage.remove_item(CURRENT_STEP_KEY)
            return None
        return position
