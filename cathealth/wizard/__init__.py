# wizard/__init__.py
"""
The wellness wizard: step navigation, saved state and the sign-in round trip
"""

from .storage import DurableStorage, MemoryStorage, RedisStorage

from .form_state import FormStateStore, FORM_DATA_KEY, CURRENT_STEP_KEY

from .steps import StepDefinition, WELLNESS_STEPS, INPUT_STEPS, RESULTS_STEP

from .state_machine import WellnessWizard, Notification

from .resume import (
    AuthResumeController,
    Navigator,
    has_resume_marker,
    strip_resume_marker,
    signin_url,
)

__all__ = [
    # Storage
    "DurableStorage",
    "MemoryStorage",
    "RedisStorage",
    "FormStateStore",
    "FORM_DATA_KEY",
    "CURRENT_STEP_KEY",

    # Steps
    "StepDefinition",
    "WELLNESS_STEPS",
    "INPUT_STEPS",
    "RESULTS_STEP",

    # Wizard
    "WellnessWizard",
    "Notification",
    "AuthResumeController",
    "Navigator",
    "has_resume_marker",
    "strip_resume_marker",
    "signin_url",
]
