# tests/conftest.py
import json
import os
from types import SimpleNamespace
from typing import Optional

# Must be configured before any cathealth module is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.pop("SENDGRID_API_KEY", None)

import pytest

from cathealth.auth.session import AuthSession, Identity
from cathealth.core.database import Base, engine, get_db_session
from cathealth.core.security import create_access_token
from cathealth.db.models import WellnessPlan
from cathealth.models.wellness import FormProfile
from cathealth.services.ai_client import AIClient
from cathealth.wizard.form_state import FormStateStore
from cathealth.wizard.resume import Navigator
from cathealth.wizard.storage import MemoryStorage

PLAN_MARKDOWN = """# Whiskers' Wellness & Behavior Plan

## Greeting & Cat Overview
Hi there! Whiskers is a **playful** adult cat who loves chasing toys.

## Health & Wellness Recommendations
### Nutrition
- Feed two measured wet meals a day
- Keep fresh water in at least two spots

### Exercise
Aim for two 15-minute play sessions with a [wand toy](https://example.com/wand).

## Behavior Training & Advice
1. Redirect scratching to a sturdy post
2. Reward calm behavior with treats

## Enrichment & Environment
Add a window perch so Whiskers can watch birds.

## Follow-Up & Maintenance
- Week 1: set up the new feeding schedule
- Week 2: introduce puzzle feeders
"""

VALID_PLAN_DATA = {
    "healthRecommendations": {
        "nutrition": "Two wet meals a day",
        "exercise": "Two play sessions daily",
        "preventiveCare": "Annual check-up",
        "environment": "Window perch",
    },
    "behaviorTraining": {"scratching": "Redirect to a post"},
    "enrichmentPlan": {
        "play": "Wand toys",
        "toys": "Rotate weekly",
        "environment": "Cat tree",
        "social": "Daily brushing",
        "rest": "Quiet bed",
    },
    "followUpSchedule": [
        {"week": 1, "tasks": ["New feeding schedule"]},
        {"week": 2, "tasks": ["Puzzle feeders"]},
    ],
}
VALID_PLAN_JSON = json.dumps(VALID_PLAN_DATA)


# ------------------------------------------------------------------
# OpenAI double
# ------------------------------------------------------------------

class FakeCompletions:
    """Stands in for ``client.chat.completions``; replies are consumed in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))]
        )


class FakeOpenAI:
    def __init__(self, *replies):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls


@pytest.fixture
def make_ai():
    """Build an AIClient whose chat completions return the given replies."""
    def _make(*replies):
        return AIClient(client=FakeOpenAI(*replies), model="test-model")
    return _make


# ------------------------------------------------------------------
# Auth and navigation doubles
# ------------------------------------------------------------------

class FakeAuthSession(AuthSession):
    def __init__(self, identity: Optional[Identity] = None):
        super().__init__()
        self.identity = identity

    def get_current(self) -> Optional[Identity]:
        return self.identity

    def sign_in(self, identity: Identity) -> None:
        self.identity = identity
        self._emit(identity)

    def sign_out(self) -> None:
        self.identity = None
        self._emit(None)


class RecordingNavigator(Navigator):
    def __init__(self):
        self.redirects = []
        self.replaced = []

    def redirect(self, url: str) -> None:
        self.redirects.append(url)

    def replace_url(self, url: str) -> None:
        self.replaced.append(url)


OWNER = Identity(user_id="user-1", email="owner@example.com")


@pytest.fixture
def owner():
    return OWNER


@pytest.fixture
def signed_in():
    return FakeAuthSession(OWNER)


@pytest.fixture
def signed_out():
    return FakeAuthSession()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def form_store(storage):
    return FormStateStore(storage)


@pytest.fixture
def profile():
    return FormProfile(
        cat_name="Whiskers",
        cat_age="Adult (1-7 years)",
        cat_sex="Male",
        cat_neutered="Yes",
        behavior_issues=["Scratching furniture"],
        favorite_activities=["Chasing toys", "Watching birds"],
        primary_goal="General wellness & happiness",
    )


@pytest.fixture
def auth_headers():
    def _headers(user_id: str = "user-1", email: Optional[str] = "owner@example.com"):
        token = create_access_token(user_id, email=email)
        return {"Authorization": f"Bearer {token}"}
    return _headers


# ------------------------------------------------------------------
# Database
# ------------------------------------------------------------------

@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_wellness_plans():
    yield
    with get_db_session() as db:
        db.query(WellnessPlan).delete()
        db.commit()


def saved_plans():
    with get_db_session() as db:
        return db.query(WellnessPlan).all()


