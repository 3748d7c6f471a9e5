import json
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import FakeOpenAI, PLAN_MARKDOWN, VALID_PLAN_DATA, VALID_PLAN_JSON
import cathealth.api.diagnose as diagnose_api
import cathealth.api.wellness as wellness_api
import cathealth.api.wellness_email as wellness_email_api
from cathealth.core.security import create_access_token
from cathealth.main import app
from cathealth.models.wellness import FALLBACK_WELLNESS_PLAN_DATA

WIZARD_FORM = {
    "catName": "Whiskers",
    "catAge": "Adult (1-7 years)",
    "catSex": "Male",
    "behaviorIssues": ["Scratching furniture", "Excessive meowing"],
    "primaryGoal": "General wellness & happiness",
}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def ai_replies(monkeypatch):
    """Queue chat-completion replies for every AI-backed route."""
    def _queue(*replies):
        fake = FakeOpenAI(*replies)
        monkeypatch.setattr(wellness_api.plan_generator.ai, "client", fake)
        monkeypatch.setattr(diagnose_api.diagnosis_service.ai, "client", fake)
        return fake
    return _queue


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def sender(recipient, cat_name, plan):
        sent.append((recipient, cat_name, plan))
        return True

    monkeypatch.setattr(wellness_email_api.email_service, "sender", sender)
    return sent


# --- root & health ---

def test_root_and_health(client):
    assert client.get("/").json()["status"] == "online"
    assert client.get("/health").json() == {"status": "healthy"}


# --- POST /api/wellness ---

def test_wellness_requires_session(client, ai_replies):
    fake = ai_replies(PLAN_MARKDOWN, VALID_PLAN_JSON)
    response = client.post("/api/wellness", data=WIZARD_FORM)
    assert response.status_code == 401
    assert "error" in response.json()
    assert fake.calls == []


def test_wellness_rejects_expired_token(client, ai_replies):
    ai_replies(PLAN_MARKDOWN, VALID_PLAN_JSON)
    token = create_access_token("user-1", email="owner@example.com", expires_delta=timedelta(minutes=-5))
    response = client.post("/api/wellness", data=WIZARD_FORM, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_wellness_requires_cat_name(client, ai_replies, auth_headers):
    ai_replies(PLAN_MARKDOWN, VALID_PLAN_JSON)
    response = client.post("/api/wellness", data={**WIZARD_FORM, "catName": ""}, headers=auth_headers())
    assert response.status_code == 400
    assert response.json() == {"error": "Cat name is required"}


def test_wellness_generates_and_saves_plan(client, ai_replies, auth_headers):
    fake = ai_replies(PLAN_MARKDOWN, VALID_PLAN_JSON)
    response = client.post("/api/wellness", data=WIZARD_FORM, headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["wellnessPlan"] == PLAN_MARKDOWN
    assert body["wellnessPlanData"] == VALID_PLAN_DATA
    assert body["isAuthenticated"] is True
    assert body["planId"]

    prompt = fake.calls[0]["messages"][1]["content"]
    assert "**Behavior Issues:** Scratching furniture, Excessive meowing" in prompt

    plans = client.get("/api/wellness/plans", headers=auth_headers()).json()["plans"]
    assert [p["cat_name"] for p in plans] == ["Whiskers"]

    saved = client.get(f"/api/wellness/plans/{body['planId']}", headers=auth_headers()).json()
    assert saved["cat_data"]["behaviorIssues"] == ["Scratching furniture", "Excessive meowing"]


def test_wellness_falls_back_on_bad_json(client, ai_replies, auth_headers):
    ai_replies(PLAN_MARKDOWN, "{ definitely not json")
    body = client.post("/api/wellness", data=WIZARD_FORM, headers=auth_headers()).json()
    assert body["wellnessPlanData"] == FALLBACK_WELLNESS_PLAN_DATA


def test_wellness_ai_failure_is_500(client, ai_replies, auth_headers):
    ai_replies(RuntimeError("provider down"))
    response = client.post("/api/wellness", data=WIZARD_FORM, headers=auth_headers())
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process the wellness plan"}


# --- saved plans ---

def test_plans_require_session(client):
    assert client.get("/api/wellness/plans").status_code == 401


def test_foreign_plan_is_not_found(client, ai_replies, auth_headers):
    ai_replies(PLAN_MARKDOWN, VALID_PLAN_JSON)
    plan_id = client.post("/api/wellness", data=WIZARD_FORM, headers=auth_headers()).json()["planId"]

    response = client.get(f"/api/wellness/plans/{plan_id}", headers=auth_headers(user_id="someone-else"))
    assert response.status_code == 404
    assert response.json() == {"error": "Wellness plan not found"}


# --- POST /api/wellness/email ---

def test_email_requires_session(client, outbox):
    response = client.post("/api/wellness/email", json={"userEmail": "a@b.co", "wellnessPlan": "x"})
    assert response.status_code == 401
    assert outbox == []


def test_email_validates_address(client, outbox, auth_headers):
    response = client.post(
        "/api/wellness/email",
        json={"userEmail": "not-an-email", "wellnessPlan": PLAN_MARKDOWN},
        headers=auth_headers(),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid email address"}
    assert outbox == []


def test_email_sends_plan(client, outbox, auth_headers):
    response = client.post(
        "/api/wellness/email",
        json={"userEmail": "owner@example.com", "wellnessPlan": PLAN_MARKDOWN, "catName": "Whiskers"},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Wellness plan has been sent to owner@example.com"}
    assert outbox == [("owner@example.com", "Whiskers", PLAN_MARKDOWN)]


def test_email_failure_is_500(client, monkeypatch, auth_headers):
    monkeypatch.setattr(wellness_email_api.email_service, "sender", lambda *args: False)
    response = client.post(
        "/api/wellness/email",
        json={"userEmail": "owner@example.com", "wellnessPlan": PLAN_MARKDOWN},
        headers=auth_headers(),
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send email"}


# --- POST /api/wellness/pdf ---

def test_pdf_download(client):
    response = client.post("/api/wellness/pdf", json={"wellnessPlan": PLAN_MARKDOWN, "catName": "Whiskers"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="Whiskers_Wellness_Plan.pdf"'
    assert response.content.startswith(b"%PDF")


def test_pdf_of_empty_plan_still_downloads(client):
    response = client.post("/api/wellness/pdf", json={"wellnessPlan": "", "catName": "Whiskers"})
    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


# --- POST /api/diagnose ---

DIAGNOSIS_JSON = json.dumps({
    "severityScore": 0.4,
    "possibleCauses": [{"name": "Dental disease", "probability": 0.7}],
    "recommendedActions": [{"action": "Book a dental check", "urgency": 0.6}],
})


def test_diagnose_requires_image_or_symptoms(client, ai_replies):
    fake = ai_replies()
    response = client.post("/api/diagnose", data={"petName": "Mochi"})
    assert response.status_code == 400
    assert response.json() == {"error": "Either an image or symptoms description is required"}
    assert fake.calls == []


def test_diagnose_from_symptoms(client, ai_replies):
    ai_replies("## Assessment\nLikely dental pain.", DIAGNOSIS_JSON)
    response = client.post("/api/diagnose", data={"petName": "Mochi", "symptoms": "Drooling", "petAge": "9 years"})
    assert response.status_code == 200
    body = response.json()
    assert body["diagnosis"].startswith("## Assessment")
    assert body["diagnosisData"]["severityScore"] == 0.4


def test_diagnose_with_image(client, ai_replies):
    fake = ai_replies("Looks like a minor scratch.", DIAGNOSIS_JSON)
    response = client.post(
        "/api/diagnose",
        data={"petName": "Mochi"},
        files={"image": ("paw.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")},
    )
    assert response.status_code == 200
    content = fake.calls[0]["messages"][1]["content"]
    assert content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")


def test_diagnose_ai_failure(client, ai_replies):
    ai_replies(RuntimeError("provider down"))
    response = client.post("/api/diagnose", data={"petName": "Mochi", "symptoms": "Sneezing"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process the diagnosis"}
