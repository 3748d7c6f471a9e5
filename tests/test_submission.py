import pytest
from sqlalchemy.exc import IntegrityError

from conftest import FakeAuthSession, PLAN_MARKDOWN, VALID_PLAN_DATA, VALID_PLAN_JSON, saved_plans
import cathealth.db.db_access as db
from cathealth.auth.session import Identity
from cathealth.core.database import get_db_session
from cathealth.db.models import WellnessPlan
from cathealth.core.exceptions import AuthRequired, UpstreamError, ValidationError
from cathealth.models.wellness import FALLBACK_WELLNESS_PLAN_DATA, FormProfile
from cathealth.services.submission import PlanSubmissionService
from cathealth.services.wellness_plan import WellnessPlanGenerator, build_plan_prompt
from cathealth.wizard.form_state import FORM_DATA_KEY


@pytest.fixture
def service_for(make_ai):
    def _service(session, *replies, form_store=None):
        ai = make_ai(*(replies or (PLAN_MARKDOWN, VALID_PLAN_JSON)))
        service = PlanSubmissionService(session, generator=WellnessPlanGenerator(ai), form_store=form_store)
        service.ai = ai
        return service
    return _service


def test_submit_returns_narrative_and_structured_data(service_for, signed_in, profile):
    service = service_for(signed_in)
    plan = service.submit(profile)

    assert plan.wellness_plan == PLAN_MARKDOWN
    assert plan.wellness_plan_data.model_dump(by_alias=True) == VALID_PLAN_DATA
    assert plan.used_fallback is False

    narrative_call, json_call = service.ai.client.calls
    assert "Name: Whiskers" in narrative_call["messages"][1]["content"]
    assert PLAN_MARKDOWN in json_call["messages"][1]["content"]
    assert json_call["response_format"] == {"type": "json_object"}


def test_invalid_json_yields_fallback_verbatim(service_for, signed_in, profile):
    service = service_for(signed_in, PLAN_MARKDOWN, "Sure! Here is your JSON: {oops")
    plan = service.submit(profile)

    assert plan.wellness_plan == PLAN_MARKDOWN
    assert plan.used_fallback is True
    assert plan.wellness_plan_data.model_dump(by_alias=True) == FALLBACK_WELLNESS_PLAN_DATA


def test_nonconforming_json_yields_fallback(service_for, signed_in, profile):
    service = service_for(signed_in, PLAN_MARKDOWN, '{"healthRecommendations": "eat well"}')
    plan = service.submit(profile)
    assert plan.wellness_plan_data.model_dump(by_alias=True) == FALLBACK_WELLNESS_PLAN_DATA


def test_code_fenced_json_is_accepted(service_for, signed_in, profile):
    service = service_for(signed_in, PLAN_MARKDOWN, f"```json\n{VALID_PLAN_JSON}\n```")
    plan = service.submit(profile)
    assert plan.used_fallback is False


def test_no_session_raises_before_any_ai_call(service_for, signed_out, profile):
    service = service_for(signed_out)
    with pytest.raises(AuthRequired):
        service.submit(profile)
    assert service.ai.client.calls == []


def test_missing_cat_name_is_a_validation_error(service_for, signed_in):
    service = service_for(signed_in)
    with pytest.raises(ValidationError) as exc:
        service.submit(FormProfile())
    assert exc.value.field == "catName"


def test_ai_failure_is_upstream_error(service_for, signed_in, profile):
    service = service_for(signed_in, RuntimeError("503 from provider"))
    with pytest.raises(UpstreamError):
        service.submit(profile)
    assert saved_plans() == []


def test_plan_is_upserted_per_user_and_cat(service_for, signed_in, profile):
    first = service_for(signed_in).submit(profile)
    second = service_for(signed_in).submit(profile)
    other_cat = service_for(signed_in).submit(profile.model_copy(update={"cat_name": "Mochi"}))

    assert first.plan_id is not None
    assert second.plan_id == first.plan_id
    assert other_cat.plan_id != first.plan_id

    rows = {row.cat_name: row for row in saved_plans()}
    assert set(rows) == {"Whiskers", "Mochi"}
    assert rows["Whiskers"].user_email == "owner@example.com"
    assert rows["Whiskers"].cat_data["catName"] == "Whiskers"
    assert rows["Whiskers"].plan_data == VALID_PLAN_DATA


def test_second_row_for_same_cat_is_rejected(signed_in):
    owner = signed_in.get_current()
    assert db.upsert_wellness_plan(owner.user_id, owner.email, {"catName": "Whiskers"}, PLAN_MARKDOWN, {})

    with get_db_session() as session:
        session.add(WellnessPlan(
            user_id=owner.user_id, cat_name="Whiskers", cat_data={}, plan_content="", plan_data={},
        ))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    assert len(saved_plans()) == 1


def test_identity_without_email_is_not_saved(service_for, profile):
    plan = service_for(FakeAuthSession(Identity(user_id="anon-1"))).submit(profile)
    assert plan.plan_id is None
    assert saved_plans() == []


def test_store_failure_does_not_fail_submission(service_for, signed_in, profile, monkeypatch):
    monkeypatch.setattr(db, "upsert_wellness_plan", lambda **kwargs: db.DBResult(False, "database is down"))
    plan = service_for(signed_in).submit(profile)
    assert plan.plan_id is None
    assert plan.wellness_plan == PLAN_MARKDOWN


def test_form_state_residue_is_cleared(service_for, signed_in, profile, storage, form_store):
    form_store.save(profile, 5)
    service_for(signed_in, form_store=form_store).submit(profile)
    assert FORM_DATA_KEY not in storage


def test_prompt_marks_unset_fields():
    prompt = build_plan_prompt(FormProfile(cat_name="Luna", cat_sex="Female", cat_neutered="No"))
    assert "- Name: Luna" in prompt
    assert "- Sex: Female (No)" in prompt
    assert "- Breed: Not specified" in prompt
    assert "**Behavior Issues:** None mentioned" in prompt
    assert "**Primary Goal:** General wellness and happiness" in prompt
