# cathealth/db/db_access.py

import logging
import uuid
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone

from cathealth.core.database import get_db_session
from .models import WellnessPlan

logger = logging.getLogger(__name__)


class DBResult:
    """Standardized result object for database operations."""

    def __init__(self, success: bool, message: str, data: Optional[Any] = None):
        self.success = success
        self.message = message
        self.data = data

    @property
    def id(self) -> Optional[str]:
        if isinstance(self.data, str):
            return self.data
        if isinstance(self.data, dict) and "id" in self.data:
            return self.data["id"]
        if hasattr(self.data, "id"):
            return str(self.data.id)
        return None

    def __bool__(self) -> bool:
        return self.success


def _plan_to_dict(plan: WellnessPlan, include_content: bool = True) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": plan.id,
        "user_id": plan.user_id,
        "user_email": plan.user_email,
        "cat_name": plan.cat_name,
        "email_sent": bool(plan.email_sent),
        "email_sent_at": plan.email_sent_at,
        "created_at": plan.created_at,
        "updated_at": plan.updated_at,
    }
    if include_content:
        out["cat_data"] = plan.cat_data
        out["plan_content"] = plan.plan_content
        out["plan_data"] = plan.plan_data
    return out


# ------------------------------------------------------------------
# WELLNESS PLAN CRUD
# ------------------------------------------------------------------

def upsert_wellness_plan(
    user_id: str,
    user_email: Optional[str],
    cat_data: Dict[str, Any],
    plan_content: str,
    plan_data: Dict[str, Any],
) -> DBResult:
    """
    Save a generated plan under (user_id, cat name).
    An existing row for the same cat is overwritten in place; otherwise a new
    row is inserted. ``data`` on success is the plan id.
    """
    cat_name = cat_data.get("catName", "")
    now = datetime.now(timezone.utc)
    with get_db_session() as db:
        try:
            existing = (
                db.query(WellnessPlan)
                .filter(WellnessPlan.user_id == user_id, WellnessPlan.cat_name == cat_name)
                .first()
            )
            if existing:
                existing.cat_data = cat_data
                existing.plan_content = plan_content
                existing.plan_data = plan_data
                existing.updated_at = now
                db.commit()
                return DBResult(True, "Wellness plan updated", existing.id)

            plan = WellnessPlan(
                id=str(uuid.uuid4()),
                user_id=user_id,
                user_email=user_email,
                cat_name=cat_name,
                cat_data=cat_data,
                plan_content=plan_content,
                plan_data=plan_data,
                email_sent=False,
                created_at=now,
                updated_at=now,
            )
            db.add(plan)
            db.commit()
            return DBResult(True, "Wellness plan created", plan.id)
        except Exception as e:
            db.rollback()
            logger.error(f"Error saving wellness plan for user {user_id}: {e}")
            return DBResult(False, f"Error saving wellness plan: {e}")


def get_user_wellness_plans(user_id: str) -> List[Dict[str, Any]]:
    """Return a summary list of a user's saved plans, newest first."""
    with get_db_session() as db:
        try:
            plans = (
                db.query(WellnessPlan)
                .filter(WellnessPlan.user_id == user_id)
                .order_by(WellnessPlan.updated_at.desc())
                .all()
            )
            return [_plan_to_dict(p, include_content=False) for p in plans]
        except Exception as e:
            logger.error(f"Error fetching wellness plans for user {user_id}: {e}")
            return []


def get_wellness_plan(plan_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    """Retrieve one plan, only if it belongs to ``user_id``."""
    with get_db_session() as db:
        try:
            plan = (
                db.query(WellnessPlan)
                .filter(WellnessPlan.id == plan_id, WellnessPlan.user_id == user_id)
                .first()
            )
            return _plan_to_dict(plan) if plan else None
        except Exception as e:
            logger.error(f"Error fetching wellness plan {plan_id}: {e}")
            return None


def mark_plan_emailed(plan_id: str, user_id: str, user_email: str) -> DBResult:
    """Record that a plan was delivered by email, and to which address."""
    with get_db_session() as db:
        try:
            plan = (
                db.query(WellnessPlan)
                .filter(WellnessPlan.id == plan_id, WellnessPlan.user_id == user_id)
                .first()
            )
            if not plan:
                return DBResult(False, "Wellness plan not found")
            plan.email_sent = True
            plan.email_sent_at = datetime.now(timezone.utc)
            plan.user_email = user_email
            db.commit()
            return DBResult(True, "Wellness plan marked as emailed", plan.id)
        except Exception as e:
            db.rollback()
            logger.error(f"Error marking wellness plan {plan_id} as emailed: {e}")
            return DBResult(False, f"Error updating wellness plan: {e}")
