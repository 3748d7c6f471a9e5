# db/models.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from cathealth.core.database import Base
import uuid

def generate_uuid():
    return str(uuid.uuid4())

class WellnessPlan(Base):
    __tablename__ = 'wellness_plans'

    id            = Column(String(36), primary_key=True, default=generate_uuid)
    # user ids are issued by the external auth provider
    user_id       = Column(String(64), nullable=False, index=True)
    user_email    = Column(String(255), nullable=True)
    cat_name      = Column(String(255), nullable=False)

    cat_data      = Column(JSON, nullable=False)
    plan_content  = Column(Text, nullable=False)
    plan_data     = Column(JSON, nullable=False)

    email_sent    = Column(Boolean, nullable=False, default=False)
    email_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at    = Column(DateTime(timezone=True), server_default=func.now())
    updated_at    = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'cat_name', name='uq_wellness_plans_user_cat'),
    )
