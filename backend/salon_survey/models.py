"""SQLAlchemy model for persisted survey responses."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

IP_MAX_LENGTH = 64


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SurveyResponse(Base):
    __tablename__ = "survey_responses"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    q1 = Column(JSON, nullable=True)
    q2 = Column(JSON, nullable=True)
    q3 = Column(JSON, nullable=True)
    q4 = Column(Integer, nullable=True)
    q5 = Column(Text, nullable=True)
    q6 = Column(Text, nullable=True)
    q7 = Column(JSON, nullable=True)
    business_type = Column(Text, nullable=True)
    city = Column(Text, nullable=True)
    source = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    ip = Column(String(IP_MAX_LENGTH), index=True, nullable=False)
