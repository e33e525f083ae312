"""Response store backed by a SQLAlchemy engine.

The store is an explicit handle: the application builds one at startup,
hands it to the submission gate and the aggregator, and disposes it at
shutdown.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import Settings
from .models import Base, SurveyResponse

logger = logging.getLogger(__name__)


def _connect_args(database_url: str, timeout_seconds: float) -> Dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout_seconds}
    if database_url.startswith("postgresql"):
        return {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        }
    return {}


def build_engine(database_url: str, timeout_seconds: float) -> Engine:
    options: Dict[str, Any] = {
        "connect_args": _connect_args(database_url, timeout_seconds),
        "future": True,
    }
    if not database_url.startswith("sqlite"):
        options["pool_timeout"] = timeout_seconds
        options["pool_pre_ping"] = True
    return create_engine(database_url, **options)


class ResponseStore:
    """Persistence operations over the ``survey_responses`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessionmaker = sessionmaker(
            bind=engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResponseStore":
        return cls(build_engine(settings.database_url, settings.store_timeout_seconds))

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self._engine)

    def session(self) -> Session:
        return self._sessionmaker()

    def count_from_ip(self, session: Session, ip: str, since: datetime) -> int:
        stmt = (
            select(func.count(SurveyResponse.id))
            .where(SurveyResponse.ip == ip, SurveyResponse.created_at > since)
        )
        return int(session.execute(stmt).scalar_one())

    def add(self, session: Session, response: SurveyResponse) -> SurveyResponse:
        session.add(response)
        session.flush()
        return response

    def list_recent(self, session: Session, limit: int) -> List[SurveyResponse]:
        stmt = (
            select(SurveyResponse)
            .order_by(SurveyResponse.created_at.desc(), SurveyResponse.id.desc())
            .limit(limit)
        )
        return list(session.execute(stmt).scalars().all())

    def count_all(self, session: Session) -> int:
        return int(session.execute(select(func.count(SurveyResponse.id))).scalar_one())

    def dispose(self) -> None:
        logger.info("Disposing response store engine")
        self._engine.dispose()
