"""Acceptance policy for new survey responses."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from . import schemas
from .errors import AlreadySubmitted, InsertFailed, RateLimited, ServiceUnavailable
from .models import IP_MAX_LENGTH, SurveyResponse, utcnow
from .store import ResponseStore

logger = logging.getLogger(__name__)

LOOPBACK_IP = "127.0.0.1"
UNKNOWN_USER_AGENT = "unknown"


def client_ip_from_forwarded(forwarded_for: Optional[str]) -> str:
    """Return the first address listed in an ``x-forwarded-for`` header.

    The value is truncated to the width of the ``ip`` column; it is only a
    rate-limit key, not a verified address.
    """

    if not forwarded_for:
        return LOOPBACK_IP
    first = forwarded_for.split(",")[0].strip()[:IP_MAX_LENGTH]
    return first or LOOPBACK_IP


def _dump_answer(answer: Optional[schemas.MultiChoiceAnswer]) -> Optional[dict]:
    if answer is None:
        return None
    return answer.model_dump()


class SubmissionGate:
    """Decides whether a response is accepted and persists it when it is.

    The completion marker is a client-held cookie, so it only short-circuits
    honest repeat visits. The per-IP sliding window count is what actually
    limits submissions.
    """

    def __init__(
        self,
        store: ResponseStore,
        *,
        max_per_window: int = 10,
        window_seconds: int = 3600,
        enforce_marker: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._max_per_window = max_per_window
        self._window = timedelta(seconds=window_seconds)
        self._enforce_marker = enforce_marker
        self._clock = clock

    def submit(
        self,
        payload: schemas.SurveyResponseIn,
        *,
        client_ip: str,
        user_agent: Optional[str] = None,
        already_submitted: bool = False,
    ) -> SurveyResponse:
        if already_submitted and self._enforce_marker:
            logger.info("Rejected repeat submission from %s", client_ip)
            raise AlreadySubmitted()

        now = self._clock()
        with self._store.session() as session:
            # Count and insert share one transaction; concurrent requests from
            # the same IP can still both pass the count.
            try:
                recent = self._store.count_from_ip(session, client_ip, now - self._window)
            except SQLAlchemyError as exc:
                logger.exception("Rate limit check failed for %s", client_ip)
                raise ServiceUnavailable() from exc

            if recent >= self._max_per_window:
                logger.warning(
                    "Rate limit exceeded for %s (%d submissions in window)", client_ip, recent
                )
                raise RateLimited()

            response = SurveyResponse(
                q1=_dump_answer(payload.q1),
                q2=_dump_answer(payload.q2),
                q3=_dump_answer(payload.q3),
                q4=payload.q4,
                q5=payload.q5,
                q6=payload.q6,
                q7=_dump_answer(payload.q7),
                business_type=payload.business_type,
                city=payload.city,
                source=payload.source,
                user_agent=user_agent or UNKNOWN_USER_AGENT,
                ip=client_ip,
                created_at=now,
            )
            try:
                self._store.add(session, response)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to persist survey response from %s", client_ip)
                raise InsertFailed() from exc

        logger.info("Accepted survey response %s from %s", response.id, client_ip)
        return response
