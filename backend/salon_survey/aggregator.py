"""Reduce stored survey responses into dashboard statistics."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from . import schemas
from .errors import AggregationFailed
from .models import utcnow
from .store import ResponseStore

logger = logging.getLogger(__name__)

MULTI_CHOICE_QUESTIONS = ("q1", "q2", "q3")
SINGLE_CHOICE_QUESTIONS = ("q5", "q6")
SCALE_VALUES = ("1", "2", "3", "4", "5")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _count_options(counter: Counter, answer: Any) -> None:
    if not isinstance(answer, dict):
        return
    options = answer.get("options")
    if not isinstance(options, list):
        return
    for option in options:
        if isinstance(option, str):
            counter[option] += 1


def _recent_summary(row: Any) -> schemas.RecentResponse:
    return schemas.RecentResponse(
        id=row.id,
        created_at=_as_utc(row.created_at),
        business_type=getattr(row, "business_type", None),
        city=getattr(row, "city", None),
        source=getattr(row, "source", None),
    )


def summarize(
    rows: Sequence[Any],
    now: datetime,
    *,
    stored_total: Optional[int] = None,
    recent_limit: int = 50,
) -> schemas.StatsReport:
    """Build a :class:`~schemas.StatsReport` from rows ordered newest first.

    ``rows`` only need the attributes of :class:`~models.SurveyResponse`.
    "Today" is the UTC calendar day of ``now``; the weekly count uses a
    rolling seven day window.
    """

    now = _as_utc(now)
    today = now.date()
    week_ago = now - timedelta(days=7)

    today_count = 0
    last_7_days = 0
    multi: Dict[str, Counter] = {name: Counter() for name in MULTI_CHOICE_QUESTIONS}
    single: Dict[str, Counter] = {name: Counter() for name in SINGLE_CHOICE_QUESTIONS}
    hist: Dict[str, int] = {value: 0 for value in SCALE_VALUES}
    q4_sum = 0.0
    q4_count = 0

    for row in rows:
        created_at = _as_utc(row.created_at)
        if created_at.date() == today:
            today_count += 1
        if created_at > week_ago:
            last_7_days += 1

        for name in MULTI_CHOICE_QUESTIONS:
            _count_options(multi[name], getattr(row, name, None))

        q4 = getattr(row, "q4", None)
        if q4:
            key = str(q4)
            hist[key] = hist.get(key, 0) + 1
            q4_sum += float(q4)
            q4_count += 1

        for name in SINGLE_CHOICE_QUESTIONS:
            value = getattr(row, name, None)
            if isinstance(value, str):
                single[name][value] += 1

    total = len(rows)
    if stored_total is None:
        stored_total = total

    return schemas.StatsReport(
        total=total,
        stored_total=stored_total,
        truncated=stored_total > total,
        today_count=today_count,
        last_7_days=last_7_days,
        q1=dict(multi["q1"]),
        q2=dict(multi["q2"]),
        q3=dict(multi["q3"]),
        q4=schemas.Q4Stats(
            avg=round(q4_sum / q4_count, 2) if q4_count else 0,
            hist=hist,
        ),
        q5=dict(single["q5"]),
        q6=dict(single["q6"]),
        recent=[_recent_summary(row) for row in rows[:recent_limit]],
    )


class Aggregator:
    """Fetches the most recent responses and summarizes them."""

    def __init__(
        self,
        store: ResponseStore,
        *,
        fetch_limit: int = 2000,
        recent_limit: int = 50,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._fetch_limit = fetch_limit
        self._recent_limit = recent_limit
        self._clock = clock

    def build_report(self) -> schemas.StatsReport:
        try:
            with self._store.session() as session:
                rows = self._store.list_recent(session, self._fetch_limit)
                stored_total = self._store.count_all(session)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load survey responses for stats")
            raise AggregationFailed() from exc

        if stored_total > len(rows):
            logger.info(
                "Stats sampled from %d of %d stored responses", len(rows), stored_total
            )
        return summarize(
            rows,
            self._clock(),
            stored_total=stored_total,
            recent_limit=self._recent_limit,
        )
