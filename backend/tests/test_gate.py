import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.salon_survey import schemas  # noqa: E402
from backend.salon_survey.errors import (  # noqa: E402
    AlreadySubmitted,
    InsertFailed,
    RateLimited,
    ServiceUnavailable,
)
from backend.salon_survey.gate import SubmissionGate, client_ip_from_forwarded  # noqa: E402
from backend.salon_survey.models import SurveyResponse  # noqa: E402
from backend.salon_survey.store import ResponseStore, build_engine  # noqa: E402

T0 = datetime(2024, 5, 10, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class UntouchableStore:
    def session(self):
        raise AssertionError("store must not be used")


class FailingCountStore(ResponseStore):
    def count_from_ip(self, session, ip, since):
        raise OperationalError("SELECT count(*)", {}, Exception("database is locked"))


class FailingInsertStore(ResponseStore):
    def add(self, session, response):
        raise OperationalError("INSERT INTO survey_responses", {}, Exception("disk I/O error"))


def _make_store(tmp_path, store_cls=ResponseStore):
    store = store_cls(build_engine(f"sqlite:///{tmp_path / 'survey.db'}", 5))
    store.create_schema()
    return store


@pytest.fixture
def store(tmp_path):
    store = _make_store(tmp_path)
    yield store
    store.dispose()


@pytest.fixture
def clock():
    return FakeClock(T0)


def _payload(**overrides) -> schemas.SurveyResponseIn:
    data = {
        "q1": {"options": ["WhatsApp", "Outro"], "other": "Telegram"},
        "q4": 3,
        "q5": "Sim, muito!",
        "business_type": "Barbearia",
        "source": "direct",
    }
    data.update(overrides)
    return schemas.SurveyResponseIn(**data)


def _stored_rows(store):
    with store.session() as session:
        return session.query(SurveyResponse).order_by(SurveyResponse.id).all()


def test_submit_persists_response(store, clock):
    gate = SubmissionGate(store, clock=clock)

    stored = gate.submit(_payload(), client_ip="203.0.113.7", user_agent="Mozilla/5.0")

    rows = _stored_rows(store)
    assert [row.id for row in rows] == [stored.id]
    row = rows[0]
    assert row.q1 == {"options": ["WhatsApp", "Outro"], "other": "Telegram"}
    assert row.q2 is None
    assert row.q4 == 3
    assert row.ip == "203.0.113.7"
    assert row.user_agent == "Mozilla/5.0"
    assert row.created_at.replace(tzinfo=timezone.utc) == T0


def test_submit_defaults_unknown_user_agent(store, clock):
    gate = SubmissionGate(store, clock=clock)

    gate.submit(_payload(), client_ip="203.0.113.7")

    assert _stored_rows(store)[0].user_agent == "unknown"


def test_tenth_submission_accepted_and_eleventh_rate_limited(store, clock):
    gate = SubmissionGate(store, max_per_window=10, window_seconds=3600, clock=clock)

    for _ in range(10):
        gate.submit(_payload(), client_ip="198.51.100.1")
        clock.advance(seconds=30)

    with pytest.raises(RateLimited):
        gate.submit(_payload(), client_ip="198.51.100.1")
    assert len(_stored_rows(store)) == 10


def test_rate_limit_window_slides(store, clock):
    gate = SubmissionGate(store, max_per_window=2, window_seconds=3600, clock=clock)
    gate.submit(_payload(), client_ip="198.51.100.1")
    clock.advance(minutes=30)
    gate.submit(_payload(), client_ip="198.51.100.1")

    with pytest.raises(RateLimited):
        gate.submit(_payload(), client_ip="198.51.100.1")

    # The first submission drops out of the window, the second is still inside.
    clock.advance(minutes=30, seconds=1)
    gate.submit(_payload(), client_ip="198.51.100.1")
    with pytest.raises(RateLimited):
        gate.submit(_payload(), client_ip="198.51.100.1")


def test_rate_limit_is_tracked_per_ip(store, clock):
    gate = SubmissionGate(store, max_per_window=1, clock=clock)
    gate.submit(_payload(), client_ip="198.51.100.1")

    gate.submit(_payload(), client_ip="198.51.100.2")

    with pytest.raises(RateLimited):
        gate.submit(_payload(), client_ip="198.51.100.1")


def test_completion_marker_rejects_without_touching_store(clock):
    gate = SubmissionGate(UntouchableStore(), clock=clock)

    with pytest.raises(AlreadySubmitted) as excinfo:
        gate.submit(_payload(), client_ip="198.51.100.1", already_submitted=True)
    assert excinfo.value.status_code == 400


def test_completion_marker_ignored_when_not_enforced(store, clock):
    gate = SubmissionGate(store, enforce_marker=False, clock=clock)

    gate.submit(_payload(), client_ip="198.51.100.1", already_submitted=True)

    assert len(_stored_rows(store)) == 1


def test_count_failure_is_service_unavailable(tmp_path, clock):
    store = _make_store(tmp_path, FailingCountStore)
    gate = SubmissionGate(store, clock=clock)

    with pytest.raises(ServiceUnavailable) as excinfo:
        gate.submit(_payload(), client_ip="198.51.100.1")

    assert excinfo.value.status_code == 500
    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert _stored_rows(store) == []
    store.dispose()


def test_insert_failure_is_insert_failed(tmp_path, clock):
    store = _make_store(tmp_path, FailingInsertStore)
    gate = SubmissionGate(store, clock=clock)

    with pytest.raises(InsertFailed) as excinfo:
        gate.submit(_payload(), client_ip="198.51.100.1")

    assert excinfo.value.detail == "Failed to submit"
    assert _stored_rows(store) == []
    store.dispose()


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, "127.0.0.1"),
        ("", "127.0.0.1"),
        ("203.0.113.7", "203.0.113.7"),
        ("203.0.113.7, 10.0.0.1, 10.0.0.2", "203.0.113.7"),
        (" 203.0.113.7 ,10.0.0.1", "203.0.113.7"),
        (",10.0.0.1", "127.0.0.1"),
    ],
)
def test_client_ip_from_forwarded(header, expected):
    assert client_ip_from_forwarded(header) == expected


def test_q4_outside_scale_is_rejected():
    with pytest.raises(ValueError):
        schemas.SurveyResponseIn(q4=6)


def test_free_text_columns_have_no_length_limit_on_postgres():
    from sqlalchemy.dialects import postgresql
    from sqlalchemy.schema import CreateTable

    ddl = str(CreateTable(SurveyResponse.__table__).compile(dialect=postgresql.dialect()))

    for column in ("q5", "q6", "business_type", "city", "source", "user_agent"):
        assert f"{column} TEXT" in ddl
    assert "ip VARCHAR(64) NOT NULL" in ddl


def test_long_city_is_stored_intact(store, clock):
    gate = SubmissionGate(store, clock=clock)
    city = "São Paulo - SP, Vila Mariana, " * 20

    gate.submit(_payload(city=city, source="s" * 500), client_ip="198.51.100.1")

    row = _stored_rows(store)[0]
    assert row.city == city
    assert len(row.source) == 500


def test_long_forwarded_address_is_truncated_to_column_width(store, clock):
    forwarded = "z" * 100 + ", 10.0.0.1"

    client_ip = client_ip_from_forwarded(forwarded)
    SubmissionGate(store, clock=clock).submit(_payload(), client_ip=client_ip)

    assert client_ip == "z" * 64
    assert _stored_rows(store)[0].ip == "z" * 64
