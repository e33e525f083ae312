"""Domain errors raised by the submission gate and the aggregator."""
from __future__ import annotations

from typing import Optional

from fastapi import status


class SurveyError(Exception):
    """Base class carrying the HTTP status and a client-safe detail."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Internal Server Error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.detail)


class AlreadySubmitted(SurveyError):
    """Raised when the requester carries the completion marker."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Você já respondeu esta pesquisa."


class RateLimited(SurveyError):
    """Raised when an IP has reached its submission quota for the window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    detail = "Muitas tentativas. Tente novamente mais tarde."


class ServiceUnavailable(SurveyError):
    """Raised when the store cannot be queried before inserting."""

    detail = "Service Unavailable"


class InsertFailed(SurveyError):
    """Raised when the store rejects the insert or its commit."""

    detail = "Failed to submit"


class Unauthorized(SurveyError):
    """Raised when the admin token is missing or wrong."""

    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Unauthorized"


class AggregationFailed(SurveyError):
    """Raised when responses cannot be read for the stats report."""

    detail = "Failed to compute stats"
