"""Pydantic models for request and response bodies."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MultiChoiceAnswer(BaseModel):
    options: List[str] = Field(default_factory=list, description="Selected option labels")
    other: Optional[str] = Field(None, description="Free text typed when 'Outro' is selected")


class SurveyResponseIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    q1: Optional[MultiChoiceAnswer] = None
    q2: Optional[MultiChoiceAnswer] = None
    q3: Optional[MultiChoiceAnswer] = None
    q4: Optional[int] = Field(None, ge=1, le=5, description="Time lost answering messages, 1 to 5")
    q5: Optional[str] = None
    q6: Optional[str] = None
    q7: Optional[MultiChoiceAnswer] = None
    business_type: Optional[str] = None
    city: Optional[str] = None
    source: Optional[str] = None


class SubmissionOut(BaseModel):
    success: bool = True
    id: int


class Q4Stats(BaseModel):
    avg: float = 0
    hist: Dict[str, int] = Field(default_factory=dict)


class RecentResponse(BaseModel):
    id: int
    created_at: datetime
    business_type: Optional[str] = None
    city: Optional[str] = None
    source: Optional[str] = None


class StatsReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    stored_total: int = Field(..., alias="storedTotal")
    truncated: bool = False
    today_count: int = Field(..., alias="todayCount")
    last_7_days: int = Field(..., alias="last7Days")
    q1: Dict[str, int] = Field(default_factory=dict)
    q2: Dict[str, int] = Field(default_factory=dict)
    q3: Dict[str, int] = Field(default_factory=dict)
    q4: Q4Stats = Field(default_factory=Q4Stats)
    q5: Dict[str, int] = Field(default_factory=dict)
    q6: Dict[str, int] = Field(default_factory=dict)
    recent: List[RecentResponse] = Field(default_factory=list)


class QuestionOut(BaseModel):
    key: str
    step: int
    title: str
    subtitle: Optional[str] = None
    kind: str
    options: List[str] = Field(default_factory=list)
    allows_other: bool = False
    label: Optional[str] = None
    scale_labels: List[str] = Field(default_factory=list)
    placeholder: Optional[str] = None
    required: bool = True
