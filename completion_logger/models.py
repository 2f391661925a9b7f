"""
Pydantic v2 models for completion records and the demo widget API.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OutcomeKind(str, Enum):
    """
    Terminal signal that ended a request's observation window.
    """

    FINISH = "finish"
    CLOSE = "close"
    ERROR = "error"


class CompletionRecord(BaseModel):
    """
    One per request. Built when the arbiter completes, formatted and dropped.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: str
    path: str
    status: int
    duration_ms: int = Field(..., ge=0)
    size: Optional[int] = Field(default=None, ge=0)
    outcome: OutcomeKind


class WidgetCreate(BaseModel):
    """
    Payload accepted by POST /widgets.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, max_length=30)
    quantity: int = Field(default=1, ge=0, le=10_000)


class Widget(WidgetCreate):
    id: int
