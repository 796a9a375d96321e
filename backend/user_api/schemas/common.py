"""Response envelopes shared by every route."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str
    errors: list[FieldError] | None = None


class HealthData(BaseModel):
    storage: Literal["persistent", "transient"]
    environment: str


class HealthResponse(BaseModel):
    status: Literal["success"] = "success"
    data: HealthData
