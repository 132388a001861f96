from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from .health_log import LogType
from .types import UTCDateTime


class LogTemplateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    log_type: LogType
    meal_type: str | None = None
    amount: str | None = None
    duration: str | None = None
    treat_name: str | None = None
    supplement_name: str | None = None
    dosage: str | None = None
    notes: str | None = None


class LogTemplateCreate(LogTemplateBase):
    pass


class LogTemplateUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    log_type: LogType | None = None
    meal_type: str | None = None
    amount: str | None = None
    duration: str | None = None
    treat_name: str | None = None
    supplement_name: str | None = None
    dosage: str | None = None
    notes: str | None = None


class LogTemplate(LogTemplateBase):
    id: UUID = Field(default_factory=uuid4)
    created_at: datetime


class TemplateApply(BaseModel):
    timestamp: UTCDateTime | None = None
    client_id: str | None = Field(None, max_length=64)
