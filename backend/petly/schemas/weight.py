from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from .types import UTCDateTime


class WeightEntryCreate(BaseModel):
    weight: float = Field(..., gt=0)
    date: UTCDateTime
    note: str | None = None


class WeightEntry(WeightEntryCreate):
    id: UUID = Field(default_factory=uuid4)


class WeightStats(BaseModel):
    entries: int
    latest_weight: float | None = None
    weight_change: float | None = None
    average_weight: float | None = None
    trend_lbs_per_week: float | None = None
