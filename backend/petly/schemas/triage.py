from typing import List, Literal
from uuid import UUID

from pydantic import BaseModel, Field

TriageUrgency = Literal["emergency", "urgent", "soon", "monitor"]


class TriageRequest(BaseModel):
    symptom_type: str = Field(..., min_length=1, max_length=128)
    severity: int = Field(..., ge=1, le=5)
    duration: str = Field(..., min_length=1, max_length=64)
    appetite_change: str = Field("No change", max_length=64)
    behavior_change: str = Field("No change", max_length=64)
    additional_notes: str = Field("", max_length=2000)
    save_log: bool = True


class TriageResult(BaseModel):
    urgency: TriageUrgency
    assessment: str
    recommendations: List[str]
    log_id: UUID | None = None
