from datetime import date
from typing import List, Literal

from pydantic import BaseModel

Priority = Literal["high", "medium", "low"]


class Insight(BaseModel):
    id: str
    category: Literal["health", "activity", "nutrition", "behavior", "reminder"]
    priority: Priority
    kind: Literal["positive", "attention", "info"]
    title: str
    description: str
    action_text: str | None = None
    icon: str


class DataStats(BaseModel):
    days_tracked: int
    meals_logged: int
    activities_logged: int
    symptoms_logged: int


class HealthScore(BaseModel):
    overall: int
    activity: int
    nutrition: int
    wellness: int
    consistency: int
    label: str


class Milestone(BaseModel):
    id: str
    title: str
    description: str
    achieved: bool
    progress: float
    achieved_on: date | None = None


class CareConsistency(BaseModel):
    days_this_week: int
    days_this_month: int
    weekly_percentage: int
    monthly_percentage: int
    current_streak: int
    longest_streak: int
    level: str
    description: str
    milestones: List[Milestone]


class VetSummary(BaseModel):
    dog_name: str
    days: int
    total_logs: int
    counts_by_type: dict[str, int]
    summary_text: str
