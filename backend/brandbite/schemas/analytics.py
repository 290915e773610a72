from __future__ import annotations

import uuid
from typing import List, Optional

from pydantic import BaseModel


class CreativeMetricsOut(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: str
    completed_tickets: int
    active_tickets: int
    total_tickets: int
    completion_rate: int
    avg_revision_count: float
    avg_turnaround_hours: float
    load_score: int
    load_band: str
    is_paused: bool
    total_earnings: int
    total_withdrawn: int


class AnalyticsSummaryOut(BaseModel):
    total_creatives: int
    total_completed_tickets: int
    avg_platform_revision_rate: float
    avg_platform_turnaround_hours: float


class CreativeAnalyticsOut(BaseModel):
    summary: AnalyticsSummaryOut
    creatives: List[CreativeMetricsOut]
