from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

Source = Literal["diary", "work"]


class WindowOut(BaseModel):
    start: date
    end: date
    year: int
    label: str


class PeriodAggregateOut(BaseModel):
    window: WindowOut
    source_count: int
    source_record_ids: list[int]
    has_summary: bool
    summary_content: Optional[str] = None
    is_generating: bool = False


class PeriodListResponse(BaseModel):
    source: Source
    items: list[PeriodAggregateOut]


class WeeklyReportRequest(BaseModel):
    source: Source = "work"
    week_start: date = Field(..., description="Any date inside the week; normalized to its Sunday.")
    confirm_regenerate: bool = False


class MonthlyReportRequest(BaseModel):
    source: Source = "work"
    year: int = Field(..., ge=1970, le=9999)
    month: int = Field(..., ge=1, le=12)
    confirm_regenerate: bool = False


class SummaryResponse(BaseModel):
    id: int
    kind: str
    period_start: date
    period_end: date
    content: str
    source_count: int
    status: Optional[Literal["created", "existing", "regenerated"]] = None
