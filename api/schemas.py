from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ViewSettingsModel(BaseModel):
    target_year: Optional[str] = None
    trend_years: List[str] = Field(default_factory=list)
    trend_groups: List[str] = Field(default_factory=list)
    baseline_group: Optional[str] = None
    include_charts: bool = True


class ParseRequest(BaseModel):
    raw_text: str


class RowModel(BaseModel):
    year: str
    student_group: str
    percent_disciplined: float


class RowsResponse(BaseModel):
    rows: List[RowModel]


class MetaListResponse(BaseModel):
    values: List[str]
