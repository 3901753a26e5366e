"""Pydantic schemas for reports and the dashboard."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel


class ResultSummary(BaseModel):
    total: int
    completed: int
    in_progress: int
    completion_rate: int


class TrendPoint(BaseModel):
    date: date
    executions: int


class CategoryCount(BaseModel):
    category: str
    count: int


class ResponseOutcomes(BaseModel):
    total: int
    pass_count: int
    fail_count: int
    na_count: int
    pending_count: int
    pass_rate: int


class ReportSummary(BaseModel):
    checksheet_count: int
    results: ResultSummary
    trend: list[TrendPoint]
    categories: list[CategoryCount]
    responses: ResponseOutcomes


class RecentChecksheet(BaseModel):
    id: UUID
    title: str
    category: str | None
    status: str
    checkpoint_count: int
    created_at: datetime


class DashboardSummary(BaseModel):
    checksheet_count: int
    active_checksheet_count: int
    results: ResultSummary
    recent_checksheets: list[RecentChecksheet]
