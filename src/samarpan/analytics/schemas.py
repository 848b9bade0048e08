"""Analytics response schemas."""

from __future__ import annotations

from samarpan.camel import CamelModel


class DailyCount(CamelModel):
    date: str
    count: int


class TypeCount(CamelModel):
    type: str
    count: int


class AnalyticsResponse(CamelModel):
    total_opportunities: int
    total_applications: int
    average_apply_rate: float
    completion_rate: float
    applications_over_time: list[DailyCount]
    applications_by_type: list[TypeCount]
