"""Pydantic schemas for the analytics overview endpoint."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class PlanningBucket(StrEnum):
	under = "under"
	on_target = "on_target"
	over = "over"
	unknown = "unknown"


class AnalyticsFilters(BaseModel):
	start_date: date | None = None
	end_date: date | None = None
	crop: str | None = None
	field: str | None = None

	@model_validator(mode="after")
	def _validate_range(self) -> "AnalyticsFilters":
		if self.start_date and self.end_date and self.start_date > self.end_date:
			raise ValueError("start_date must not be after end_date")
		return self


class PlanningBreakdown(BaseModel):
	total: int = 0
	under: int = 0
	on_target: int = 0
	over: int = 0
	unknown: int = 0
	under_rate: float = 0.0
	on_target_rate: float = 0.0
	over_rate: float = 0.0
	unknown_rate: float = 0.0
	balance: float = 0.0


class GroupBreakdown(BaseModel):
	key: str
	total_logs: int = 0
	planning: PlanningBreakdown = Field(default_factory=PlanningBreakdown)


class WeeklyBucket(BaseModel):
	week_start: date
	total_logs: int = 0
	planning: PlanningBreakdown = Field(default_factory=PlanningBreakdown)


class AnswerCount(BaseModel):
	answer: str
	count: int


class QuestionDistribution(BaseModel):
	question: str
	total: int = 0
	answers: list[AnswerCount] = Field(default_factory=list)


class AnalyticsTotals(BaseModel):
	total_logs: int = 0
	planning_logs: int = 0
	crops: int = 0
	fields: int = 0
	first_assessment: datetime | None = None
	last_assessment: datetime | None = None


class AnalyticsOverview(BaseModel):
	generated_at: datetime
	filters: AnalyticsFilters
	totals: AnalyticsTotals
	planning: PlanningBreakdown
	weekly: list[WeeklyBucket] = Field(default_factory=list)
	by_crop: list[GroupBreakdown] = Field(default_factory=list)
	by_field: list[GroupBreakdown] = Field(default_factory=list)
	responses: list[QuestionDistribution] = Field(default_factory=list)
	available_crops: list[str] = Field(default_factory=list)
	available_fields: list[str] = Field(default_factory=list)
