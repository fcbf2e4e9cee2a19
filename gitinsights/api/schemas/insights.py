from datetime import date

from pydantic import BaseModel


class UserSummary(BaseModel):
    login: str
    name: str | None = None
    avatar_url: str | None = None
    created_at: str | None = None


class Overview(BaseModel):
    """Repository totals shown in the stats cards."""

    repositories: int
    languages: int
    total_bytes: int
    average_bytes: float
    stars: int
    pull_requests: int
    commits: int


class Streaks(BaseModel):
    current_streak: int
    longest_streak: int
    total_commits: int


class CalendarCell(BaseModel):
    """Single day item used in the heatmap response."""

    date: date
    weekday: int
    count: int
    level: int


class MonthLabel(BaseModel):
    month: str
    week_index: int


class Calendar(BaseModel):
    """Sunday-first weeks of 7 slots; empty slots are null."""

    weeks: list[list[CalendarCell | None]]
    month_labels: list[MonthLabel]


class LanguageShare(BaseModel):
    bytes: int
    percentage: float


class LanguageEvolutionPoint(BaseModel):
    month: str
    languages: dict[str, int]


class CodeActivityPoint(BaseModel):
    month: str
    size: int


class FailedRepository(BaseModel):
    name: str
    error: str


class InsightsResponse(BaseModel):
    """Authenticated user dashboard payload."""

    user: UserSummary
    year: str
    available_years: list[int]
    overview: Overview
    streaks: Streaks
    contributions: dict[str, int]
    calendar: Calendar
    monthly_contributions: dict[str, int]
    languages: dict[str, LanguageShare]
    language_evolution: list[LanguageEvolutionPoint]
    monthly_code_activity: list[CodeActivityPoint]
    failed_repositories: list[FailedRepository]
