import re
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import date
from datetime import datetime
from datetime import timedelta
from typing import Any

from gitinsights.models import ALL_YEARS
from gitinsights.models import StreakStats


WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

MONTH_LABELS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

_DAY_KEY_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:T|$)")
_YEAR_RE = re.compile(r"^\d{4}$")


def normalize_year_filter(year_filter: str | int | None) -> str:
    """Return `"all"` or a 4-digit year string.

    Anything that is not a 4-digit year is passed through unchanged so that
    it simply matches no contribution.
    """

    if year_filter is None:
        return ALL_YEARS
    if isinstance(year_filter, int) and not isinstance(year_filter, bool):
        return f"{year_filter:04d}"
    value = str(year_filter).strip()
    if value.lower() == ALL_YEARS:
        return ALL_YEARS
    return value


def level_of(count: int) -> int:
    """Map daily contribution count to a heatmap level in range 0..4."""

    if count <= 0:
        return 0
    if count <= 3:
        return 1
    if count <= 6:
        return 2
    if count <= 9:
        return 3
    return 4


def day_key(raw_date: object) -> str | None:
    """Truncate an ISO date-time string to its `YYYY-MM-DD` day.

    The calendar day reported upstream is kept as is, no timezone shift.
    """

    if not isinstance(raw_date, str):
        return None
    match = _DAY_KEY_RE.match(raw_date.strip())
    if match is None:
        return None
    key = match.group(1)
    try:
        date.fromisoformat(key)
    except ValueError:
        return None
    return key


def _commit_entries(repository: object) -> Iterable[Any]:
    if isinstance(repository, Mapping):
        commits = repository.get("commits")
    else:
        commits = getattr(repository, "commits", None)
    if isinstance(commits, (list, tuple)):
        return commits
    return ()


def _entry_field(entry: object, name: str) -> object:
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def build_contribution_map(
    repositories: Iterable[object] | None,
    year_filter: str | int | None = ALL_YEARS,
) -> dict[str, int]:
    """Sum commit counts per calendar day across all repositories."""

    selected_year = normalize_year_filter(year_filter)
    contributions: dict[str, int] = {}

    for repository in repositories or ():
        for entry in _commit_entries(repository):
            key = day_key(_entry_field(entry, "date"))
            if key is None:
                continue
            if selected_year != ALL_YEARS and key[:4] != selected_year:
                continue

            count = _entry_field(entry, "count")
            if not _is_positive(count):
                continue

            contributions[key] = contributions.get(key, 0) + count

    return contributions


def _is_positive(count: object) -> bool:
    return isinstance(count, int) and not isinstance(count, bool) and count > 0


def compute_streaks(contribution_map: Mapping[str, int], today: date) -> StreakStats:
    """Compute total commits plus current and longest daily streaks."""

    if isinstance(today, datetime):
        today = today.date()

    total = 0
    active_days: list[date] = []
    for key, count in contribution_map.items():
        if not _is_positive(count):
            continue
        total += count
        try:
            active_days.append(date.fromisoformat(key))
        except (TypeError, ValueError):
            continue

    current_streak = 0
    current_day = today
    while _is_positive(contribution_map.get(current_day.isoformat())):
        current_streak += 1
        try:
            current_day -= timedelta(days=1)
        except OverflowError:
            break

    longest_streak = 0
    running = 0
    previous: date | None = None
    for day in sorted(active_days):
        if previous is not None and day - previous == timedelta(days=1):
            running += 1
        else:
            running = 1
        longest_streak = max(longest_streak, running)
        previous = day

    return StreakStats(
        current_streak=current_streak,
        longest_streak=longest_streak,
        total_commits=total,
    )


def _grid_year(year_filter: str | int | None, today: date) -> int | None:
    selected_year = normalize_year_filter(year_filter)
    if selected_year == ALL_YEARS:
        year = today.year
    elif _YEAR_RE.match(selected_year):
        year = int(selected_year)
    else:
        return None
    # Leading and trailing weeks may spill into the neighbouring years.
    if year <= date.min.year or year >= date.max.year:
        return None
    return year


def build_calendar_grid(
    year_filter: str | int | None, today: date
) -> list[list[date | None]]:
    """Lay out a year as Sunday-first weeks of exactly 7 slots.

    Slots outside the year, or after `today` for the current year, are None.
    """

    if isinstance(today, datetime):
        today = today.date()

    year = _grid_year(year_filter, today)
    if year is None:
        return []

    start_day = date(year, 1, 1)
    end_day = today if year == today.year else date(year, 12, 31)

    weekday = (start_day.weekday() + 1) % 7
    week_start = start_day - timedelta(days=weekday)

    weeks: list[list[date | None]] = []
    while week_start <= end_day:
        week: list[date | None] = []
        for offset in range(7):
            current_day = week_start + timedelta(days=offset)
            if current_day.year == year and current_day <= end_day:
                week.append(current_day)
            else:
                week.append(None)
        if any(day is not None for day in week):
            weeks.append(week)
        week_start += timedelta(days=7)

    return weeks


def build_calendar_payload(
    grid: list[list[date | None]], contribution_map: Mapping[str, int]
) -> dict[str, list[Any]]:
    """Attach counts and levels to grid cells and compute month labels."""

    weeks: list[list[dict[str, object] | None]] = []
    month_labels: list[dict[str, object]] = []
    current_month: int | None = None

    for week_index, week in enumerate(grid):
        cells: list[dict[str, object] | None] = []
        for weekday, day in enumerate(week):
            if day is None:
                cells.append(None)
                continue
            count = contribution_map.get(day.isoformat(), 0)
            cells.append(
                {
                    "date": day.isoformat(),
                    "weekday": weekday,
                    "count": count,
                    "level": level_of(count),
                }
            )
        weeks.append(cells)

        first_day = next((day for day in week if day is not None), None)
        if first_day is not None and first_day.month != current_month:
            month_labels.append(
                {"month": MONTH_LABELS[first_day.month - 1], "week_index": week_index}
            )
            current_month = first_day.month

    return {"weeks": weeks, "month_labels": month_labels}


def monthly_contributions(contribution_map: Mapping[str, int]) -> dict[str, int]:
    """Fold a day map into `YYYY-MM` totals, sorted by month."""

    months: dict[str, int] = {}
    for key in sorted(contribution_map):
        count = contribution_map[key]
        if _is_positive(count):
            months[key[:7]] = months.get(key[:7], 0) + count
    return months


def weekday_activity(contribution_map: Mapping[str, int]) -> dict[str, int]:
    """Total contributions per weekday, Sunday first."""

    activity = {name: 0 for name in WEEKDAY_NAMES}
    for key, count in contribution_map.items():
        if not _is_positive(count):
            continue
        try:
            day = date.fromisoformat(key)
        except (TypeError, ValueError):
            continue
        activity[WEEKDAY_NAMES[(day.weekday() + 1) % 7]] += count
    return activity


def available_years(account_created_year: int | None, today: date) -> list[int]:
    """List selectable years, newest first, back to the account creation."""

    first_year = account_created_year or today.year
    first_year = min(first_year, today.year)
    return list(range(today.year, first_year - 1, -1))
