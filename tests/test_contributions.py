from datetime import date
from datetime import datetime

import pytest

from gitinsights.models import CommitRecord
from gitinsights.models import Repository
from gitinsights.models import StreakStats
from gitinsights.services.contributions import available_years
from gitinsights.services.contributions import build_calendar_grid
from gitinsights.services.contributions import build_calendar_payload
from gitinsights.services.contributions import build_contribution_map
from gitinsights.services.contributions import compute_streaks
from gitinsights.services.contributions import day_key
from gitinsights.services.contributions import level_of
from gitinsights.services.contributions import monthly_contributions
from gitinsights.services.contributions import weekday_activity


def _repo(*commits: tuple[str, int]) -> dict[str, object]:
    return {
        "created_at": "2020-01-01T00:00:00Z",
        "commits": [{"date": day, "count": count} for day, count in commits],
    }


SAMPLE_INPUTS = [
    [],
    [_repo()],
    [_repo(("2024-01-01T10:00:00Z", 2), ("2024-01-02T08:00:00Z", 1))],
    [
        _repo(("2023-12-31T23:59:59Z", 4), ("2024-01-01T00:00:00Z", 1)),
        _repo(("2024-01-01T12:00:00Z", 3), ("2024-01-03T12:00:00Z", 5)),
    ],
    [_repo(("2024-03-10T01:00:00Z", 1), ("2024-03-11T01:00:00Z", 1))],
]


def test_repositories_without_commits_produce_empty_map_and_zero_stats() -> None:
    repositories = [_repo(), {"created_at": "2024-01-01T00:00:00Z"}]

    contributions = build_contribution_map(repositories, "all")

    assert contributions == {}
    assert compute_streaks(contributions, date(2024, 1, 3)) == StreakStats(0, 0, 0)


def test_build_contribution_map_sums_counts_per_day_across_repositories() -> None:
    repositories = [
        _repo(("2024-01-01T10:00:00Z", 2), ("2024-01-02T08:00:00Z", 1)),
        _repo(("2024-01-01T23:30:00Z", 3)),
    ]

    contributions = build_contribution_map(repositories, "all")

    assert contributions == {"2024-01-01": 5, "2024-01-02": 1}


def test_build_contribution_map_applies_year_filter() -> None:
    repositories = [
        _repo(("2024-03-01T09:00:00Z", 2), ("2023-12-31T23:59:59Z", 7)),
    ]

    contributions = build_contribution_map(repositories, "2023")

    assert contributions == {"2023-12-31": 7}


def test_build_contribution_map_accepts_integer_year_filter() -> None:
    repositories = [_repo(("2024-03-01T09:00:00Z", 2), ("2023-05-01T09:00:00Z", 1))]

    assert build_contribution_map(repositories, 2024) == {"2024-03-01": 2}


def test_build_contribution_map_does_not_shift_timezones() -> None:
    repositories = [_repo(("2024-06-30T23:59:59-07:00", 1))]

    assert build_contribution_map(repositories, "all") == {"2024-06-30": 1}


def test_build_contribution_map_skips_malformed_records() -> None:
    repositories = [
        {
            "commits": [
                {"date": "", "count": 3},
                {"count": 3},
                {"date": None, "count": 3},
                {"date": "not-a-date", "count": 3},
                {"date": "2024-02-30T10:00:00Z", "count": 3},
                {"date": "2024-02-10T10:00:00Z"},
                {"date": "2024-02-11T10:00:00Z", "count": "4"},
                {"date": "2024-02-12T10:00:00Z", "count": -1},
                {"date": "2024-02-13T10:00:00Z", "count": True},
                "garbage",
                {"date": "2024-02-14T10:00:00Z", "count": 2},
            ]
        },
        {"commits": "not-a-list"},
        {"commits": None},
        None,
    ]

    assert build_contribution_map(repositories, "all") == {"2024-02-14": 2}


def test_build_contribution_map_reads_repository_objects() -> None:
    repository = Repository(
        id=1,
        name="demo",
        created_at="2023-04-01T00:00:00Z",
        commits=(
            CommitRecord(date="2024-01-05T00:00:00Z", count=2),
            CommitRecord(date="2024-01-06T00:00:00Z", count=1),
        ),
    )

    assert build_contribution_map([repository], "2024") == {
        "2024-01-05": 2,
        "2024-01-06": 1,
    }


def test_build_contribution_map_handles_missing_repositories() -> None:
    assert build_contribution_map(None, "all") == {}
    assert build_contribution_map([], "2024") == {}


def test_build_contribution_map_with_unknown_year_matches_nothing() -> None:
    repositories = [_repo(("2024-01-01T10:00:00Z", 2))]

    assert build_contribution_map(repositories, "abcd") == {}
    assert build_contribution_map(repositories, "99999") == {}


def test_day_key_truncates_to_calendar_day() -> None:
    assert day_key("2024-01-03T10:11:12Z") == "2024-01-03"
    assert day_key("2024-01-03") == "2024-01-03"
    assert day_key("2024-13-03T10:11:12Z") is None
    assert day_key(20240103) is None


def test_consecutive_days_ending_today_form_current_and_longest_streak() -> None:
    contributions = {"2024-01-01": 1, "2024-01-02": 1, "2024-01-03": 1}

    stats = compute_streaks(contributions, date(2024, 1, 3))

    assert stats.current_streak == 3
    assert stats.longest_streak == 3
    assert stats.total_commits == 3


def test_gap_between_days_resets_longest_streak() -> None:
    contributions = {"2024-01-01": 1, "2024-01-05": 1}

    stats = compute_streaks(contributions, date(2024, 1, 5))

    assert stats.longest_streak == 1
    assert stats.current_streak == 1


def test_current_streak_is_zero_when_today_has_no_contributions() -> None:
    contributions = {"2024-01-01": 2, "2024-01-02": 2}

    stats = compute_streaks(contributions, date(2024, 1, 3))

    assert stats.current_streak == 0
    assert stats.longest_streak == 2
    assert stats.total_commits == 4


def test_longest_streak_picks_the_longest_run() -> None:
    contributions = {
        "2024-01-01": 1,
        "2024-01-02": 1,
        "2024-01-10": 3,
        "2024-01-11": 1,
        "2024-01-12": 1,
        "2024-01-13": 1,
        "2024-02-01": 9,
    }

    stats = compute_streaks(contributions, date(2024, 2, 1))

    assert stats.longest_streak == 4
    assert stats.current_streak == 1


def test_streak_crosses_month_and_year_boundaries() -> None:
    contributions = {"2023-12-30": 1, "2023-12-31": 1, "2024-01-01": 1}

    stats = compute_streaks(contributions, date(2024, 1, 1))

    assert stats.current_streak == 3
    assert stats.longest_streak == 3


def test_compute_streaks_accepts_datetime_and_future_today() -> None:
    contributions = {"2024-01-01": 1}

    assert compute_streaks(contributions, datetime(2024, 1, 1, 15, 0)).current_streak == 1
    assert compute_streaks(contributions, date(2099, 1, 1)).current_streak == 0


def test_compute_streaks_ignores_zero_and_malformed_entries() -> None:
    contributions = {"2024-01-01": 0, "2024-01-02": 2, "bad-key": 5}

    stats = compute_streaks(contributions, date(2024, 1, 2))

    assert stats.current_streak == 1
    assert stats.longest_streak == 1
    assert stats.total_commits == 7


@pytest.mark.parametrize("repositories", SAMPLE_INPUTS)
def test_total_commits_matches_map_sum_and_current_never_exceeds_longest(
    repositories: list[dict[str, object]],
) -> None:
    contributions = build_contribution_map(repositories, "all")

    for today in (date(2024, 1, 1), date(2024, 1, 3), date(2024, 3, 11)):
        stats = compute_streaks(contributions, today)
        assert stats.total_commits == sum(contributions.values())
        assert stats.current_streak <= stats.longest_streak


def test_level_of_thresholds() -> None:
    assert level_of(0) == 0
    assert level_of(1) == 1
    assert level_of(3) == 1
    assert level_of(4) == 2
    assert level_of(6) == 2
    assert level_of(7) == 3
    assert level_of(9) == 3
    assert level_of(10) == 4
    assert level_of(250) == 4
    assert level_of(-5) == 0


def test_calendar_grid_for_current_year_stops_at_today() -> None:
    today = date(2024, 6, 15)

    grid = build_calendar_grid("2024", today)
    days = [day for week in grid for day in week if day is not None]

    assert all(len(week) == 7 for week in grid)
    assert days[0] == date(2024, 1, 1)
    assert days[-1] == today
    assert max(days) <= today
    assert len(days) == 167


def test_calendar_grid_starts_on_sunday_before_new_year() -> None:
    grid = build_calendar_grid("2024", date(2024, 6, 15))

    # 2024-01-01 is a Monday; the leading Sunday slot is empty.
    assert grid[0][0] is None
    assert grid[0][1] == date(2024, 1, 1)
    for week in grid:
        for weekday, day in enumerate(week):
            if day is not None:
                assert (day.weekday() + 1) % 7 == weekday


def test_calendar_grid_for_past_year_covers_whole_year() -> None:
    grid = build_calendar_grid("2023", date(2024, 6, 15))
    days = [day for week in grid for day in week if day is not None]

    assert len(grid) == 53
    assert all(len(week) == 7 for week in grid)
    assert len(days) == 365
    assert grid[-1] == [date(2023, 12, 31), None, None, None, None, None, None]


def test_calendar_grid_all_uses_the_current_year() -> None:
    today = date(2024, 6, 15)

    assert build_calendar_grid("all", today) == build_calendar_grid("2024", today)


def test_calendar_grid_for_invalid_years_is_empty() -> None:
    today = date(2024, 6, 15)

    assert build_calendar_grid("abcd", today) == []
    assert build_calendar_grid("0001", today) == []
    assert build_calendar_grid("9999", today) == []


def test_calendar_payload_attaches_counts_levels_and_month_labels() -> None:
    grid = build_calendar_grid("2024", date(2024, 2, 10))
    contributions = {"2024-01-01": 4, "2024-02-02": 12}

    payload = build_calendar_payload(grid, contributions)

    first_week = payload["weeks"][0]
    assert first_week[0] is None
    assert first_week[1] == {"date": "2024-01-01", "weekday": 1, "count": 4, "level": 2}
    assert first_week[2]["count"] == 0
    assert first_week[2]["level"] == 0
    assert payload["month_labels"] == [
        {"month": "Jan", "week_index": 0},
        {"month": "Feb", "week_index": 5},
    ]
    assert payload["weeks"][4][5] == {
        "date": "2024-02-02",
        "weekday": 5,
        "count": 12,
        "level": 4,
    }
    assert payload["weeks"][-1][6]["date"] == "2024-02-10"


def test_monthly_contributions_and_weekday_activity() -> None:
    contributions = {"2024-01-01": 2, "2024-01-07": 1, "2024-02-05": 3}

    assert monthly_contributions(contributions) == {"2024-01": 3, "2024-02": 3}
    activity = weekday_activity(contributions)
    assert activity["Monday"] == 5
    assert activity["Sunday"] == 1
    assert activity["Friday"] == 0


def test_available_years_counts_down_to_account_creation() -> None:
    today = date(2024, 6, 15)

    assert available_years(2021, today) == [2024, 2023, 2022, 2021]
    assert available_years(None, today) == [2024]
    assert available_years(2030, today) == [2024]
