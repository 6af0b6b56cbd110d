"""Win cap counting across daily, weekly, monthly and rolling windows"""

import itertools
from datetime import datetime, timedelta

from tip_raffle.eligibility import can_win, count_wins, eligibility_summary, period_starts
from tip_raffle.models import PageConfig, WinRecord

NOW = datetime(2024, 3, 15, 12, 0, 0)  # a Friday
_ids = itertools.count(1)


def make_win(account_id, drawn_at):
    return WinRecord(
        id=f"win-{next(_ids)}",
        submission_id=f"sub-{account_id}",
        submission_data={"accountId": account_id, "fullName": "Someone"},
        drawn_at=drawn_at,
    )


def test_period_starts_sunday_week():
    starts = period_starts(NOW, week_starts_on=6)
    assert starts["daily"] == datetime(2024, 3, 15)
    assert starts["weekly"] == datetime(2024, 3, 10)
    assert starts["monthly"] == datetime(2024, 3, 1)


def test_period_starts_monday_week():
    assert period_starts(NOW, week_starts_on=0)["weekly"] == datetime(2024, 3, 11)


def test_week_start_on_the_start_day_itself():
    sunday = datetime(2024, 3, 10, 8, 30)
    assert period_starts(sunday, week_starts_on=6)["weekly"] == datetime(2024, 3, 10)


def test_participant_without_account_id_is_always_eligible():
    config = PageConfig(max_daily_wins=0, max_weekly_wins=0, max_monthly_wins=0)
    wins = [make_win("", NOW) for _ in range(3)]

    assert can_win({"fullName": "No Id"}, config, wins, NOW)
    assert can_win({"accountId": "   "}, config, wins, NOW)
    summary = eligibility_summary({"fullName": "No Id"}, config, wins, NOW)
    assert summary["daily"] is None


def test_daily_cap_blocks_regardless_of_other_caps():
    config = PageConfig(max_daily_wins=2, max_weekly_wins=100, max_monthly_wins=100)
    wins = [make_win("A1", NOW - timedelta(hours=1)), make_win("A1", NOW - timedelta(hours=2))]

    assert not can_win({"accountId": "A1"}, config, wins, NOW)
    assert can_win({"accountId": "B2"}, config, wins, NOW)


def test_daily_cap_resets_at_day_boundary():
    config = PageConfig(max_daily_wins=1, max_weekly_wins=100, max_monthly_wins=100)
    wins = [make_win("A1", datetime(2024, 3, 14, 23, 59))]

    assert can_win({"accountId": "A1"}, config, wins, NOW)


def test_weekly_cap_counts_from_week_start():
    config = PageConfig(max_daily_wins=10, max_weekly_wins=2, max_monthly_wins=100)
    wins = [
        make_win("A1", datetime(2024, 3, 10, 9, 0)),   # Sunday, this week
        make_win("A1", datetime(2024, 3, 12, 9, 0)),
        make_win("A1", datetime(2024, 3, 9, 9, 0)),    # Saturday, last week
    ]

    summary = eligibility_summary({"accountId": "A1"}, config, wins, NOW, week_starts_on=6)
    assert summary["weekly"] == 2
    assert summary["eligible"] is False


def test_monthly_cap():
    config = PageConfig(max_daily_wins=10, max_weekly_wins=10, max_monthly_wins=1)
    wins = [make_win("A1", datetime(2024, 3, 2, 10, 0))]
    assert not can_win({"accountId": "A1"}, config, wins, NOW)


def test_account_id_compared_trimmed():
    config = PageConfig(max_daily_wins=1)
    wins = [make_win("A1", NOW)]
    assert not can_win({"accountId": " A1 "}, config, wins, NOW)


def test_rolling_window_excludes_old_wins():
    config = PageConfig(rolling_window_enabled=True, rolling_window_days=7)
    old = make_win("A1", NOW - timedelta(days=8))
    recent = make_win("A1", NOW - timedelta(days=2))

    assert count_wins([old, recent], "A1", datetime(2024, 3, 1), NOW, config) == 1

    config.rolling_window_enabled = False
    assert count_wins([old, recent], "A1", datetime(2024, 3, 1), NOW, config) == 2


def test_future_wins_are_not_counted():
    config = PageConfig(max_daily_wins=1)
    wins = [make_win("A1", NOW + timedelta(minutes=5))]
    assert can_win({"accountId": "A1"}, config, wins, NOW)
