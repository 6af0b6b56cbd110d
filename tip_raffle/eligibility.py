"""
Win Cap Eligibility
Daily / weekly / monthly caps counted from win record timestamps
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from .config import WEEK_STARTS_ON
from .models import PageConfig, WinRecord


def account_id_of(data: Dict[str, str], config: PageConfig) -> str:
    return str(data.get(config.account_id_field) or "").strip()


def period_starts(now: datetime, week_starts_on: int = WEEK_STARTS_ON) -> Dict[str, datetime]:
    """
    Start of the current day, week and month in local time

    Args:
        now: reference time
        week_starts_on: weekday the week starts on (Monday=0 ... Sunday=6)
    """
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    days_into_week = (now.weekday() - week_starts_on) % 7
    return {
        "daily": day,
        "weekly": day - timedelta(days=days_into_week),
        "monthly": day.replace(day=1),
    }


def count_wins(wins: Iterable[WinRecord], account_id: str, since: datetime, now: datetime,
               config: PageConfig) -> int:
    """
    Count wins of one account id drawn in [since, now]

    With the rolling window enabled, wins older than the window never count,
    whatever the period.
    """
    if config.rolling_window_enabled:
        since = max(since, now - timedelta(days=config.rolling_window_days))

    return sum(
        1 for w in wins
        if account_id_of(w.submission_data, config) == account_id
        and since <= w.drawn_at <= now
    )


def eligibility_summary(participant_data: Dict[str, str], config: PageConfig,
                        wins: Iterable[WinRecord], now: Optional[datetime] = None,
                        week_starts_on: int = WEEK_STARTS_ON) -> Dict[str, object]:
    """
    Per-period win counts and the resulting verdict for one participant

    Returns:
        dict: {daily, weekly, monthly, eligible}; counts are None when the
              participant has no account id to track
    """
    account_id = account_id_of(participant_data, config)
    if not account_id:
        return {"daily": None, "weekly": None, "monthly": None, "eligible": True}

    now = now or datetime.now()
    wins = list(wins)
    starts = period_starts(now, week_starts_on)
    counts = {
        period: count_wins(wins, account_id, since, now, config)
        for period, since in starts.items()
    }
    counts["eligible"] = (
        counts["daily"] < config.max_daily_wins
        and counts["weekly"] < config.max_weekly_wins
        and counts["monthly"] < config.max_monthly_wins
    )
    return counts


def can_win(participant_data: Dict[str, str], config: PageConfig, wins: Iterable[WinRecord],
            now: Optional[datetime] = None, week_starts_on: int = WEEK_STARTS_ON) -> bool:
    """A participant without an account id is always eligible"""
    return eligibility_summary(participant_data, config, wins, now, week_starts_on)["eligible"]
