"""
Raffle Draw Logic
Random and manual draws under per-period win caps, plus tip attachment
"""

import logging
import re
import secrets
import threading
import uuid
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Set

from .cache import INSERT, UPDATE, RecordCache
from .config import WEEK_STARTS_ON
from .eligibility import account_id_of, can_win, period_starts
from .errors import (
    RecordNotFound,
    TipAlreadyAssigned,
    TipAssignmentError,
    TipBudgetExceeded,
)
from .models import DrawResult, PageConfig, Submission, WinRecord

logger = logging.getLogger(__name__)


def parse_tip_amount(value) -> float:
    """
    Parse a display amount such as "R$ 25,00", "$1,234.56" or "R$ 1.234,56"

    The last '.' or ',' followed by one or two digits is the decimal separator;
    every other separator groups thousands.
    """
    cleaned = re.sub(r"[^\d.,]", "", str(value or ""))
    if not cleaned or not re.search(r"\d", cleaned):
        raise TipAssignmentError(f"Tip value has no amount: {value!r}")

    match = re.search(r"[.,](\d{1,2})$", cleaned)
    if match:
        whole = re.sub(r"[.,]", "", cleaned[:match.start()]) or "0"
        return float(f"{whole}.{match.group(1)}")
    return float(re.sub(r"[.,]", "", cleaned))


class RaffleDraw:
    """
    Handles winner selection and win recording

    Draws run one at a time; within a manual draw every id is checked against
    the wins recorded so far in the same batch.
    """

    def __init__(self, store, submissions: RecordCache, wins: RecordCache, notifier=None,
                 validated_ids: Optional[Callable[[], Set[str]]] = None,
                 clock=datetime.now, rng=None, week_starts_on=WEEK_STARTS_ON):
        self.store = store
        self.submissions = submissions
        self.wins = wins
        self.notifier = notifier
        self.validated_ids = validated_ids or store.validated_player_ids
        self.clock = clock
        self.rng = rng or secrets.SystemRandom()
        self.week_starts_on = week_starts_on
        self._lock = threading.Lock()

    # -------------------------
    # Eligibility
    # -------------------------

    def can_win(self, participant_data, config: PageConfig, now=None) -> bool:
        return can_win(participant_data, config, self.wins.values(), now or self.clock(),
                       self.week_starts_on)

    def _passes_postback(self, submission: Submission, config: PageConfig,
                         validated: Optional[Set[str]]) -> bool:
        if not config.postback_validation_enabled:
            return True
        return account_id_of(submission.data, config) in validated

    def eligible_submissions(self, config: PageConfig, validated: Optional[Set[str]] = None) -> List[Submission]:
        if config.postback_validation_enabled and validated is None:
            validated = self.validated_ids()
        now = self.clock()
        return [
            s for s in self.submissions.values()
            if self.can_win(s.data, config, now) and self._passes_postback(s, config, validated)
        ]

    # -------------------------
    # Recording
    # -------------------------

    def _record_win(self, submission: Submission, config: PageConfig):
        win = WinRecord(
            id=uuid.uuid4().hex,
            submission_id=submission.id,
            submission_data=dict(submission.data),
            drawn_at=self.clock(),
        )
        self.store.insert_win(win)
        self.wins.apply(INSERT, win)

        # With tip values on, the winner is emailed from attach_tip
        if config.tip_values_enabled:
            return win, None
        return win, self._notify(win, config)

    def _notify(self, win: WinRecord, config: PageConfig):
        return self.notifier.notify(win, config) if self.notifier else None

    # -------------------------
    # Draws
    # -------------------------

    def draw_random(self, count, config: PageConfig) -> DrawResult:
        """
        Draw up to `count` winners among eligible submissions

        Returns:
            DrawResult: winners and win records in draw order; empty when
                        nobody is eligible
        """
        result = DrawResult()
        if count <= 0:
            return result

        with self._lock:
            eligible = self.eligible_submissions(config)
            if not eligible:
                logger.warning("🎲 No eligible participants for random draw")
                return result

            shuffled = list(eligible)
            self.rng.shuffle(shuffled)
            winners = shuffled[:min(count, len(shuffled))]

            logger.info(f"🎲 Drawing {len(winners)} of {len(eligible)} eligible participants")
            for submission in winners:
                win, future = self._record_win(submission, config)
                result.winners.append(submission)
                result.wins.append(win)
                if future is not None:
                    result.notifications.append(future)

        logger.info(f"🎉 Random draw recorded {result.count} win(s)")
        return result

    def draw_selected(self, submission_ids: Iterable[str], config: PageConfig) -> DrawResult:
        """
        Record wins for admin-selected submissions

        Ineligible or unknown ids are skipped silently; compare the returned
        count with the number requested to detect a partial draw.
        """
        submission_ids = list(submission_ids)
        result = DrawResult()
        with self._lock:
            validated = self.validated_ids() if config.postback_validation_enabled else None

            for submission_id in submission_ids:
                submission = self.submissions.get(submission_id)
                if submission is None:
                    logger.info(f"Skipping unknown submission {submission_id}")
                    continue
                if not self.can_win(submission.data, config):
                    logger.info(f"Skipping {submission_id}: win cap reached")
                    continue
                if not self._passes_postback(submission, config, validated):
                    logger.info(f"Skipping {submission_id}: account id not validated")
                    continue

                win, future = self._record_win(submission, config)
                result.winners.append(submission)
                result.wins.append(win)
                if future is not None:
                    result.notifications.append(future)

        logger.info(f"🎉 Manual draw recorded {result.count}/{len(submission_ids)} win(s)")
        return result

    # -------------------------
    # Tips
    # -------------------------

    def weekly_tip_summary(self, config: PageConfig, now=None) -> dict:
        now = now or self.clock()
        week_start = period_starts(now, self.week_starts_on)["weekly"]
        spent = 0.0
        for win in self.wins.values():
            if win.tip_value and week_start <= win.drawn_at <= now:
                try:
                    spent += parse_tip_amount(win.tip_value)
                except TipAssignmentError:
                    logger.warning(f"Ignoring unparseable tip value on win {win.id}: {win.tip_value!r}")
        budget = float(config.weekly_tip_budget or 0)
        return {
            "budget": budget,
            "spent": round(spent, 2),
            "remaining": round(budget - spent, 2) if budget > 0 else None,
        }

    def attach_tip(self, win_id, tip_value, config: PageConfig) -> WinRecord:
        """
        Attach a tip value to a win record, exactly once

        Raises:
            RecordNotFound, TipAlreadyAssigned, TipAssignmentError, TipBudgetExceeded
        """
        tip_value = str(tip_value or "").strip()
        if not tip_value:
            raise TipAssignmentError("Tip value cannot be empty")

        with self._lock:
            win = self.wins.get(win_id)
            if win is None:
                raise RecordNotFound(f"Win {win_id} not found")
            if win.tip_value:
                raise TipAlreadyAssigned(f"Win {win_id} already has tip {win.tip_value}")
            if config.tip_values_enabled and config.tip_values and tip_value not in config.tip_values:
                raise TipAssignmentError(f"Tip value {tip_value} is not configured")

            if config.weekly_tip_budget > 0:
                amount = parse_tip_amount(tip_value)
                summary = self.weekly_tip_summary(config)
                if summary["spent"] + amount > config.weekly_tip_budget + 1e-9:
                    raise TipBudgetExceeded(
                        f"Tip {tip_value} exceeds the weekly budget "
                        f"(remaining {summary['remaining']:.2f})"
                    )

            if not self.store.set_win_tip(win_id, tip_value):
                raise TipAlreadyAssigned(f"Win {win_id} already has a tip")

            updated = WinRecord(
                id=win.id,
                submission_id=win.submission_id,
                submission_data=win.submission_data,
                drawn_at=win.drawn_at,
                tip_value=tip_value,
            )
            self.wins.apply(UPDATE, updated)

        logger.info(f"💰 Tip {tip_value} attached to win {win_id}")
        if config.tip_values_enabled:
            self._notify(updated, config)
        return updated

    # -------------------------
    # Queries
    # -------------------------

    def wins_by_date(self, day) -> List[WinRecord]:
        """Win records drawn on a local calendar date (date or YYYY-MM-DD)"""
        if isinstance(day, str):
            day = date.fromisoformat(day)
        elif isinstance(day, datetime):
            day = day.date()
        return [w for w in self.wins.values() if w.drawn_at.date() == day]
