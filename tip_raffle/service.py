"""
Raffle Service
Wires the store, caches, configuration, draw and notifications together
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from utils.redis_publisher import RaffleEventPublisher

from .banned import BanList
from .cache import RecordCache
from .config import REDIS_URL, SUBMISSIONS_CHANNEL, WEEK_STARTS_ON
from .draw import RaffleDraw
from .eligibility import eligibility_summary
from .export import (
    export_submissions_csv,
    export_submissions_pdf,
    export_wins_csv,
    export_wins_pdf,
)
from .models import DrawResult, PageConfig, Submission, ValidatedPlayer, WinRecord
from .notifications import WinnerNotifier
from .realtime import SubmissionFeedListener
from .settings import ConfigManager
from .submissions import SubmissionManager

logger = logging.getLogger(__name__)


class RaffleService:
    """
    Everything the landing page and admin dashboard need

    Remote writes happen first; the in-memory caches change only after the
    store confirms.
    """

    def __init__(self, store, notifier: Optional[WinnerNotifier] = None,
                 publisher: Optional[RaffleEventPublisher] = None,
                 config_manager: Optional[ConfigManager] = None,
                 clock=datetime.now, rng=None, week_starts_on=WEEK_STARTS_ON):
        self.store = store
        self.clock = clock
        self.week_starts_on = week_starts_on
        self.publisher = publisher
        self.notifier = notifier

        self.submission_cache = RecordCache("submissions", Submission.from_dict)
        self.win_cache = RecordCache("wins", WinRecord.from_dict)

        self.config_manager = config_manager or ConfigManager(store)
        self.ban_list = BanList(store, clock=clock)
        self.submissions = SubmissionManager(store, self.submission_cache, self.ban_list,
                                             publisher=publisher, clock=clock)
        self.draw = RaffleDraw(store, self.submission_cache, self.win_cache, notifier=notifier,
                               validated_ids=self.validated_ids, clock=clock, rng=rng,
                               week_starts_on=week_starts_on)
        self.feed: Optional[SubmissionFeedListener] = None

    def start(self, listen=False, redis_url=REDIS_URL, autoflush=False):
        """Load everything once and optionally start background loops"""
        self.store.setup()
        self.config_manager.load()
        self.ban_list.load()
        self.submission_cache.load(self.store.list_submissions())
        self.win_cache.load(self.store.list_wins())
        logger.info(f"✅ Raffle loaded: {len(self.submission_cache)} submissions, "
                    f"{len(self.win_cache)} win records")

        if listen:
            self.feed = SubmissionFeedListener(self.submission_cache, redis_url=redis_url,
                                               channel=SUBMISSIONS_CHANNEL)
            self.feed.start()
        if autoflush:
            self.config_manager.start_autoflush()
        return self

    def stop(self):
        if self.feed is not None:
            self.feed.stop()
        self.config_manager.stop_autoflush(final_flush=True)
        if self.notifier is not None:
            self.notifier.shutdown(wait=False)

    # -------------------------
    # Configuration
    # -------------------------

    @property
    def config(self) -> PageConfig:
        return self.config_manager.config

    def update_config(self, changes: Dict) -> PageConfig:
        config = self.config_manager.update_from_dict(changes)
        self.config_manager.flush()
        return config

    def reset_config(self) -> PageConfig:
        config = self.config_manager.reset()
        self.config_manager.flush()
        return config

    def check_access_password(self, password) -> bool:
        config = self.config
        if not config.access_password_enabled:
            return True
        expected = (config.access_password or "").strip().lower()
        return bool(expected) and str(password or "").strip().lower() == expected

    # -------------------------
    # Submissions
    # -------------------------

    def submit(self, data: Dict, rules_accepted=False) -> Submission:
        return self.submissions.submit(data, self.config, rules_accepted)

    def list_submissions(self) -> List[Submission]:
        return self.submissions.list()

    def update_submission(self, submission_id, changes: Dict) -> Submission:
        return self.submissions.update(submission_id, changes, self.config)

    def delete_submission(self, submission_id):
        self.submissions.delete(submission_id)

    def clear_submissions(self) -> int:
        return self.submissions.clear()

    def participant_status(self) -> List[Dict]:
        """Submissions with their current win counts, for the admin raffle panel"""
        config = self.config
        now = self.clock()
        wins = self.win_cache.values()
        return [
            {
                "submission": s.to_dict(),
                "wins": eligibility_summary(s.data, config, wins, now, self.week_starts_on),
            }
            for s in self.submission_cache.values()
        ]

    # -------------------------
    # Draws and wins
    # -------------------------

    def validated_ids(self) -> set:
        """Fetched fresh for every draw"""
        return self.store.validated_player_ids()

    def can_win(self, participant_data: Dict) -> bool:
        return self.draw.can_win(participant_data, self.config)

    def draw_random(self, count) -> DrawResult:
        return self.draw.draw_random(int(count), self.config)

    def draw_selected(self, submission_ids: Iterable[str]) -> DrawResult:
        return self.draw.draw_selected(list(submission_ids), self.config)

    def list_wins(self) -> List[WinRecord]:
        return self.win_cache.values()

    def wins_by_date(self, day) -> List[WinRecord]:
        return self.draw.wins_by_date(day)

    def attach_tip(self, win_id, tip_value) -> WinRecord:
        return self.draw.attach_tip(win_id, tip_value, self.config)

    def tip_summary(self) -> Dict:
        return self.draw.weekly_tip_summary(self.config)

    def clear_wins(self) -> int:
        deleted = self.store.delete_all_wins()
        self.win_cache.clear()
        return deleted

    def notification_failures(self) -> List[Dict]:
        return self.notifier.recent_failures() if self.notifier else []

    # -------------------------
    # Postback
    # -------------------------

    def record_validated_player(self, player_id, currency=None, registration_date=None,
                                player_type=None) -> ValidatedPlayer:
        player = ValidatedPlayer(
            player_id=str(player_id).strip(),
            currency=currency or None,
            registration_date=registration_date or None,
            type=player_type or None,
            validated_at=self.clock(),
        )
        self.store.upsert_validated_player(player)
        logger.info(f"✅ Validated player {player.player_id}")
        return player

    def validated_count(self) -> int:
        return self.store.count_validated_players()

    # -------------------------
    # Exports
    # -------------------------

    def export_wins(self, day, fmt="csv"):
        wins = self.wins_by_date(day)
        config = self.config
        include_tip = config.tip_values_enabled
        if fmt == "pdf":
            return export_wins_pdf(wins, config, title=f"Sorteados {day}", include_tip=include_tip)
        return export_wins_csv(wins, config, include_tip=include_tip)

    def export_submissions(self, fmt="csv"):
        submissions = self.list_submissions()
        if fmt == "pdf":
            return export_submissions_pdf(submissions, self.config)
        return export_submissions_csv(submissions, self.config)
