"""
Raffle Store
Persistence for submissions, win records, bans, validated players and the config blob
"""

import json
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import create_engine, text

from utils.error_helpers import db_error_handler

from .database import setup_raffle_database
from .errors import RecordNotFound, StoreError
from .models import (
    BannedEntry,
    Submission,
    ValidatedPlayer,
    WinRecord,
    format_timestamp,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

CONFIG_ROW_ID = 1


def create_raffle_engine(database_url):
    """Create an engine for the raffle database"""
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    return create_engine(database_url, pool_pre_ping=True)


class RaffleStore:
    """
    Thin textual-SQL layer over a SQLAlchemy engine

    Every method either completes its write or raises StoreError; nothing is
    cached here.
    """

    def __init__(self, engine):
        self.engine = engine

    def setup(self):
        if not setup_raffle_database(self.engine):
            raise StoreError("Raffle schema setup failed")
        return True

    # -------------------------
    # Submissions
    # -------------------------

    @db_error_handler
    def insert_submission(self, submission: Submission):
        with self.engine.begin() as conn:
            conn.execute(text("""
                INSERT INTO raffle_submissions (id, data, created_at)
                VALUES (:id, :data, :created_at)
            """), {
                'id': submission.id,
                'data': json.dumps(submission.data),
                'created_at': format_timestamp(submission.created_at),
            })
        return submission

    @db_error_handler
    def list_submissions(self) -> List[Submission]:
        with self.engine.connect() as conn:
            result = conn.execute(text("""
                SELECT id, data, created_at
                FROM raffle_submissions
                ORDER BY created_at, id
            """))
            return [
                Submission(id=row[0], data=json.loads(row[1]), created_at=parse_timestamp(row[2]))
                for row in result
            ]

    @db_error_handler
    def find_submission_by_field(self, field_id, value) -> Optional[Submission]:
        """Point-in-time lookup used by the duplicate account check"""
        for submission in self.list_submissions():
            if (submission.data.get(field_id) or '').strip() == value:
                return submission
        return None

    @db_error_handler
    def update_submission(self, submission_id, data: Dict[str, str]):
        with self.engine.begin() as conn:
            result = conn.execute(text("""
                UPDATE raffle_submissions SET data = :data WHERE id = :id
            """), {'id': submission_id, 'data': json.dumps(data)})
            if result.rowcount == 0:
                raise RecordNotFound(f"Submission {submission_id} not found")

    @db_error_handler
    def delete_submission(self, submission_id):
        with self.engine.begin() as conn:
            result = conn.execute(text("DELETE FROM raffle_submissions WHERE id = :id"),
                                  {'id': submission_id})
            if result.rowcount == 0:
                raise RecordNotFound(f"Submission {submission_id} not found")

    @db_error_handler
    def delete_all_submissions(self):
        with self.engine.begin() as conn:
            deleted = conn.execute(text("DELETE FROM raffle_submissions")).rowcount
        logger.info(f"Deleted {deleted} submissions")
        return deleted

    # -------------------------
    # Win records
    # -------------------------

    @db_error_handler
    def insert_win(self, win: WinRecord):
        with self.engine.begin() as conn:
            conn.execute(text("""
                INSERT INTO raffle_wins (id, submission_id, submission_data, drawn_at, tip_value)
                VALUES (:id, :submission_id, :submission_data, :drawn_at, :tip_value)
            """), {
                'id': win.id,
                'submission_id': win.submission_id,
                'submission_data': json.dumps(win.submission_data),
                'drawn_at': format_timestamp(win.drawn_at),
                'tip_value': win.tip_value,
            })
        return win

    @db_error_handler
    def list_wins(self) -> List[WinRecord]:
        with self.engine.connect() as conn:
            result = conn.execute(text("""
                SELECT id, submission_id, submission_data, drawn_at, tip_value
                FROM raffle_wins
                ORDER BY drawn_at, id
            """))
            return [
                WinRecord(
                    id=row[0],
                    submission_id=row[1],
                    submission_data=json.loads(row[2]),
                    drawn_at=parse_timestamp(row[3]),
                    tip_value=row[4],
                )
                for row in result
            ]

    @db_error_handler
    def set_win_tip(self, win_id, tip_value):
        """Attach a tip value; only succeeds while the record has none"""
        with self.engine.begin() as conn:
            result = conn.execute(text("""
                UPDATE raffle_wins SET tip_value = :tip_value
                WHERE id = :id AND tip_value IS NULL
            """), {'id': win_id, 'tip_value': tip_value})
            return result.rowcount == 1

    @db_error_handler
    def delete_all_wins(self):
        with self.engine.begin() as conn:
            deleted = conn.execute(text("DELETE FROM raffle_wins")).rowcount
        logger.info(f"Deleted {deleted} win records")
        return deleted

    # -------------------------
    # Configuration
    # -------------------------

    @db_error_handler
    def load_config_blob(self) -> Optional[dict]:
        with self.engine.connect() as conn:
            row = conn.execute(text("SELECT data FROM raffle_config WHERE id = :id"),
                               {'id': CONFIG_ROW_ID}).fetchone()
        return json.loads(row[0]) if row else None

    @db_error_handler
    def save_config_blob(self, blob: dict):
        with self.engine.begin() as conn:
            conn.execute(text("""
                INSERT INTO raffle_config (id, data, updated_at)
                VALUES (:id, :data, :updated_at)
                ON CONFLICT (id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
            """), {
                'id': CONFIG_ROW_ID,
                'data': json.dumps(blob),
                'updated_at': format_timestamp(datetime.now()),
            })

    # -------------------------
    # Banned entries
    # -------------------------

    @db_error_handler
    def insert_ban(self, entry: BannedEntry):
        with self.engine.begin() as conn:
            conn.execute(text("""
                INSERT INTO raffle_banned (id, type, value, reason, created_at)
                VALUES (:id, :type, :value, :reason, :created_at)
            """), {
                'id': entry.id,
                'type': entry.type,
                'value': entry.value,
                'reason': entry.reason,
                'created_at': format_timestamp(entry.created_at),
            })
        return entry

    @db_error_handler
    def list_bans(self) -> List[BannedEntry]:
        with self.engine.connect() as conn:
            result = conn.execute(text("""
                SELECT id, type, value, reason, created_at
                FROM raffle_banned
                ORDER BY created_at, id
            """))
            return [
                BannedEntry(id=row[0], type=row[1], value=row[2], reason=row[3] or '',
                            created_at=parse_timestamp(row[4]))
                for row in result
            ]

    @db_error_handler
    def delete_ban(self, ban_id):
        with self.engine.begin() as conn:
            result = conn.execute(text("DELETE FROM raffle_banned WHERE id = :id"), {'id': ban_id})
            if result.rowcount == 0:
                raise RecordNotFound(f"Ban {ban_id} not found")

    # -------------------------
    # Validated players (postback)
    # -------------------------

    @db_error_handler
    def upsert_validated_player(self, player: ValidatedPlayer):
        validated_at = player.validated_at or datetime.now()
        with self.engine.begin() as conn:
            conn.execute(text("""
                INSERT INTO validated_players (player_id, currency, registration_date, type, validated_at)
                VALUES (:player_id, :currency, :registration_date, :type, :validated_at)
                ON CONFLICT (player_id) DO UPDATE SET
                    currency = excluded.currency,
                    registration_date = excluded.registration_date,
                    type = excluded.type,
                    validated_at = excluded.validated_at
            """), {
                'player_id': player.player_id,
                'currency': player.currency,
                'registration_date': player.registration_date,
                'type': player.type,
                'validated_at': format_timestamp(validated_at),
            })
        player.validated_at = validated_at
        return player

    @db_error_handler
    def validated_player_ids(self) -> set:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT player_id FROM validated_players"))
            return {str(row[0]).strip() for row in result}

    @db_error_handler
    def count_validated_players(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT COUNT(*) FROM validated_players")).scalar() or 0
