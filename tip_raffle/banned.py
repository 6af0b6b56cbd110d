"""
Ban List
Blocks submissions by email or account id
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from .cache import DELETE, INSERT, RecordCache
from .models import BAN_TYPES, BannedEntry, PageConfig

logger = logging.getLogger(__name__)


def normalize_ban_value(value) -> str:
    return str(value or "").strip().lower()


class BanList:
    """Manages banned emails and account ids"""

    def __init__(self, store, clock=datetime.now):
        self.store = store
        self.clock = clock
        self.cache = RecordCache("banned")

    def load(self):
        self.cache.load(self.store.list_bans())

    def list(self) -> List[BannedEntry]:
        return self.cache.values()

    def find(self, ban_type, value) -> Optional[BannedEntry]:
        value = normalize_ban_value(value)
        for entry in self.cache.values():
            if entry.type == ban_type and entry.value == value:
                return entry
        return None

    def add(self, ban_type, value, reason="") -> BannedEntry:
        """
        Ban a value

        Returns:
            BannedEntry: the new entry, or the existing one for the same type and value
        """
        if ban_type not in BAN_TYPES:
            raise ValueError(f"Ban type must be one of {', '.join(BAN_TYPES)}")
        value = normalize_ban_value(value)
        if not value:
            raise ValueError("Ban value cannot be empty")

        existing = self.find(ban_type, value)
        if existing:
            return existing

        entry = BannedEntry(
            id=uuid.uuid4().hex,
            type=ban_type,
            value=value,
            reason=str(reason or "").strip(),
            created_at=self.clock(),
        )
        self.store.insert_ban(entry)
        self.cache.apply(INSERT, entry)
        logger.info(f"🚫 Banned {ban_type} {value}")
        return entry

    def remove(self, ban_id):
        self.store.delete_ban(ban_id)
        self.cache.apply(DELETE, ban_id)
        logger.info(f"Removed ban {ban_id}")

    def is_banned(self, data: Dict[str, str], config: PageConfig) -> bool:
        """Compare email and account id, trimmed and case-insensitive"""
        email = normalize_ban_value(data.get(config.email_field))
        account_id = normalize_ban_value(data.get(config.account_id_field))

        for entry in self.cache.values():
            if entry.type == "email" and email and entry.value == email:
                return True
            if entry.type == "accountId" and account_id and entry.value == account_id:
                return True
        return False
