"""
Submission Intake
Validates, stores and edits participant registrations
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from .cache import DELETE, INSERT, UPDATE, RecordCache
from .errors import (
    BannedParticipantError,
    DuplicateAccountError,
    MissingFieldsError,
    RecordNotFound,
    RulesNotAcceptedError,
    SubmissionsClosed,
)
from .eligibility import account_id_of
from .models import PageConfig, Submission

logger = logging.getLogger(__name__)


def clean_form_data(data: Dict[str, object], config: PageConfig) -> Dict[str, str]:
    """Keep only enabled configured fields, trimmed, in configuration order"""
    data = data or {}
    cleaned = {}
    for form_field in config.enabled_fields:
        value = data.get(form_field.id)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            cleaned[form_field.id] = value
    return cleaned


class SubmissionManager:
    """Manages participant submissions"""

    def __init__(self, store, cache: RecordCache, ban_list, publisher=None, clock=datetime.now):
        self.store = store
        self.cache = cache
        self.ban_list = ban_list
        self.publisher = publisher
        self.clock = clock

    def _publish(self, action, payload):
        if self.publisher is None:
            return
        if action == DELETE:
            self.publisher.publish_submission_deleted(payload)
        elif action == "clear":
            self.publisher.publish("clear")
        else:
            self.publisher.publish_submission(action, payload)

    def list(self) -> List[Submission]:
        return self.cache.values()

    def get(self, submission_id) -> Submission:
        submission = self.cache.get(submission_id)
        if submission is None:
            raise RecordNotFound(f"Submission {submission_id} not found")
        return submission

    def find_duplicate(self, field_id, account_id) -> Optional[Submission]:
        """
        Stored submission with the same account id, if any

        Point-in-time check: two visitors posting the same id at the same
        moment can both pass.
        """
        return self.store.find_submission_by_field(field_id, account_id)

    def validate(self, data: Dict[str, object], config: PageConfig, rules_accepted=False) -> Dict[str, str]:
        """
        Run every intake check without writing anything

        Returns:
            dict: cleaned field values

        Raises:
            SubmissionsClosed, MissingFieldsError, RulesNotAcceptedError,
            BannedParticipantError, DuplicateAccountError
        """
        if config.tips_disabled:
            raise SubmissionsClosed(config.tips_disabled_message or "Submissions are closed")

        cleaned = clean_form_data(data, config)
        missing = [f.id for f in config.enabled_fields if f.required and f.id not in cleaned]
        if missing:
            raise MissingFieldsError(missing)

        if config.rules_enabled and not rules_accepted:
            raise RulesNotAcceptedError("The raffle rules must be accepted")

        if self.ban_list.is_banned(cleaned, config):
            logger.warning("🚫 Blocked submission from banned participant")
            raise BannedParticipantError("Participant is blocked")

        account_id = account_id_of(cleaned, config)
        if account_id:
            if self.find_duplicate(config.account_id_field, account_id):
                raise DuplicateAccountError(account_id)

        return cleaned

    def submit(self, data: Dict[str, object], config: PageConfig, rules_accepted=False) -> Submission:
        """Validate and store a new submission"""
        cleaned = self.validate(data, config, rules_accepted)

        submission = Submission(id=uuid.uuid4().hex, data=cleaned, created_at=self.clock())
        self.store.insert_submission(submission)
        self.cache.apply(INSERT, submission)
        self._publish(INSERT, submission)

        logger.info(f"📝 New submission {submission.id}")
        return submission

    def update(self, submission_id, changes: Dict[str, object], config: PageConfig) -> Submission:
        """
        Admin edit: merge field values into an existing submission

        A blank value removes the field. Win record snapshots are unaffected.

        Raises:
            RecordNotFound, DuplicateAccountError
        """
        current = self.get(submission_id)
        data = dict(current.data)
        for key, value in (changes or {}).items():
            value = "" if value is None else str(value).strip()
            if value:
                data[key] = value
            else:
                data.pop(key, None)

        account_id = account_id_of(data, config)
        if account_id and account_id != account_id_of(current.data, config):
            duplicate = self.find_duplicate(config.account_id_field, account_id)
            if duplicate is not None and duplicate.id != submission_id:
                raise DuplicateAccountError(account_id)

        self.store.update_submission(submission_id, data)
        updated = Submission(id=current.id, data=data, created_at=current.created_at)
        self.cache.apply(UPDATE, updated)
        self._publish(UPDATE, updated)

        logger.info(f"✏️ Updated submission {submission_id}")
        return updated

    def delete(self, submission_id):
        self.store.delete_submission(submission_id)
        self.cache.apply(DELETE, submission_id)
        self._publish(DELETE, submission_id)
        logger.info(f"🗑️ Deleted submission {submission_id}")

    def clear(self) -> int:
        """Delete every submission; win records are kept for the rolling window"""
        deleted = self.store.delete_all_submissions()
        self.cache.clear()
        self._publish("clear", None)
        logger.info(f"🧹 Cleared {deleted} submissions (win history preserved)")
        return deleted
