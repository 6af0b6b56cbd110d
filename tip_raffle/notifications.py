"""
Winner Notifications
Email relay client and fire-and-forget winner emails
"""

import logging
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional

import requests

from utils.logging_config import log_api_call

from .config import (
    EMAIL_DATE_FORMAT,
    EMAIL_FROM_ADDRESS,
    HTTP_TIMEOUT_SECONDS,
    NOTIFICATION_WORKERS,
    RESEND_API_KEY,
    RESEND_API_URL,
)
from .errors import EmailRelayError, NotificationError
from .models import PageConfig, WinRecord

logger = logging.getLogger(__name__)

TEMPLATE_VARIABLE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class EmailRelay:
    """Sends email through the Resend HTTP API"""

    def __init__(self, api_key=RESEND_API_KEY, from_address=EMAIL_FROM_ADDRESS,
                 api_url=RESEND_API_URL, timeout=HTTP_TIMEOUT_SECONDS, session=None):
        self.api_key = api_key
        self.from_address = from_address
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to, subject, body, from_name="") -> str:
        """
        Send one email

        Args:
            to: recipient address
            subject: subject line
            body: plain text body; newlines become <br>
            from_name: display name of the sender

        Returns:
            str: provider message id

        Raises:
            EmailRelayError: missing fields, missing API key, or provider failure
        """
        if not self.configured:
            raise EmailRelayError("RESEND_API_KEY is not configured", status_code=500)
        if not to or not subject or not body:
            raise EmailRelayError("Missing required fields: to, subject, body", status_code=400)

        html_body = body.replace("\n", "<br>")
        sender = f"{from_name} <{self.from_address}>" if from_name else self.from_address

        started = time.monotonic()
        try:
            response = self.session.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={"from": sender, "to": [to], "subject": subject, "html": html_body},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EmailRelayError(f"Email provider unreachable: {e}", status_code=502) from e

        log_api_call(logger, "Resend", self.api_url, response.status_code, time.monotonic() - started)

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text[:200]}

        if not response.ok:
            logger.error(f"Email provider error [HTTP {response.status_code}]: {data}")
            raise EmailRelayError("Failed to send email", status_code=response.status_code, payload=data)

        logger.info(f"📧 Email sent to {to} (id: {data.get('id')})")
        return data.get("id")


def render_template(template: str, win: WinRecord, config: PageConfig) -> str:
    """Replace {{fieldId}}, {{date}} and {{tipValue}}; unknown variables become empty"""
    values = dict(win.submission_data)
    values["date"] = win.drawn_at.strftime(EMAIL_DATE_FORMAT)
    values["tipValue"] = win.tip_value or ""
    return TEMPLATE_VARIABLE.sub(lambda m: str(values.get(m.group(1), "")), template or "")


class WinnerNotifier:
    """
    Emails winners in the background

    Each delivery runs independently on a worker thread; failures are logged
    and kept in `failures` for the admin, never raised to the draw.
    """

    def __init__(self, relay: Optional[EmailRelay] = None, max_workers=NOTIFICATION_WORKERS,
                 executor=None):
        self.relay = relay
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers,
                                                        thread_name_prefix="winner-email")
        self._lock = threading.Lock()
        self.failures: List[dict] = []

    def _deliver(self, win: WinRecord, config: PageConfig, to: str) -> str:
        subject = render_template(config.email_subject, win, config)
        body = render_template(config.email_body, win, config)
        try:
            return self.relay.send(to, subject, body, config.email_from_name)
        except NotificationError as e:
            with self._lock:
                self.failures.append({
                    "win_id": win.id,
                    "to": to,
                    "error": str(e),
                    "at": datetime.now().isoformat(sep=" "),
                })
            logger.warning(f"⚠️ Winner email to {to} failed (win {win.id}): {e}")
            raise

    def notify(self, win: WinRecord, config: PageConfig):
        """
        Queue the winner email for one win

        Returns:
            Future or None when notifications are off or there is no address
        """
        if not config.email_notification_enabled:
            return None
        if self.relay is None:
            logger.warning("Winner emails enabled but no email relay configured")
            return None

        to = str(win.submission_data.get(config.email_field) or "").strip()
        if not to:
            logger.info(f"Win {win.id} has no email address, skipping notification")
            return None

        return self._executor.submit(self._deliver, win, config.copy(), to)

    def recent_failures(self, limit=20) -> List[dict]:
        with self._lock:
            return list(self.failures[-limit:])

    def shutdown(self, wait=True):
        self._executor.shutdown(wait=wait)
