"""
Submission Feed Listener
Applies submission events from Redis pub/sub to the local cache

Events published by this process come back through the feed too; the cache
applies them idempotently, so no origin filtering is needed.
"""

import json
import logging
import threading

import redis

from .cache import ACTIONS

logger = logging.getLogger(__name__)

CLEAR = "clear"


class SubmissionFeedListener:
    def __init__(self, cache, redis_url=None, channel='raffle:submissions', client=None):
        self.cache = cache
        self.channel = channel
        self.enabled = False
        self.client = client
        self._thread = None
        self._stop = threading.Event()
        self.pubsub = None

        if client is None and redis_url:
            if '://' not in redis_url:
                redis_url = f'redis://{redis_url}'
            try:
                self.client = redis.from_url(redis_url, decode_responses=True)
            except redis.RedisError as e:
                logger.warning(f"⚠️ Redis unavailable, submission feed disabled: {e}")
                self.client = None

        if self.client is not None:
            self.pubsub = self.client.pubsub(ignore_subscribe_messages=True)
            self.enabled = True
        else:
            logger.info("REDIS_URL not set, submission feed will not be received")

    def handle_message(self, raw) -> bool:
        """
        Apply one feed message

        Returns:
            bool: True if the cache changed
        """
        try:
            payload = json.loads(raw)
            action = payload['action']
            data = payload.get('data') or {}
        except (TypeError, ValueError, KeyError) as e:
            logger.warning(f"Dropping malformed feed message: {e}")
            return False

        if action == CLEAR:
            self.cache.clear()
            logger.info("🧹 Submissions cleared by feed event")
            return True

        if action not in ACTIONS:
            logger.warning(f"Dropping feed message with unknown action: {action}")
            return False

        try:
            changed = self.cache.apply(action, data)
        except (KeyError, ValueError) as e:
            logger.warning(f"Dropping feed message with bad record: {e}")
            return False

        if changed:
            logger.debug(f"Feed {action} applied for {data.get('id')}")
        return changed

    def _run(self):
        self.pubsub.subscribe(self.channel)
        logger.info(f"👂 Listening for submission events on {self.channel}")
        while not self._stop.is_set():
            try:
                message = self.pubsub.get_message(timeout=1.0)
            except redis.RedisError as e:
                logger.error(f"Submission feed error: {e}")
                self._stop.wait(5)
                continue
            if message and message.get('type') == 'message':
                self.handle_message(message.get('data'))
        self.pubsub.close()

    def start(self):
        if not self.enabled or self._thread is not None:
            return False
        self._thread = threading.Thread(target=self._run, name="submission-feed", daemon=True)
        self._thread.start()
        return True

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
