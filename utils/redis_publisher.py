"""
Redis Publisher for Raffle Events
Publishes submission changes so every open admin view stays in sync
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class RaffleEventPublisher:
    def __init__(self, redis_url=None, channel='raffle:submissions', client=None):
        self.channel = channel
        self.enabled = False
        self.client = client

        if client is not None:
            self.enabled = True
            return

        if redis_url:
            if '://' not in redis_url:
                redis_url = f'redis://{redis_url}'
            try:
                self.client = redis.from_url(redis_url, decode_responses=True)
                self.client.ping()
                self.enabled = True
                logger.info("✅ Raffle Redis publisher connected")
            except redis.RedisError as e:
                logger.warning(f"⚠️ Redis unavailable for raffle publisher: {e}")
        else:
            logger.info("REDIS_URL not set, submission events will not be published")

    def publish(self, action, data=None):
        """Publish an event to the submissions channel"""
        if not self.enabled:
            return False

        try:
            message = json.dumps({
                'action': action,
                'data': data or {}
            })
            self.client.publish(self.channel, message)
            logger.debug(f"📤 Published to {self.channel}: {action}")
            return True
        except redis.RedisError as e:
            logger.error(f"❌ Failed to publish to {self.channel}: {e}")
            return False

    def publish_submission(self, action, submission):
        return self.publish(action, submission.to_dict())

    def publish_submission_deleted(self, submission_id):
        return self.publish('delete', {'id': submission_id})
