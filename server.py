"""
Tip raffle web server
Landing page API, admin API, postback receiver and email relay in one Flask app
"""

import logging
import os
import secrets

from dotenv import load_dotenv

# Environment must be loaded before tip_raffle.config is imported
load_dotenv()

from flask import Flask, jsonify  # noqa: E402

from core import (  # noqa: E402
    register_email_relay_routes,
    register_postback_routes,
    register_raffle_routes,
)
from tip_raffle.config import ADMIN_API_KEY, DATABASE_URL, PORT, REDIS_URL  # noqa: E402
from tip_raffle.notifications import EmailRelay, WinnerNotifier  # noqa: E402
from tip_raffle.service import RaffleService  # noqa: E402
from tip_raffle.store import RaffleStore, create_raffle_engine  # noqa: E402
from utils.logging_config import setup_logging  # noqa: E402
from utils.redis_publisher import RaffleEventPublisher  # noqa: E402

logger = logging.getLogger(__name__)


def create_app(service, relay=None, admin_key=None):
    """
    Build the Flask app around a started RaffleService

    Args:
        service: RaffleService
        relay: EmailRelay for /functions/send-winner-email (default: from env)
        admin_key: overrides ADMIN_API_KEY
    """
    app = Flask(__name__)
    app.secret_key = os.getenv("FLASK_SECRET_KEY", secrets.token_hex(32))

    register_raffle_routes(app, service, admin_key=admin_key if admin_key is not None else ADMIN_API_KEY)
    register_postback_routes(app, service)
    register_email_relay_routes(app, relay or EmailRelay())

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    # Scanners hit random paths; keep 404s quiet
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    return app


def build_service():
    """Wire the production service from environment settings"""
    engine = create_raffle_engine(DATABASE_URL)
    store = RaffleStore(engine)
    relay = EmailRelay()
    if not relay.configured:
        logger.warning("⚠️ RESEND_API_KEY not set - winner emails disabled")
    notifier = WinnerNotifier(relay if relay.configured else None)
    publisher = RaffleEventPublisher(REDIS_URL)
    return RaffleService(store, notifier=notifier, publisher=publisher), relay


if __name__ == '__main__':
    setup_logging()
    service, relay = build_service()
    service.start(listen=bool(REDIS_URL), redis_url=REDIS_URL, autoflush=True)
    app = create_app(service, relay=relay)
    logger.info(f"🚀 Starting raffle server on port {PORT}")
    try:
        app.run(host='0.0.0.0', port=PORT)
    finally:
        service.stop()
