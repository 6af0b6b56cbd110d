"""
HTTP modules for the tip raffle

Modules:
- raffle_api: Landing page and admin dashboard routes
- postback: Registration postback receiver (validated player ids)
- email_relay: Winner email relay endpoint
"""

from .email_relay import (
    email_relay_bp,
    register_email_relay_routes,
)

from .postback import (
    CORS_HEADERS,
    postback_bp,
    register_postback_routes,
)

from .raffle_api import (
    raffle_bp,
    register_raffle_routes,
)

__all__ = [
    # Raffle API
    'raffle_bp',
    'register_raffle_routes',
    # Postback
    'CORS_HEADERS',
    'postback_bp',
    'register_postback_routes',
    # Email relay
    'email_relay_bp',
    'register_email_relay_routes',
]
