"""
Tip Raffle Package
Landing-page tip raffle with win caps, ban list and postback validation

The service and store live in tip_raffle.service / tip_raffle.store; they
depend on utils/, which itself imports tip_raffle.errors.
"""

__version__ = "1.0.0"

# Export main components
from .draw import RaffleDraw, parse_tip_amount
from .eligibility import can_win, eligibility_summary
from .models import BannedEntry, FormField, PageConfig, Submission, WinRecord

__all__ = [
    'RaffleDraw',
    'parse_tip_amount',
    'can_win',
    'eligibility_summary',
    'BannedEntry',
    'FormField',
    'PageConfig',
    'Submission',
    'WinRecord',
]
