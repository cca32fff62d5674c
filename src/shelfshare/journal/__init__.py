"""Reading journal module.

Each member has a journal of the books they have held, with personal
notes, a finished flag and a manual order.
"""

from .manager import JournalManager, parse_card_number, sort_entries
from .models import JournalRecord

__all__ = ["JournalManager", "JournalRecord", "parse_card_number", "sort_entries"]
