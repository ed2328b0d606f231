"""
State store for master data, rules, journal entries and workflow progress.
"""

from .seed import seed_master_data
from .sqlite_store import StateStore, new_id, utc_now

__all__ = ["StateStore", "new_id", "utc_now", "seed_master_data"]
