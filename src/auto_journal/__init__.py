"""
Receipt → Transaction Facts → Classification → Review → Export

Deterministic classification of extracted receipt transactions into account
items and tax categories (client rules > industry rules > shared rules > AI),
driven through a resumable, persisted 8-step bookkeeping workflow per client.
"""

__version__ = "0.1.0"
