"""
CLI runner module.

Provides commands:
- init-config / status: Configuration and statistics
- master / clients / rules: Master data and classification rules
- classify: Classify a single transaction
- workflow: Drive per-client workflows
- entries / export: Review and export journal entries
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
