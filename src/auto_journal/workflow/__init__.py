"""
Workflow progression for per-client bookkeeping runs.
"""

from .state_machine import WorkflowStateMachine

__all__ = ["WorkflowStateMachine"]
