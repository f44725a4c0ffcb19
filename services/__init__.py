"""
Services layer for ScholarDocsWeb.

This module contains the stateful services:
- wizard: Pure wizard transitions over WizardState
- StateStore: Where the wizard state is kept between requests
- ToolService: Document tool threads and result store

Thread Model:
    Main Thread (Flask)
    └── ToolService threads (one per tool job, run one at a time)
"""

from .state_store import StateStore, SessionStateStore, MemoryStateStore
from .tool_service import ToolService, ToolResultStore
from .wizard import WizardState

__all__ = [
    "StateStore",
    "SessionStateStore",
    "MemoryStateStore",
    "ToolService",
    "ToolResultStore",
    "WizardState",
]
