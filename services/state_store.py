"""
Wizard state persistence.

Routes read and write the wizard through a StateStore, never through the
session directly. The requirement engine does not know stores exist.

Usage:
    store = SessionStateStore()
    state = store.load() or initial_state()
    store.save(select_stream(state, Stream.PHARMACY))
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from flask import session

from services.wizard import WizardState
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

SESSION_KEY = "wizard"


class StateStore(ABC):
    """load / save / clear of one wizard state."""

    @abstractmethod
    def load(self) -> Optional[WizardState]:
        """Return the stored state, None when nothing was saved."""

    @abstractmethod
    def save(self, state: WizardState) -> None:
        """Replace the stored state."""

    @abstractmethod
    def clear(self) -> None:
        """Forget the stored state."""


class SessionStateStore(StateStore):
    """Keeps the wizard in the Flask session cookie (request context only)."""

    def __init__(self, key: str = SESSION_KEY):
        self.key = key

    def load(self) -> Optional[WizardState]:
        data = session.get(self.key)
        if not data:
            return None
        try:
            return WizardState.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable wizard state: {e}")
            session.pop(self.key, None)
            return None

    def save(self, state: WizardState) -> None:
        session[self.key] = state.to_dict()
        session.modified = True

    def clear(self) -> None:
        session.pop(self.key, None)


class MemoryStateStore(StateStore):
    """In-process store for tests and scripts."""

    def __init__(self):
        self._data: Optional[Dict[str, Any]] = None
        self._lock = threading.Lock()

    def load(self) -> Optional[WizardState]:
        with self._lock:
            return WizardState.from_dict(self._data) if self._data else None

    def save(self, state: WizardState) -> None:
        with self._lock:
            self._data = state.to_dict()

    def clear(self) -> None:
        with self._lock:
            self._data = None
