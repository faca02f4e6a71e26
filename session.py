"""
Dashboard session: owns the current snapshot and persists it after every edit.
"""
import logging
from typing import Any, Optional

import state_edits
from derivation import DerivedValues, derive
from io_utils import create_state_download_json
from persistence import StatePersistence
from state_schema import AppState, DEFAULT_STATE

logger = logging.getLogger(__name__)


class DashboardSession:
    """Current dashboard snapshot plus its persistence"""

    def __init__(self, persistence: StatePersistence, state: Optional[AppState] = None):
        self.persistence = persistence
        self._state = state if state is not None else DEFAULT_STATE

    @classmethod
    def start(cls, persistence: StatePersistence) -> 'DashboardSession':
        """Load the saved snapshot once, falling back to defaults"""
        loaded = persistence.load()
        if loaded is None:
            logger.info("No saved dashboard state; starting from defaults")
        return cls(persistence, loaded)

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def derived(self) -> DerivedValues:
        # Recomputed on every query
        return derive(self._state)

    def apply(self, new_state: Any) -> AppState:
        """Replace the snapshot and persist it (best-effort)"""
        self._state = state_edits.replace_state(new_state)
        self.persistence.save(self._state)
        return self._state

    def set_field(self, section: str, field_name: str, value: Any) -> AppState:
        return self.apply(state_edits.set_field(self._state, section, field_name, value))

    def set_discretionary_amount(self, kind: str, category: str, value: Any) -> AppState:
        return self.apply(state_edits.set_discretionary_amount(self._state, kind, category, value))

    def reset(self) -> AppState:
        return self.apply(state_edits.reset_state())

    def export_json(self) -> str:
        return create_state_download_json(self._state)
