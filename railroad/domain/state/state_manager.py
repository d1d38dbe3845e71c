from typing import Dict, Any, Optional
import asyncio

from railroad.domain.collaborators import SessionStateProvider
from railroad.domain.models.context import utcnow


class StateManager(SessionStateProvider):
    """Manages session state; the most recently updated session is the active one"""

    def __init__(self):
        self.states: Dict[str, Dict[str, Any]] = {}
        self.active_session_id: Optional[str] = None
        self._lock = asyncio.Lock()

    async def get_current_state(self) -> Optional[Dict[str, Any]]:
        """Get the state of the active session, None before any update"""

        async with self._lock:
            if self.active_session_id is None:
                return None
            state = dict(self.states[self.active_session_id])
            started_at = state.pop("started_at", None)
            if started_at is not None and "duration" not in state:
                state["duration"] = (utcnow() - started_at).total_seconds() * 1000
            return state

    async def get_state(self, session_id: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            state = self.states.get(session_id)
            return dict(state) if state is not None else None

    async def update_state(self, session_id: str, updates: Dict[str, Any]):
        """Update state for a session and make it the active one"""

        async with self._lock:
            if session_id not in self.states:
                self.states[session_id] = {
                    "session_id": session_id,
                    "started_at": utcnow()
                }

            self.states[session_id].update(updates)
            self.active_session_id = session_id

    async def clear_state(self, session_id: str):
        """Clear state for a session"""

        async with self._lock:
            self.states.pop(session_id, None)
            if self.active_session_id == session_id:
                self.active_session_id = None
