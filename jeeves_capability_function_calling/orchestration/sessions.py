"""Per-session orchestrators for multi-user hosts (one per browser tab)."""

from collections import OrderedDict
from typing import Any, Callable, Optional

from jeeves_capability_function_calling._logging import get_component_logger
from jeeves_capability_function_calling.config import thresholds
from jeeves_capability_function_calling.orchestration.conversation import ConversationOrchestrator


class ConversationSessions:
    """Session id -> orchestrator, bounded; the least recently used session is closed first."""

    def __init__(
        self,
        factory: Callable[[], ConversationOrchestrator],
        *,
        max_sessions: int = thresholds.MAX_SESSIONS,
        logger: Optional[Any] = None,
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._factory = factory
        self._max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ConversationOrchestrator]" = OrderedDict()
        self._logger = get_component_logger("ConversationSessions", logger)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def get(self, session_id: str) -> ConversationOrchestrator:
        orchestrator = self._sessions.get(session_id)
        if orchestrator is not None:
            self._sessions.move_to_end(session_id)
            return orchestrator

        while len(self._sessions) >= self._max_sessions:
            evicted_id, evicted = self._sessions.popitem(last=False)
            self._logger.info("session_evicted", session_id=evicted_id)
            await evicted.close()

        orchestrator = self._factory()
        self._sessions[session_id] = orchestrator
        self._logger.debug("session_created", session_id=session_id, sessions=len(self._sessions))
        return orchestrator

    async def close(self, session_id: str) -> None:
        orchestrator = self._sessions.pop(session_id, None)
        if orchestrator is None:
            return
        await orchestrator.close()
        self._logger.info("session_closed", session_id=session_id)

    async def close_all(self) -> None:
        while self._sessions:
            _, orchestrator = self._sessions.popitem(last=False)
            await orchestrator.close()
