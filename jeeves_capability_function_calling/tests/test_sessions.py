"""Tests for ConversationSessions (per-tab orchestrators)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from jeeves_capability_function_calling.orchestration.conversation import ConversationOrchestrator
from jeeves_capability_function_calling.orchestration.sessions import ConversationSessions
from jeeves_capability_function_calling.orchestration.types import TerminalReason
from jeeves_capability_function_calling.tests.fakes import HANG, ScriptedGenerator


def fake_orchestrator():
    orchestrator = MagicMock(spec=ConversationOrchestrator)
    orchestrator.close = AsyncMock()
    return orchestrator


@pytest.fixture
def created():
    return []


@pytest.fixture
def factory(created):
    def make():
        orchestrator = fake_orchestrator()
        created.append(orchestrator)
        return orchestrator
    return make


class TestConversationSessions:
    @pytest.mark.asyncio
    async def test_same_session_reuses_orchestrator(self, factory, created, mock_logger):
        sessions = ConversationSessions(factory, logger=mock_logger)

        first = await sessions.get("tab-1")
        again = await sessions.get("tab-1")
        other = await sessions.get("tab-2")

        assert first is again
        assert other is not first
        assert len(created) == 2
        assert len(sessions) == 2

    @pytest.mark.asyncio
    async def test_least_recently_used_session_is_closed(self, factory, created, mock_logger):
        sessions = ConversationSessions(factory, max_sessions=2, logger=mock_logger)

        a = await sessions.get("a")
        b = await sessions.get("b")
        await sessions.get("a")
        await sessions.get("c")

        assert len(sessions) == 2
        assert "b" not in sessions
        assert "a" in sessions
        b.close.assert_awaited_once()
        a.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close_releases_session(self, factory, mock_logger):
        sessions = ConversationSessions(factory, logger=mock_logger)
        orchestrator = await sessions.get("tab-1")

        await sessions.close("tab-1")
        await sessions.close("tab-1")

        assert "tab-1" not in sessions
        orchestrator.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_all(self, factory, created, mock_logger):
        sessions = ConversationSessions(factory, logger=mock_logger)
        await sessions.get("a")
        await sessions.get("b")

        await sessions.close_all()

        assert len(sessions) == 0
        for orchestrator in created:
            orchestrator.close.assert_awaited_once()

    def test_max_sessions_must_be_positive(self, factory):
        with pytest.raises(ValueError):
            ConversationSessions(factory, max_sessions=0)

    @pytest.mark.asyncio
    async def test_closing_session_cancels_running_turn(self, catalog, settings, mock_logger):
        generator = ScriptedGenerator([HANG])
        sessions = ConversationSessions(
            lambda: ConversationOrchestrator(
                generator=generator, catalog=catalog, settings=settings, logger=mock_logger
            ),
            logger=mock_logger,
        )
        orchestrator = await sessions.get("tab-1")
        turn = asyncio.ensure_future(orchestrator.send_message("hello"))
        while not generator.prompts:
            await asyncio.sleep(0)

        await sessions.close("tab-1")
        result = await turn

        assert result.terminal_reason == TerminalReason.CANCELLED
        assert "tab-1" not in sessions
