"""
ConversationOrchestrator - one chat session over a text-generating model.

Each user message runs a two-pass pipeline:

    IDLE -> AWAITING_FIRST_PASS -> EXTRACTING -> [AWAITING_SECOND_PASS] -> IDLE

1. First pass: system prompt + bounded history + user text, streamed.
2. If the text is an invocation, dispatch it and synthesize the answer
   with a second model pass; otherwise the first-pass text is the answer.

At most one turn is in flight. A new message cancels the running turn,
which is finalized with a cancellation marker. Timeouts and model faults
finalize the turn with whatever text streamed so far; nothing escapes
``send_message`` except cancellation of the caller's own task.
"""

import asyncio
from typing import Any, Dict, List, Optional, Set, Tuple

from jeeves_capability_function_calling._logging import get_component_logger, preview
from jeeves_capability_function_calling.capabilities.base import Success
from jeeves_capability_function_calling.capabilities.catalog import CapabilityCatalog
from jeeves_capability_function_calling.config import thresholds
from jeeves_capability_function_calling.config.settings import FunctionCallingSettings
from jeeves_capability_function_calling.invocation.dispatcher import Dispatcher
from jeeves_capability_function_calling.invocation.extractor import extract, looks_like_invocation
from jeeves_capability_function_calling.invocation.types import InvocationRequest
from jeeves_capability_function_calling.orchestration.model_resource import TextGenerator
from jeeves_capability_function_calling.orchestration.state import ObservableState
from jeeves_capability_function_calling.orchestration.synthesizer import ResponseSynthesizer
from jeeves_capability_function_calling.orchestration.types import (
    ChatRole,
    ChatUiState,
    ConversationTurn,
    ModelReady,
    ModelStatus,
    PipelineState,
    TerminalReason,
    TurnResult,
    UiError,
    UiGenerating,
    UiIdle,
)
from jeeves_capability_function_calling.prompts.function_calling.system import (
    build_conversation_prompt,
    build_system_prompt,
)


class _StreamBuffer:
    def __init__(self) -> None:
        self._chunks: List[str] = []

    def append(self, chunk: str) -> None:
        self._chunks.append(chunk)

    @property
    def count(self) -> int:
        return len(self._chunks)

    @property
    def text(self) -> str:
        return "".join(self._chunks)


class ConversationOrchestrator:
    def __init__(
        self,
        *,
        generator: TextGenerator,
        catalog: CapabilityCatalog,
        dispatcher: Optional[Dispatcher] = None,
        synthesizer: Optional[ResponseSynthesizer] = None,
        settings: Optional[FunctionCallingSettings] = None,
        model_status: Optional[ObservableState[ModelStatus]] = None,
        system_prompt: Optional[str] = None,
        logger: Optional[Any] = None,
    ):
        self._settings = settings or FunctionCallingSettings()
        self._generator = generator
        self._catalog = catalog
        self._dispatcher = dispatcher or Dispatcher(catalog, logger=logger)
        self._synthesizer = synthesizer or ResponseSynthesizer(
            generator,
            catalog,
            timeout=self._settings.synthesis_timeout_seconds,
            include_diagnostics=self._settings.include_diagnostics,
            logger=logger,
        )
        self._model_status = model_status
        self._system_prompt = system_prompt
        self._logger = get_component_logger("ConversationOrchestrator", logger)

        self.ui_state: ObservableState[ChatUiState] = ObservableState(UiIdle())
        self._pipeline_state = PipelineState.IDLE
        self._history: List[ConversationTurn] = []
        self._active: Optional[asyncio.Task] = None
        self._superseded: Set[asyncio.Task] = set()
        self._cancelled_unstarted: Dict[asyncio.Task, TurnResult] = {}
        self._start_lock = asyncio.Lock()
        self._visible_partial = ""
        self._error_clear: Optional[asyncio.TimerHandle] = None

    # =========================================================================
    # Public surface
    # =========================================================================

    @property
    def history(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._history)

    @property
    def pipeline_state(self) -> PipelineState:
        return self._pipeline_state

    async def send_message(
        self, text: Optional[str], *, require_capability: bool = False
    ) -> Optional[TurnResult]:
        """Run one turn. Returns None when nothing was sent (blank text, model not ready)."""
        if text is None or not text.strip():
            return None
        text = text.strip()

        if self._model_status is not None and not isinstance(self._model_status.value, ModelReady):
            self._logger.info("message_rejected_model_not_ready", status=repr(self._model_status.value))
            self._show_error(thresholds.MODEL_NOT_READY_MESSAGE)
            return None

        # Cancel-then-start is serialized so concurrent senders never run two turns
        async with self._start_lock:
            await self._cancel_active()
            context = self._history[-thresholds.MAX_CONTEXT_MESSAGES:]
            self._history.append(ConversationTurn(ChatRole.USER, text))
            task = asyncio.ensure_future(self._run_turn(text, context, require_capability))
            self._active = task

        try:
            return await task
        except asyncio.CancelledError:
            if task not in self._superseded and task not in self._cancelled_unstarted:
                raise
            result = self._finish_unstarted(task)
            del self._cancelled_unstarted[task]
            return result
        finally:
            if self._active is task:
                self._active = None

    async def cancel(self) -> None:
        """Stop the in-flight turn, if any, and wait for it to finalize."""
        async with self._start_lock:
            await self._cancel_active()

    async def clear(self) -> None:
        async with self._start_lock:
            await self._cancel_active()
            self._history.clear()
        self._cancel_error_clear()
        self.ui_state.set(UiIdle())
        self._logger.info("conversation_cleared")

    def dismiss_error(self) -> None:
        if isinstance(self.ui_state.value, UiError):
            self._cancel_error_clear()
            self.ui_state.set(UiIdle())

    async def close(self) -> None:
        await self.cancel()
        self._cancel_error_clear()

    # =========================================================================
    # Turn pipeline
    # =========================================================================

    async def _cancel_active(self) -> None:
        task = self._active
        if task is None or task.done():
            return
        self._superseded.add(task)
        task.cancel()
        await asyncio.wait([task])
        if task.cancelled() and task in self._superseded:
            self._finish_unstarted(task)

    def _finish_unstarted(self, task: asyncio.Task) -> TurnResult:
        """Finalize a turn cancelled before its first step; _run_turn never saw it."""
        result = self._cancelled_unstarted.get(task)
        if result is None:
            self._superseded.discard(task)
            self._logger.info("turn_cancelled", partial_chars=0)
            result = self._finish(thresholds.CANCELLED_MARKER.strip(), TerminalReason.CANCELLED)
            self._cancelled_unstarted[task] = result
        return result

    async def _run_turn(
        self, text: str, context: List[ConversationTurn], require_capability: bool
    ) -> TurnResult:
        self._logger.info("turn_started", text=preview(text), context_turns=len(context))

        buffer = _StreamBuffer()
        self._visible_partial = ""
        try:
            self._set_pipeline(PipelineState.AWAITING_FIRST_PASS)
            self.ui_state.set(UiGenerating(""))
            prompt = build_conversation_prompt(self._current_system_prompt(), context, text)

            try:
                await asyncio.wait_for(
                    self._stream_first_pass(prompt, buffer),
                    timeout=self._settings.inference_timeout_seconds,
                )
            except asyncio.TimeoutError:
                return self._finish_timed_out(buffer.text)

            first_pass = buffer.text
            self._set_pipeline(PipelineState.EXTRACTING)
            request = extract(first_pass) if looks_like_invocation(first_pass) else None
            if request is None and require_capability:
                request = self._keyword_fallback(text)

            if request is None:
                reply = first_pass if first_pass.strip() else thresholds.FALLBACK_RESPONSE
                return self._finish(reply, TerminalReason.COMPLETED)

            self._logger.info("invocation_detected", capability=request.capability_name)
            outcome = await self._dispatcher.dispatch(request)

            self._set_pipeline(PipelineState.AWAITING_SECOND_PASS)
            self._visible_partial = ""
            self.ui_state.set(UiGenerating(""))
            answer = await self._synthesizer.synthesize(outcome, text)

            capability_name = (
                outcome.capability_name if isinstance(outcome, Success) else request.capability_name
            )
            return self._finish(
                answer,
                TerminalReason.COMPLETED,
                capability_name=capability_name,
                outcome=outcome,
            )
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task not in self._superseded:
                self._set_pipeline(PipelineState.IDLE)
                self.ui_state.set(UiIdle())
                raise
            self._superseded.discard(task)
            partial = self._visible_partial
            self._logger.info("turn_cancelled", partial_chars=len(partial))
            reply = partial + thresholds.CANCELLED_MARKER if partial else thresholds.CANCELLED_MARKER.strip()
            return self._finish(reply, TerminalReason.CANCELLED)
        except Exception as e:
            return self._finish_error(self._visible_partial, e)

    async def _stream_first_pass(self, prompt: str, buffer: _StreamBuffer) -> None:
        stream = self._generator.generate(prompt)
        try:
            async for chunk in stream:
                if not chunk:
                    continue
                buffer.append(chunk)
                self._visible_partial = buffer.text
                if buffer.count % thresholds.TOKEN_DEBOUNCE_COUNT == 0:
                    self.ui_state.set(UiGenerating(self._visible_partial))
            self.ui_state.set(UiGenerating(buffer.text))
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    def _keyword_fallback(self, text: str) -> Optional[InvocationRequest]:
        capability = self._catalog.detect_by_keyword(text)
        if capability is None:
            return None
        params = capability.infer_parameters(text)
        if params is None:
            return None
        self._logger.info("invocation_inferred_from_keywords", capability=capability.descriptor.name)
        return InvocationRequest(
            capability_name=capability.descriptor.name,
            raw_parameters={k: None if v is None else str(v) for k, v in params.items()},
        )

    def _current_system_prompt(self) -> str:
        if self._system_prompt is not None:
            return self._system_prompt
        # Rebuilt per turn: capability examples depend on mutable context (search location)
        return build_system_prompt(self._catalog.all_capabilities())

    # =========================================================================
    # Finalization
    # =========================================================================

    def _finish(
        self,
        reply_text: str,
        reason: TerminalReason,
        *,
        capability_name: Optional[str] = None,
        outcome: Any = None,
    ) -> TurnResult:
        reply = ConversationTurn(ChatRole.ASSISTANT, reply_text)
        self._history.append(reply)
        self._set_pipeline(PipelineState.IDLE)
        if not isinstance(self.ui_state.value, UiError):
            self.ui_state.set(UiIdle())
        self._logger.info(
            "turn_completed",
            terminal_reason=reason.value,
            capability=capability_name,
            reply=preview(reply_text),
        )
        return TurnResult(
            reply=reply,
            terminal_reason=reason,
            capability_name=capability_name,
            outcome=outcome,
        )

    def _finish_timed_out(self, partial: str) -> TurnResult:
        self._set_pipeline(PipelineState.TIMED_OUT)
        self._logger.warning(
            "turn_timed_out",
            timeout_seconds=self._settings.inference_timeout_seconds,
            partial_chars=len(partial),
        )
        reply = partial + thresholds.TIMEOUT_MARKER if partial else thresholds.FALLBACK_RESPONSE
        return self._finish(reply, TerminalReason.TIMED_OUT)

    def _finish_error(self, partial: str, error: Exception) -> TurnResult:
        self._set_pipeline(PipelineState.ERROR)
        self._logger.error("turn_failed", error=str(error), error_type=type(error).__name__)
        reply = partial + thresholds.INTERRUPTED_MARKER if partial else thresholds.FALLBACK_RESPONSE
        self._show_error(thresholds.SAFE_ERROR_MESSAGE)
        return self._finish(reply, TerminalReason.ERROR)

    def _set_pipeline(self, state: PipelineState) -> None:
        if state != self._pipeline_state:
            self._logger.debug("pipeline_state_changed", old=self._pipeline_state.value, new=state.value)
        self._pipeline_state = state

    def _show_error(self, message: str) -> None:
        error = UiError(message)
        self._cancel_error_clear()
        self.ui_state.set(error)
        loop = asyncio.get_running_loop()
        self._error_clear = loop.call_later(
            thresholds.ERROR_CLEAR_DELAY_SECONDS, self._clear_error, error
        )

    def _clear_error(self, error: UiError) -> None:
        self._error_clear = None
        if self.ui_state.value == error:
            self.ui_state.set(UiIdle())

    def _cancel_error_clear(self) -> None:
        if self._error_clear is not None:
            self._error_clear.cancel()
            self._error_clear = None
