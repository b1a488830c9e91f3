"""
Jeeves Function Calling - Gradio Application

Chat host for the function-calling capability. The model answers in plain
text or asks for a capability (battery status, weather, Windows file
search link); the capability runs locally and the model phrases the result.

Supports Ollama (default, pulls the model on first start), OpenAI-compatible
endpoints and llama.cpp server.

Usage:
    # With Ollama (default)
    python gradio_app.py

    # With llama.cpp server
    JEEVES_LLM_BACKEND=llama_server JEEVES_LLM_BASE_URL=http://localhost:8080 python gradio_app.py

    # With OpenAI
    JEEVES_LLM_BACKEND=openai_chat JEEVES_LLM_API_KEY=sk-xxx \
        JEEVES_LLM_BASE_URL=https://api.openai.com JEEVES_LLM_MODEL=gpt-4o-mini python gradio_app.py

Open browser: http://localhost:8001
"""
import asyncio
import os
from typing import List

import gradio as gr
import structlog

from jeeves_capability_function_calling.config import FunctionCallingSettings
from jeeves_capability_function_calling.orchestration import (
    ConversationSessions,
    ModelDownloading,
    ModelError,
    ModelReady,
    ModelUnavailable,
    UiError,
    UiGenerating,
    create_catalog,
    create_model_resource,
    create_orchestrator,
)

logger = structlog.get_logger()

settings = FunctionCallingSettings.from_env()
catalog = create_catalog(settings, logger=logger)
model = create_model_resource(settings, logger=logger)

# One orchestrator (and so one history) per browser tab, keyed by gradio session hash
sessions = ConversationSessions(
    lambda: create_orchestrator(model=model, catalog=catalog, settings=settings, logger=logger),
    logger=logger,
)


def describe_model_status() -> str:
    status = model.status.value
    if isinstance(status, ModelReady):
        return f"Model **{settings.llm_model}** ready ({settings.llm_backend})"
    if isinstance(status, ModelDownloading):
        pct = "..." if status.progress < 0 else f"{status.progress}%"
        return f"Downloading **{settings.llm_model}**: {pct}"
    if isinstance(status, ModelUnavailable):
        return f"Model unavailable: {status.reason}"
    if isinstance(status, ModelError):
        return f"Model error: {status.message}"
    return "Checking model..."


async def initialize_model() -> str:
    if not model.is_ready:
        await model.initialize()
    return describe_model_status()


with gr.Blocks(title="Jeeves Function Calling") as demo:
    gr.Markdown("# Jeeves Function Calling")
    gr.Markdown("Ask about your battery, the weather, or to find files (creates a search-ms: link).")

    model_status = gr.Markdown("Checking model...")

    with gr.Accordion("Search location", open=False):
        with gr.Row():
            location_input = gr.Textbox(label="Device location", value=settings.search_location, scale=4)
            location_btn = gr.Button("Update", variant="secondary", scale=1)
        location_status = gr.Markdown("")

    chatbot = gr.Chatbot(
        label="Conversation",
        height=450,
        type="messages",
    )

    with gr.Row():
        msg = gr.Textbox(
            label="Your message",
            placeholder="Ask a question...",
            scale=4,
            show_label=False,
        )
        submit_btn = gr.Button("Send", variant="primary", scale=1)

    with gr.Row():
        require_capability = gr.Checkbox(label="Always use a function", value=False)
        clear_btn = gr.Button("Clear Chat")

    def update_location(location: str) -> str:
        search = catalog.find_by_name("create_search_ms_query")
        location = location.strip()
        if search is None or not location:
            return "Enter a location, e.g. `D:\\`"
        search.update_context(location=location)
        return f"Searching in `{location}`"

    async def respond(message: str, chat_history: List, force: bool, request: gr.Request):
        """Handle message and stream partial text while the turn runs."""
        if not message.strip():
            yield chat_history
            return

        orchestrator = await sessions.get(request.session_hash)
        chat_history = chat_history + [
            {"role": "user", "content": message},
            {"role": "assistant", "content": ""},
        ]
        yield chat_history

        updates: asyncio.Queue = asyncio.Queue()
        unsubscribe = orchestrator.ui_state.subscribe(updates.put_nowait)
        turn = asyncio.ensure_future(orchestrator.send_message(message, require_capability=force))
        try:
            while not turn.done():
                next_update = asyncio.ensure_future(updates.get())
                await asyncio.wait({turn, next_update}, return_when=asyncio.FIRST_COMPLETED)
                if not next_update.done():
                    next_update.cancel()
                    continue
                state = next_update.result()
                if isinstance(state, UiGenerating) and state.partial_text:
                    chat_history[-1]["content"] = state.partial_text
                    yield chat_history
        finally:
            unsubscribe()

        result = turn.result()
        if result is None:
            # Refused before it started (model not ready)
            ui = orchestrator.ui_state.value
            chat_history[-1]["content"] = ui.message if isinstance(ui, UiError) else ""
        else:
            chat_history[-1]["content"] = result.reply.content
        yield chat_history

    async def clear_chat(request: gr.Request):
        if request.session_hash in sessions:
            orchestrator = await sessions.get(request.session_hash)
            await orchestrator.clear()
        return []

    async def end_session(request: gr.Request):
        await sessions.close(request.session_hash)

    demo.load(initialize_model, None, [model_status])
    location_btn.click(update_location, [location_input], [location_status])
    inputs = [msg, chatbot, require_capability]
    msg.submit(respond, inputs, [chatbot]).then(lambda: "", None, [msg])
    submit_btn.click(respond, inputs, [chatbot]).then(lambda: "", None, [msg])
    clear_btn.click(clear_chat, None, [chatbot])
    demo.unload(end_session)


if __name__ == "__main__":
    port = int(os.getenv("GRADIO_SERVER_PORT", "8001"))
    logger.info("starting_gradio_app", port=port)
    demo.launch(
        server_name="0.0.0.0",
        server_port=port,
        share=False,
    )
