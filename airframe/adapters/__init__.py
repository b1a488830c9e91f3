"""HTTP streaming adapters, one per wire protocol.

- LlamaServerAdapter: llama.cpp server (/completion or /v1/completions)
- OpenAIChatAdapter: OpenAI Chat Completions, also used for Ollama
"""

from .base import BackendAdapter
from .llama_server import LlamaServerAdapter
from .openai_chat import OpenAIChatAdapter

__all__ = ["BackendAdapter", "LlamaServerAdapter", "OpenAIChatAdapter"]
