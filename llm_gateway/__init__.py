from __future__ import annotations  # Public gateway API

from .llm_gateway import (
    HttpClient,
    HttpResponse,
    LlmGatewayError,
    LlmOutputError,
    LlmStatusError,
    LlmTransportError,
    call,
    chat,
    complete,
)

__all__ = [
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "LlmOutputError",
    "LlmStatusError",
    "LlmTransportError",
    "call",
    "chat",
    "complete",
]
