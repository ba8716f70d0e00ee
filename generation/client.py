from __future__ import annotations  # Text-generation interface with fatal and best-effort call kinds

import logging
from typing import Callable, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config import LlmRoute
from llm_gateway import HttpClient, LlmGatewayError, call, complete
from observability import log_event
from orchestrator.errors import GenerationDegraded, GenerationFailure

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


class TextGenerator(Protocol):  # Narrow contract of the external text-generation service
    def generate_json(self, prompt: str, schema: Type[M], *, system: Optional[str] = None) -> M: ...

    def generate_text(self, prompt: str, *, system: Optional[str] = None) -> str: ...


class GatewayTextGenerator:  # TextGenerator backed by an OpenAI-compatible route
    def __init__(self, route: LlmRoute, *, client: Optional[HttpClient] = None) -> None:
        self._route = route
        self._client = client

    @property
    def route(self) -> LlmRoute:
        return self._route

    def generate_json(self, prompt: str, schema: Type[M], *, system: Optional[str] = None) -> M:
        return call(prompt, schema, cfg=self._route, system=system, client=self._client)

    def generate_text(self, prompt: str, *, system: Optional[str] = None) -> str:
        return complete(prompt, cfg=self._route, system=system, client=self._client)


def must_generate(fn: Callable[[], T], *, what: str) -> T:
    """Run a required generation; any failure surfaces as GenerationFailure."""

    try:
        return fn()
    except GenerationFailure:
        raise
    except (LlmGatewayError, ValidationError, ValueError, TypeError) as exc:
        logger.error("Required generation failed what=%s: %s", what, exc)
        raise GenerationFailure(f"{what} generation failed: {exc}") from exc


def try_generate(fn: Callable[[], T], *, default: T, what: str, session_id: str = "-") -> T:
    """Run a best-effort generation; any failure is logged and replaced by ``default``."""

    try:
        return fn()
    except Exception as exc:  # noqa: BLE001
        degraded = GenerationDegraded(f"{what} generation degraded: {exc}")
        logger.warning("%s", degraded)
        log_event("generation_degraded", session_id, level=logging.WARNING, target=what, reason=str(exc)[:200])
        return default


__all__ = ["GatewayTextGenerator", "TextGenerator", "must_generate", "try_generate"]
