from __future__ import annotations  # OpenAI-compatible chat gateway for the generation routes

import json
import logging
import os
import re
import threading
from typing import Any, Dict, List, Optional, Protocol, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config import LlmRoute

logger = logging.getLogger(__name__)

Message = Dict[str, str]
T = TypeVar("T", bound=BaseModel)

_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()
_FENCE = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)
PREVIEW_CHARS = 120
HINT_CHARS = 200


class HttpClient(Protocol):  # Injectable transport; httpx.Client satisfies it
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Any failure talking to a generation route
    pass


class LlmTransportError(LlmGatewayError):  # Network failure or timeout
    pass


class LlmStatusError(LlmGatewayError):  # Non-2xx reply from the route
    def __init__(self, status_code: int) -> None:
        super().__init__(f"LLM returned status {status_code}")
        self.status_code = status_code


class LlmOutputError(LlmGatewayError):  # Reply could not be turned into the requested shape
    pass


def _route_lock(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or cfg.base_url + cfg.endpoint
    with _ROUTE_LOCKS_GUARD:
        return _ROUTE_LOCKS.setdefault(key, threading.Lock())


def _messages(prompt: str, system: Optional[str]) -> List[Message]:
    messages = [{"role": "system", "content": system}] if system else []
    messages.append({"role": "user", "content": prompt})
    return messages


def call(
    prompt: str,
    schema: Type[T],
    *,
    cfg: LlmRoute,
    system: Optional[str] = None,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:  # One prompt in, one validated model out
    return chat(_messages(prompt, system), schema, cfg=cfg, client=client, options=options)


def chat(
    messages: Sequence[Message],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:
    """Send ``messages`` and validate the reply against ``schema``.

    The JSON schema is prepended as a system message. Replies that fail
    validation are retried up to ``cfg.max_retries`` times with the reason
    appended as a hint; transport and status errors are not retried.
    """

    conversation = [_schema_instruction(schema), *_normalize(messages)]
    attempts = cfg.max_retries + 1
    logger.info(
        "LLM json request route=%s model=%s schema=%s attempts=%d preview=%s",
        cfg.name,
        cfg.model,
        schema.__name__,
        attempts,
        _preview(conversation),
    )

    def _run() -> T:
        reason: Optional[str] = None
        for attempt in range(1, attempts + 1):
            sent = conversation if reason is None else [*conversation, _retry_hint(reason)]
            content = _send(cfg, sent, client, options, attempt=attempt)
            try:
                parsed = schema.model_validate_json(_strip_code_fences(content))
            except ValidationError as exc:
                reason = str(exc)
                logger.warning("LLM output rejected route=%s attempt=%d/%d: %s", cfg.name, attempt, attempts, exc)
                continue
            logger.info("LLM json request done route=%s attempt=%d", cfg.name, attempt)
            return parsed
        raise LlmOutputError(f"LLM output failed {schema.__name__} validation after {attempts} attempts")

    return _serialized(cfg, _run)


def complete(
    prompt: str,
    *,
    cfg: LlmRoute,
    system: Optional[str] = None,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:  # Free-text reply, trimmed; empty replies are errors
    messages = _messages(prompt, system)
    logger.info("LLM text request route=%s model=%s preview=%s", cfg.name, cfg.model, _preview(messages))

    def _run() -> str:
        text = _send(cfg, messages, client, options, attempt=1).strip()
        if not text:
            raise LlmOutputError("LLM returned empty text")
        return text

    return _serialized(cfg, _run)


def _serialized(cfg: LlmRoute, run):  # Routes marked sequential serve one request at a time
    if not cfg.sequential:
        return run()
    with _route_lock(cfg):
        return run()


def _payload(cfg: LlmRoute, messages: Sequence[Message], options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"model": cfg.model, "messages": list(messages), "temperature": cfg.temperature}
    if cfg.max_tokens:
        payload["max_tokens"] = cfg.max_tokens
    if cfg.response_format:
        payload["response_format"] = {"type": cfg.response_format}
    payload.update(options or {})
    return payload


def _headers(cfg: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    api_key = os.getenv(cfg.api_key_env) if cfg.api_key_env else None
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    return headers


def _send(
    cfg: LlmRoute,
    messages: Sequence[Message],
    client: Optional[HttpClient],
    options: Optional[Dict[str, Any]],
    *,
    attempt: int,
) -> str:  # POST one chat completion and return the message content
    url = f"{cfg.base_url}{cfg.endpoint}"
    payload = _payload(cfg, messages, options)
    headers = _headers(cfg)
    logger.debug("LLM send route=%s attempt=%d", cfg.name, attempt)
    try:
        if client is not None:
            response = client.post(url, json=payload, headers=headers, timeout=cfg.timeout_s)
            return _read(response)
        with httpx.Client(timeout=cfg.timeout_s) as http:
            return _read(http.post(url, json=payload, headers=headers))
    except LlmGatewayError:
        raise
    except httpx.TimeoutException as exc:
        logger.error("LLM timeout route=%s after %.1fs", cfg.name, cfg.timeout_s)
        raise LlmTransportError(f"LLM route {cfg.name} timed out") from exc
    except Exception as exc:  # noqa: BLE001
        logger.error("LLM transport failure route=%s: %s", cfg.name, exc)
        raise LlmTransportError(f"LLM route {cfg.name} transport failed") from exc


def _read(response: HttpResponse) -> str:
    if response.status_code >= 400:
        logger.error("LLM error status %s: %s", response.status_code, response.text[:200])
        raise LlmStatusError(response.status_code)
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmOutputError("LLM payload was not JSON") from exc
    return _extract_content(data)


def _extract_content(data: Any) -> str:  # OpenAI choices shape first, bare content second
    if not isinstance(data, dict):
        raise LlmOutputError("LLM response was not an object")
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        choice = choices[0]
        if choice.get("finish_reason") == "length":
            logger.warning("LLM reply truncated at max_tokens")
        message = choice.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
    if isinstance(data.get("content"), str):
        return data["content"]
    raise LlmOutputError("LLM response missing content")


def _normalize(messages: Sequence[Message]) -> List[Message]:
    normalized: List[Message] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": str(item.get("content", ""))})
    return normalized


def _schema_instruction(schema: Type[BaseModel]) -> Message:
    schema_json = json.dumps(schema.model_json_schema(), indent=2)
    return {"role": "system", "content": "Reply with a single JSON object matching this schema:\n" + schema_json}


def _preview(messages: Sequence[Message]) -> str:  # First line of the latest non-empty message
    for message in reversed(messages):
        text = message.get("content", "").strip()
        if text:
            line = text.splitlines()[0]
            return line if len(line) <= PREVIEW_CHARS else line[: PREVIEW_CHARS - 3] + "..."
    return ""


def _strip_code_fences(content: str) -> str:
    text = content.strip()
    match = _FENCE.match(text)
    return match.group(1).strip() if match else text


def _retry_hint(reason: str) -> Message:
    first = reason.splitlines()[0].strip() if reason else ""
    if len(first) > HINT_CHARS:
        first = first[: HINT_CHARS - 3] + "..."
    hint = "The previous reply failed validation."
    if first:
        hint += f" Reason: {first}."
    return {"role": "system", "content": hint + " Return a single JSON object that matches the schema."}
