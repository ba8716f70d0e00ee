import json

import pytest
from pydantic import BaseModel

from config import LlmRoute
from llm_gateway import LlmGatewayError, LlmOutputError, LlmStatusError, LlmTransportError, call, complete

ROUTE = LlmRoute(name="test", base_url="http://llm.local", endpoint="/v1/chat/completions", model="m", max_retries=1)


class Draft(BaseModel):
    text: str
    difficulty: str


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload

    @property
    def text(self):
        return json.dumps(self._payload)


class FakeClient:
    def __init__(self, *contents, status_code=200):
        self._contents = list(contents)
        self._status = status_code
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers})
        content = self._contents.pop(0)
        return FakeResponse(self._status, {"choices": [{"message": {"content": content}}]})


def test_call_validates_schema():
    client = FakeClient('{"text": "Why Python?", "difficulty": "easy"}')
    draft = call("ask", Draft, cfg=ROUTE, system="be brief", client=client)
    assert draft == Draft(text="Why Python?", difficulty="easy")
    sent = client.requests[0]
    assert sent["url"] == "http://llm.local/v1/chat/completions"
    assert sent["json"]["messages"][-1] == {"role": "user", "content": "ask"}


def test_call_strips_code_fences():
    client = FakeClient('```json\n{"text": "Q", "difficulty": "hard"}\n```')
    assert call("ask", Draft, cfg=ROUTE, client=client).difficulty == "hard"


def test_call_retries_after_invalid_output():
    client = FakeClient("not json", '{"text": "Q", "difficulty": "medium"}')
    assert call("ask", Draft, cfg=ROUTE, client=client).text == "Q"
    retry_messages = client.requests[1]["json"]["messages"]
    assert "failed validation" in retry_messages[-1]["content"]


def test_call_gives_up_after_retries():
    client = FakeClient("{}", "{}")
    with pytest.raises(LlmOutputError):
        call("ask", Draft, cfg=ROUTE, client=client)


def test_error_status_raises():
    client = FakeClient("ignored", status_code=503)
    with pytest.raises(LlmStatusError) as excinfo:
        complete("hello", cfg=ROUTE, client=client)
    assert excinfo.value.status_code == 503


def test_transport_failure_is_wrapped():
    class BrokenClient:
        def post(self, url, *, json, headers, timeout):
            raise ConnectionError("refused")

    with pytest.raises(LlmTransportError):
        complete("hello", cfg=ROUTE, client=BrokenClient())


def test_complete_returns_trimmed_text():
    assert complete("hello", cfg=ROUTE, client=FakeClient("  Hi there.  ")) == "Hi there."


def test_complete_rejects_empty_text():
    with pytest.raises(LlmGatewayError):
        complete("hello", cfg=ROUTE, client=FakeClient("   "))


def test_api_key_header_from_environment(monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "secret")
    route = ROUTE.model_copy(update={"api_key_env": "TEST_LLM_KEY"})
    client = FakeClient("ok")
    complete("hello", cfg=route, client=client)
    assert client.requests[0]["headers"]["Authorization"] == "Bearer secret"
