import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

from storage.migrate import migrate
from config.settings import settings
from llm_gateway import LlmGatewayError
from orchestrator.controller import SessionController
from services.research import basic_snapshot
from services.sessions import create_session
from storage.entitlements import ConsumeResult, SqliteEntitlements


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield
    finally:
        td.cleanup()


class FakeTextGenerator:
    """Scripted stand-in for the text-generation service."""

    def __init__(self) -> None:
        self.questions: List[Dict[str, Any]] = []
        self.small_talk: List[str] = ["How are you today?", "What brings you here?"]
        self.text_reply: Callable[[str], str] = lambda prompt: "Thanks, that was helpful."
        self.fail_json = False
        self.fail_text = False
        self.before_question: Optional[Callable[[], None]] = None
        self.feedback: Dict[str, Any] = {
            "overall": {"score": 84, "grade": "A", "summary": "Clear, structured answers with concrete results."},
            "dimensions": {
                "technical_competency": {"score": 86, "feedback": "Solid profiling approach."},
                "communication": {"score": 80, "feedback": "Well organized."},
                "problem_solving": {"score": 85, "feedback": "Breaks problems down."},
                "cultural_fit": {"score": 82, "feedback": "Collaborative."},
            },
            "tips": ["Quantify impact earlier.", "Name trade-offs explicitly."],
            "exemplars": {"strengths": ["Throughput gain of 40 percent"], "improvements": ["Shorter openings"]},
        }
        self.calls: List[Dict[str, Any]] = []
        self._question_count = 0

    def generate_json(self, prompt, schema, *, system=None):
        self.calls.append({"kind": "json", "schema": schema.__name__, "prompt": prompt})
        if self.fail_json:
            raise LlmGatewayError("scripted failure")
        if schema.__name__ == "SmallTalkDraft":
            return schema.model_validate({"questions": self.small_talk})
        if schema.__name__ == "QuestionDraft":
            if self.before_question is not None:
                hook, self.before_question = self.before_question, None
                hook()
            self._question_count += 1
            payload = self.questions.pop(0) if self.questions else {
                "text": f"Question {self._question_count}: tell me about a system you built?",
                "category": "technical",
                "difficulty": "medium",
            }
            return schema.model_validate(payload)
        if schema.__name__ == "FeedbackDraft":
            return schema.model_validate(self.feedback)
        raise AssertionError(f"unexpected schema {schema.__name__}")

    def generate_text(self, prompt, *, system=None):
        self.calls.append({"kind": "text", "prompt": prompt})
        if self.fail_text:
            raise LlmGatewayError("scripted failure")
        return self.text_reply(prompt)

    def count(self, kind: str, schema: Optional[str] = None) -> int:
        return sum(
            1 for call in self.calls if call["kind"] == kind and (schema is None or call.get("schema") == schema)
        )


class SpyEntitlements:
    def __init__(self, *, success: bool = True, error: Optional[Exception] = None) -> None:
        self.calls: List[tuple] = []
        self._success = success
        self._error = error

    def consume(self, entitlement_id, user_id, session_id):
        self.calls.append((entitlement_id, user_id, session_id))
        if self._error is not None:
            raise self._error
        return ConsumeResult(success=self._success, remaining_credits=0)


@pytest.fixture
def fake_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def make_entitlements():
    return SpyEntitlements


@pytest.fixture
def entitlements() -> SpyEntitlements:
    return SpyEntitlements()


@pytest.fixture
def controller(fake_generator, entitlements) -> SessionController:
    return SessionController.from_generator(fake_generator, entitlements)


@pytest.fixture
def snapshot():
    return basic_snapshot(
        cv_text="Backend engineer with eight years of Python experience.",
        job_description="Build and scale APIs for a payments platform.",
        job_title="Software Engineer",
        company="Acme",
    )


@pytest.fixture
def make_session(snapshot):
    def _make(**kwargs):
        kwargs.setdefault("user_id", "u1")
        return create_session(snapshot, **kwargs)

    return _make


@pytest.fixture
def ledger() -> SqliteEntitlements:
    return SqliteEntitlements()
