import pytest

from observability import log_event, span
from observability import logger as logger_module
from observability.admin_cli import list_sessions, show_curve, show_turns


def test_span_records_elapsed_ms():
    events = []
    with span(events, "generate_question"):
        pass
    assert events == [{"span": "generate_question", "ms": events[0]["ms"]}]
    assert events[0]["ms"] >= 0


def test_span_marks_failed_calls():
    events = []
    with pytest.raises(RuntimeError):
        with span(events, "generate_bridge"):
            raise RuntimeError("boom")
    assert events[0]["span"] == "generate_bridge"
    assert events[0]["error"] is True


def test_log_event_renders_human_line(monkeypatch):
    emitted = []
    monkeypatch.setattr(logger_module, "_emit", lambda level, message, *, is_json: emitted.append((message, is_json)))
    log_event("difficulty_adjusted", "s1", turn_id="t1", adjustment="increase", ignored="x")
    human = [message for message, is_json in emitted if not is_json]
    assert human == ["session=s1 kind=difficulty_adjusted turn_id=t1 adjustment=increase"]


def test_admin_cli_prints_session_timeline(controller, make_session, capsys):
    session = make_session(plan_tier="free")
    started = controller.start(session.id)
    controller.submit_answer(session.id, started.turn_id, "I am not really sure about that one.", reveal_count=1)
    capsys.readouterr()

    list_sessions(5)
    show_curve(session.id)
    show_turns(session.id)
    out = capsys.readouterr().out

    assert f"{session.id} user=u1 running/free stage=1/1" in out
    assert "#0 easy -> easy (maintain" in out
    assert "quality=weak" in out
    assert "answered" in out and "reveals=1" in out


def test_admin_cli_unknown_session(capsys):
    show_curve("missing")
    assert "session missing not found" in capsys.readouterr().out
