"""FastAPI routes for interview session control."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.schemas import ApiError, AutoSaveResp, Envelope, SubmitAnswerReq
from config import FEEDBACK_TARGET, NARRATIVE_TARGET, QUESTION_TARGET, SUMMARY_TARGET, load_config, route_for
from config.settings import settings
from generation.client import GatewayTextGenerator
from generation.feedback import FeedbackGenerator
from generation.narrative import NarrativeGenerator
from generation.questions import QuestionGenerator
from orchestrator.controller import SessionController
from orchestrator.errors import GenerationFailure, InvalidState, NotFound
from storage.entitlements import SqliteEntitlements

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions")


@lru_cache(maxsize=1)
def get_controller() -> SessionController:
    """Controller wired to the configured text-generation routes."""

    cfg = load_config(Path(settings.CONFIG_PATH))
    narrative = NarrativeGenerator(
        GatewayTextGenerator(route_for(cfg, NARRATIVE_TARGET)),
        digest_generator=GatewayTextGenerator(route_for(cfg, SUMMARY_TARGET)),
    )
    return SessionController(
        QuestionGenerator(GatewayTextGenerator(route_for(cfg, QUESTION_TARGET))),
        narrative,
        FeedbackGenerator(GatewayTextGenerator(route_for(cfg, FEEDBACK_TARGET))),
        SqliteEntitlements(),
    )


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    body = Envelope(error=ApiError(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _respond(action: Callable[[], Any]) -> Any:
    try:
        return Envelope(data=action())
    except NotFound as exc:
        return _error(404, "not_found", str(exc))
    except InvalidState as exc:
        return _error(409, "invalid_state", str(exc))
    except GenerationFailure as exc:
        logger.exception("Required text generation failed")
        return _error(502, "generation_failed", f"Text generation failed: {exc}")
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error handling session request")
        return _error(500, "internal_error", f"Unexpected error: {exc}")


@router.post("/{session_id}/start")
def start(session_id: str, controller: SessionController = Depends(get_controller)) -> Any:
    return _respond(lambda: controller.start(session_id))


@router.post("/{session_id}/answers")
def submit_answer(
    session_id: str,
    payload: SubmitAnswerReq,
    controller: SessionController = Depends(get_controller),
) -> Any:
    return _respond(
        lambda: controller.submit_answer(
            session_id,
            payload.turn_id,
            payload.answer_text,
            audio_key=payload.audio_key,
            reveal_count=payload.reveal_count,
        )
    )


@router.get("/{session_id}/state")
def get_state(session_id: str, controller: SessionController = Depends(get_controller)) -> Any:
    return _respond(lambda: controller.get_state(session_id))


@router.get("/{session_id}/resume")
def get_resume_data(session_id: str, controller: SessionController = Depends(get_controller)) -> Any:
    return _respond(lambda: controller.progress.get_resume_data(session_id))


@router.post("/{session_id}/autosave")
def auto_save(session_id: str, controller: SessionController = Depends(get_controller)) -> Any:
    def _save() -> AutoSaveResp:
        state = controller.progress.auto_save(session_id)
        return AutoSaveResp(saved=state is not None, progress_state=state)

    return _respond(_save)


@router.post("/{session_id}/feedback")
def generate_feedback(session_id: str, controller: SessionController = Depends(get_controller)) -> Any:
    return _respond(lambda: controller.generate_feedback(session_id))


@router.get("/{session_id}/feedback")
def get_feedback(session_id: str, controller: SessionController = Depends(get_controller)) -> Any:
    return _respond(lambda: controller.get_feedback(session_id))


@router.post("/{session_id}/fresh")
def start_fresh(session_id: str, controller: SessionController = Depends(get_controller)) -> Any:
    return _respond(lambda: controller.start_fresh(session_id))


@router.get("/{session_id}/debug")
def debug_snapshot(session_id: str, controller: SessionController = Depends(get_controller)) -> Any:
    return _respond(lambda: controller.debug_snapshot(session_id))


__all__ = ["get_controller", "router"]
