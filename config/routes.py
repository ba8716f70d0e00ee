from __future__ import annotations  # Configuration schema for text-generation routing

from pathlib import Path
from typing import Dict

from pydantic import BaseModel, Field

QUESTION_TARGET = "generation.question"
NARRATIVE_TARGET = "generation.narrative"
SUMMARY_TARGET = "generation.summary"
FEEDBACK_TARGET = "generation.feedback"

TARGETS = (QUESTION_TARGET, NARRATIVE_TARGET, SUMMARY_TARGET, FEEDBACK_TARGET)


class LlmRoute(BaseModel):  # LLM endpoint configuration
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(default=30.0, ge=0.1)
    max_retries: int = Field(default=1, ge=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int | None = None
    api_key_env: str | None = None
    response_format: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False


class AppConfig(BaseModel):  # Application configuration root
    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]


def load_config(path: Path) -> AppConfig:  # Load configuration from disk
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def route_for(cfg: AppConfig, target: str) -> LlmRoute:  # Resolve the route bound to a generation target
    if target not in cfg.registry:
        raise KeyError(f"Registry entry missing for '{target}'")
    route_id = cfg.registry[target]
    if route_id not in cfg.llm_routes:
        raise KeyError(f"Route '{route_id}' missing for '{target}'")
    return cfg.llm_routes[route_id]


def resolve_routes(cfg: AppConfig) -> Dict[str, LlmRoute]:  # Resolve every known generation target up front
    return {target: route_for(cfg, target) for target in TARGETS}
