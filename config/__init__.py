"""Configuration package for the interview orchestration engine."""
from .routes import (
    FEEDBACK_TARGET,
    NARRATIVE_TARGET,
    QUESTION_TARGET,
    SUMMARY_TARGET,
    AppConfig,
    LlmRoute,
    load_config,
    resolve_routes,
    route_for,
)
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "resolve_routes",
    "route_for",
    "FEEDBACK_TARGET",
    "NARRATIVE_TARGET",
    "QUESTION_TARGET",
    "SUMMARY_TARGET",
    "Settings",
    "settings",
]
