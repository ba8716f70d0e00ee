from pathlib import Path

import pytest

from config import (
    FEEDBACK_TARGET,
    NARRATIVE_TARGET,
    QUESTION_TARGET,
    SUMMARY_TARGET,
    Settings,
    load_config,
    resolve_routes,
    route_for,
)

ROOT = Path(__file__).resolve().parents[2]


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.FREE_QUESTION_CAP == 3
    assert settings.SUMMARY_MAX_BYTES == 1024
    assert settings.RESUME_WINDOW_HOURS == 24
    assert (settings.STAGE_TARGET_MIN, settings.STAGE_TARGET_MAX) == (5, 8)


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("SUBMISSION_LEASE_SECONDS", "30")
    assert Settings(_env_file=None).SUBMISSION_LEASE_SECONDS == 30


def test_app_config_routes_every_target():
    cfg = load_config(ROOT / "app_config.json")
    routes = resolve_routes(cfg)
    assert set(routes) == {QUESTION_TARGET, NARRATIVE_TARGET, SUMMARY_TARGET, FEEDBACK_TARGET}
    assert route_for(cfg, QUESTION_TARGET).response_format == "json_object"
    assert route_for(cfg, FEEDBACK_TARGET).response_format == "json_object"


def test_unknown_target_raises():
    cfg = load_config(ROOT / "app_config.json")
    with pytest.raises(KeyError):
        route_for(cfg, "generation.unknown")
