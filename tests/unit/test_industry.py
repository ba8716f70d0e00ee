import pytest
from pydantic import ValidationError

from orchestrator.errors import GenerationFailure
from services.industry import available_industries, get_kit, interview_style, match_industry
from services.research import SnapshotDraft, basic_snapshot, generate_snapshot


def test_title_keyword_match_is_high_confidence():
    match = match_industry("Senior Software Engineer")
    assert (match.industry, match.sub_industry, match.confidence) == ("Technology", "Software", "high")


def test_specific_titles_win_over_generic_ones():
    assert match_industry("Investment Banker").sub_industry == "Investment Banking"
    assert match_industry("Retail Banker").sub_industry == "Retail Banking"


def test_construction_hint():
    match = match_industry("Site Lead", "Civil infrastructure")
    assert match.sub_industry == "Construction Project Consulting"


def test_industry_hint_is_medium_confidence():
    match = match_industry("Analyst II", "Finance and markets")
    assert match.industry == "Finance"
    assert match.confidence == "medium"


def test_unknown_role_falls_back():
    match = match_industry("Chief Happiness Officer")
    assert (match.industry, match.sub_industry, match.confidence) == ("Technology", "Software", "low")


def test_interview_style_copies_kit():
    style = interview_style(match_industry("Software Engineer"))
    assert style.stage_names == ["Technical", "Behavioral", "System Design"]
    assert style.tone == get_kit("Technology", "Software").tone


def test_available_industries_lists_every_kit():
    names = {entry["industry"] for entry in available_industries()}
    assert {"Technology", "Finance", "Healthcare"} <= names


def test_basic_snapshot_attaches_style(snapshot):
    assert snapshot.job_spec_summary.role == "Software Engineer"
    assert snapshot.company_facts.name == "Acme"
    assert snapshot.interview_config.stage_names[0] == "Technical"


class _SnapshotGenerator:
    def __init__(self, payload):
        self.payload = payload

    def generate_json(self, prompt, schema, *, system=None):
        assert schema is SnapshotDraft
        return schema.model_validate(self.payload)

    def generate_text(self, prompt, *, system=None):
        raise AssertionError("not used")


def test_generated_snapshot_uses_model_facts():
    generator = _SnapshotGenerator(
        {
            "cv_summary": {"name": "Ada", "key_skills": ["Python"]},
            "job_spec_summary": {"role": "Backend Developer"},
            "company_facts": {"name": "Acme", "industry": "Technology"},
        }
    )
    snapshot = generate_snapshot(
        generator, cv_text="cv", job_description="jd", job_title="Backend Developer", company="Acme"
    )
    assert snapshot.cv_summary.name == "Ada"
    assert snapshot.interview_config.sub_industry == "Software"


def test_malformed_snapshot_is_fatal():
    generator = _SnapshotGenerator({"cv_summary": {}})
    with pytest.raises(GenerationFailure):
        generate_snapshot(generator, cv_text="cv", job_description="jd", job_title="Nurse", company="Clinic")


def test_snapshot_model_is_frozen():
    snapshot = basic_snapshot(cv_text="cv", job_description="jd", job_title="Nurse", company="Clinic")
    with pytest.raises(ValidationError):
        snapshot.company_facts = None
