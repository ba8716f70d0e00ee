"""Research snapshot construction from CV and job description text."""
from __future__ import annotations

from textwrap import dedent
from typing import Optional

from pydantic import BaseModel, Field

from generation.client import TextGenerator, must_generate
from orchestrator.models import CompanyFacts, Competencies, CvSummary, JobSpecSummary, ResearchSnapshot

from .industry import interview_style, match_industry

ANALYSIS_SYSTEM = (
    "You are a professional career analyst. You always respond with valid JSON only, "
    "no markdown formatting, no additional text."
)
SOURCE_CLIP = 6000


class SnapshotDraft(BaseModel):  # Model output before the interview style is attached
    cv_summary: CvSummary
    job_spec_summary: JobSpecSummary
    company_facts: CompanyFacts
    competencies: Competencies = Field(default_factory=Competencies)


def basic_snapshot(
    *,
    cv_text: str,
    job_description: str,
    job_title: str,
    company: str,
    industry_hint: Optional[str] = None,
) -> ResearchSnapshot:
    """Deterministic snapshot built without the text service."""

    match = match_industry(job_title, industry_hint)
    return ResearchSnapshot(
        cv_summary=CvSummary(summary=f"CV contains {len(cv_text)} characters of experience and qualifications."),
        job_spec_summary=JobSpecSummary(
            role=job_title,
            summary=f"Role: {job_title}. Job description contains {len(job_description)} characters.",
        ),
        company_facts=CompanyFacts(name=company, industry=industry_hint or match.industry),
        competencies=Competencies(behavioral=["Communication", "Problem Solving", "Teamwork"]),
        interview_config=interview_style(match),
    )


def _analysis_prompt(cv_text: str, job_description: str, job_title: str, company: str, location: str) -> str:
    return dedent(
        f"""
        Analyze the following CV and job description to create a structured research snapshot for
        interview preparation.

        # CV Content:
        {cv_text[:SOURCE_CLIP]}

        # Job Description:
        Role: {job_title}
        Company: {company}
        Location: {location or 'unspecified'}

        {job_description[:SOURCE_CLIP]}

        Focus on the candidate's strongest skills, the key requirements of the role and the
        competencies worth assessing. Use "{job_title}" as the role and "{company}" as the company name.
        """
    ).strip()


def generate_snapshot(
    generator: TextGenerator,
    *,
    cv_text: str,
    job_description: str,
    job_title: str,
    company: str,
    location: str = "",
    industry_hint: Optional[str] = None,
) -> ResearchSnapshot:
    """Model-built snapshot; raises GenerationFailure on malformed output."""

    prompt = _analysis_prompt(cv_text, job_description, job_title, company, location)
    draft = must_generate(
        lambda: generator.generate_json(prompt, SnapshotDraft, system=ANALYSIS_SYSTEM),
        what="research_snapshot",
    )
    match = match_industry(job_title, industry_hint or draft.company_facts.industry)
    return ResearchSnapshot(
        cv_summary=draft.cv_summary,
        job_spec_summary=draft.job_spec_summary,
        company_facts=draft.company_facts,
        competencies=draft.competencies,
        interview_config=interview_style(match),
    )


__all__ = ["SnapshotDraft", "basic_snapshot", "generate_snapshot"]
