"""Industry interview kits and role-to-kit matching."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from orchestrator.models import InterviewStyle


class IndustryKit(BaseModel):
    styles: List[str]
    competencies: List[str]
    tone: str
    stages: List[str]
    question_examples: List[str] = Field(default_factory=list)


class IndustryMatch(BaseModel):
    industry: str
    sub_industry: str
    kit: IndustryKit
    confidence: Literal["high", "medium", "low"]


INDUSTRY_KITS: Dict[str, Dict[str, IndustryKit]] = {
    "Technology": {
        "Software": IndustryKit(
            styles=["technical", "behavioral", "system_design"],
            competencies=["problem_solving", "innovation", "collaboration", "scalability_thinking"],
            tone="analytical and formal with conversational clarity",
            stages=["Technical", "Behavioral", "System Design"],
            question_examples=[
                "Describe a time you solved a complex software problem.",
                "How would you design a scalable authentication system?",
                "Tell me about a technical decision you disagreed with and how you handled it.",
            ],
        ),
        "IT & Infrastructure": IndustryKit(
            styles=["technical", "situational"],
            competencies=["network_management", "security_awareness", "incident_response"],
            tone="precise, structured and risk-aware",
            stages=["Technical", "Scenario"],
            question_examples=[
                "Explain how you'd handle a critical outage across multiple servers.",
                "How do you ensure network security and uptime?",
            ],
        ),
    },
    "Finance": {
        "Investment Banking": IndustryKit(
            styles=["technical", "analytical", "behavioral"],
            competencies=["valuation", "financial_modeling", "market_awareness"],
            tone="formal, quantitative and high-pressure",
            stages=["Screening", "Technical", "Super Day"],
            question_examples=[
                "Walk me through a DCF valuation.",
                "What are key factors driving M&A deals in today's market?",
            ],
        ),
        "Retail Banking": IndustryKit(
            styles=["customer_service", "sales", "behavioral"],
            competencies=["relationship_building", "attention_to_detail"],
            tone="professional and client-focused",
            stages=["Screening", "Customer Interaction"],
            question_examples=[
                "How would you handle an upset customer disputing a transaction?",
                "Describe how you meet daily sales and service targets.",
            ],
        ),
    },
    "Consulting": {
        "Management": IndustryKit(
            styles=["case", "behavioral"],
            competencies=["analysis", "communication", "business_judgment"],
            tone="structured, logical and confident",
            stages=["Fit", "Case Interview"],
            question_examples=[
                "Our client's profits dropped 20%. How would you investigate?",
                "Tell me about a time you influenced a team without authority.",
            ],
        ),
        "Construction Project Consulting": IndustryKit(
            styles=["technical", "behavioral"],
            competencies=["project_management", "risk_management"],
            tone="pragmatic and detail-oriented",
            stages=["Technical", "Behavioral"],
            question_examples=[
                "How would you manage delays on a major infrastructure project?",
                "Describe a time you had to resolve a conflict between contractors.",
            ],
        ),
    },
    "Sales": {
        "B2B": IndustryKit(
            styles=["behavioral", "target_driven"],
            competencies=["relationship_building", "negotiation", "pipeline_management"],
            tone="confident, persuasive and personable",
            stages=["Screening", "Pitch Simulation"],
            question_examples=[
                "How do you identify high-value prospects?",
                "Describe a deal you saved after initial rejection.",
            ],
        ),
        "Retail": IndustryKit(
            styles=["customer_service", "situational"],
            competencies=["customer_focus", "product_knowledge"],
            tone="friendly and conversational",
            stages=["Customer Interaction"],
            question_examples=[
                "What does good customer service mean to you?",
                "How do you handle a difficult customer?",
            ],
        ),
    },
    "Engineering": {
        "Mechanical": IndustryKit(
            styles=["technical", "problem_solving"],
            competencies=["design", "analysis", "safety"],
            tone="logical and detail-focused",
            stages=["Technical", "Behavioral"],
            question_examples=["Tell me about a design improvement you implemented."],
        ),
        "Civil": IndustryKit(
            styles=["technical", "project_management"],
            competencies=["risk_management", "site_coordination"],
            tone="structured, methodical and outcome-driven",
            stages=["Technical", "Scenario"],
            question_examples=["Describe how you manage multiple subcontractors."],
        ),
    },
    "Education": {
        "Teaching": IndustryKit(
            styles=["behavioral", "situational"],
            competencies=["classroom_management", "student_engagement"],
            tone="warm but structured",
            stages=["Teaching Philosophy", "Scenario"],
            question_examples=["How do you motivate underperforming students?"],
        ),
    },
    "Healthcare": {
        "Nursing": IndustryKit(
            styles=["situational", "behavioral"],
            competencies=["patient_care", "stress_management"],
            tone="empathetic and professional",
            stages=["Scenario", "Behavioral"],
            question_examples=["How do you handle an aggressive or upset patient?"],
        ),
        "Medical": IndustryKit(
            styles=["technical", "ethical"],
            competencies=["diagnosis", "communication"],
            tone="measured and ethical",
            stages=["Technical", "Ethical"],
            question_examples=["Tell me about a complex diagnosis you made."],
        ),
    },
    "Creative": {
        "Design": IndustryKit(
            styles=["creative", "behavioral"],
            competencies=["aesthetic_judgment", "collaboration", "feedback_handling"],
            tone="casual but thoughtful",
            stages=["Portfolio Review", "Behavioral"],
            question_examples=["Tell me about your favorite project and why it worked."],
        ),
    },
    "Hospitality": {
        "Service": IndustryKit(
            styles=["situational", "customer_service"],
            competencies=["problem_resolution", "composure"],
            tone="warm and professional",
            stages=["Scenario", "Behavioral"],
            question_examples=["What would you do if a guest complains about poor service?"],
        ),
    },
    "Public Sector": {
        "Government": IndustryKit(
            styles=["competency_based", "behavioral"],
            competencies=["integrity", "organization", "communication"],
            tone="formal and impartial",
            stages=["Panel", "Scenario"],
            question_examples=["Describe a time you worked under strict regulations."],
        ),
    },
}

# Checked in order; more specific titles come before generic ones.
ROLE_KEYWORDS: Tuple[Tuple[str, str, str], ...] = (
    ("software engineer", "Technology", "Software"),
    ("software developer", "Technology", "Software"),
    ("developer", "Technology", "Software"),
    ("programmer", "Technology", "Software"),
    ("full stack", "Technology", "Software"),
    ("front end", "Technology", "Software"),
    ("back end", "Technology", "Software"),
    ("data scientist", "Technology", "Software"),
    ("machine learning", "Technology", "Software"),
    ("it support", "Technology", "IT & Infrastructure"),
    ("network engineer", "Technology", "IT & Infrastructure"),
    ("system administrator", "Technology", "IT & Infrastructure"),
    ("devops", "Technology", "IT & Infrastructure"),
    ("investment banker", "Finance", "Investment Banking"),
    ("financial analyst", "Finance", "Investment Banking"),
    ("banker", "Finance", "Retail Banking"),
    ("strategy consultant", "Consulting", "Management"),
    ("consultant", "Consulting", "Management"),
    ("nurse", "Healthcare", "Nursing"),
    ("doctor", "Healthcare", "Medical"),
    ("physician", "Healthcare", "Medical"),
    ("teacher", "Education", "Teaching"),
    ("teaching assistant", "Education", "Teaching"),
    ("waiter", "Hospitality", "Service"),
    ("bartender", "Hospitality", "Service"),
    ("hotel manager", "Hospitality", "Service"),
    ("sales associate", "Sales", "Retail"),
    ("cashier", "Sales", "Retail"),
    ("account executive", "Sales", "B2B"),
    ("sales representative", "Sales", "B2B"),
    ("project manager", "Consulting", "Construction Project Consulting"),
    ("construction manager", "Consulting", "Construction Project Consulting"),
    ("mechanical engineer", "Engineering", "Mechanical"),
    ("civil engineer", "Engineering", "Civil"),
    ("engineer", "Engineering", "Civil"),
    ("designer", "Creative", "Design"),
)

_CONSTRUCTION_HINTS = ("construction", "infrastructure", "civil", "signage", "manufacturing")
FALLBACK = ("Technology", "Software")


def get_kit(industry: str, sub_industry: str) -> Optional[IndustryKit]:
    return INDUSTRY_KITS.get(industry, {}).get(sub_industry)


def match_industry(job_title: str, industry_hint: Optional[str] = None) -> IndustryMatch:
    """Map a job title (and optional industry hint) to the closest interview kit."""

    title = job_title.lower()
    for keyword, industry, sub_industry in ROLE_KEYWORDS:
        if keyword in title:
            return IndustryMatch(
                industry=industry,
                sub_industry=sub_industry,
                kit=INDUSTRY_KITS[industry][sub_industry],
                confidence="high",
            )

    hint = (industry_hint or "").lower()
    if hint:
        if any(word in hint for word in _CONSTRUCTION_HINTS):
            industry, sub_industry = "Consulting", "Construction Project Consulting"
            return IndustryMatch(
                industry=industry,
                sub_industry=sub_industry,
                kit=INDUSTRY_KITS[industry][sub_industry],
                confidence="high",
            )
        for industry, kits in INDUSTRY_KITS.items():
            if industry.lower() in hint:
                sub_industry, kit = next(iter(kits.items()))
                return IndustryMatch(industry=industry, sub_industry=sub_industry, kit=kit, confidence="medium")

    industry, sub_industry = FALLBACK
    return IndustryMatch(
        industry=industry,
        sub_industry=sub_industry,
        kit=INDUSTRY_KITS[industry][sub_industry],
        confidence="low",
    )


def interview_style(match: IndustryMatch) -> InterviewStyle:
    return InterviewStyle(
        industry=match.industry,
        sub_industry=match.sub_industry,
        tone=match.kit.tone,
        stage_names=list(match.kit.stages),
        question_styles=list(match.kit.styles),
        question_examples=list(match.kit.question_examples),
    )


def available_industries() -> List[Dict[str, object]]:
    return [{"industry": name, "sub_industries": list(kits)} for name, kits in INDUSTRY_KITS.items()]


__all__ = [
    "INDUSTRY_KITS",
    "IndustryKit",
    "IndustryMatch",
    "available_industries",
    "get_kit",
    "interview_style",
    "match_industry",
]
