from __future__ import annotations  # Prompt builders for question, narrative and feedback generation

from textwrap import dedent
from typing import List, Optional, Sequence

from orchestrator.models import Difficulty, Mode, Question, ResearchSnapshot, Turn, TurnType

QUESTION_SYSTEM = (
    "You are a professional interview coach. You always respond with valid JSON only, "
    "no markdown formatting, no additional text."
)
INTRO_SYSTEM = (
    "You are a professional interviewer. You create warm, natural interview introductions that make "
    "candidates feel comfortable while maintaining professionalism."
)
BRIDGE_SYSTEM = (
    "You are a professional interviewer. You create natural, contextual transitions between interview "
    "questions that acknowledge the candidate's previous answers. You always respond with just the bridge text."
)
SMALL_TALK_SYSTEM = "You are a friendly interviewer opening a conversation before a formal interview."
DIGEST_SYSTEM = "You summarize interview exchanges in exactly one short sentence."
FEEDBACK_SYSTEM = (
    "You are an expert interview evaluator and career coach. You analyze interview responses and provide "
    "structured, constructive feedback. Always be fair, specific, and actionable. You always respond with valid JSON only."
)

QUESTION_GUIDELINES = dedent(
    """
    - Make questions relevant to both the candidate's experience and the role requirements
    - Mix question types: technical, behavioral, and situational
    - Keep questions clear and focused
    - Avoid yes/no questions
    """
).strip()

VOICE_RULES = dedent(
    """
    - The question will be read aloud by a speech synthesizer
    - Use short, plain sentences with no lists, symbols, abbreviations or parentheses
    - Keep the question under 40 words
    """
).strip()

ANSWER_CLIP = 500


def difficulty_band(question_number: int, total_questions: int) -> Difficulty:  # Progressive band by question-index thirds
    third = max(total_questions, 1) / 3
    if question_number <= third:
        return "easy"
    if question_number <= 2 * third:
        return "medium"
    return "hard"


def _join(items: Sequence[str], fallback: str = "(none)") -> str:
    cleaned = [item.strip() for item in items if item and item.strip()]
    return ", ".join(cleaned) if cleaned else fallback


def _clip(text: str, limit: int = ANSWER_CLIP) -> str:
    text = text.strip()
    return text if len(text) <= limit else text[:limit] + "..."


def snapshot_block(snapshot: ResearchSnapshot) -> str:  # Candidate, role and company context shared by every prompt
    cv = snapshot.cv_summary
    job = snapshot.job_spec_summary
    company = snapshot.company_facts
    comps = snapshot.competencies
    lines = [
        "# Candidate Background:",
        cv.summary or "(no summary)",
        f"Key Skills: {_join(cv.key_skills)}",
        "",
        "# Role Requirements:",
        f"Position: {job.role}",
        f"Level: {job.level or 'mid'}",
        f"Key Requirements: {_join(job.key_requirements)}",
        f"Responsibilities: {_join(job.responsibilities)}",
        "",
        "# Company Context:",
        f"{company.name} - {company.industry or 'Technology'}",
    ]
    if company.mission:
        lines.append(f"Mission: {company.mission}")
    lines.extend(
        [
            "",
            "# Competencies to Assess:",
            f"Technical: {_join(comps.technical)}",
            f"Behavioral: {_join(comps.behavioral)}",
            f"Domain: {_join(comps.domain)}",
        ]
    )
    style = snapshot.interview_config
    if style:
        lines.extend(["", "# Interview Style:", f"Tone: {style.tone}"])
        if style.question_styles:
            lines.append(f"Question styles: {_join(style.question_styles)}")
        if style.question_examples:
            lines.append("Example questions:")
            lines.extend(f"- {example}" for example in style.question_examples[:3])
    return "\n".join(lines)


def conversation_block(turns: Sequence[Turn], summary: str) -> str:
    """Render prior turns: full text of the most recent answer, digests of older ones."""

    answered = [turn for turn in turns if turn.answered]
    if not answered:
        return "No previous questions."
    lines: List[str] = []
    if summary.strip():
        lines.extend(["Running summary:", summary.strip(), ""])
    latest = answered[-1]
    number = 0
    for turn in answered:
        if turn.turn_type is TurnType.QUESTION:
            number += 1
            q_label, a_label = f"Q{number}", f"A{number}"
        else:
            q_label, a_label = "Warm-up", "Reply"
        lines.append(f"{q_label}: {turn.question.text}")
        if turn is latest:
            lines.append(f"{a_label} (full): {_clip(turn.answer_text or '')}")
        else:
            digest = turn.answer_digest.summary if turn.answer_digest else "No answer provided"
            lines.append(f"{a_label}: {digest}")
    return "\n".join(lines)


def question_prompt(
    *,
    snapshot: ResearchSnapshot,
    conversation: str,
    latest_answer: Optional[str],
    question_number: int,
    total_questions: int,
    difficulty: Difficulty,
    difficulty_forced: bool,
    mode: Mode,
    stage_index: int,
    stage_name: str,
    stages_planned: int,
    position_in_stage: int,
    expected_category: Optional[str],
) -> str:
    lines = [
        "You are an expert interview coach conducting a professional job interview. Generate the next interview "
        "question based on the candidate's background and the role requirements.",
        "",
        snapshot_block(snapshot),
        "",
        "# Previous Conversation:",
        conversation,
        "",
        "# Task:",
        f"Generate question {question_number} of {total_questions}.",
    ]
    if stages_planned > 1:
        lines.append(f"Interview stage {stage_index} of {stages_planned}: {stage_name} (question {position_in_stage} in this stage).")
        if expected_category:
            lines.append(f"This stage requires a {expected_category} question.")
    if difficulty_forced:
        lines.append(f"The question difficulty MUST be {difficulty} based on the candidate's recent performance.")
    else:
        lines.append(f"Progressive difficulty: this part of the interview targets {difficulty} questions.")
    if latest_answer:
        lines.append(
            "Reference a specific detail from the candidate's most recent answer and build on it as a natural follow-up."
        )
    lines.extend(["", "Guidelines:", QUESTION_GUIDELINES])
    if mode == "voice":
        lines.extend(["", "Voice delivery rules:", VOICE_RULES])
    lines.extend(
        [
            "",
            'Return ONLY valid JSON: {"text": "...", "category": "technical|behavioral|situational", '
            '"difficulty": "easy|medium|hard", "follow_up": false}',
        ]
    )
    return "\n".join(lines)


def intro_prompt(snapshot: ResearchSnapshot) -> str:
    job = snapshot.job_spec_summary
    company = snapshot.company_facts
    style = snapshot.interview_config
    industry = (style.industry if style else None) or company.industry or "Technology"
    tone = style.tone if style else "professional"
    level = job.level or "mid"
    return dedent(
        f"""
        You are conducting a {level}-level interview for a {job.role} position at {company.name} in the {industry} industry.

        Generate a natural, conversational interview introduction (2-3 sentences) that:
        1. Greets the candidate warmly
        2. References the specific role and company
        3. Sets expectations for the interview
        4. Maintains a {tone} tone

        Candidate name: {snapshot.cv_summary.name or 'candidate'}

        Return ONLY the introduction text, no additional formatting or explanations.
        """
    ).strip()


def small_talk_prompt(snapshot: ResearchSnapshot, count: int) -> str:
    tone = snapshot.interview_config.tone if snapshot.interview_config else "professional"
    return dedent(
        f"""
        Write {count} short warm-up questions to put a candidate at ease before a {snapshot.job_spec_summary.role}
        interview at {snapshot.company_facts.name}. Keep a {tone} tone. Do not ask about skills or experience yet.
        Return JSON: {{"questions": ["...", "..."]}}
        """
    ).strip()


def bridge_prompt(
    snapshot: ResearchSnapshot,
    previous: Question,
    answer: str,
    *,
    next_stage_name: Optional[str] = None,
) -> str:
    tone = snapshot.interview_config.tone if snapshot.interview_config else "professional"
    lines = [
        f"You are a professional interviewer conducting a {snapshot.job_spec_summary.role} interview.",
        "",
        "The candidate just answered the following question:",
        f'"{previous.text}"',
        "",
        "Their response was:",
        f'"{_clip(answer)}"',
        "",
        "Generate a brief, natural conversational bridge (1-2 sentences) that:",
        "1. Acknowledges or reflects on something specific from their answer",
        "2. Creates a smooth transition to the next question",
        f"3. Maintains a {tone} tone",
    ]
    if next_stage_name:
        lines.append(f'4. Announces that the interview is now moving on to the "{next_stage_name}" stage')
    lines.extend(["", "Return ONLY the bridge text, no quotes, no additional formatting."])
    return "\n".join(lines)


FEEDBACK_SHAPE = dedent(
    """
    {
      "overall": {"score": 0-100, "grade": "A|B|C|D|F", "summary": "..."},
      "dimensions": {
        "technical_competency": {"score": 0-100, "feedback": "..."},
        "communication": {"score": 0-100, "feedback": "..."},
        "problem_solving": {"score": 0-100, "feedback": "..."},
        "cultural_fit": {"score": 0-100, "feedback": "..."}
      },
      "tips": ["...", "...", "..."],
      "exemplars": {"strengths": ["..."], "improvements": ["..."]}
    }
    """
).strip()


def feedback_prompt(snapshot: ResearchSnapshot, turns: Sequence[Turn]) -> str:
    """Evaluation prompt over the scored exchanges; warm-up turns are only counted."""

    warm_up = sum(1 for turn in turns if turn.turn_type is TurnType.SMALL_TALK)
    scored = [turn for turn in turns if turn.turn_type is TurnType.QUESTION]
    lines = [
        "# Interview Evaluation Task",
        "",
        snapshot_block(snapshot),
        "",
        "# Interview Context:",
        f"Warm-up questions before the formal interview: {warm_up}",
        f"Questions evaluated: {len(scored)} (excluding warm-up)",
        "",
        "# Interview Conversation:",
    ]
    for number, turn in enumerate(scored, start=1):
        question = turn.question
        lines.append(f"Question {number} ({question.category} - {question.difficulty}): {question.text}")
        lines.append(f"Candidate's answer: {_clip(turn.answer_text or '', 1500) or '(No answer provided)'}")
        if turn.timing.duration_ms:
            lines.append(f"Time taken: {round(turn.timing.duration_ms / 1000)}s")
        if turn.timing.reveal_count:
            lines.append(f"Reveals: {turn.timing.reveal_count}")
        lines.append("---")
    lines.extend(
        [
            "",
            "# Your Task:",
            "Score technical competency, communication, problem solving and cultural fit from 0 to 100.",
            "Reveal count is how often the candidate re-displayed the question text. 0-1 reveals per question "
            "needs no penalty; 2 or more suggests difficulty retaining the question and warrants a minor "
            "deduction in communication only. Judge answer quality first.",
            "Give an overall score, 3-5 actionable tips, and specific strengths and improvements that reference "
            "the candidate's answers.",
            "",
            "Return ONLY valid JSON in this shape:",
            FEEDBACK_SHAPE,
        ]
    )
    return "\n".join(lines)


def digest_prompt(question: Question, answer: str) -> str:
    return dedent(
        f"""
        Question: {question.text}
        Answer: {_clip(answer)}

        Summarize what the candidate said in one sentence of at most 25 words.
        """
    ).strip()


__all__ = [
    "BRIDGE_SYSTEM",
    "DIGEST_SYSTEM",
    "FEEDBACK_SYSTEM",
    "INTRO_SYSTEM",
    "QUESTION_SYSTEM",
    "SMALL_TALK_SYSTEM",
    "bridge_prompt",
    "conversation_block",
    "difficulty_band",
    "digest_prompt",
    "feedback_prompt",
    "intro_prompt",
    "question_prompt",
    "small_talk_prompt",
    "snapshot_block",
]
