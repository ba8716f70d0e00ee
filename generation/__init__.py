"""Facades over the external text-generation service."""
from .client import GatewayTextGenerator, TextGenerator, must_generate, try_generate
from .feedback import FeedbackGenerator, InterviewFeedback, score_to_grade
from .narrative import NarrativeGenerator
from .questions import QuestionGenerator, QuestionRequest

__all__ = [
    "FeedbackGenerator",
    "GatewayTextGenerator",
    "InterviewFeedback",
    "NarrativeGenerator",
    "QuestionGenerator",
    "QuestionRequest",
    "TextGenerator",
    "must_generate",
    "score_to_grade",
    "try_generate",
]
