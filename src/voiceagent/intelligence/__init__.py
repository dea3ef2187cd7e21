"""Voice Agent Intelligence Package

Intent classification, confidence scoring, the fast-path task parser, the
LLM teacher client and the router that chooses between them.
"""

from .intent_classifier import IntentClassifier, IntentMatch
from .confidence_calculator import ConfidenceCalculator, ConfidenceRecord
from .task_parser import ParseOutcome, TaskParser
from .teacher_client import TeacherResolver
from .resolution_router import Decision, Discrepancy, ResolutionRouter, RoutingResult, compare_results

__all__ = [
    "IntentClassifier",
    "IntentMatch",
    "ConfidenceCalculator",
    "ConfidenceRecord",
    "ParseOutcome",
    "TaskParser",
    "TeacherResolver",
    "Decision",
    "Discrepancy",
    "ResolutionRouter",
    "RoutingResult",
    "compare_results",
]
