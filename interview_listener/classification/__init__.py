"""Question classification module."""

from .question_classifier import QuestionClassifier, DEFAULT_KEYWORDS
from ..models.classification import QuestionType

__all__ = [
    "QuestionClassifier",
    "QuestionType",
    "DEFAULT_KEYWORDS",
]
