"""Question classification models."""

from enum import Enum


class QuestionType(Enum):
    """Interview question categories."""
    BEHAVIORAL = "Behavioral Question"
    SYSTEM_DESIGN = "System Design"
    OBJECT_ORIENTED_DESIGN = "Object-Oriented Design"
    CODING = "Coding Problem"
    UNKNOWN = "Unknown"
