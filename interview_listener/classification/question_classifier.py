"""Keyword-based interview question classifier."""

import logging
from typing import Dict, List, Tuple

from ..models.classification import QuestionType

logger = logging.getLogger(__name__)

# Insertion order is the tie-break priority
DEFAULT_KEYWORDS: Dict[QuestionType, Tuple[str, ...]] = {
    QuestionType.BEHAVIORAL: (
        'tell me about a time',
        'describe a situation',
        'give me an example',
        'how did you handle',
        'what would you do if',
        'leadership',
        'challenge',
        'conflict',
        'mistake',
        'failure',
        'success',
        'team',
        'difficult',
        'proud',
        'disagreement',
    ),
    QuestionType.SYSTEM_DESIGN: (
        'design a system',
        'system architecture',
        'scalability',
        'distributed',
        'microservices',
        'database design',
        'how would you design',
        'architect',
        'scale',
        'throughput',
        'latency',
        'availability',
        'reliability',
    ),
    QuestionType.OBJECT_ORIENTED_DESIGN: (
        'object oriented',
        'class diagram',
        'inheritance',
        'polymorphism',
        'encapsulation',
        'abstraction',
        'design pattern',
        'singleton',
        'factory',
        'observer',
        'strategy',
    ),
    QuestionType.CODING: (
        'implement',
        'function',
        'algorithm',
        'complexity',
        'time complexity',
        'space complexity',
        'data structure',
        'array',
        'linked list',
        'tree',
        'graph',
        'hash table',
        'dynamic programming',
        'recursion',
        'iteration',
    ),
}


class QuestionClassifier:
    """Maps free text to an interview question category by keyword scoring."""

    def __init__(self, keyword_map: Dict[QuestionType, Tuple[str, ...]] = None):
        """Initialize classifier.

        Args:
            keyword_map: Ordered category -> keyword phrases mapping. Earlier
                categories win ties.
        """
        self.keyword_map = dict(keyword_map or DEFAULT_KEYWORDS)

    def score(self, text: str) -> List[Tuple[QuestionType, int]]:
        """Count matching keyword phrases per category, in priority order."""
        lower_text = text.lower()
        return [
            (question_type, sum(1 for keyword in keywords if keyword in lower_text))
            for question_type, keywords in self.keyword_map.items()
        ]

    def quick_classify(self, text: str) -> QuestionType:
        """Classify text by keyword match counts."""
        best_type, best_score = QuestionType.UNKNOWN, 0
        for question_type, score in self.score(text):
            if score > best_score:
                best_type, best_score = question_type, score

        logger.debug(f"Classified as {best_type.value} (score={best_score}): {text[:60]!r}")
        return best_type

    async def detailed_classify(self, text: str) -> QuestionType:
        """Detailed classification entry point.

        Currently the same as quick_classify; reserved for a model-backed
        classifier with the same signature.
        """
        return self.quick_classify(text)
