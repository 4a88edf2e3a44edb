"""
Fuzzy intent matcher.

Scores the subject and body of a request against every catalog pattern and
picks the best action above a similarity threshold.
"""

import re
from collections import Counter

from digital_employee.catalog import PatternCatalog
from digital_employee.classifiers.base import BaseClassifier
from digital_employee.core.logging import get_logger
from digital_employee.core.models import MatchResult

log = get_logger(__name__)

# Score given to a pattern that appears verbatim in the request
CONTAINMENT_SCORE = 0.8

_WHITESPACE = re.compile(r"\s+")


def dice_coefficient(first: str, second: str) -> float:
    """
    Sørensen-Dice similarity over character bigrams.

    Whitespace is ignored. Identical strings score 1.0, strings shorter
    than two characters (and not identical) score 0.0.
    """
    first = _WHITESPACE.sub("", first)
    second = _WHITESPACE.sub("", second)

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = Counter(first[i:i + 2] for i in range(len(first) - 1))

    intersection = 0
    for i in range(len(second) - 1):
        bigram = second[i:i + 2]
        if first_bigrams[bigram] > 0:
            first_bigrams[bigram] -= 1
            intersection += 1

    return (2.0 * intersection) / (len(first) + len(second) - 2)


class FuzzyIntentMatcher(BaseClassifier):
    """Catalog matcher combining bigram similarity with a substring floor."""

    def __init__(self, catalog: PatternCatalog, threshold: float = 0.6):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1")
        self.catalog = catalog
        self.threshold = threshold

    def score(self, pattern: str, search_text: str) -> float:
        """Score a single pattern against lowercase search text."""
        pattern = pattern.lower()
        similarity = dice_coefficient(pattern, search_text)
        if pattern in search_text:
            return max(similarity, CONTAINMENT_SCORE)
        return similarity

    def match(self, subject: str, body: str) -> MatchResult:
        """
        Find the best matching action for a request.

        Ties keep the earliest pattern in catalog order.

        Args:
            subject: Message subject
            body: Plain-text message body

        Returns:
            MatchResult with the action, or action=None when the best score
            is below the threshold
        """
        search_text = f"{subject} {body}".lower()
        log.info("action_match_started", subject=subject)

        best_action = None
        best_score = 0.0

        for mapping in self.catalog:
            for pattern in mapping.patterns:
                score = self.score(pattern, search_text)
                log.debug("pattern_scored", pattern=pattern, score=round(score, 3))

                if score > best_score:
                    best_action = mapping.action
                    best_score = score

        if best_action is not None and best_score >= self.threshold:
            log.info("action_matched", action=best_action.value, score=round(best_score, 3))
            return MatchResult(action=best_action, score=best_score)

        log.warning(
            "action_not_matched",
            best_score=round(best_score, 3),
            threshold=self.threshold,
        )
        return MatchResult(action=None, score=best_score)
