"""
Abstract base class for intent classifiers.
"""

from abc import ABC, abstractmethod

from digital_employee.core.models import MatchResult


class BaseClassifier(ABC):
    """Abstract classifier interface."""

    @abstractmethod
    def match(self, subject: str, body: str) -> MatchResult:
        """
        Find the action a message is asking for.

        Args:
            subject: Message subject
            body: Plain-text message body

        Returns:
            MatchResult with the winning action (or None) and its score
        """
        pass
