"""
Intent classifiers.

Matches incoming requests against the pattern catalog.
"""

from digital_employee.classifiers.base import BaseClassifier
from digital_employee.classifiers.fuzzy import FuzzyIntentMatcher, dice_coefficient

__all__ = [
    "BaseClassifier",
    "FuzzyIntentMatcher",
    "dice_coefficient",
]
