"""
Pattern catalog mapping request phrases to actions.

Each mapping contains:
- patterns: keywords/phrases to match against the subject and body
- action: the action to run when one of the patterns wins
- description: human-readable description of the action
"""

from dataclasses import dataclass
from typing import Iterable

from digital_employee.core.exceptions import CatalogError
from digital_employee.core.models import Action


@dataclass(frozen=True)
class PatternMapping:
    """One catalog entry."""

    patterns: tuple[str, ...]
    action: Action
    description: str


DEFAULT_MAPPINGS: tuple[PatternMapping, ...] = (
    PatternMapping(
        patterns=(
            "credit card evaluation",
            "credit card request",
            "evaluate credit card",
            "card evaluation request",
        ),
        action=Action.GENERATE_CARD_SUMMARY,
        description="Generate credit card evaluation summary",
    ),
    PatternMapping(
        patterns=(
            "loan application",
            "loan request",
            "apply for loan",
            "loan evaluation",
        ),
        action=Action.PROCESS_LOAN_APPLICATION,
        description="Process loan application request",
    ),
    PatternMapping(
        patterns=(
            "account statement",
            "statement request",
            "monthly statement",
            "generate statement",
        ),
        action=Action.GENERATE_ACCOUNT_STATEMENT,
        description="Generate account statement",
    ),
    PatternMapping(
        patterns=(
            "customer support",
            "help",
            "support request",
            "need assistance",
        ),
        action=Action.HANDLE_SUPPORT_REQUEST,
        description="Handle customer support request",
    ),
)


class PatternCatalog:
    """Read-only, validated sequence of pattern mappings."""

    def __init__(
        self,
        mappings: Iterable[PatternMapping] = DEFAULT_MAPPINGS,
        known_actions: Iterable[Action] | None = None,
    ):
        self._mappings = tuple(mappings)
        self._validate(set(known_actions) if known_actions is not None else None)

    def _validate(self, known_actions: set[Action] | None) -> None:
        if not self._mappings:
            raise CatalogError("Pattern catalog is empty")

        for mapping in self._mappings:
            if not isinstance(mapping.action, Action):
                raise CatalogError(f"Unknown action: {mapping.action!r}")
            if not mapping.patterns:
                raise CatalogError(f"No patterns for action {mapping.action.value}")
            if any(not pattern or not pattern.strip() for pattern in mapping.patterns):
                raise CatalogError(f"Blank pattern for action {mapping.action.value}")
            if known_actions is not None and mapping.action not in known_actions:
                raise CatalogError(f"No handler registered for action {mapping.action.value}")

    @property
    def mappings(self) -> tuple[PatternMapping, ...]:
        return self._mappings

    def __iter__(self):
        return iter(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)
