from .handler import CardSummaryHandler

__all__ = ["CardSummaryHandler"]
