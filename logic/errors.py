"""Error types raised by the recommendation engine."""

from __future__ import annotations

NOT_ENOUGH_ITEMS_MESSAGE = "Not enough items in your wardrobe to generate outfits"
GENERATION_FAILED_MESSAGE = "Failed to generate outfit recommendations"
GENERATION_CANCELLED_MESSAGE = "Outfit generation was interrupted"


class RecommendationError(Exception):
    """Base class for engine errors."""


class InsufficientItemsError(RecommendationError):
    """Fewer than two usable items remain after exclusions."""

    def __init__(self, available: int, required: int = 2) -> None:
        super().__init__(NOT_ENOUGH_ITEMS_MESSAGE)
        self.available = available
        self.required = required


class GenerationFailure(RecommendationError):
    """Candidate building or scoring failed unexpectedly."""


class PersistenceError(RecommendationError):
    """A store could not load or write outfit records."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


__all__ = [
    "NOT_ENOUGH_ITEMS_MESSAGE",
    "GENERATION_FAILED_MESSAGE",
    "GENERATION_CANCELLED_MESSAGE",
    "RecommendationError",
    "InsufficientItemsError",
    "GenerationFailure",
    "PersistenceError",
]
