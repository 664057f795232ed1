from __future__ import annotations


class RecommendationError(Exception):
    """Base class for recommendation engine errors."""


class ExternalServiceFailure(RecommendationError):
    """An embedding, search, ranking or store call failed or timed out."""


class InvalidTransition(RecommendationError):
    """A list-manager precondition was violated. State is left unchanged."""


class EmptySignal(RecommendationError):
    """The profile matched no sector; the caller must use the whole-profile fallback."""
