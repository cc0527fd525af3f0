from .confidence import ConfidenceScorer, score

__all__ = ["ConfidenceScorer", "score"]
