"""Score aggregation"""

from .aggregator import ScoreAggregator

__all__ = ['ScoreAggregator']
