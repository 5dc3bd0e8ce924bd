# ridehail/core/ratings/__init__.py
"""
Домен оценок.
"""

from ridehail.core.ratings.repository import RatingRepository
from ridehail.core.ratings.service import DEFAULT_RATING, RatingAggregator

__all__ = ["RatingRepository", "RatingAggregator", "DEFAULT_RATING"]
