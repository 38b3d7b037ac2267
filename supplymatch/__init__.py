"""
Supplymatch
===========
Scoring core for an industrial automation marketplace.

This package provides:
- Weighted multi-criteria matching of supplier products to buyer requirements
- Browsing, industry, trending, similar-buyer and hybrid recommendations
- Best-effort recommendation logging and click tracking
- Pydantic models for requirements, products, activity and results
"""

from .models import (
    Requirement,
    Product,
    ProductSpecs,
    ProductStatus,
    IntegrationStyle,
    MatchResult,
    Algorithm,
    ActivitySnapshot,
    RecommendationResult,
)
from .matching import MatchingEngine, MatchingWeights, CommercialPolicy
from .recommendations import RecommendationEngine, HybridWeights, ActivityWindows
from .tracking import RecommendationTracker, InMemoryRecommendationStore

__all__ = [
    'Requirement',
    'Product',
    'ProductSpecs',
    'ProductStatus',
    'IntegrationStyle',
    'MatchResult',
    'Algorithm',
    'ActivitySnapshot',
    'RecommendationResult',
    'MatchingEngine',
    'MatchingWeights',
    'CommercialPolicy',
    'RecommendationEngine',
    'HybridWeights',
    'ActivityWindows',
    'RecommendationTracker',
    'InMemoryRecommendationStore',
]
