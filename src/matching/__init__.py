"""Candidate <-> vacancy matching engine.

This module ranks the vacancies near a candidate by combining location
affinity, category relationships, experience and skills overlap into a
weighted, bucketed score.

Public API:
    - MatchService: Match orchestration (find_matches, match_statistics)
    - MatchFilters: Per-request options
    - MatchResult: Ranked match output model
    - MatchStatistics: Aggregate output model
    - MatchingConfig: Configuration settings
    - LocationProvider / CategoryProvider / CandidateStore: Collaborator interfaces
"""

from src.matching.collaborators import CandidateStore, CategoryProvider, LocationProvider
from src.matching.config import (
    MatchingConfig,
    get_matching_config,
    reset_matching_config,
)
from src.matching.models import (
    CandidatePreferences,
    CategoryMatch,
    GeoPoint,
    MatchBucket,
    MatchFactors,
    MatchFilters,
    MatchResult,
    MatchStatistics,
    MatchWeights,
    TopCategory,
    VacancyCandidate,
)
from src.matching.service import MatchService
from src.matching.statistics import aggregate_statistics

__all__ = [
    "MatchService",
    "MatchFilters",
    "MatchResult",
    "MatchStatistics",
    "MatchFactors",
    "MatchBucket",
    "CategoryMatch",
    "TopCategory",
    "CandidatePreferences",
    "VacancyCandidate",
    "GeoPoint",
    "MatchWeights",
    "MatchingConfig",
    "get_matching_config",
    "reset_matching_config",
    "LocationProvider",
    "CategoryProvider",
    "CandidateStore",
    "aggregate_statistics",
]
