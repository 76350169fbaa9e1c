"""Interfaces of the services the matching engine reads from.

The engine owns no storage. Anything implementing these protocols (a
document-database adapter, an HTTP client, the in-memory marketplace in
``src.catalog``) can be handed to ``MatchService``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from src.categories.models import Category
from src.matching.models import CandidatePreferences, VacancyCandidate


@runtime_checkable
class LocationProvider(Protocol):
    """Geographic vacancy search."""

    async def nearby_vacancies(
        self, candidate_id: str, radius_km: float
    ) -> list[VacancyCandidate]:
        """Return vacancies within ``radius_km`` of the candidate.

        Each vacancy carries its location-affinity ``match_score``.
        """
        ...


@runtime_checkable
class CategoryProvider(Protocol):
    """Category tree and vacancy <-> category assignments."""

    async def categories_for_vacancy(self, vacancy_id: str) -> list[Category]:
        """Return the categories a vacancy is tagged with."""
        ...

    async def vacancies_for_category(
        self, category_id: str, include_descendants: bool
    ) -> list[VacancyCandidate]:
        """Return vacancies tagged with a category (optionally its subtree).

        An unknown category has nothing tagged under it and yields ``[]``.
        """
        ...

    async def category_by_id(self, category_id: str) -> Category | None:
        """Return a category, or None if it does not exist."""
        ...


@runtime_checkable
class CandidateStore(Protocol):
    """Candidate profile lookup."""

    async def candidate_by_id(self, candidate_id: str) -> CandidatePreferences | None:
        """Return a candidate's matching preferences, or None if absent."""
        ...
