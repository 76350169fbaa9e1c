"""In-memory marketplace implementing the matching collaborators.

Backs the CLI and the integration tests. A production deployment would put
a database adapter behind the same interfaces.
"""

from __future__ import annotations

import math

from src.catalog.models import MarketplaceDataset, VacancyRecord
from src.categories.hierarchy import descendant_ids
from src.categories.models import Category
from src.matching.models import CandidatePreferences, GeoPoint, VacancyCandidate

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: GeoPoint, lat: float, lng: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat - origin.latitude)
    d_lng = math.radians(lng - origin.longitude)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.latitude))
        * math.cos(math.radians(lat))
        * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


class InMemoryMarketplace:
    """Location, category and candidate lookups over a loaded dataset.

    Implements ``LocationProvider``, ``CategoryProvider`` and
    ``CandidateStore`` from ``src.matching.collaborators``.
    """

    def __init__(self, dataset: MarketplaceDataset) -> None:
        self.dataset = dataset
        self._categories: dict[str, Category] = {c.id: c for c in dataset.categories}
        self._candidates: dict[str, CandidatePreferences] = {
            c.id: c for c in dataset.candidates
        }
        self._vacancies: dict[str, VacancyRecord] = {v.id: v for v in dataset.vacancies}

    async def nearby_vacancies(
        self, candidate_id: str, radius_km: float
    ) -> list[VacancyCandidate]:
        candidate = self._candidates.get(candidate_id)
        if candidate is None or candidate.location is None:
            return []

        nearby: list[VacancyCandidate] = []
        for vacancy in self._vacancies.values():
            if not vacancy.active or vacancy.lat is None or vacancy.lng is None:
                continue
            distance = haversine_km(candidate.location, vacancy.lat, vacancy.lng)
            if distance <= radius_km:
                nearby.append(vacancy.to_candidate(distance_km=distance))
        return nearby

    async def categories_for_vacancy(self, vacancy_id: str) -> list[Category]:
        vacancy = self._vacancies.get(vacancy_id)
        if vacancy is None:
            raise LookupError(f"Vacancy not found: {vacancy_id}")
        return [
            self._categories[category_id]
            for category_id in vacancy.category_ids
            if category_id in self._categories
        ]

    async def vacancies_for_category(
        self, category_id: str, include_descendants: bool
    ) -> list[VacancyCandidate]:
        # Nothing is tagged under an unknown category.
        if category_id not in self._categories:
            return []

        wanted = {category_id}
        if include_descendants:
            wanted.update(descendant_ids(self._categories.values(), category_id))

        return [
            vacancy.to_candidate()
            for vacancy in self._vacancies.values()
            if vacancy.active and wanted.intersection(vacancy.category_ids)
        ]

    async def category_by_id(self, category_id: str) -> Category | None:
        return self._categories.get(category_id)

    async def candidate_by_id(self, candidate_id: str) -> CandidatePreferences | None:
        return self._candidates.get(candidate_id)
