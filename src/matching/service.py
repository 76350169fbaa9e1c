"""Match orchestration service."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from typing import TypeVar

from src.categories.models import Category
from src.matching.collaborators import CandidateStore, CategoryProvider, LocationProvider
from src.matching.config import MatchingConfig, get_matching_config
from src.matching.models import (
    CandidatePreferences,
    CategorySummary,
    MatchBucket,
    MatchFactors,
    MatchFilters,
    MatchResult,
    MatchStatistics,
    VacancyCandidate,
    VacancySummary,
)
from src.matching.scorers import (
    category_score,
    experience_score,
    find_category_matches,
    location_score,
    overall_score,
    round_half_up,
    skills_score,
)
from src.matching.statistics import aggregate_statistics

logger = logging.getLogger(__name__)

T = TypeVar("T")

REASON_CATEGORY = "Strong category match"
REASON_LOCATION = "Excellent location match"
REASON_EXPERIENCE = "Good experience alignment"
REASON_SKILLS = "Skills match well"


class _Deadline:
    """Remaining time budget of one matching request."""

    def __init__(self, seconds: float | None) -> None:
        self._expires_at = None if seconds is None else time.monotonic() + seconds

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    async def run(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, self.remaining())


class MatchService:
    """Rank vacancies for a candidate.

    The service is stateless across requests: every call reads the
    candidate, nearby vacancies and category assignments from the
    collaborators and returns fresh results.
    """

    def __init__(
        self,
        *,
        location_provider: LocationProvider,
        category_provider: CategoryProvider,
        candidate_store: CandidateStore,
        config: MatchingConfig | None = None,
    ) -> None:
        self.location_provider = location_provider
        self.category_provider = category_provider
        self.candidate_store = candidate_store
        self.config = config or get_matching_config()

    async def find_matches(
        self,
        candidate_id: str,
        filters: MatchFilters | None = None,
        *,
        timeout: float | None = None,
    ) -> list[MatchResult]:
        """Return ranked matches for a candidate.

        Args:
            candidate_id: The candidate to match.
            filters: Request options; defaults to a cheap location-only match.
            timeout: Deadline in seconds for the whole request. Defaults to
                ``config.request_timeout_seconds``.

        Returns:
            Results sorted by score, highest first. Ties keep the order the
            location collaborator returned them in. An unknown candidate
            yields an empty list.
        """
        filters = filters or MatchFilters()
        deadline = _Deadline(
            timeout if timeout is not None else self.config.request_timeout_seconds
        )
        logger.debug(
            "Matching candidate %s (detailed=%s)",
            candidate_id,
            filters.enable_detailed_matching,
        )

        candidate = await self._load_candidate(candidate_id, deadline)
        if candidate is None:
            logger.info("No profile for candidate %s; returning no matches", candidate_id)
            return []

        radius_km = (
            filters.radius_km or candidate.radius_km or self.config.default_radius_km
        )
        vacancies = await self._nearby_vacancies(candidate_id, radius_km, deadline)

        if filters.category_ids:
            vacancies = await self._narrow_by_category(vacancies, filters, deadline)

        if filters.enable_detailed_matching:
            results = await self._score_detailed(candidate, vacancies, deadline)
            if filters.min_category_score is not None:
                results = [
                    result
                    for result in results
                    if result.match_factors is not None
                    and result.match_factors.category_score >= filters.min_category_score
                ]
        else:
            results = [self._score_basic(vacancy) for vacancy in vacancies]

        results.sort(key=lambda result: result.score, reverse=True)
        logger.info(
            "Candidate %s: %d match(es) within %.1f km", candidate_id, len(results), radius_km
        )
        return results

    async def find_detailed_matches(
        self,
        candidate_id: str,
        filters: MatchFilters | None = None,
        *,
        timeout: float | None = None,
    ) -> list[MatchResult]:
        """Same as ``find_matches`` with detailed matching forced on."""
        base = filters or MatchFilters()
        detailed = base.model_copy(update={"enable_detailed_matching": True})
        return await self.find_matches(candidate_id, detailed, timeout=timeout)

    async def match_statistics(
        self, candidate_id: str, *, timeout: float | None = None
    ) -> MatchStatistics:
        """Aggregate a candidate's detailed matches."""
        results = await self.find_detailed_matches(candidate_id, timeout=timeout)
        return aggregate_statistics(results, top_n=self.config.top_categories_limit)

    def bucket_for_score(self, score: float) -> tuple[MatchBucket, str]:
        """Map a score to its display bucket and percentage label."""
        if score >= self.config.green_threshold:
            return MatchBucket.GREEN, "100%"
        if score >= self.config.yellow_threshold:
            return MatchBucket.YELLOW, "80%"
        return MatchBucket.RED, "50%"

    def format_result(self, result: MatchResult) -> str:
        """Format a MatchResult for CLI output."""
        vacancy = result.vacancy
        lines: list[str] = []
        header = f"{vacancy.company} - {vacancy.title}"
        if vacancy.branch_name:
            header += f" ({vacancy.branch_name})"
        lines.append(header)
        lines.append(
            f"Score: {result.score} [{result.color.value.upper()} {result.percentage}]"
        )

        factors = result.match_factors
        if factors is not None:
            lines.append(
                "Factors: "
                f"location={factors.location_score:.0f} "
                f"category={factors.category_score:.0f} "
                f"experience={factors.experience_score:.0f} "
                f"skills={factors.skills_score:.0f}"
            )
        if vacancy.categories:
            lines.append(
                f"Categories: {', '.join(category.path for category in vacancy.categories)}"
            )
        if result.category_matches:
            lines.append(
                "Category matches: "
                + ", ".join(
                    f"{match.category_path} ({match.match_type.value})"
                    for match in result.category_matches
                )
            )
        if result.match_reasons:
            lines.append(f"Reasons: {', '.join(result.match_reasons)}")
        return "\n".join(lines)

    async def _load_candidate(
        self, candidate_id: str, deadline: _Deadline
    ) -> CandidatePreferences | None:
        try:
            return await deadline.run(self.candidate_store.candidate_by_id(candidate_id))
        except Exception as e:
            logger.warning("Candidate lookup failed for %s: %s", candidate_id, e)
            return None

    async def _nearby_vacancies(
        self, candidate_id: str, radius_km: float, deadline: _Deadline
    ) -> list[VacancyCandidate]:
        try:
            return list(
                await deadline.run(
                    self.location_provider.nearby_vacancies(candidate_id, radius_km)
                )
            )
        except Exception as e:
            logger.warning("Nearby vacancy search failed for %s: %s", candidate_id, e)
            return []

    async def _narrow_by_category(
        self,
        vacancies: list[VacancyCandidate],
        filters: MatchFilters,
        deadline: _Deadline,
    ) -> list[VacancyCandidate]:
        category_id = filters.category_ids[0]
        if len(filters.category_ids) > 1:
            logger.warning(
                "Only the first category filter is applied (%s); ignoring %s",
                category_id,
                ", ".join(filters.category_ids[1:]),
            )

        try:
            tagged = await deadline.run(
                self.category_provider.vacancies_for_category(
                    category_id, filters.include_hierarchical
                )
            )
        except Exception as e:
            logger.warning(
                "Category filter lookup failed for %s; not narrowing: %s", category_id, e
            )
            return vacancies

        tagged_ids = {vacancy.id for vacancy in tagged}
        return [vacancy for vacancy in vacancies if vacancy.id in tagged_ids]

    async def _resolve_preferred(
        self, candidate: CandidatePreferences, deadline: _Deadline
    ) -> list[Category]:
        preferred: list[Category] = []
        for category_id in candidate.preferred_categories:
            try:
                category = await deadline.run(
                    self.category_provider.category_by_id(category_id)
                )
            except Exception as e:
                logger.warning("Category lookup failed for %s: %s", category_id, e)
                continue
            if category is None:
                logger.debug("Preferred category %s not found", category_id)
                continue
            preferred.append(category)
        return preferred

    async def _categories_for_vacancy(self, vacancy_id: str) -> list[Category]:
        try:
            return list(await self.category_provider.categories_for_vacancy(vacancy_id))
        except Exception as e:
            logger.warning(
                "Category lookup failed for vacancy %s; scoring without categories: %s",
                vacancy_id,
                e,
            )
            return []

    async def _score_detailed(
        self,
        candidate: CandidatePreferences,
        vacancies: list[VacancyCandidate],
        deadline: _Deadline,
    ) -> list[MatchResult]:
        if not vacancies:
            return []

        preferred = await self._resolve_preferred(candidate, deadline)
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def enrich(vacancy: VacancyCandidate) -> list[Category]:
            async with semaphore:
                return await self._categories_for_vacancy(vacancy.id)

        try:
            category_lists = await deadline.run(
                asyncio.gather(*(enrich(vacancy) for vacancy in vacancies))
            )
        except TimeoutError:
            logger.warning(
                "Category enrichment timed out; scoring %d vacancies without categories",
                len(vacancies),
            )
            category_lists = [[] for _ in vacancies]

        return [
            self._score_vacancy(candidate, preferred, vacancy, categories)
            for vacancy, categories in zip(vacancies, category_lists, strict=True)
        ]

    def _score_basic(self, vacancy: VacancyCandidate) -> MatchResult:
        score = round_half_up(location_score(vacancy, self.config.default_location_score))
        color, percentage = self.bucket_for_score(score)
        return MatchResult(
            vacancy=_summarize(vacancy, None),
            score=score,
            color=color,
            percentage=percentage,
        )

    def _score_vacancy(
        self,
        candidate: CandidatePreferences,
        preferred: list[Category],
        vacancy: VacancyCandidate,
        vacancy_categories: list[Category],
    ) -> MatchResult:
        config = self.config

        matches = find_category_matches(
            preferred,
            vacancy_categories,
            weights=config.relationship_weights,
            hierarchical=config.enable_hierarchical_matching,
        )
        location = location_score(vacancy, config.default_location_score)
        category = category_score(
            matches,
            bonus_step=config.category_bonus_step,
            bonus_cap=config.category_bonus_cap,
        )
        experience = experience_score(
            candidate.experience, vacancy.requirements, config.neutral_text_score
        )
        skills = skills_score(candidate.skills, vacancy.skills, config.neutral_text_score)

        factors = MatchFactors(
            location_score=location,
            category_score=category,
            experience_score=experience,
            skills_score=skills,
            overall_score=overall_score(
                location=location,
                category=category,
                experience=experience,
                skills=skills,
                weights=candidate.match_weights or config.default_weights,
            ),
        )

        reasons: list[str] = []
        if factors.category_score > config.reason_threshold_category:
            reasons.append(REASON_CATEGORY)
        if factors.location_score > config.reason_threshold_location:
            reasons.append(REASON_LOCATION)
        if factors.experience_score > config.reason_threshold_experience:
            reasons.append(REASON_EXPERIENCE)
        if factors.skills_score > config.reason_threshold_skills:
            reasons.append(REASON_SKILLS)

        color, percentage = self.bucket_for_score(factors.overall_score)
        return MatchResult(
            vacancy=_summarize(vacancy, vacancy_categories),
            score=factors.overall_score,
            color=color,
            percentage=percentage,
            match_factors=factors,
            category_matches=matches,
            match_reasons=reasons or None,
        )


def _summarize(
    vacancy: VacancyCandidate, categories: list[Category] | None
) -> VacancySummary:
    return VacancySummary(
        id=vacancy.id,
        title=vacancy.title,
        company=vacancy.company,
        branch_name=vacancy.branch_name,
        lat=vacancy.lat,
        lng=vacancy.lng,
        categories=None
        if categories is None
        else [
            CategorySummary(id=category.id, name=category.name, path=category.path_string)
            for category in categories
        ],
    )
