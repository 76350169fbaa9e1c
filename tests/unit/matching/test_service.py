from __future__ import annotations

import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from src.categories.models import Category
from src.matching.config import MatchingConfig
from src.matching.models import (
    CandidatePreferences,
    GeoPoint,
    MatchBucket,
    MatchFilters,
    MatchWeights,
    VacancyCandidate,
)
from src.matching.service import (
    REASON_CATEGORY,
    REASON_EXPERIENCE,
    REASON_LOCATION,
    REASON_SKILLS,
    MatchService,
)

TECH = Category(id="tech", name="Technology", path=["tech"])
FRONTEND = Category(
    id="frontend", name="Frontend", path=["tech", "frontend"], parent_id="tech"
)
REACT = Category(
    id="react", name="React", path=["tech", "frontend", "react"], parent_id="frontend"
)
BACKEND = Category(id="backend", name="Backend", path=["tech", "backend"], parent_id="tech")
NURSING = Category(id="nursing", name="Nursing", path=["health", "nursing"])

TREE = {category.id: category for category in (TECH, FRONTEND, REACT, BACKEND, NURSING)}


def _config(**overrides) -> MatchingConfig:
    return MatchingConfig(_env_file=None, **overrides)  # type: ignore[call-arg]


def _candidate(**overrides) -> CandidatePreferences:
    data = {
        "id": "cand-1",
        "preferred_categories": ["frontend"],
        "experience": ["Node.js developer", "React apps"],
        "skills": ["React", "TypeScript"],
        "location": GeoPoint(latitude=19.4326, longitude=-99.1332),
    }
    data.update(overrides)
    return CandidatePreferences(**data)


def _vacancy(vacancy_id: str, match_score=None, **overrides) -> VacancyCandidate:
    return VacancyCandidate(
        id=vacancy_id,
        title=f"Role {vacancy_id}",
        company="ACME",
        branch_name="Centro",
        lat=19.43,
        lng=-99.13,
        match_score=match_score,
        **overrides,
    )


def _service(
    *,
    candidate: CandidatePreferences | None,
    vacancies: list[VacancyCandidate],
    assignments: dict[str, list[Category]] | None = None,
    tagged: list[VacancyCandidate] | None = None,
    config: MatchingConfig | None = None,
) -> tuple[MatchService, SimpleNamespace, SimpleNamespace, SimpleNamespace]:
    assignments = assignments or {}

    async def categories_for_vacancy(vacancy_id: str) -> list[Category]:
        return assignments.get(vacancy_id, [])

    async def category_by_id(category_id: str) -> Category | None:
        return TREE.get(category_id)

    location_provider = SimpleNamespace(
        nearby_vacancies=AsyncMock(return_value=vacancies)
    )
    category_provider = SimpleNamespace(
        categories_for_vacancy=AsyncMock(side_effect=categories_for_vacancy),
        vacancies_for_category=AsyncMock(return_value=tagged or []),
        category_by_id=AsyncMock(side_effect=category_by_id),
    )
    candidate_store = SimpleNamespace(candidate_by_id=AsyncMock(return_value=candidate))

    service = MatchService(
        location_provider=location_provider,  # type: ignore[arg-type]
        category_provider=category_provider,  # type: ignore[arg-type]
        candidate_store=candidate_store,  # type: ignore[arg-type]
        config=config or _config(),
    )
    return service, location_provider, category_provider, candidate_store


@pytest.mark.asyncio
async def test_unknown_candidate_returns_no_matches() -> None:
    service, location_provider, _, _ = _service(
        candidate=None, vacancies=[_vacancy("v1", 95)]
    )

    assert await service.find_matches("ghost") == []
    location_provider.nearby_vacancies.assert_not_awaited()


@pytest.mark.asyncio
async def test_candidate_store_failure_returns_no_matches() -> None:
    service, _, _, candidate_store = _service(candidate=None, vacancies=[])
    candidate_store.candidate_by_id.side_effect = RuntimeError("db down")

    assert await service.find_matches("cand-1") == []


@pytest.mark.asyncio
async def test_location_failure_returns_no_matches() -> None:
    service, location_provider, _, _ = _service(candidate=_candidate(), vacancies=[])
    location_provider.nearby_vacancies.side_effect = ConnectionError("geo down")

    assert await service.find_matches("cand-1") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("filter_radius", "candidate_radius", "expected"),
    [(5.0, 25.0, 5.0), (None, 25.0, 25.0), (None, None, 10.0)],
)
async def test_radius_precedence(filter_radius, candidate_radius, expected) -> None:
    service, location_provider, _, _ = _service(
        candidate=_candidate(radius_km=candidate_radius), vacancies=[]
    )

    await service.find_matches("cand-1", MatchFilters(radius_km=filter_radius))

    location_provider.nearby_vacancies.assert_awaited_once_with("cand-1", expected)


@pytest.mark.asyncio
async def test_basic_mode_scores_by_location_only() -> None:
    vacancies = [
        _vacancy("v1", 70),
        _vacancy("v2", 95),
        _vacancy("v3"),
        _vacancy("v4", 69.5),
    ]
    service, _, category_provider, _ = _service(candidate=_candidate(), vacancies=vacancies)

    results = await service.find_matches("cand-1")

    assert [(r.vacancy.id, r.score, r.color) for r in results] == [
        ("v2", 95, MatchBucket.GREEN),
        ("v3", 80, MatchBucket.YELLOW),
        ("v1", 70, MatchBucket.YELLOW),
        ("v4", 70, MatchBucket.YELLOW),
    ]
    for result in results:
        assert result.match_factors is None
        assert result.category_matches is None
        assert result.match_reasons is None
        assert result.vacancy.categories is None
    category_provider.categories_for_vacancy.assert_not_awaited()


@pytest.mark.asyncio
async def test_ties_keep_location_order() -> None:
    vacancies = [_vacancy("first", 80), _vacancy("second", 90), _vacancy("third", 80)]
    service, _, _, _ = _service(candidate=_candidate(), vacancies=vacancies)

    results = await service.find_matches("cand-1")

    assert [r.vacancy.id for r in results] == ["second", "first", "third"]


@pytest.mark.parametrize(
    ("score", "bucket", "percentage"),
    [
        (100, MatchBucket.GREEN, "100%"),
        (90, MatchBucket.GREEN, "100%"),
        (89, MatchBucket.YELLOW, "80%"),
        (70, MatchBucket.YELLOW, "80%"),
        (69, MatchBucket.RED, "50%"),
        (0, MatchBucket.RED, "50%"),
    ],
)
def test_bucket_boundaries(score, bucket, percentage) -> None:
    service, _, _, _ = _service(candidate=None, vacancies=[])

    assert service.bucket_for_score(score) == (bucket, percentage)


@pytest.mark.asyncio
async def test_detailed_match_factors_and_reasons() -> None:
    vacancy = _vacancy(
        "v1", 95, requirements=["node.js", "react"], skills=["react", "css"]
    )
    service, _, _, _ = _service(
        candidate=_candidate(),
        vacancies=[vacancy],
        assignments={"v1": [REACT]},
    )

    results = await service.find_detailed_matches("cand-1")

    assert len(results) == 1
    result = results[0]
    factors = result.match_factors
    assert factors is not None
    assert factors.location_score == 95.0
    assert factors.category_score == 80.0
    assert factors.experience_score == 100.0
    assert factors.skills_score == 50.0
    assert factors.overall_score == 86
    assert result.score == 86
    assert result.color == MatchBucket.YELLOW
    assert result.percentage == "80%"
    assert result.match_reasons == [REASON_CATEGORY, REASON_LOCATION, REASON_EXPERIENCE]
    assert result.category_matches is not None
    assert [(m.category_id, m.match_type.value) for m in result.category_matches] == [
        ("frontend", "parent")
    ]
    assert result.vacancy.categories is not None
    assert [c.path for c in result.vacancy.categories] == ["tech.frontend.react"]


@pytest.mark.asyncio
async def test_reasons_follow_fixed_order() -> None:
    vacancy = _vacancy("v1", 100, requirements=["react"], skills=["react"])
    service, _, _, _ = _service(
        candidate=_candidate(experience=["react"], skills=["react"]),
        vacancies=[vacancy],
        assignments={"v1": [FRONTEND]},
    )

    results = await service.find_detailed_matches("cand-1")

    assert results[0].match_reasons == [
        REASON_CATEGORY,
        REASON_LOCATION,
        REASON_EXPERIENCE,
        REASON_SKILLS,
    ]
    assert results[0].score == 100


@pytest.mark.asyncio
async def test_no_reasons_is_none() -> None:
    vacancy = _vacancy("v1", 60)
    service, _, _, _ = _service(
        candidate=_candidate(experience=[], skills=[]),
        vacancies=[vacancy],
        assignments={"v1": [NURSING]},
    )

    results = await service.find_detailed_matches("cand-1")

    assert results[0].match_reasons is None
    assert results[0].category_matches == []
    # 60*0.3 + 0 + 50*0.2 + 50*0.1 = 33
    assert results[0].score == 33


@pytest.mark.asyncio
async def test_detailed_score_of_zero_is_kept() -> None:
    vacancy = _vacancy("v1", 0, requirements=["cobol"], skills=["fortran"])
    service, _, _, _ = _service(
        candidate=_candidate(), vacancies=[vacancy], assignments={"v1": [NURSING]}
    )

    results = await service.find_detailed_matches("cand-1")

    assert results[0].score == 0
    assert results[0].color == MatchBucket.RED


@pytest.mark.asyncio
async def test_candidate_match_weights_override_defaults() -> None:
    weights = MatchWeights(location=1.0, category=0.0, experience=0.0, skills=0.0)
    service, _, _, _ = _service(
        candidate=_candidate(match_weights=weights),
        vacancies=[_vacancy("v1", 42)],
        assignments={"v1": [REACT]},
    )

    results = await service.find_detailed_matches("cand-1")

    assert results[0].score == 42


@pytest.mark.asyncio
async def test_min_category_score_drops_low_category_matches() -> None:
    vacancies = [_vacancy("v1", 90), _vacancy("v2", 100)]
    service, _, _, _ = _service(
        candidate=_candidate(),
        vacancies=vacancies,
        assignments={"v1": [REACT], "v2": [NURSING]},
    )

    results = await service.find_detailed_matches(
        "cand-1", MatchFilters(min_category_score=50)
    )

    assert [r.vacancy.id for r in results] == ["v1"]


@pytest.mark.asyncio
async def test_min_category_score_ignored_in_basic_mode() -> None:
    service, _, _, _ = _service(
        candidate=_candidate(), vacancies=[_vacancy("v1", 90), _vacancy("v2", 100)]
    )

    results = await service.find_matches("cand-1", MatchFilters(min_category_score=50))

    assert len(results) == 2


@pytest.mark.asyncio
async def test_category_filter_uses_first_id_only(caplog) -> None:
    vacancies = [_vacancy("v1", 90), _vacancy("v2", 80), _vacancy("v3", 70)]
    service, _, category_provider, _ = _service(
        candidate=_candidate(), vacancies=vacancies, tagged=[_vacancy("v2")]
    )

    with caplog.at_level(logging.WARNING, logger="src.matching.service"):
        results = await service.find_matches(
            "cand-1",
            MatchFilters(category_ids=["frontend", "nursing"], include_hierarchical=True),
        )

    assert [r.vacancy.id for r in results] == ["v2"]
    category_provider.vacancies_for_category.assert_awaited_once_with("frontend", True)
    assert "Only the first category filter is applied" in caplog.text


@pytest.mark.asyncio
async def test_category_filter_failure_does_not_narrow() -> None:
    vacancies = [_vacancy("v1", 90), _vacancy("v2", 80)]
    service, _, category_provider, _ = _service(candidate=_candidate(), vacancies=vacancies)
    category_provider.vacancies_for_category.side_effect = LookupError("no such category")

    results = await service.find_matches("cand-1", MatchFilters(category_ids=["ghost"]))

    assert [r.vacancy.id for r in results] == ["v1", "v2"]


@pytest.mark.asyncio
async def test_per_vacancy_category_failure_degrades_that_vacancy() -> None:
    vacancies = [_vacancy("v1", 90), _vacancy("v2", 90)]
    service, _, category_provider, _ = _service(candidate=_candidate(), vacancies=vacancies)

    async def categories_for_vacancy(vacancy_id: str) -> list[Category]:
        if vacancy_id == "v1":
            raise RuntimeError("boom")
        return [FRONTEND]

    category_provider.categories_for_vacancy.side_effect = categories_for_vacancy

    results = await service.find_detailed_matches("cand-1")

    by_id = {r.vacancy.id: r for r in results}
    assert by_id["v1"].vacancy.categories == []
    assert by_id["v1"].match_factors is not None
    assert by_id["v1"].match_factors.category_score == 0.0
    assert by_id["v2"].match_factors is not None
    assert by_id["v2"].match_factors.category_score == 100.0


@pytest.mark.asyncio
async def test_missing_preferred_category_is_skipped() -> None:
    service, _, _, _ = _service(
        candidate=_candidate(preferred_categories=["ghost", "react"]),
        vacancies=[_vacancy("v1", 90)],
        assignments={"v1": [REACT]},
    )

    results = await service.find_detailed_matches("cand-1")

    assert results[0].category_matches is not None
    assert [m.category_id for m in results[0].category_matches] == ["react"]


@pytest.mark.asyncio
async def test_hierarchical_matching_can_be_disabled() -> None:
    service, _, _, _ = _service(
        candidate=_candidate(),
        vacancies=[_vacancy("v1", 90)],
        assignments={"v1": [REACT]},
        config=_config(enable_hierarchical_matching=False),
    )

    results = await service.find_detailed_matches("cand-1")

    assert results[0].category_matches == []
    assert results[0].match_factors is not None
    assert results[0].match_factors.category_score == 0.0


@pytest.mark.asyncio
async def test_enrichment_timeout_scores_without_categories() -> None:
    vacancies = [_vacancy("v1", 90), _vacancy("v2", 90)]
    service, _, category_provider, _ = _service(candidate=_candidate(), vacancies=vacancies)

    async def slow(vacancy_id: str) -> list[Category]:
        if vacancy_id == "v2":
            await asyncio.sleep(5)
        return [FRONTEND]

    category_provider.categories_for_vacancy.side_effect = slow

    results = await service.find_detailed_matches("cand-1", timeout=0.2)

    assert len(results) == 2
    for result in results:
        assert result.vacancy.categories == []
        assert result.match_factors is not None
        assert result.match_factors.category_score == 0.0


@pytest.mark.asyncio
async def test_concurrency_is_bounded() -> None:
    vacancies = [_vacancy(f"v{i}", 80) for i in range(6)]
    service, _, category_provider, _ = _service(
        candidate=_candidate(), vacancies=vacancies, config=_config(max_concurrency=2)
    )
    in_flight = 0
    peak = 0

    async def tracked(vacancy_id: str) -> list[Category]:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return []

    category_provider.categories_for_vacancy.side_effect = tracked

    results = await service.find_detailed_matches("cand-1")

    assert len(results) == 6
    assert peak == 2


@pytest.mark.asyncio
async def test_match_statistics_uses_detailed_results() -> None:
    vacancies = [_vacancy("v1", 95), _vacancy("v2", 60)]
    service, _, _, _ = _service(
        candidate=_candidate(),
        vacancies=vacancies,
        assignments={"v1": [REACT], "v2": [REACT, NURSING]},
    )

    stats = await service.match_statistics("cand-1")

    assert stats.total_matches == 2
    assert stats.category_breakdown == {"react": 2, "nursing": 1}
    assert stats.top_categories[0].category_id == "react"
    assert stats.top_categories[0].category_name == "React"


@pytest.mark.asyncio
async def test_match_statistics_for_unknown_candidate() -> None:
    service, _, _, _ = _service(candidate=None, vacancies=[])

    stats = await service.match_statistics("ghost")

    assert stats.total_matches == 0
    assert stats.average_score == 0
    assert stats.top_categories == []


@pytest.mark.asyncio
async def test_format_result_lists_factors_and_reasons() -> None:
    vacancy = _vacancy(
        "v1", 95, requirements=["node.js", "react"], skills=["react", "css"]
    )
    service, _, _, _ = _service(
        candidate=_candidate(), vacancies=[vacancy], assignments={"v1": [REACT]}
    )

    results = await service.find_detailed_matches("cand-1")
    text = service.format_result(results[0])

    assert text.splitlines() == [
        "ACME - Role v1 (Centro)",
        "Score: 86 [YELLOW 80%]",
        "Factors: location=95 category=80 experience=100 skills=50",
        "Categories: tech.frontend.react",
        "Category matches: tech.frontend (parent)",
        "Reasons: "
        "Strong category match, Excellent location match, Good experience alignment",
    ]
