"""Factor scorers for candidate/vacancy matching.

Every function here is pure: no I/O, no logging, no mutation of inputs.
Scores are on a 0-100 scale.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping

from src.categories.hierarchy import relationship
from src.categories.models import Category, CategoryRelationship
from src.matching.models import CategoryMatch, MatchWeights, VacancyCandidate

DEFAULT_LOCATION_SCORE = 80.0
NEUTRAL_TEXT_SCORE = 50.0

DEFAULT_RELATIONSHIP_WEIGHTS: Mapping[CategoryRelationship, float] = {
    CategoryRelationship.EXACT: 1.0,
    CategoryRelationship.PARENT: 0.7,
    CategoryRelationship.CHILD: 0.8,
    CategoryRelationship.SIBLING: 0.5,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up (2.5 -> 3).

    Float noise below 1e-9 is discarded first so 24.499999999999996 rounds
    like 24.5.
    """
    return math.floor(round(value, 9) + 0.5)


def normalize_text(value: str) -> str:
    """Normalize a free-text entry for case-insensitive comparison."""
    return value.strip().lower()


def texts_overlap(first: str, second: str) -> bool:
    """Return True if either normalized text contains the other."""
    a = normalize_text(first)
    b = normalize_text(second)
    return a in b or b in a


def text_overlap_score(
    candidate_items: Iterable[str],
    vacancy_items: Iterable[str],
    neutral: float = NEUTRAL_TEXT_SCORE,
) -> float:
    """Share of vacancy entries matched by at least one candidate entry.

    Blank entries are dropped before anything else, because an empty string
    would otherwise be a substring of every entry. So ``[""]`` counts as an
    empty list: when either side has nothing left, the neutral score is
    returned and missing data never penalizes a match.
    """
    candidate = [item for item in candidate_items if item and item.strip()]
    wanted = [item for item in vacancy_items if item and item.strip()]
    if not candidate or not wanted:
        return neutral

    matched = sum(
        1 for item in wanted if any(texts_overlap(item, own) for own in candidate)
    )
    return min(matched / len(wanted) * 100.0, 100.0)


def experience_score(
    candidate_experience: Iterable[str],
    vacancy_requirements: Iterable[str],
    neutral: float = NEUTRAL_TEXT_SCORE,
) -> float:
    """Score candidate experience against vacancy requirements."""
    return text_overlap_score(candidate_experience, vacancy_requirements, neutral)


def skills_score(
    candidate_skills: Iterable[str],
    vacancy_skills: Iterable[str],
    neutral: float = NEUTRAL_TEXT_SCORE,
) -> float:
    """Score candidate skills against vacancy skills."""
    return text_overlap_score(candidate_skills, vacancy_skills, neutral)


def location_score(
    vacancy: VacancyCandidate, default: float = DEFAULT_LOCATION_SCORE
) -> float:
    """Return the vacancy's precomputed location-affinity score."""
    value = vacancy.match_score
    if value is None or not math.isfinite(value):
        return default
    return value


def find_category_matches(
    preferred: Iterable[Category],
    vacancy_categories: Iterable[Category],
    weights: Mapping[CategoryRelationship, float] = DEFAULT_RELATIONSHIP_WEIGHTS,
    hierarchical: bool = True,
) -> list[CategoryMatch]:
    """Relate every preferred category to every vacancy category.

    Matches are reported with the candidate's category id, name and path.
    Pairs with no relationship are skipped.
    """
    vacancy_list = list(vacancy_categories)
    matches: list[CategoryMatch] = []

    for own in preferred:
        for other in vacancy_list:
            if own.id == other.id:
                kind = CategoryRelationship.EXACT
            elif hierarchical:
                kind = relationship(own, other)
            else:
                kind = CategoryRelationship.NONE

            if kind == CategoryRelationship.NONE:
                continue

            matches.append(
                CategoryMatch(
                    category_id=own.id,
                    category_name=own.name,
                    category_path=own.path_string,
                    match_type=kind,
                    match_score=weights[kind],
                )
            )

    return matches


def category_score(
    matches: list[CategoryMatch],
    bonus_step: float = 0.1,
    bonus_cap: float = 0.3,
) -> float:
    """Combine category matches into a single score.

    The strongest relationship dominates; each match adds ``bonus_step``
    up to ``bonus_cap``, and the total is capped at 1.0 before scaling.
    """
    if not matches:
        return 0.0

    best = max(match.match_score for match in matches)
    bonus = min(len(matches) * bonus_step, bonus_cap)
    return round(min(best + bonus, 1.0) * 100.0, 6)


def overall_score(
    *,
    location: float,
    category: float,
    experience: float,
    skills: float,
    weights: MatchWeights,
) -> int:
    """Weighted linear combination of the four factor scores, rounded."""
    total = (
        location * weights.location
        + category * weights.category
        + experience * weights.experience
        + skills * weights.skills
    )
    return round_half_up(total)
