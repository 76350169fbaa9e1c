"""Aggregate statistics over match results."""

from __future__ import annotations

from collections.abc import Sequence

from src.matching.models import MatchResult, MatchStatistics, TopCategory
from src.matching.scorers import round_half_up


def aggregate_statistics(
    results: Sequence[MatchResult], top_n: int = 5
) -> MatchStatistics:
    """Summarize match results.

    Category counts come from the categories attached to each result's
    vacancy, which are only present for detailed matches. Top categories
    are ordered by count, ties keeping first-observed order, and are named
    after the first result that carried them.
    """
    if not results:
        return MatchStatistics(total_matches=0, average_score=0)

    average = sum(result.score for result in results) / len(results)

    breakdown: dict[str, int] = {}
    names: dict[str, str] = {}
    for result in results:
        for category in result.vacancy.categories or []:
            breakdown[category.id] = breakdown.get(category.id, 0) + 1
            names.setdefault(category.id, category.name)

    ranked = sorted(breakdown.items(), key=lambda item: item[1], reverse=True)
    top_categories = [
        TopCategory(category_id=category_id, category_name=names[category_id], match_count=count)
        for category_id, count in ranked[:top_n]
    ]

    return MatchStatistics(
        total_matches=len(results),
        average_score=round_half_up(average),
        category_breakdown=breakdown,
        top_categories=top_categories,
    )
