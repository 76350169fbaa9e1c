"""Data models for the matching engine."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.categories.models import CategoryRelationship


class MatchWeights(BaseModel):
    """Weights of the four factor scores in the overall score.

    Weights are applied as given; they are not renormalized.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    location: float = Field(..., ge=0.0, description="Location score weight")
    category: float = Field(..., ge=0.0, description="Category score weight")
    experience: float = Field(..., ge=0.0, description="Experience score weight")
    skills: float = Field(..., ge=0.0, description="Skills score weight")


class GeoPoint(BaseModel):
    """A latitude/longitude pair in degrees."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


def _none_to_list(value: Any) -> Any:
    if value is None:
        return []
    return value


class CandidatePreferences(BaseModel):
    """Candidate data the matching engine reads."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, description="Candidate id")
    preferred_categories: list[str] = Field(
        default_factory=list, description="Preferred category ids (order irrelevant)"
    )
    category_weights: dict[str, float] = Field(
        default_factory=dict,
        description="Per-category weights (advisory, not used by scoring)",
    )
    match_weights: MatchWeights | None = Field(
        default=None, description="Override of the default factor weights"
    )
    experience: list[str] = Field(
        default_factory=list, description="Free-text experience entries"
    )
    skills: list[str] = Field(default_factory=list, description="Free-text skills")
    location: GeoPoint | None = Field(default=None, description="Home location")
    radius_km: float | None = Field(
        default=None, gt=0.0, description="Preferred search radius in km"
    )

    @field_validator("category_weights", mode="before")
    @classmethod
    def coerce_missing_weights(cls, v: Any) -> Any:
        if v is None:
            return {}
        return v

    @field_validator("preferred_categories", "experience", "skills", mode="before")
    @classmethod
    def coerce_missing_lists(cls, v: Any) -> Any:
        return _none_to_list(v)

    @field_validator("preferred_categories", mode="after")
    @classmethod
    def dedupe_categories(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> CandidatePreferences:
        """Deserialize from a dictionary."""
        return cls.model_validate(data)


class VacancyCandidate(BaseModel):
    """The matching engine's view of a vacancy.

    Records come from loosely-typed storage, so missing fields default here
    rather than inside the scorers. ``match_score`` is the location-affinity
    score supplied by the location collaborator: non-numeric or non-finite
    values become None (the location scorer substitutes its default) and
    numbers are clamped into [0, 100].
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, description="Vacancy id")
    title: str = Field(default="", description="Vacancy title")
    company: str = Field(default="", description="Company name")
    branch_name: str = Field(default="", description="Branch name")
    lat: float | None = Field(default=None, description="Latitude")
    lng: float | None = Field(default=None, description="Longitude")
    match_score: float | None = Field(
        default=None, description="Precomputed location-affinity score (0-100)"
    )
    requirements: list[str] = Field(
        default_factory=list, description="Free-text requirements"
    )
    skills: list[str] = Field(default_factory=list, description="Free-text skills")
    distance_km: float | None = Field(
        default=None, description="Distance from the candidate, when known"
    )

    @field_validator("title", "company", "branch_name", mode="before")
    @classmethod
    def coerce_missing_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v

    @field_validator("requirements", "skills", mode="before")
    @classmethod
    def coerce_missing_lists(cls, v: Any) -> Any:
        return _none_to_list(v)

    @field_validator("match_score", mode="before")
    @classmethod
    def normalize_match_score(cls, v: Any) -> float | None:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        value = float(v)
        if not math.isfinite(value):
            return None
        return min(max(value, 0.0), 100.0)

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> VacancyCandidate:
        """Deserialize from a dictionary."""
        return cls.model_validate(data)


class MatchFilters(BaseModel):
    """Caller-supplied options for one matching request."""

    model_config = ConfigDict(extra="ignore")

    radius_km: float | None = Field(
        default=None, gt=0.0, description="Explicit search radius override"
    )
    category_ids: list[str] = Field(
        default_factory=list,
        description="Category filter (only the first id is applied)",
    )
    include_hierarchical: bool = Field(
        default=False, description="Include descendants of the filter category"
    )
    min_category_score: float | None = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Drop vacancies scoring below this category score (detailed only)",
    )
    enable_detailed_matching: bool = Field(
        default=False, description="Compute all factors and match reasons"
    )

    @field_validator("category_ids", mode="before")
    @classmethod
    def coerce_missing_category_ids(cls, v: Any) -> Any:
        return _none_to_list(v)


class MatchBucket(str, Enum):
    """Display tier of a match score."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


@dataclass(frozen=True)
class CategoryMatch:
    """One relationship between a preferred category and a vacancy category."""

    category_id: str
    category_name: str
    category_path: str
    match_type: CategoryRelationship
    match_score: float

    def __post_init__(self) -> None:
        if self.match_type == CategoryRelationship.NONE:
            raise ValueError("CategoryMatch cannot have match_type 'none'")
        if not (0.0 < self.match_score <= 1.0):
            raise ValueError(
                f"match_score must be in (0.0, 1.0] (got {self.match_score})"
            )


@dataclass(frozen=True)
class MatchFactors:
    """Factor scores for one candidate/vacancy pair."""

    location_score: float
    category_score: float
    experience_score: float
    skills_score: float
    overall_score: int

    def __post_init__(self) -> None:
        for name in (
            "location_score",
            "category_score",
            "experience_score",
            "skills_score",
        ):
            value = getattr(self, name)
            if not (0.0 <= value <= 100.0):
                raise ValueError(f"{name} must be between 0 and 100 (got {value})")


@dataclass(frozen=True)
class CategorySummary:
    """A vacancy category as shown on a match result."""

    id: str
    name: str
    path: str


@dataclass(frozen=True)
class VacancySummary:
    """Vacancy fields copied onto a match result."""

    id: str
    title: str
    company: str
    branch_name: str
    lat: float | None
    lng: float | None
    categories: list[CategorySummary] | None = None


@dataclass
class MatchResult:
    """A ranked, bucketed vacancy for a candidate."""

    vacancy: VacancySummary
    score: int
    color: MatchBucket
    percentage: str
    match_factors: MatchFactors | None = None
    category_matches: list[CategoryMatch] | None = None
    match_reasons: list[str] | None = None

    def __post_init__(self) -> None:
        try:
            self.color = MatchBucket(self.color)
        except ValueError:
            raise ValueError(
                f"color must be one of: green, yellow, red (got {self.color})"
            ) from None

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dictionary."""
        data = asdict(self)
        data["color"] = self.color.value
        if data["category_matches"] is not None:
            for match in data["category_matches"]:
                match["match_type"] = CategoryRelationship(match["match_type"]).value
        return data


@dataclass(frozen=True)
class TopCategory:
    """A category ranked by how many matches carry it."""

    category_id: str
    category_name: str
    match_count: int


@dataclass
class MatchStatistics:
    """Aggregate view over a candidate's match results."""

    total_matches: int
    average_score: int
    category_breakdown: dict[str, int] = field(default_factory=dict)
    top_categories: list[TopCategory] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.total_matches < 0:
            raise ValueError(
                f"total_matches must be non-negative (got {self.total_matches})"
            )

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dictionary."""
        return asdict(self)
