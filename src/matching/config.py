"""Configuration settings for the matching engine."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.categories.models import CategoryRelationship
from src.matching.models import MatchWeights


class MatchingConfig(BaseSettings):
    """Matching engine configuration settings.

    All settings have sensible defaults and can be overridden via
    environment variables with `MATCHING_` prefix or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="MATCHING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Default factor weights (must sum to 1.0)
    weight_location: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.3,
        description="Weight for the location-affinity score",
    )
    weight_category: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.4,
        description="Weight for the category score",
    )
    weight_experience: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.2,
        description="Weight for the experience score",
    )
    weight_skills: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.1,
        description="Weight for the skills score",
    )

    # Category relationship weights
    exact_match_weight: Annotated[float, Field(gt=0.0, le=1.0)] = Field(
        default=1.0,
        description="Weight for identical categories",
    )
    parent_match_weight: Annotated[float, Field(gt=0.0, le=1.0)] = Field(
        default=0.7,
        description="Weight when the candidate prefers an ancestor of the vacancy category",
    )
    child_match_weight: Annotated[float, Field(gt=0.0, le=1.0)] = Field(
        default=0.8,
        description="Weight when the candidate prefers a descendant of the vacancy category",
    )
    sibling_match_weight: Annotated[float, Field(gt=0.0, le=1.0)] = Field(
        default=0.5,
        description="Weight for categories sharing the same parent",
    )
    category_bonus_step: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.1,
        description="Bonus added per category match",
    )
    category_bonus_cap: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.3,
        description="Maximum total bonus for multiple category matches",
    )
    enable_hierarchical_matching: bool = Field(
        default=True,
        description="Score parent/child/sibling relationships (False = exact only)",
    )

    # Scorer defaults
    default_location_score: Annotated[float, Field(ge=0.0, le=100.0)] = Field(
        default=80.0,
        description="Location score used when a vacancy has no usable match score",
    )
    neutral_text_score: Annotated[float, Field(ge=0.0, le=100.0)] = Field(
        default=50.0,
        description="Experience/skills score when either side has no data",
    )
    default_radius_km: Annotated[float, Field(gt=0.0)] = Field(
        default=10.0,
        description="Search radius when neither filters nor candidate set one",
    )

    # Buckets
    green_threshold: Annotated[int, Field(ge=0, le=100)] = Field(
        default=90,
        description="Minimum score for the green bucket",
    )
    yellow_threshold: Annotated[int, Field(ge=0, le=100)] = Field(
        default=70,
        description="Minimum score for the yellow bucket",
    )

    # Match reasons (strictly greater than)
    reason_threshold_category: Annotated[float, Field(ge=0.0, le=100.0)] = 70.0
    reason_threshold_location: Annotated[float, Field(ge=0.0, le=100.0)] = 80.0
    reason_threshold_experience: Annotated[float, Field(ge=0.0, le=100.0)] = 70.0
    reason_threshold_skills: Annotated[float, Field(ge=0.0, le=100.0)] = 70.0

    # Statistics
    top_categories_limit: Annotated[int, Field(gt=0)] = Field(
        default=5,
        description="Number of categories reported in top_categories",
    )

    # Orchestration
    max_concurrency: Annotated[int, Field(gt=0)] = Field(
        default=8,
        description="Maximum concurrent per-vacancy category lookups",
    )
    request_timeout_seconds: Annotated[float, Field(gt=0.0)] | None = Field(
        default=None,
        description="Deadline for one matching request (None = no deadline)",
    )

    @model_validator(mode="after")
    def validate_weights_sum_to_one(self) -> MatchingConfig:
        """Ensure default factor weights sum to 1.0 (within tolerance)."""
        weight_sum = (
            self.weight_location
            + self.weight_category
            + self.weight_experience
            + self.weight_skills
        )
        if abs(weight_sum - 1.0) > 1e-6:
            raise ValueError(
                "Matching weights must sum to 1.0. "
                f"Got {weight_sum:.6f} "
                f"(location={self.weight_location}, category={self.weight_category}, "
                f"experience={self.weight_experience}, skills={self.weight_skills})."
            )
        return self

    @model_validator(mode="after")
    def validate_bucket_thresholds(self) -> MatchingConfig:
        if self.green_threshold <= self.yellow_threshold:
            raise ValueError(
                "green_threshold must be greater than yellow_threshold "
                f"(green={self.green_threshold}, yellow={self.yellow_threshold})."
            )
        return self

    @property
    def default_weights(self) -> MatchWeights:
        """Factor weights applied when a candidate has no override."""
        return MatchWeights(
            location=self.weight_location,
            category=self.weight_category,
            experience=self.weight_experience,
            skills=self.weight_skills,
        )

    @property
    def relationship_weights(self) -> Mapping[CategoryRelationship, float]:
        """Per-relationship category weights (NONE is never scored)."""
        return MappingProxyType(
            {
                CategoryRelationship.EXACT: self.exact_match_weight,
                CategoryRelationship.PARENT: self.parent_match_weight,
                CategoryRelationship.CHILD: self.child_match_weight,
                CategoryRelationship.SIBLING: self.sibling_match_weight,
            }
        )


# Singleton instance for easy import
_matching_config: MatchingConfig | None = None


def get_matching_config() -> MatchingConfig:
    """Get the matching configuration singleton."""
    global _matching_config
    if _matching_config is None:
        _matching_config = MatchingConfig()
    return _matching_config


def reset_matching_config() -> None:
    """Reset the matching configuration singleton (useful for testing)."""
    global _matching_config
    _matching_config = None
