"""Data models for marketplace datasets."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.categories.models import Category
from src.matching.models import CandidatePreferences, VacancyCandidate


class VacancyRecord(VacancyCandidate):
    """A stored vacancy with its category assignments."""

    active: bool = Field(default=True, description="Inactive vacancies are never matched")
    category_ids: list[str] = Field(
        default_factory=list, description="Assigned category ids"
    )

    def to_candidate(self, distance_km: float | None = None) -> VacancyCandidate:
        """Return the engine's view of this vacancy."""
        data = self.model_dump(exclude={"active", "category_ids"})
        data["distance_km"] = distance_km
        return VacancyCandidate.model_validate(data)


class MarketplaceDataset(BaseModel):
    """Categories, candidates and vacancies loaded together."""

    model_config = ConfigDict(extra="ignore")

    categories: list[Category] = Field(default_factory=list)
    candidates: list[CandidatePreferences] = Field(default_factory=list)
    vacancies: list[VacancyRecord] = Field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> MarketplaceDataset:
        """Deserialize from a dictionary."""
        return cls.model_validate(data)
