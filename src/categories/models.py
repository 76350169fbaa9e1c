"""Data models for the category taxonomy."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

PATH_SEPARATOR = "."


class CategoryRelationship(str, Enum):
    """Topological relationship between two categories.

    Read from the point of view of the first category: PARENT means the
    first category is an ancestor of the second one.
    """

    EXACT = "exact"
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    NONE = "none"


class Category(BaseModel):
    """A node of the category tree."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., min_length=1, description="Unique category id")
    name: str = Field(..., description="Display name")
    path: list[str] = Field(
        default_factory=list,
        description="Ancestor ids from the root down to this category (inclusive)",
    )
    parent_id: str | None = Field(default=None, description="Parent id (None = root)")
    description: str | None = Field(default=None, description="Optional description")
    is_active: bool = Field(default=True, description="Inactive categories are hidden")

    @property
    def path_string(self) -> str:
        """Dot-joined path, e.g. ``tech.frontend.react``."""
        return PATH_SEPARATOR.join(self.path)

    @property
    def level(self) -> int:
        """Depth in the tree (0 = root, -1 for an empty path)."""
        return len(self.path) - 1

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> Category:
        """Deserialize from a dictionary."""
        return cls.model_validate(data)
