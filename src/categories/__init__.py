"""Category taxonomy and hierarchy resolution.

Public API:
    - Category: Category tree node model
    - CategoryRelationship: Relationship between two categories
    - relationship: Resolve the relationship between two categories
    - descendant_ids: Ids below a category
    - validate_category_tree: Consistency checks for a category tree
"""

from src.categories.hierarchy import (
    descendant_ids,
    relationship,
    validate_category_tree,
)
from src.categories.models import Category, CategoryRelationship

__all__ = [
    "Category",
    "CategoryRelationship",
    "relationship",
    "descendant_ids",
    "validate_category_tree",
]
