"""Marketplace datasets and in-memory collaborators.

Public API:
    - DatasetLoader: Load and validate YAML/JSON datasets
    - MarketplaceDataset: Categories, candidates and vacancies
    - VacancyRecord: Stored vacancy with category assignments
    - InMemoryMarketplace: Collaborator implementation over a dataset
"""

from src.catalog.loader import DatasetLoader
from src.catalog.memory import InMemoryMarketplace, haversine_km
from src.catalog.models import MarketplaceDataset, VacancyRecord

__all__ = [
    "DatasetLoader",
    "MarketplaceDataset",
    "VacancyRecord",
    "InMemoryMarketplace",
    "haversine_km",
]
