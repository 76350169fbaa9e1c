"""Marketplace dataset loading and validation utilities."""

from __future__ import annotations

import json
from pathlib import Path

import yaml

from src.catalog.models import MarketplaceDataset
from src.categories.hierarchy import validate_category_tree


class DatasetLoader:
    """Load and validate marketplace datasets from YAML or JSON."""

    def load(self, path: Path | str) -> MarketplaceDataset:
        """Load and validate a dataset file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file cannot be parsed or is not a mapping.
            pydantic.ValidationError: If records do not match the schema.
        """
        dataset_path = Path(path)
        if not dataset_path.exists():
            raise FileNotFoundError(f"Dataset not found: {dataset_path}")

        suffix = dataset_path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            data = self._load_yaml(dataset_path)
        elif suffix == ".json":
            data = self._load_json(dataset_path)
        else:
            data = self._load_unknown(dataset_path)

        return MarketplaceDataset.model_validate(data)

    def validate(self, dataset: MarketplaceDataset) -> list[str]:
        """Return warnings for inconsistent datasets."""
        warnings = validate_category_tree(dataset.categories)
        known = {category.id for category in dataset.categories}

        for vacancy in dataset.vacancies:
            for category_id in vacancy.category_ids:
                if category_id not in known:
                    warnings.append(
                        f"Vacancy '{vacancy.id}' is assigned to unknown category "
                        f"'{category_id}'"
                    )
            if vacancy.active and (vacancy.lat is None or vacancy.lng is None):
                warnings.append(f"Vacancy '{vacancy.id}' has no coordinates")

        for candidate in dataset.candidates:
            for category_id in candidate.preferred_categories:
                if category_id not in known:
                    warnings.append(
                        f"Candidate '{candidate.id}' prefers unknown category "
                        f"'{category_id}'"
                    )

        return warnings

    def _load_yaml(self, path: Path) -> dict:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML dataset: {path}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Dataset must be a mapping/dict: {path}")
        return data

    def _load_json(self, path: Path) -> dict:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON dataset: {path}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Dataset must be a mapping/dict: {path}")
        return data

    def _load_unknown(self, path: Path) -> dict:
        """Auto-detect and load a dataset when the file extension is unknown."""
        raw = path.read_text(encoding="utf-8")
        raw_stripped = raw.lstrip()

        # Try JSON first if it looks like JSON, otherwise fall back to YAML.
        if raw_stripped.startswith("{") or raw_stripped.startswith("["):
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                data = None
            else:
                if not isinstance(data, dict):
                    raise ValueError(f"Dataset must be a mapping/dict: {path}")
                return data

        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid dataset format: {path}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Dataset must be a mapping/dict: {path}")
        return data
