"""Main entry point for Vacancy Match."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from src import __version__
from src.config.settings import Settings
from src.utils.logging import configure_logging, get_logger


def _min_category_score(value: str) -> float:
    score = float(value)
    if not (0.0 <= score <= 100.0):
        raise argparse.ArgumentTypeError(
            "--min-category-score must be between 0 and 100"
        )
    return score


def _radius_km(value: str) -> float:
    radius = float(value)
    if radius <= 0.0:
        raise argparse.ArgumentTypeError("--radius-km must be greater than 0")
    return radius


def _dump_json(payload: object) -> str:
    def _default(value: object):
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        model_dump = getattr(value, "model_dump", None)
        if callable(model_dump):
            return model_dump(mode="json")
        return str(value)

    return json.dumps(payload, indent=2, default=_default)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="vacancy-match",
        description="Vacancy Match: rank vacancies for a candidate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src match cand-ana --detailed
  python -m src match cand-ana --category frontend --include-hierarchical
  python -m src stats cand-ana --json
  python -m src validate --dataset data/marketplace.example.yaml
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the log level (overrides settings)",
    )
    parser.add_argument(
        "--dataset",
        type=Path,
        default=None,
        help="Marketplace dataset file (overrides DATASET_PATH)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
    )

    match_parser = subparsers.add_parser(
        "match",
        help="Rank nearby vacancies for a candidate",
    )
    match_parser.add_argument("candidate_id", help="Candidate id")
    match_parser.add_argument(
        "--radius-km",
        type=_radius_km,
        default=None,
        help="Search radius override in km",
    )
    match_parser.add_argument(
        "--category",
        dest="category_ids",
        action="append",
        default=None,
        help="Category filter (repeatable; only the first is applied)",
    )
    match_parser.add_argument(
        "--include-hierarchical",
        action="store_true",
        help="Include descendants of the filter category",
    )
    match_parser.add_argument(
        "--min-category-score",
        type=_min_category_score,
        default=None,
        help="Drop vacancies below this category score (requires --detailed)",
    )
    match_parser.add_argument(
        "--detailed",
        action="store_true",
        help="Compute category/experience/skills factors and reasons",
    )
    match_parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )

    stats_parser = subparsers.add_parser(
        "stats",
        help="Show match statistics for a candidate",
    )
    stats_parser.add_argument("candidate_id", help="Candidate id")
    stats_parser.add_argument(
        "--json",
        action="store_true",
        help="Print statistics as JSON",
    )

    subparsers.add_parser(
        "validate",
        help="Check the dataset for inconsistencies",
    )

    return parser


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Load settings
    try:
        settings = Settings()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Configure logging
    log_level = parsed.log_level or settings.log_level
    configure_logging(level=log_level)
    logger = get_logger("cli")

    # If no command specified, show help
    if parsed.command is None:
        parser.print_help()
        return 0

    from src.catalog.loader import DatasetLoader
    from src.catalog.memory import InMemoryMarketplace

    dataset_path = parsed.dataset or settings.dataset_path
    loader = DatasetLoader()
    try:
        dataset = loader.load(dataset_path)
    except Exception as e:
        print(f"Error loading dataset: {e}", file=sys.stderr)
        return 1

    logger.debug(f"Vacancy Match v{__version__} running '{parsed.command}'")

    if parsed.command == "validate":
        warnings = loader.validate(dataset)
        for warning in warnings:
            print(f"WARNING: {warning}")
        print(
            f"Dataset: {len(dataset.categories)} categories, "
            f"{len(dataset.candidates)} candidates, {len(dataset.vacancies)} vacancies"
        )
        return 1 if warnings else 0

    from src.matching.models import MatchFilters
    from src.matching.service import MatchService

    marketplace = InMemoryMarketplace(dataset)
    service = MatchService(
        location_provider=marketplace,
        category_provider=marketplace,
        candidate_store=marketplace,
    )

    if parsed.command == "match":
        filters = MatchFilters(
            radius_km=parsed.radius_km,
            category_ids=parsed.category_ids or [],
            include_hierarchical=parsed.include_hierarchical,
            min_category_score=parsed.min_category_score,
            enable_detailed_matching=parsed.detailed,
        )
        results = asyncio.run(service.find_matches(parsed.candidate_id, filters))

        if parsed.json:
            print(_dump_json(results))
            return 0

        if not results:
            print(f"No matches for candidate {parsed.candidate_id}")
            return 0
        for index, result in enumerate(results, start=1):
            print(f"{index}. {service.format_result(result)}")
            print()
        return 0

    if parsed.command == "stats":
        statistics = asyncio.run(service.match_statistics(parsed.candidate_id))

        if parsed.json:
            print(_dump_json(statistics))
            return 0

        print(f"Total matches: {statistics.total_matches}")
        print(f"Average score: {statistics.average_score}")
        if statistics.top_categories:
            print("Top categories:")
            for top in statistics.top_categories:
                print(f"  {top.category_name} ({top.category_id}): {top.match_count}")
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
