#!/usr/bin/env python3
"""Run one BMKG ingestion cycle and print the fetch logs.

Usage:
    # Ingest into the configured store
    python scripts/run_ingestion.py

    # Ingest only one source
    python scripts/run_ingestion.py --source autogempa

    # Ingest into a local SQLite file
    STORE_BACKEND=sqlite SQLITE_PATH=data/earthquakes.db python scripts/run_ingestion.py

Environment:
    CONFIG_PATH: Path to config file (default: environment variables)
    STORE_BACKEND: memory, sqlite or firestore
"""

import argparse
import dataclasses
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.errors import StoreUnavailableError
from src.main import get_config, open_store
from src.orchestrator import IngestionOrchestrator

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Run one BMKG ingestion cycle")
    parser.add_argument(
        "--source",
        action="append",
        default=None,
        help="Only ingest this source (repeatable)",
    )
    args = parser.parse_args()

    config = get_config()

    if args.source:
        known = {s.name for s in config.sources}
        unknown = [name for name in args.source if name not in known]
        if unknown:
            logger.error("Unknown source(s): %s", ", ".join(unknown))
            return 1
        config = dataclasses.replace(
            config,
            sources=[s for s in config.sources if s.name in args.source],
        )

    try:
        store = open_store(config)
    except StoreUnavailableError as e:
        logger.error("Store unavailable: %s", e)
        return 1

    logs = IngestionOrchestrator(config, store).run_ingestion_cycle()

    logger.info("=" * 50)
    logger.info("Ingestion Summary:")
    for entry in logs:
        status = "✓" if entry.success else "✗"
        logger.info("  %s %s: %s", status, entry.source_name, entry.message)

    return 0 if all(entry.success for entry in logs) else 1


if __name__ == "__main__":
    sys.exit(main())
