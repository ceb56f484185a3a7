"""Cloud Function Entry Point.

This module provides the entry points for Google Cloud Functions and a
small local CLI. It's a thin wrapper that loads configuration, opens the
store and invokes the ingestion orchestrator.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any

import functions_framework
from flask import Request

from src.client_poller import ClientPoller
from src.core.config import Config, validate_config
from src.core.errors import StoreUnavailableError
from src.core.fetch_log import fetch_log_to_dict
from src.orchestrator import IngestionOrchestrator
from src.shell.api_client import EarthquakeApiClient
from src.shell.config_loader import load_config, load_config_from_env
from src.shell.local_state import ClientStateStore
from src.shell.notification_client import NotificationClient
from src.shell.scheduler import IntervalScheduler
from src.shell.store import EarthquakeStore, create_store


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        config = load_config(config_path)
    elif os.path.exists("config/config.yaml"):
        config = load_config()
    else:
        # Simple env-based config
        config = load_config_from_env()

    result = validate_config(config)
    for warning in result.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not result.valid:
        messages = "; ".join(f"{e.field}: {e.message}" for e in result.critical_errors)
        raise ValueError(f"Invalid configuration: {messages}")

    return config


def open_store(config: Config) -> EarthquakeStore:
    """Create the configured store and verify it is reachable.

    Raises:
        StoreUnavailableError: If the store cannot be reached
    """
    store = create_store(config)
    store.ping()
    return store


def _run_cycle() -> list[dict[str, Any]]:
    config = get_config()
    store = open_store(config)
    logs = IngestionOrchestrator(config, store).run_ingestion_cycle()
    return [fetch_log_to_dict(entry) for entry in logs]


@functions_framework.http
def earthquake_ingest(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    This function is triggered by Cloud Scheduler or direct HTTP requests.
    It runs one ingestion cycle over all enabled BMKG sources.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting ingestion cycle")

    try:
        logs = _run_cycle()
    except StoreUnavailableError as e:
        logger.error("Store unavailable: %s", e)
        return {"status": "error", "message": "Database unavailable"}, 503
    except Exception as e:
        logger.exception("Unexpected error in ingestion")
        return {"status": "error", "message": str(e)}, 500

    failed = [entry for entry in logs if entry["status"] != "success"]
    response = {
        "status": "success" if not failed else "partial_failure",
        "sources": logs,
        "records_stored": sum(entry["records_stored"] for entry in logs),
    }

    status_code = 200 if not failed else 207  # 207 = Multi-Status
    return response, status_code


@functions_framework.cloud_event
def earthquake_ingest_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point.

    Alternative trigger for Cloud Scheduler via Pub/Sub.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    logger.info("Starting ingestion cycle (Pub/Sub trigger)")

    try:
        logs = _run_cycle()
    except Exception:
        logger.exception("Unexpected error in ingestion")
        raise

    for entry in logs:
        if entry["status"] != "success":
            logger.error("Source %s failed: %s", entry["source_name"], entry["message"])


def build_client_poller(config: Config) -> ClientPoller:
    """Wire a client poller from configuration."""
    client = config.client
    return ClientPoller(
        api_client=EarthquakeApiClient(
            client.api_base_url,
            timeout=client.request_timeout_seconds,
        ),
        state_store=ClientStateStore(client.state_path, ledger_size=client.ledger_size),
        notifier=NotificationClient(
            client.notification_webhook_url,
            timeout=client.request_timeout_seconds,
        ),
        config=client,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="BMKG earthquake ingestion")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run one ingestion cycle and print the fetch logs (default)",
    )
    mode.add_argument(
        "--serve-scheduler",
        action="store_true",
        help="Run ingestion cycles on the configured interval until interrupted",
    )
    mode.add_argument(
        "--poll-client",
        action="store_true",
        help="Run the alerting client poller until interrupted",
    )
    args = parser.parse_args(argv)

    config = get_config()

    if args.poll_client:
        build_client_poller(config).scheduler().run_forever()
        return 0

    try:
        store = open_store(config)
    except StoreUnavailableError as e:
        logger.error("Store unavailable at startup: %s", e)
        return 1

    orchestrator = IngestionOrchestrator(config, store)

    if args.serve_scheduler:
        IntervalScheduler(
            task=orchestrator.run_ingestion_cycle,
            interval_seconds=config.ingestion_interval_seconds,
            name="ingestion",
            allow_overlap=True,
        ).run_forever()
        return 0

    logs = orchestrator.run_ingestion_cycle()
    print(json.dumps([fetch_log_to_dict(entry) for entry in logs], indent=2))
    return 0 if all(entry.success for entry in logs) else 1


# For local testing
if __name__ == "__main__":
    sys.exit(main())
