"""
Main Entry Point - User Feed Sync and Geolocation Enrichment

Provides simple interfaces to run either service once or on a schedule.

    python -m src.main run sync
    python -m src.main run enrich
    python -m src.main schedule all
"""

import sys
import os
from typing import Callable

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.coreutils.config import (
    EnrichmentConfig,
    SyncConfig,
    load_enrichment_config,
    load_logging_config,
    load_sync_config,
)
from src.coreutils.errors import ConfigError
from src.coreutils.logging import setup_logging
from src.extract.feed_api import UserFeedClient
from src.extract.geolocation_api import GeoLocationClient
from src.extract.rate_limiter import RateLimiter
from src.load.user_store import UserStore
from src.orchestration.enrichment_pipeline import EnrichmentOrchestrator, EnrichmentResult
from src.orchestration.geo_enricher import GeoEnricher
from src.orchestration.scheduler import ServiceScheduler
from src.orchestration.sync_pipeline import SyncResult, run_sync

SERVICES = ("sync", "enrich")


def build_sync_service(config: SyncConfig) -> Callable[[], SyncResult]:
    """
    Build the sync run callable

    The feed client and its rate limiter live for the whole process so the
    call window carries over between runs. The store is opened per run.
    """
    feed = UserFeedClient(config.api_base_url, rate_limiter=RateLimiter())

    def run() -> SyncResult:
        with UserStore(config.store_path) as store:
            return run_sync(feed, store)

    return run


def build_enrichment_service(config: EnrichmentConfig) -> Callable[[], EnrichmentResult]:
    """Build the enrichment run callable"""
    client = GeoLocationClient(config.geo_api_url, config.geo_api_key)

    def run() -> EnrichmentResult:
        with UserStore(config.store_path) as store:
            orchestrator = EnrichmentOrchestrator(
                store, GeoEnricher(client, store), batch_size=config.batch_size
            )
            return orchestrator.run()

    return run


def build_scheduler(service: str) -> ServiceScheduler:
    """
    Create a scheduler for one service or for both ("all")

    Raises:
        ConfigError: If required configuration is missing
    """
    scheduler = ServiceScheduler()

    if service in ("sync", "all"):
        sync_config = load_sync_config()
        scheduler.add_job("sync", build_sync_service(sync_config), sync_config.interval_minutes)

    if service in ("enrich", "all"):
        enrichment_config = load_enrichment_config()
        scheduler.add_job(
            "enrich",
            build_enrichment_service(enrichment_config),
            enrichment_config.interval_minutes,
        )

    return scheduler


def run_once(service: str):
    """Run one pass of a service and return its result"""
    if service == "sync":
        return build_sync_service(load_sync_config())()
    if service == "enrich":
        return build_enrichment_service(load_enrichment_config())()
    raise ValueError(f"Unknown service: {service}")


def main(argv=None) -> int:
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="User feed sync and IP geolocation enrichment")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one pass of a service")
    run_parser.add_argument("service", choices=SERVICES)

    schedule_parser = subparsers.add_parser("schedule", help="Run services on their intervals")
    schedule_parser.add_argument(
        "service",
        choices=SERVICES + ("all",),
        help=(
            "Service to schedule. DuckDB allows one writer process per file, so use "
            "'all' when sync and enrich share the same STORE_PATH"
        ),
    )

    args = parser.parse_args(argv)

    try:
        logging_config = load_logging_config()
    except ConfigError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1

    service_name = "pipeline" if args.service == "all" else args.service
    logger = setup_logging(service_name, logging_config.level, logging_config.log_dir)

    try:
        if args.command == "run":
            logger.info(f"🚀 Running {args.service} once")
            result = run_once(args.service)
            print(f"✅ {args.service} completed: {result}")
            return 0

        scheduler = build_scheduler(args.service)
        scheduler.start()
        return 0

    except ConfigError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1
    except Exception as e:
        logger.error(f"❌ {args.service} failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
