"""CLI entry point for the scheduler: run one tick of the price tracker jobs.

Usage:
  price-tracker run price-update
  price-tracker run alert-check
  price-tracker run all --log-level DEBUG

Prints the JSON run summary on stdout (logs go to stderr). Exit status:
0 when the run completed, 2 on a configuration error (nothing was run),
1 on an unexpected fatal error.
"""
import argparse
import asyncio
import json
import logging
import sys
import time

from price_tracker.container import Container, init_container
from price_tracker.db.sessions import init_db
from price_tracker.exceptions import ConfigurationError
from price_tracker.logging_config import configure_logging
from price_tracker.schemas import (AlertCheckSummary, PriceUpdateSummary,
                                   RunSummary)
from price_tracker.services import build_run_summary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2

JOBS = ("price-update", "alert-check", "all")


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


async def run_jobs(container: Container, job: str) -> RunSummary:
    """Run the selected job(s); prices first so alerts see fresh values."""
    started = time.monotonic()
    init_db(container.engine())
    prices: PriceUpdateSummary | None = None
    alerts: AlertCheckSummary | None = None
    try:
        if job in ("price-update", "all"):
            prices = await container.price_update_job().run()
        if job in ("alert-check", "all"):
            alerts = await container.alert_check_job().run()
    finally:
        await container.registry().close()
    return build_run_summary(prices, alerts, started)


def cmd_run(args: argparse.Namespace) -> int:
    container = init_container()
    settings = container.settings()
    configure_logging(args.log_level or settings.log_level)

    if args.job in ("price-update", "all"):
        try:
            settings.require_provider_credentials()
        except ConfigurationError as exc:
            logger.error("Configuration error: %s", exc)
            print_json(RunSummary(completed=False).model_dump(mode="json"))
            return EXIT_CONFIG

    try:
        summary = asyncio.run(run_jobs(container, args.job))
    except Exception:  # pylint: disable=broad-except
        logger.exception("Run of %s aborted", args.job)
        print_json(RunSummary(completed=False).model_dump(mode="json"))
        return EXIT_FATAL

    logger.info(
        "Run of %s completed in %d ms: %d user(s), %d asset(s) updated, %d failed, "
        "%d alert(s) triggered, %d notification(s) sent",
        args.job,
        summary.duration_ms,
        summary.users_processed,
        summary.assets_updated,
        summary.assets_failed,
        summary.alerts_triggered,
        summary.notifications_sent,
    )
    print_json(summary.model_dump(mode="json"))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="price-tracker",
        description="Run price tracker jobs (meant to be called by a scheduler).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    run = subparsers.add_parser("run", help="Run one tick of a job")
    run.add_argument("job", choices=JOBS, help="Job to run")
    run.add_argument("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    run.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
