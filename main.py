from runemetrics.logging_config import LOGGER  # noqa: F401 # isort:skip
import argparse
import asyncio
import logging
import signal
import sys
from datetime import timedelta
from typing import Optional

from apscheduler.triggers.cron import CronTrigger

from runemetrics.automations import RuneMetricsAutomations
from runemetrics.cache.snapshot_cache import SnapshotCache
from runemetrics.common.change_detector import ChangeDetector
from runemetrics.common.dashboard import render_dashboard
from runemetrics.common.reconciler import set_target_level
from runemetrics.config import CONFIG
from runemetrics.event_emitter import event_emitter
from runemetrics.http import HTTP
from runemetrics.models.profile import PlayerSnapshot
from runemetrics.services.profile_service import ProfileService
from runemetrics.storage.data import find_skill_id, get_skill_name
from runemetrics.storage.snapshot_store import SnapshotStore
from runemetrics.tasks.job_refresh_profile import job_refresh_profile

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[2J\033[H"


def parse_target(value: str) -> tuple[int, int]:
    """argparse type for ``SKILL=LEVEL``; skill by name or id."""
    skill, separator, level = value.partition("=")
    if not separator or not level.strip().isdigit():
        raise argparse.ArgumentTypeError(f"Expected SKILL=LEVEL, got '{value}'")

    skill_id = find_skill_id(skill)
    if skill_id is None:
        raise argparse.ArgumentTypeError(f"Unknown skill '{skill}'")

    return skill_id, int(level)


def parse_cron(value: str) -> str:
    """argparse type for a five field crontab expression."""
    try:
        CronTrigger.from_crontab(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid crontab '{value}': {e}")

    return value


def parse_cli_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="runemetrics",
        description="Tracks RuneScape skill progress from the RuneMetrics profile.",
    )
    parser.add_argument("player", nargs="?", default=CONFIG.PLAYER_NAME)
    parser.add_argument(
        "--update",
        type=parse_cron,
        default=CONFIG.UPDATE_CRON,
        help="When to fetch metrics (cron syntax).",
    )
    parser.add_argument(
        "--marker-time",
        type=int,
        default=CONFIG.MARKER_TIME,
        help="How long to highlight new entries, in minutes.",
    )
    parser.add_argument(
        "--activities",
        type=int,
        default=CONFIG.ACTIVITIES,
        help="Number of feed entries to request per fetch.",
    )
    parser.add_argument(
        "--page", type=int, default=0, help="Event log page to display."
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        default=None,
        help="Log level override.",
    )
    parser.add_argument(
        "--target",
        type=parse_target,
        metavar="SKILL=LEVEL",
        help="Set a target level on the cached snapshot and exit.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Run a single refresh, print the dashboard and exit.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Prints current version and exits.",
    )

    return parser.parse_args(argv)


class Dashboard:
    def __init__(self, detector: ChangeDetector, marker_time: int, page: int):
        self.detector = detector
        self.marker_time = timedelta(minutes=marker_time)
        self.page = page

    async def update(
        self, snapshot: Optional[PlayerSnapshot], error: Optional[str] = None
    ) -> None:
        output = render_dashboard(
            snapshot,
            self.detector,
            self.marker_time,
            page=self.page,
            page_size=CONFIG.PAGE_SIZE,
            error=error,
        )
        print(CLEAR_SCREEN + output, flush=True)


async def apply_target(cache: SnapshotCache, skill_id: int, level: int) -> bool:
    snapshot = await cache.load()
    if snapshot is None:
        logger.error("No cached snapshot yet, run a refresh before setting targets")
        return False

    try:
        snapshot = set_target_level(snapshot, skill_id, level)
    except ValueError as e:
        logger.error(e)
        return False

    await cache.publish(snapshot)
    if not await cache.persist():
        return False

    stored = snapshot.get_skill(skill_id)
    assert stored is not None
    print(f"{get_skill_name(skill_id)} target level: {stored.target_level or 'unset'}")
    return True


async def run(args: argparse.Namespace) -> int:
    cache = SnapshotCache(SnapshotStore(CONFIG.CACHE_DIR or None))

    if args.target:
        return 0 if await apply_target(cache, *args.target) else 1

    await cache.load()

    detector = ChangeDetector()
    dashboard = Dashboard(detector, args.marker_time, args.page)
    service = ProfileService(HTTP)

    if args.once:
        result = await job_refresh_profile(
            service, cache, detector, args.player, args.activities, dashboard.update
        )
        await event_emitter.emit("shutdown")
        return 0 if result else 1

    automations = RuneMetricsAutomations(
        args.update,
        job_refresh_profile,
        service,
        cache,
        detector,
        args.player,
        args.activities,
        dashboard.update,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    automations.start()
    logger.info(f"Tracking {args.player} on '{args.update}'")

    await stop_event.wait()

    logger.info("Received shutdown signal, cleaning up...")
    await automations.stop()
    await event_emitter.emit("shutdown")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_cli_arguments(argv)

    if args.version:
        print(f"runemetrics {CONFIG.VERSION}")
        return 0

    if args.log_level:
        LOGGER.set_level(args.log_level)

    if not args.player and not args.target:
        logger.critical("Usage: runemetrics <player>")
        return 1

    logger.info(f"Starting RuneMetrics tracker v{CONFIG.VERSION}")
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
