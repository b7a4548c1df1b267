import logging
import time
from typing import Awaitable, Callable, Optional

from runemetrics.cache.snapshot_cache import SnapshotCache
from runemetrics.common.change_detector import ChangeDetector
from runemetrics.common.reconciler import ReconcileResult, reconcile
from runemetrics.exceptions.profile_exceptions import ProfileError
from runemetrics.http import HttpException
from runemetrics.models.profile import PlayerSnapshot
from runemetrics.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[Optional[PlayerSnapshot], Optional[str]], Awaitable[None]]


async def job_refresh_profile(
    service: ProfileService,
    cache: SnapshotCache,
    detector: ChangeDetector,
    player: str,
    activities: int = 20,
    on_update: Optional[UpdateCallback] = None,
) -> Optional[ReconcileResult]:
    """Runs one poll cycle for ``player``.

    A failed fetch leaves the cached snapshot untouched and returns None.
    """
    start_time = time.perf_counter()

    try:
        fresh = await service.get_player_snapshot(player, activities)
    except (ProfileError, HttpException, ValueError) as e:
        logger.error(f"Unable to fetch metrics for {player}: {e}")
        if on_update:
            await on_update(await cache.get(), str(e))
        return None

    result = reconcile(fresh, await cache.get())
    await cache.publish(result.snapshot)

    changed = detector.observe(result.snapshot)
    await cache.persist()

    logger.info(
        f"Refreshed {player} in {time.perf_counter() - start_time:.2f}s "
        f"({len(result.snapshot.activities)} activities, "
        f"changed: {', '.join(sorted(changed))})"
    )

    if on_update:
        await on_update(result.snapshot, None)

    return result
