import unittest
from unittest.mock import AsyncMock, Mock

from runemetrics.cache.snapshot_cache import SnapshotCache
from runemetrics.common.change_detector import ChangeDetector, UpdateKey
from runemetrics.exceptions.profile_exceptions import ProfileNotFound
from runemetrics.http import HttpException
from runemetrics.tasks.job_refresh_profile import job_refresh_profile
from tests.helpers import (
    BASE_TIME,
    create_test_activities,
    create_test_skill,
    create_test_snapshot,
)


class TestJobRefreshProfile(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.store = Mock()
        self.store.load = AsyncMock(return_value=None)
        self.store.save = AsyncMock()
        self.cache = SnapshotCache(self.store)
        self.detector = ChangeDetector()
        self.service = Mock()
        self.service.get_player_snapshot = AsyncMock()
        self.on_update = AsyncMock()

    async def test_first_refresh_publishes_and_persists(self):
        fresh = create_test_snapshot(activities=create_test_activities("b", "a"))
        self.service.get_player_snapshot.return_value = fresh

        result = await job_refresh_profile(
            self.service, self.cache, self.detector, "Zezima", 20, self.on_update
        )

        self.assertIsNotNone(result)
        self.service.get_player_snapshot.assert_awaited_once_with("Zezima", 20)
        self.assertIs(await self.cache.get(), result.snapshot)
        self.store.save.assert_awaited_once_with(result.snapshot)
        self.on_update.assert_awaited_once_with(result.snapshot, None)
        self.assertIsNotNone(self.detector.last_changed(UpdateKey.TOTAL_XP))

    async def test_refresh_reconciles_against_cached_snapshot(self):
        await self.cache.publish(
            create_test_snapshot(
                skills=[create_test_skill(0, xp=10, target_level=90, updated=BASE_TIME)],
                activities=create_test_activities("b", "a"),
            )
        )
        self.service.get_player_snapshot.return_value = create_test_snapshot(
            skills=[create_test_skill(0, xp=10)],
            activities=create_test_activities("c", "b"),
        )

        result = await job_refresh_profile(
            self.service, self.cache, self.detector, "Zezima"
        )

        skill = result.snapshot.get_skill(0)
        self.assertEqual(skill.updated, BASE_TIME)
        self.assertEqual(skill.target_level, 90)
        self.assertEqual(
            result.snapshot.activities, create_test_activities("c", "b", "a")
        )

    async def test_fetch_failure_keeps_cached_snapshot(self):
        cached = create_test_snapshot()
        await self.cache.publish(cached)
        self.service.get_player_snapshot.side_effect = HttpException("timeout")

        result = await job_refresh_profile(
            self.service, self.cache, self.detector, "Zezima", 20, self.on_update
        )

        self.assertIsNone(result)
        self.assertIs(await self.cache.get(), cached)
        self.store.save.assert_not_awaited()
        self.on_update.assert_awaited_once_with(cached, "timeout")
        self.assertIsNone(self.detector.last_changed(UpdateKey.GENERAL))

    async def test_profile_error_is_reported(self):
        self.service.get_player_snapshot.side_effect = ProfileNotFound()

        result = await job_refresh_profile(
            self.service, self.cache, self.detector, "Nobody", 20, self.on_update
        )

        self.assertIsNone(result)
        self.on_update.assert_awaited_once_with(
            None, "Player has no RuneMetrics profile."
        )

    async def test_persist_failure_does_not_fail_refresh(self):
        self.service.get_player_snapshot.return_value = create_test_snapshot()
        self.store.save.side_effect = OSError("disk full")

        result = await job_refresh_profile(
            self.service, self.cache, self.detector, "Zezima"
        )

        self.assertIsNotNone(result)
        self.assertIs(await self.cache.get(), result.snapshot)
