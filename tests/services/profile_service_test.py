import unittest
from unittest.mock import AsyncMock

from runemetrics.exceptions.profile_exceptions import (
    ProfileError,
    ProfileNotFound,
    ProfilePrivate,
)
from runemetrics.services.profile_service import PROFILE_URL, ProfileService
from tests.helpers import create_profile_response


class TestProfileService(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.mock_http = AsyncMock()
        self.service = ProfileService(self.mock_http)

    async def test_get_player_snapshot(self):
        self.mock_http.get.return_value = {
            "status": 200,
            "body": create_profile_response(),
        }

        snapshot = await self.service.get_player_snapshot(" Zezima ", 20)

        self.mock_http.get.assert_awaited_once_with(
            PROFILE_URL, params={"user": "Zezima", "activities": "20"}
        )
        self.assertEqual(snapshot.name, "Zezima")
        self.assertEqual(snapshot.get_skill(0).xp, 130_344_310)
        self.assertEqual(len(snapshot.activities), 2)

    async def test_empty_name_raises(self):
        with self.assertRaises(ValueError):
            await self.service.get_player_snapshot("  ")

        self.mock_http.get.assert_not_awaited()

    async def test_unexpected_status_raises(self):
        self.mock_http.get.return_value = {"status": 403, "body": "Forbidden"}

        with self.assertRaises(ProfileError) as context:
            await self.service.get_player_snapshot("Zezima")

        self.assertEqual(context.exception.message, "Unexpected response code 403")

    async def test_no_profile_raises_not_found(self):
        self.mock_http.get.return_value = {
            "status": 200,
            "body": {"error": "NO_PROFILE", "loggedIn": "false"},
        }

        with self.assertRaises(ProfileNotFound):
            await self.service.get_player_snapshot("Nobody")

    async def test_private_profile_raises(self):
        self.mock_http.get.return_value = {
            "status": 200,
            "body": {"error": "PROFILE_PRIVATE", "loggedIn": "false"},
        }

        with self.assertRaises(ProfilePrivate):
            await self.service.get_player_snapshot("Hidden")

    async def test_other_error_raises_profile_error(self):
        self.mock_http.get.return_value = {
            "status": 200,
            "body": {"error": "NOT_A_MEMBER"},
        }

        with self.assertRaises(ProfileError) as context:
            await self.service.get_player_snapshot("Zezima")

        self.assertIn("NOT_A_MEMBER", context.exception.message)

    async def test_non_json_body_raises(self):
        self.mock_http.get.return_value = {"status": 200, "body": "<html></html>"}

        with self.assertRaises(ProfileError):
            await self.service.get_player_snapshot("Zezima")

    async def test_malformed_profile_raises(self):
        body = create_profile_response()
        body["skillvalues"] = [{"id": 0}]
        self.mock_http.get.return_value = {"status": 200, "body": body}

        with self.assertRaises(ProfileError) as context:
            await self.service.get_player_snapshot("Zezima")

        self.assertEqual(context.exception.message, "Unable to decode profile data")

    async def test_non_object_activity_raises_profile_error(self):
        body = create_profile_response(activities=[1])
        self.mock_http.get.return_value = {"status": 200, "body": body}

        with self.assertRaises(ProfileError) as context:
            await self.service.get_player_snapshot("Zezima")

        self.assertEqual(context.exception.message, "Unable to decode profile data")

    async def test_non_object_skill_raises_profile_error(self):
        body = create_profile_response()
        body["skillvalues"] = ["bad"]
        self.mock_http.get.return_value = {"status": 200, "body": body}

        with self.assertRaises(ProfileError):
            await self.service.get_player_snapshot("Zezima")
