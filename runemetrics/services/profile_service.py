import logging

from runemetrics.exceptions.profile_exceptions import (
    ProfileError,
    ProfileNotFound,
    ProfilePrivate,
)
from runemetrics.http import AsyncHttpClient, HttpResponse
from runemetrics.models.profile import PlayerSnapshot
from runemetrics.storage.snapshot_store import snapshot_from_dict

logger = logging.getLogger(__name__)

PROFILE_URL = "https://apps.runescape.com/runemetrics/profile/profile"


class ProfileService:
    def __init__(self, http: AsyncHttpClient) -> None:
        self.http: AsyncHttpClient = http
        self.profile_url: str = PROFILE_URL

    async def get_player_snapshot(
        self, player_name: str, activities: int = 20
    ) -> PlayerSnapshot:
        """Fetches and decodes the public profile of ``player_name``.

        Experience values are left in the tenths the profile reports them in.
        """
        player_name = player_name.strip()
        if not player_name:
            raise ValueError("Player name must not be empty")

        data: HttpResponse = await self.http.get(
            self.profile_url,
            params={"user": player_name, "activities": str(activities)},
        )

        if data["status"] != 200:
            raise ProfileError(message=f"Unexpected response code {data['status']}")

        body = data["body"]
        if not isinstance(body, dict):
            raise ProfileError(message="Unable to decode profile data")

        self._raise_for_error(player_name, body.get("error"))

        try:
            snapshot = snapshot_from_dict(body)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed profile for {player_name}: {e}")
            raise ProfileError(message="Unable to decode profile data")

        logger.debug(
            f"Fetched {player_name}: {len(snapshot.skills)} skills, "
            f"{len(snapshot.activities)} activities"
        )
        return snapshot

    def _raise_for_error(self, player_name: str, error: str | None) -> None:
        if not error:
            return

        if error == "NO_PROFILE":
            raise ProfileNotFound()

        if error == "PROFILE_PRIVATE":
            raise ProfilePrivate()

        logger.warning(f"RuneMetrics returned error for {player_name}: {error}")
        raise ProfileError(message=f"RuneMetrics error: {error}")
