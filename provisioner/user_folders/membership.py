"""
Group membership expansion.

Turns a group id into a mapping of display name -> user id. The display
name is the name of the user's folder, so it acts as the natural key.
"""

from __future__ import annotations

import asyncio
import logging

from vault_sdk import UserRef, VaultClient

logger = logging.getLogger(__name__)


class MembershipResolver:
    """Expand a group into its members.

    Profile lookups are independent reads and run concurrently, bounded
    by a semaphore. Results are merged in member-list order, so when two
    members share a display name the later one wins.
    """

    def __init__(self, client: VaultClient, concurrency: int = 8) -> None:
        self._client = client
        self._concurrency = max(1, concurrency)

    async def resolve_members(self, group_id: int) -> dict[str, int]:
        """Map each member's display name to their user id.

        Raises:
            RemoteError: If the member list or any profile lookup fails
        """
        user_ids = await self._client.get_group_member_ids(group_id)
        semaphore = asyncio.Semaphore(self._concurrency)

        async def fetch(user_id: int) -> UserRef:
            async with semaphore:
                return await self._client.get_user(user_id)

        results = await asyncio.gather(*(fetch(uid) for uid in user_ids), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

        members: dict[str, int] = {}
        for user in results:
            previous = members.get(user.display_name)
            if previous is not None and previous != user.id:
                logger.warning(
                    f"Display name '{user.display_name}' is shared by users {previous} and {user.id}; "
                    f"keeping {user.id}"
                )
            members[user.display_name] = user.id

        logger.info(
            f"Group {group_id} has {len(members)} member(s)",
            extra={"group_id": group_id, "members": len(members)},
        )
        return members
