"""
Folder reconciliation for per-user folders.

The reconciler establishes the parent folder, works out which users
still need a folder, and creates user folders and their subfolders.

States:
    - Parent absent: create it and grant the source group (and the
      optional admin group) View/List so members can see the container
    - Parent present: enumerate its existing children
    - Delta: desired display names minus existing child names
    - Creation: one folder per remaining user, plus subfolders

Invariants:
    - User folders never inherit permissions; policy is inherited
    - Subfolders inherit permissions from their user folder
    - Users whose folder already exists are skipped entirely
    - The delta is a new mapping; inputs are never mutated

How to change safely:
    - Keep inheritance flags in step with the permission model
    - Test idempotency by running the reconciler twice
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping

from vault_sdk import (
    Folder,
    FolderCreateRequest,
    FolderStub,
    PermissionCreateRequest,
    Principal,
    VaultClient,
)

from .config import PARENT_FOLDER_ROLES
from .resolver import UniqueResolver

logger = logging.getLogger(__name__)


def compute_delta(members: Mapping[str, int], existing: Iterable[str]) -> dict[str, int]:
    """Members whose display name has no existing folder.

    Args:
        members: Display name -> user id
        existing: Names of folders already under the parent

    Returns:
        New mapping of display name -> user id for folders to create
    """
    present = set(existing)
    return {name: user_id for name, user_id in members.items() if name not in present}


class FolderReconciler:
    """Establish the parent folder and create missing user folders.

    Example:
        >>> reconciler = FolderReconciler(vault, UniqueResolver(vault))
        >>> parent_id = await reconciler.find_parent("Personal Vaults")
        >>> todo = compute_delta(members, await reconciler.existing_children(parent_id))
    """

    def __init__(
        self,
        client: VaultClient,
        resolver: UniqueResolver,
        *,
        settle_delay: float = 0.0,
    ) -> None:
        self._client = client
        self._resolver = resolver
        self._settle_delay = settle_delay

    async def find_parent(self, name: str) -> int | None:
        """Id of the parent folder, or None if it does not resolve."""
        lookup = await self._resolver.resolve_folder(name)
        return lookup.id if lookup.found else None

    async def create_parent(
        self,
        name: str,
        stub: FolderStub,
        group_id: int,
        admin_group_id: int | None = None,
    ) -> Folder:
        """Create the parent folder and grant View/List to the group(s).

        Raises:
            RemoteError: If creation or a grant fails
        """
        folder = await self._client.create_folder(FolderCreateRequest.from_stub(stub, name))
        logger.info(f"Created parent folder '{name}'", extra={"folder_id": folder.id})

        folder_role, secret_role = PARENT_FOLDER_ROLES
        grantees = [group_id] if admin_group_id is None else [group_id, admin_group_id]
        for grantee in grantees:
            await self._client.create_folder_permission(
                PermissionCreateRequest(
                    folder_id=folder.id,
                    principal=Principal.group(grantee),
                    folder_access_role=folder_role,
                    secret_access_role=secret_role,
                )
            )
            logger.info(
                f"Granted {folder_role}/{secret_role} on parent folder to group {grantee}",
                extra={"folder_id": folder.id, "group_id": grantee},
            )

        # The vault applies grants asynchronously; later reads need them in place
        if self._settle_delay > 0:
            await asyncio.sleep(self._settle_delay)
        return folder

    async def existing_children(self, parent_id: int) -> set[str]:
        """Names of folders directly under the parent."""
        parent = await self._client.get_folder(parent_id, with_children=True)
        names = parent.child_names()
        logger.debug(f"Parent folder {parent_id} has {len(names)} child folder(s)")
        return names

    async def create_user_folder(self, parent_id: int, display_name: str, stub: FolderStub) -> Folder:
        """Create a permission-isolated folder for one user."""
        request = FolderCreateRequest.from_stub(
            stub,
            display_name,
            parent_id,
            inherit_permissions=False,
            inherit_secret_policy=True,
        )
        folder = await self._client.create_folder(request)
        logger.info(
            f"Created folder '{display_name}'",
            extra={"folder_id": folder.id, "parent_id": parent_id},
        )
        return folder

    async def create_subfolder(self, folder_id: int, name: str, stub: FolderStub) -> Folder:
        """Create a subfolder that inherits from its user folder."""
        request = FolderCreateRequest.from_stub(
            stub,
            name,
            folder_id,
            inherit_permissions=True,
            inherit_secret_policy=True,
        )
        return await self._client.create_folder(request)
