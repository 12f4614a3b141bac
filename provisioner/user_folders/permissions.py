"""
Permission convergence for user folders.

After a user folder is created it carries the grants copied from its
parent, including the source group's. Convergence removes the group's
grant and installs the user's grant and, optionally, the admin group's.

Invariants:
    - Steps run in a fixed order: strip, grant user, grant admin
    - Every step is attempted even if an earlier one failed
    - Failures are returned, never raised
"""

from __future__ import annotations

import logging

from vault_sdk import (
    PermissionCreateRequest,
    PermissionGrant,
    Principal,
    RemoteError,
    VaultClient,
)

from .config import AdminPermission, FolderPermission
from .report import Step, StepFailure

logger = logging.getLogger(__name__)


class PermissionConvergence:
    """Bring a user folder's grants to the desired access model.

    Attributes:
        source_group_id: Group whose inherited grant is removed
        permission: Role granted to the user on both role axes
        admin_group_id: Optional group granted the admin role pair
        admin_permission: Selector for the admin role pair
    """

    def __init__(
        self,
        client: VaultClient,
        *,
        source_group_id: int,
        permission: FolderPermission,
        admin_group_id: int | None = None,
        admin_permission: AdminPermission | None = None,
    ) -> None:
        self._client = client
        self.source_group_id = source_group_id
        self.permission = permission
        self.admin_group_id = admin_group_id
        self.admin_permission = admin_permission

    @property
    def grants_admin(self) -> bool:
        return self.admin_group_id is not None and self.admin_permission is not None

    async def strip_group_access(self, folder_id: int) -> int:
        """Delete every grant held by the source group on the folder.

        Grants copied from the parent for the admin group are deleted too;
        grant_admin reinstalls the admin group with its role pair.
        A failed delete does not stop the remaining deletes.

        Returns:
            Number of grants deleted

        Raises:
            RemoteError: The first failed call, after every stale grant was tried
        """
        stale = {Principal.group(self.source_group_id)}
        if self.grants_admin:
            stale.add(Principal.group(self.admin_group_id))

        removed = 0
        first_error: RemoteError | None = None
        for grant in await self._client.list_folder_permissions(folder_id):
            if grant.principal not in stale:
                continue
            try:
                await self._client.delete_folder_permission(grant.id)
                removed += 1
            except RemoteError as e:
                logger.warning(
                    f"Failed to delete grant {grant.id} for {grant.principal}: {e}",
                    extra={"folder_id": folder_id, "permission_id": grant.id},
                )
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error
        return removed

    async def grant_user(self, folder_id: int, user_id: int) -> PermissionGrant:
        role = self.permission.value
        return await self._client.create_folder_permission(
            PermissionCreateRequest(
                folder_id=folder_id,
                principal=Principal.user(user_id),
                folder_access_role=role,
                secret_access_role=role,
            )
        )

    async def grant_admin(self, folder_id: int) -> PermissionGrant | None:
        if not self.grants_admin:
            return None
        folder_role, secret_role = self.admin_permission.roles
        return await self._client.create_folder_permission(
            PermissionCreateRequest(
                folder_id=folder_id,
                principal=Principal.group(self.admin_group_id),
                folder_access_role=folder_role,
                secret_access_role=secret_role,
            )
        )

    async def converge(self, folder_id: int, display_name: str, user_id: int) -> list[StepFailure]:
        """Run all convergence steps for one user folder.

        Args:
            folder_id: The user's folder
            display_name: The user's display name, for reporting
            user_id: The user's id

        Returns:
            Failures, one per failed step (empty on success)
        """
        failures: list[StepFailure] = []
        context = {"user": display_name, "user_id": user_id, "folder_id": folder_id}

        try:
            removed = await self.strip_group_access(folder_id)
            logger.info(f"Removed {removed} group grant(s) from '{display_name}'", extra=context)
        except RemoteError as e:
            failures.append(StepFailure(display_name, Step.STRIP_GROUP_ACCESS, e, folder_id))

        try:
            await self.grant_user(folder_id, user_id)
            logger.info(f"Granted {self.permission.value} to '{display_name}'", extra=context)
        except RemoteError as e:
            failures.append(StepFailure(display_name, Step.GRANT_USER, e, folder_id))

        if self.grants_admin:
            try:
                await self.grant_admin(folder_id)
                logger.info(f"Granted admin group {self.admin_group_id} on '{display_name}'", extra=context)
            except RemoteError as e:
                failures.append(StepFailure(display_name, Step.GRANT_ADMIN, e, folder_id))

        for failure in failures:
            logger.error(f"Permission step failed: {failure}", extra={**context, "step": failure.step.value})
        return failures
