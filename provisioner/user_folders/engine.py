"""
Provisioning engine for per-user vault folders.

The engine runs one reconciliation:
- Resolve the source group (and admin group) to ids
- Expand the group into display name -> user id
- Establish the parent folder and compute which users lack a folder
- Create each missing folder, converge its permissions, add subfolders

Invariants:
    - Failing to resolve a group is fatal; nothing is written
    - Per-user failures are recorded in the report and never stop
      processing of other users
    - Within one user, permission calls start only after the folder id
      is known
    - Nothing is rolled back, including on cancellation

How to change safely:
    - Keep per-user work independent so it can run concurrently
    - Test partial failure with an injected remote error
"""

from __future__ import annotations

import asyncio
import logging

from vault_sdk import FolderStub, RemoteError, VaultClient

from .config import ProvisionRequest, Settings
from .membership import MembershipResolver
from .permissions import PermissionConvergence
from .reconciler import FolderReconciler, compute_delta
from .report import RunReport, Step, StepFailure
from .resolver import UniqueResolver

logger = logging.getLogger(__name__)


class ProvisioningEngine:
    """Reconcile a group's membership into per-user folders.

    Example:
        >>> async with VaultClient(url, token=token) as vault:
        ...     engine = ProvisioningEngine(vault)
        ...     report = await engine.run(request)
        ...     report.raise_for_failures()
    """

    def __init__(
        self,
        client: VaultClient,
        *,
        settle_delay: float = 2.0,
        member_lookup_concurrency: int = 8,
        user_concurrency: int = 1,
    ) -> None:
        """Initialize the engine.

        Args:
            client: Connected vault client
            settle_delay: Seconds to wait after granting on a new parent
            member_lookup_concurrency: Parallel member profile lookups
            user_concurrency: Users provisioned in parallel
        """
        self._client = client
        self._settle_delay = settle_delay
        self._member_lookup_concurrency = member_lookup_concurrency
        self._user_concurrency = max(1, user_concurrency)
        self.resolver = UniqueResolver(client)

    @classmethod
    def from_settings(cls, client: VaultClient, settings: Settings) -> ProvisioningEngine:
        return cls(
            client,
            settle_delay=settings.settle_delay,
            member_lookup_concurrency=settings.member_lookup_concurrency,
            user_concurrency=settings.user_concurrency,
        )

    async def run(self, request: ProvisionRequest) -> RunReport:
        """Run one reconciliation.

        Args:
            request: Validated run inputs

        Returns:
            RunReport describing what was created, skipped and failed

        Raises:
            ValidationError: If the request is invalid
            AmbiguousOrMissingEntityError: If a group does not resolve
            RemoteError: If a call outside the per-user pipeline fails
            Exception: The first unexpected error from a user pipeline,
                raised once every pipeline has finished
        """
        request.validate()
        logger.info(
            f"Provisioning folders for group '{request.group}' under '{request.parent_folder}'",
            extra={"dry_run": request.dry_run, "permission": request.permission.value},
        )

        group_id = (await self.resolver.resolve_group(request.group)).require()
        admin_group_id = None
        if request.has_admin:
            admin_group_id = (await self.resolver.resolve_group(request.admin_group)).require()

        members = await MembershipResolver(
            self._client, self._member_lookup_concurrency
        ).resolve_members(group_id)

        reconciler = FolderReconciler(self._client, self.resolver, settle_delay=self._settle_delay)
        report = RunReport(group=request.group, parent_folder=request.parent_folder, dry_run=request.dry_run)

        parent_id = await reconciler.find_parent(request.parent_folder)
        stub = await self._client.get_folder_stub()
        if parent_id is None:
            report.parent_created = True
            if not request.dry_run:
                parent = await reconciler.create_parent(request.parent_folder, stub, group_id, admin_group_id)
                parent_id = parent.id
        report.parent_folder_id = parent_id

        existing = await reconciler.existing_children(parent_id) if parent_id is not None else set()
        to_create = compute_delta(members, existing)
        report.planned = sorted(to_create)
        report.skipped = sorted(set(members) - set(to_create))

        if request.dry_run:
            logger.info("Dry run: no changes written", extra=report.summary())
            return report

        convergence = PermissionConvergence(
            self._client,
            source_group_id=group_id,
            permission=request.permission,
            admin_group_id=admin_group_id,
            admin_permission=request.admin_permission,
        )
        semaphore = asyncio.Semaphore(self._user_concurrency)

        async def provision(display_name: str, user_id: int) -> None:
            async with semaphore:
                await self._provision_user(
                    request, report, reconciler, convergence, stub, parent_id, display_name, user_id
                )

        # Every pipeline settles before an unexpected error is re-raised
        results = await asyncio.gather(
            *(provision(name, uid) for name, uid in to_create.items()), return_exceptions=True
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            logger.error(
                f"{len(errors)} user pipeline(s) raised unexpectedly",
                extra=report.summary(),
            )
            raise errors[0]

        if report.succeeded:
            logger.info("Provisioning complete", extra=report.summary())
        else:
            logger.warning("Provisioning completed with failures", extra=report.summary())
        return report

    async def _provision_user(
        self,
        request: ProvisionRequest,
        report: RunReport,
        reconciler: FolderReconciler,
        convergence: PermissionConvergence,
        stub: FolderStub,
        parent_id: int,
        display_name: str,
        user_id: int,
    ) -> None:
        try:
            folder = await reconciler.create_user_folder(parent_id, display_name, stub)
        except RemoteError as e:
            failure = StepFailure(display_name, Step.CREATE_FOLDER, e)
            logger.error(f"Folder creation failed: {failure}", extra={"user": display_name})
            report.record_failure(failure)
            return

        report.created[display_name] = folder.id
        for failure in await convergence.converge(folder.id, display_name, user_id):
            report.record_failure(failure)

        for name in request.subfolders:
            try:
                sub = await reconciler.create_subfolder(folder.id, name, stub)
            except RemoteError as e:
                failure = StepFailure(display_name, Step.CREATE_SUBFOLDER, e, folder.id)
                logger.error(f"Subfolder creation failed: {failure}", extra={"user": display_name})
                report.record_failure(failure)
                continue
            report.subfolders.setdefault(display_name, []).append(sub.id)
