"""
Run report for the provisioning engine.

Per-user failures are collected here instead of being raised, so one
user's failure never stops the others.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from vault_sdk import PartialProvisioningError, VaultError


class Step(Enum):
    """Per-user steps that can fail independently."""

    CREATE_FOLDER = "create-folder"
    CREATE_SUBFOLDER = "create-subfolder"
    STRIP_GROUP_ACCESS = "strip-group-access"
    GRANT_USER = "grant-user"
    GRANT_ADMIN = "grant-admin"


@dataclass
class StepFailure:
    """A failed per-user step.

    Attributes:
        user: Display name of the user being provisioned
        step: The step that failed
        error: The error raised by the step
        folder_id: Folder the step acted on, if it exists
    """

    user: str
    step: Step
    error: VaultError
    folder_id: int | None = None

    def __str__(self) -> str:
        where = f" on folder {self.folder_id}" if self.folder_id is not None else ""
        return f"{self.user}: {self.step.value}{where}: {self.error}"


@dataclass
class RunReport:
    """Outcome of one provisioning run.

    Attributes:
        group: Source group name
        parent_folder: Parent folder name
        parent_folder_id: Parent folder id (None in a dry run that would create it)
        parent_created: Whether the parent was (or would be) created
        planned: Display names in the to-create set
        skipped: Display names whose folder already existed
        created: Display name -> id of each user folder created
        subfolders: Display name -> ids of subfolders created
        failures: Failed per-user steps
        dry_run: Whether writes were suppressed
    """

    group: str
    parent_folder: str
    parent_folder_id: int | None = None
    parent_created: bool = False
    planned: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    created: dict[str, int] = field(default_factory=dict)
    subfolders: dict[str, list[int]] = field(default_factory=dict)
    failures: list[StepFailure] = field(default_factory=list)
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def record_failure(self, failure: StepFailure) -> None:
        self.failures.append(failure)

    def raise_for_failures(self) -> None:
        """Raise PartialProvisioningError if any step failed."""
        if self.failures:
            raise PartialProvisioningError(self.failures)

    def summary(self) -> dict[str, Any]:
        return {
            "group": self.group,
            "parent_folder": self.parent_folder,
            "parent_created": self.parent_created,
            "planned": len(self.planned),
            "skipped": len(self.skipped),
            "folders_created": len(self.created),
            "failed_steps": len(self.failures),
            "dry_run": self.dry_run,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "group": self.group,
            "parent_folder": self.parent_folder,
            "parent_folder_id": self.parent_folder_id,
            "parent_created": self.parent_created,
            "planned": list(self.planned),
            "skipped": list(self.skipped),
            "created": dict(self.created),
            "subfolders": {k: list(v) for k, v in self.subfolders.items()},
            "failures": [
                {
                    "user": f.user,
                    "step": f.step.value,
                    "folder_id": f.folder_id,
                    "error": str(f.error),
                }
                for f in self.failures
            ],
            "dry_run": self.dry_run,
        }
