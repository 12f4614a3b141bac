"""
Configuration for the user folder provisioner.

Connection, authentication and runtime knobs come from the environment
via pydantic-settings (prefix VAULT_). The inputs of a single run are a
ProvisionRequest, built by the CLI from its arguments.

Invariants:
    - Secrets are never logged or exposed in error messages
    - Admin group and admin permission are supplied together or not at all
    - Role names sent to the vault come only from the enums below
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings

from vault_sdk import ValidationError

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"^https?://[^/\s]+(/\S*)?$")

# Role pair granted on the shared parent so members can see the container
PARENT_FOLDER_ROLES = ("View", "List")


class FolderPermission(Enum):
    """Permission level granted to a user on their own folder.

    The value is the vault role name, used for both the folder access
    role and the secret access role.
    """

    OWNER = "Owner"
    EDIT = "Edit"
    VIEW = "View"

    @classmethod
    def parse(cls, value: str | FolderPermission) -> FolderPermission:
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValidationError(f"Invalid permission '{value}'. Must be one of: {allowed}", "permission")


class AdminPermission(Enum):
    """Permission selector for the optional admin group."""

    ADD_SECRET_LIST = "AddSecret\\List"

    @property
    def roles(self) -> tuple[str, str]:
        """(folder access role, secret access role)."""
        return _ADMIN_ROLES[self]

    @classmethod
    def parse(cls, value: str | AdminPermission) -> AdminPermission:
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().replace("/", "\\").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValidationError(
            f"Invalid admin permission '{value}'. Must be one of: {allowed}", "admin_permission"
        )


_ADMIN_ROLES = {
    AdminPermission.ADD_SECRET_LIST: ("Add Secret", "List"),
}


class AuthMode(Enum):
    """How the client authenticates to the vault."""

    TOKEN = "token"
    PASSWORD = "password"
    INTEGRATED = "integrated"


@dataclass(frozen=True)
class ProvisionRequest:
    """Inputs of one provisioning run.

    Attributes:
        parent_folder: Name of the common parent folder
        group: Name of the group whose members get folders
        permission: Level granted to each user on their folder
        admin_group: Optional group granted the admin role pair
        admin_permission: Selector for the admin role pair
        subfolders: Names of subfolders created inside each user folder
        dry_run: Compute the plan without writing to the vault
    """

    parent_folder: str
    group: str
    permission: FolderPermission
    admin_group: str | None = None
    admin_permission: AdminPermission | None = None
    subfolders: tuple[str, ...] = ()
    dry_run: bool = False

    @classmethod
    def build(
        cls,
        parent_folder: str,
        group: str,
        permission: str | FolderPermission,
        admin_group: str | None = None,
        admin_permission: str | AdminPermission | None = None,
        subfolders: list[str] | tuple[str, ...] | None = None,
        dry_run: bool = False,
    ) -> ProvisionRequest:
        """Parse loosely-typed inputs and validate them.

        Raises:
            ValidationError: If any input is invalid
        """
        request = cls(
            parent_folder=(parent_folder or "").strip(),
            group=(group or "").strip(),
            permission=FolderPermission.parse(permission),
            admin_group=(admin_group or "").strip() or None,
            admin_permission=AdminPermission.parse(admin_permission) if admin_permission else None,
            subfolders=tuple(s.strip() for s in subfolders or ()),
            dry_run=dry_run,
        )
        request.validate()
        return request

    @property
    def has_admin(self) -> bool:
        return self.admin_group is not None and self.admin_permission is not None

    def validate(self) -> None:
        """Validate request consistency.

        Raises:
            ValidationError: If the request is invalid
        """
        if not self.parent_folder:
            raise ValidationError("Parent folder name is required", "parent_folder")
        if not self.group:
            raise ValidationError("Group name is required", "group")
        if (self.admin_group is None) != (self.admin_permission is None):
            raise ValidationError(
                "Admin group and admin permission must be supplied together", "admin_group"
            )
        if any(not name for name in self.subfolders):
            raise ValidationError("Subfolder names must not be empty", "subfolders")
        if len(set(self.subfolders)) != len(self.subfolders):
            raise ValidationError("Subfolder names must be unique", "subfolders")


class Settings(BaseSettings):
    """Provisioner configuration loaded from environment."""

    # Vault connection
    base_url: str = Field(description="Vault base URL, e.g. https://vault.example.com/SecretServer")
    timeout: float = Field(default=30.0, description="Per-request timeout seconds")
    verify_tls: bool = Field(default=True, description="Verify TLS certificates")

    # Authentication
    auth_mode: AuthMode = Field(default=AuthMode.PASSWORD)
    username: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None)
    domain: str | None = Field(default=None, description="Directory domain of the account")
    token: SecretStr | None = Field(default=None, description="Pre-issued bearer token")

    # Runtime
    settle_delay: float = Field(default=2.0, ge=0, description="Wait after parent folder grants")
    member_lookup_concurrency: int = Field(default=8, ge=1)
    user_concurrency: int = Field(default=1, ge=1, description="Users provisioned in parallel")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="Log format (json, text)")

    model_config = {"env_prefix": "VAULT_"}

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        value = value.strip()
        if not _URL_RE.match(value):
            raise ValueError(f"Invalid vault URL '{value}'. Expected http(s)://host[/path]")
        return value.rstrip("/")

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value

    @model_validator(mode="after")
    def _check_credentials(self) -> Settings:
        if self.auth_mode is AuthMode.PASSWORD and not (self.username and self.password):
            raise ValueError("username and password are required when auth_mode=password")
        if self.auth_mode is AuthMode.TOKEN and not self.token:
            raise ValueError("token is required when auth_mode=token")
        return self

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Provisioner configuration loaded",
            extra={
                "base_url": self.base_url,
                "auth_mode": self.auth_mode.value,
                "username": self.username,
                "settle_delay": self.settle_delay,
                "member_lookup_concurrency": self.member_lookup_concurrency,
                "user_concurrency": self.user_concurrency,
            },
        )
