"""
Wire models for the vault REST API.

Each request and response body has its own typed structure. Request
bodies are built fresh per call and serialised with to_dict(); response
records are parsed with from_dict().

Invariants:
    - Models never hold a reference to the raw response dict
    - Request models are immutable once built
    - Display names are the natural key of a user folder
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .errors import AmbiguousOrMissingEntityError


class EntityKind(Enum):
    """Kinds of entity the unique resolver can look up."""

    GROUP = "group"
    FOLDER = "folder"

    @property
    def name_field(self) -> str:
        """Field on a search record that must equal the query exactly."""
        return "name" if self is EntityKind.GROUP else "folderName"


class LookupStatus(Enum):
    """Outcome of resolving a name to an id."""

    FOUND = "found"
    NOT_FOUND = "not-found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Candidate:
    """One record returned by a group or folder search."""

    id: int
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], kind: EntityKind) -> Candidate:
        return cls(id=int(data["id"]), name=str(data.get(kind.name_field) or ""))


@dataclass(frozen=True)
class LookupResult:
    """Result of resolving a human-readable name.

    Attributes:
        name: The name searched for
        kind: Entity kind searched
        status: found, not-found or ambiguous
        id: Entity id when found, None otherwise
    """

    name: str
    kind: EntityKind
    status: LookupStatus
    id: int | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    def require(self) -> int:
        """Return the id, raising if the lookup did not find exactly one entity.

        Raises:
            AmbiguousOrMissingEntityError: If status is not FOUND
        """
        if self.status is not LookupStatus.FOUND or self.id is None:
            raise AmbiguousOrMissingEntityError(self.name, self.kind.value, self.status.value)
        return self.id


@dataclass(frozen=True)
class UserRef:
    """A group member. display_name doubles as the user folder name."""

    id: int
    display_name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserRef:
        return cls(id=int(data["id"]), display_name=str(data["displayName"]))


@dataclass
class Folder:
    """A folder and, when fetched with children, its subtree.

    Attributes:
        id: Folder id
        name: Folder name
        parent_id: Parent folder id (None or -1 at the root)
        inherit_permissions: Whether permissions flow from the parent
        inherit_secret_policy: Whether secret policy flows from the parent
        children: Child folders, in the order the vault returned them
    """

    id: int
    name: str
    parent_id: int | None = None
    inherit_permissions: bool = True
    inherit_secret_policy: bool = True
    children: list[Folder] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Folder:
        parent = data.get("parentFolderId")
        return cls(
            id=int(data["id"]),
            name=str(data.get("folderName") or ""),
            parent_id=int(parent) if parent is not None else None,
            inherit_permissions=bool(data.get("inheritPermissions", True)),
            inherit_secret_policy=bool(data.get("inheritSecretPolicy", True)),
            children=[cls.from_dict(c) for c in data.get("childFolders") or []],
        )

    def child_names(self) -> set[str]:
        """Names of the direct children of this folder."""
        return {child.name for child in self.children if child.parent_id in (None, self.id)}


@dataclass(frozen=True)
class FolderStub:
    """Blank folder template returned by GET /folders/stub."""

    folder_type_id: int = 1
    parent_folder_id: int = -1
    inherit_permissions: bool = True
    inherit_secret_policy: bool = True
    secret_policy_id: int = -1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FolderStub:
        return cls(
            folder_type_id=int(data.get("folderTypeId") or 1),
            parent_folder_id=int(data.get("parentFolderId") or -1),
            inherit_permissions=bool(data.get("inheritPermissions", True)),
            inherit_secret_policy=bool(data.get("inheritSecretPolicy", True)),
            secret_policy_id=int(data.get("secretPolicyId") or -1),
        )


@dataclass(frozen=True)
class FolderCreateRequest:
    """Body of POST /folders."""

    folder_name: str
    parent_folder_id: int = -1
    inherit_permissions: bool = True
    inherit_secret_policy: bool = True
    folder_type_id: int = 1
    secret_policy_id: int = -1

    @classmethod
    def from_stub(
        cls,
        stub: FolderStub,
        folder_name: str,
        parent_folder_id: int | None = None,
        **overrides: Any,
    ) -> FolderCreateRequest:
        """Build a request seeded with the template's defaults."""
        base = cls(
            folder_name=folder_name,
            parent_folder_id=stub.parent_folder_id if parent_folder_id is None else parent_folder_id,
            inherit_permissions=stub.inherit_permissions,
            inherit_secret_policy=stub.inherit_secret_policy,
            folder_type_id=stub.folder_type_id,
            secret_policy_id=stub.secret_policy_id,
        )
        return replace(base, **overrides) if overrides else base

    def to_dict(self) -> dict[str, Any]:
        return {
            "folderName": self.folder_name,
            "parentFolderId": self.parent_folder_id,
            "inheritPermissions": self.inherit_permissions,
            "inheritSecretPolicy": self.inherit_secret_policy,
            "folderTypeId": self.folder_type_id,
            "secretPolicyId": self.secret_policy_id,
        }


class PrincipalType(Enum):
    """Subject kinds of a permission grant."""

    USER = "user"
    GROUP = "group"


@dataclass(frozen=True)
class Principal:
    """A user or group that a grant applies to."""

    type: PrincipalType
    id: int

    @classmethod
    def user(cls, user_id: int) -> Principal:
        return cls(PrincipalType.USER, user_id)

    @classmethod
    def group(cls, group_id: int) -> Principal:
        return cls(PrincipalType.GROUP, group_id)

    def __str__(self) -> str:
        return f"{self.type.value}:{self.id}"


@dataclass(frozen=True)
class PermissionGrant:
    """A folder permission record.

    The vault reports user grants with both userId and a personal groupId;
    a record with a userId is treated as a user principal.
    """

    id: int
    folder_id: int
    principal: Principal
    folder_access_role: str
    secret_access_role: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PermissionGrant:
        if data.get("userId") is not None:
            principal = Principal.user(int(data["userId"]))
        else:
            principal = Principal.group(int(data["groupId"]))
        return cls(
            id=int(data["id"]),
            folder_id=int(data["folderId"]),
            principal=principal,
            folder_access_role=str(data.get("folderAccessRoleName") or ""),
            secret_access_role=str(data.get("secretAccessRoleName") or ""),
        )


@dataclass(frozen=True)
class PermissionCreateRequest:
    """Body of POST /folder-permissions."""

    folder_id: int
    principal: Principal
    folder_access_role: str
    secret_access_role: str

    def to_dict(self) -> dict[str, Any]:
        key = "userId" if self.principal.type is PrincipalType.USER else "groupId"
        return {
            "folderId": self.folder_id,
            key: self.principal.id,
            "folderAccessRoleName": self.folder_access_role,
            "secretAccessRoleName": self.secret_access_role,
        }
