"""
Vault REST client for the Python SDK.

This module provides the main client interface:
- VaultClient: Authenticated connection to the vault REST API

Example:
    >>> async with VaultClient("https://vault.example.com/SecretServer", token=token) as vault:
    ...     groups = await vault.search_groups("Vault Admins")
    ...     folder = await vault.get_folder(groups[0].id)

Invariants:
    - One client carries one authorization context for its lifetime
    - Every failed call raises RemoteError; nothing is retried here
    - Headers are never logged
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import RemoteError
from .models import (
    Candidate,
    EntityKind,
    Folder,
    FolderCreateRequest,
    FolderStub,
    PermissionCreateRequest,
    PermissionGrant,
    UserRef,
)

logger = logging.getLogger(__name__)

API_PATH = "/api/v1"
INTEGRATED_API_PATH = "/winauthwebservices/api/v1"


def api_root(base_url: str, integrated: bool = False) -> str:
    """REST root for a vault base URL."""
    return base_url.rstrip("/") + (INTEGRATED_API_PATH if integrated else API_PATH)


class VaultClient:
    """Async client for the vault REST API.

    The client owns the authorization context: either a bearer token
    (token exchange or pre-issued token) or, in integrated mode, an
    optional httpx.Auth handler supplied by the caller.

    Example:
        >>> vault = VaultClient(url, token="abc")
        >>> await vault.connect()
        >>> stub = await vault.get_folder_stub()
        >>> await vault.close()
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        auth: httpx.Auth | None = None,
        integrated: bool = False,
        timeout: float = 30.0,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Vault base URL, e.g. https://host/SecretServer
            token: Bearer token for token or password mode
            auth: Optional httpx auth handler for integrated mode
            integrated: Use the integrated-authentication API root
            timeout: Per-request timeout in seconds
            verify: Verify TLS certificates
            transport: Optional transport override (testing)
        """
        self.base_url = base_url.rstrip("/")
        self.api_root = api_root(self.base_url, integrated)
        self._token = token
        self._auth = auth
        self._timeout = timeout
        self._verify = verify
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def is_connected(self) -> bool:
        return self._http is not None

    async def connect(self) -> None:
        """Open the underlying HTTP connection pool."""
        if self._http is not None:
            return

        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        self._http = httpx.AsyncClient(
            base_url=self.api_root,
            headers=headers,
            auth=self._auth,
            timeout=self._timeout,
            verify=self._verify,
            transport=self._transport,
        )
        logger.debug(f"Vault client ready for {self.api_root}")

    async def close(self) -> None:
        """Close the connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> VaultClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        if self._http is None:
            raise RuntimeError("Not connected")

        logger.debug(f"{method} {path}", extra={"operation": operation})
        try:
            response = await self._http.request(method, path, params=params, json=json_body)
        except httpx.HTTPError as e:
            raise RemoteError(operation, body=str(e) or type(e).__name__) from e

        if not response.is_success:
            raise RemoteError(
                operation,
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                operation,
                status_code=response.status_code,
                reason="Invalid JSON",
                body=response.text,
            ) from e

    async def get(self, path: str, params: dict[str, Any] | None = None, *, operation: str = "") -> Any:
        return await self._request(operation or f"GET {path}", "GET", path, params=params)

    async def post(self, path: str, body: Any, *, operation: str = "") -> Any:
        return await self._request(operation or f"POST {path}", "POST", path, json_body=body)

    async def delete(self, path: str, *, operation: str = "") -> None:
        await self._request(operation or f"DELETE {path}", "DELETE", path)

    # -- Lookups ----------------------------------------------------------------

    async def search(self, kind: EntityKind, text: str) -> list[Candidate]:
        """Fuzzy search for groups or folders whose name contains text.

        Returns:
            Candidates in the order the vault returned them
        """
        path = "/groups" if kind is EntityKind.GROUP else "/folders"
        data = await self.get(
            path,
            {"filter.searchText": text},
            operation=f"Searching {kind.value}s for '{text}'",
        )
        return [Candidate.from_dict(r, kind) for r in _records(data)]

    async def search_groups(self, text: str) -> list[Candidate]:
        return await self.search(EntityKind.GROUP, text)

    async def search_folders(self, text: str) -> list[Candidate]:
        return await self.search(EntityKind.FOLDER, text)

    async def get_group_member_ids(self, group_id: int) -> list[int]:
        """Ids of the users in a group."""
        data = await self.get(f"/groups/{group_id}/users", operation=f"Listing members of group {group_id}")
        return [int(r["userId"]) for r in _records(data)]

    async def get_user(self, user_id: int) -> UserRef:
        data = await self.get(f"/users/{user_id}", operation=f"Fetching user {user_id}")
        return UserRef.from_dict(data)

    # -- Folders ----------------------------------------------------------------

    async def get_folder(self, folder_id: int, *, with_children: bool = True) -> Folder:
        params = {"args.getAllChildren": "true"} if with_children else None
        data = await self.get(f"/folders/{folder_id}", params, operation=f"Fetching folder {folder_id}")
        return Folder.from_dict(data)

    async def get_folder_stub(self) -> FolderStub:
        data = await self.get("/folders/stub", operation="Fetching folder template")
        return FolderStub.from_dict(data or {})

    async def create_folder(self, request: FolderCreateRequest) -> Folder:
        data = await self.post(
            "/folders",
            request.to_dict(),
            operation=f"Creating folder '{request.folder_name}'",
        )
        return Folder.from_dict(data)

    # -- Permissions ------------------------------------------------------------

    async def list_folder_permissions(self, folder_id: int) -> list[PermissionGrant]:
        data = await self.get(
            "/folder-permissions",
            {"filter.folderId": folder_id},
            operation=f"Listing permissions of folder {folder_id}",
        )
        return [PermissionGrant.from_dict(r) for r in _records(data)]

    async def create_folder_permission(self, request: PermissionCreateRequest) -> PermissionGrant:
        data = await self.post(
            "/folder-permissions",
            request.to_dict(),
            operation=f"Granting {request.principal} on folder {request.folder_id}",
        )
        return PermissionGrant.from_dict(data)

    async def delete_folder_permission(self, permission_id: int) -> None:
        await self.delete(
            f"/folder-permissions/{permission_id}",
            operation=f"Deleting folder permission {permission_id}",
        )


def _records(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, dict):
        return list(data.get("records") or [])
    return list(data or [])
