"""
Unique name resolution against the vault's fuzzy search.

The vault's search endpoints match on substrings, so a query for "Eng"
may return "Engineering" too. Only an exact match on the first
candidate counts as found.

Invariants:
    - Read-only: resolution never writes to the vault
    - Only the first candidate is considered
    - A non-exact first candidate is reported as not-found, even when a
      later candidate matches exactly
"""

from __future__ import annotations

import logging

from vault_sdk import EntityKind, LookupResult, LookupStatus, VaultClient

logger = logging.getLogger(__name__)


class UniqueResolver:
    """Resolve group and folder names to ids.

    Example:
        >>> resolver = UniqueResolver(vault)
        >>> result = await resolver.resolve("Vault Admins", EntityKind.GROUP)
        >>> group_id = result.require()
    """

    def __init__(self, client: VaultClient) -> None:
        self._client = client

    async def resolve(self, name: str, kind: EntityKind) -> LookupResult:
        """Find the single entity of the given kind named exactly name.

        Args:
            name: Name to look up
            kind: GROUP or FOLDER

        Returns:
            LookupResult with status FOUND or NOT_FOUND

        Raises:
            RemoteError: If the search call fails
        """
        candidates = await self._client.search(kind, name)

        if candidates and candidates[0].name == name:
            result = LookupResult(name=name, kind=kind, status=LookupStatus.FOUND, id=candidates[0].id)
        else:
            result = LookupResult(name=name, kind=kind, status=LookupStatus.NOT_FOUND)

        logger.debug(
            f"Resolved {kind.value} '{name}': {result.status.value}",
            extra={"candidates": len(candidates), "id": result.id},
        )
        return result

    async def resolve_group(self, name: str) -> LookupResult:
        return await self.resolve(name, EntityKind.GROUP)

    async def resolve_folder(self, name: str) -> LookupResult:
        return await self.resolve(name, EntityKind.FOLDER)
