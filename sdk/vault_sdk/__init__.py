"""
Vault SDK - Client library for the secret vault REST API.

This SDK provides a typed interface to the vault's folder, group, user
and folder-permission endpoints:
- VaultClient for authenticated API calls
- fetch_token for username/password token exchange
- Typed request and response models
- The error taxonomy shared with the provisioning engine

Example:
    >>> from vault_sdk import VaultClient, fetch_token
    >>>
    >>> token = await fetch_token(url, "svc-provisioner", password)
    >>> async with VaultClient(url, token=token) as vault:
    ...     folders = await vault.search_folders("Personal Vaults")

Invariants:
    - Every failed call raises RemoteError
    - No retries are performed by the SDK

Version: 1.0.0
"""

__version__ = "1.0.0"

from .auth import fetch_token
from .client import VaultClient, api_root
from .errors import (
    AmbiguousOrMissingEntityError,
    AuthenticationError,
    PartialProvisioningError,
    RemoteError,
    ValidationError,
    VaultError,
)
from .models import (
    Candidate,
    EntityKind,
    Folder,
    FolderCreateRequest,
    FolderStub,
    LookupResult,
    LookupStatus,
    PermissionCreateRequest,
    PermissionGrant,
    Principal,
    PrincipalType,
    UserRef,
)

__all__ = [
    # Version
    "__version__",
    # Client
    "VaultClient",
    "api_root",
    "fetch_token",
    # Models
    "Candidate",
    "EntityKind",
    "Folder",
    "FolderCreateRequest",
    "FolderStub",
    "LookupResult",
    "LookupStatus",
    "PermissionCreateRequest",
    "PermissionGrant",
    "Principal",
    "PrincipalType",
    "UserRef",
    # Errors
    "VaultError",
    "AuthenticationError",
    "RemoteError",
    "AmbiguousOrMissingEntityError",
    "PartialProvisioningError",
    "ValidationError",
]
