"""
Error types for the vault SDK.

This module defines all exception types raised by the SDK and the
provisioning engine built on it:
- VaultError: Base exception
- AuthenticationError: Token exchange failed
- RemoteError: A vault API call failed
- AmbiguousOrMissingEntityError: A name did not resolve to a definite id
- PartialProvisioningError: Some users failed while others succeeded
- ValidationError: Run parameters rejected at the boundary

Invariants:
    - All errors inherit from VaultError
    - RemoteError carries the HTTP status, reason and body verbatim
    - Secrets are never included in error messages
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class VaultError(Exception):
    """Base exception for all vault SDK errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "VAULT_ERROR"
        self.details = details or {}


class AuthenticationError(VaultError):
    """Failed to obtain an access token from the vault.

    Raised when:
    - The token endpoint rejects the credentials
    - The token endpoint is unreachable
    - The reply does not contain an access token
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="AUTHENTICATION_ERROR",
            details={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


class RemoteError(VaultError):
    """A vault API call failed.

    Raised for any non-2xx response and for transport faults. For
    transport faults status_code is None and body holds the fault text.

    Attributes:
        operation: Human-readable name of the failed call
        status_code: HTTP status code, if a response was received
        reason: HTTP reason phrase
        body: Response body, verbatim
    """

    def __init__(
        self,
        operation: str,
        status_code: Optional[int] = None,
        reason: str = "",
        body: str = "",
    ) -> None:
        if status_code is None:
            msg = f"{operation} failed: {body}"
        else:
            msg = f"{operation} failed: {status_code} {reason}: {body}"
        super().__init__(
            msg,
            code="REMOTE_ERROR",
            details={
                "operation": operation,
                "status_code": status_code,
                "reason": reason,
                "body": body,
            },
        )
        self.operation = operation
        self.status_code = status_code
        self.reason = reason
        self.body = body


class AmbiguousOrMissingEntityError(VaultError):
    """A name could not be resolved to exactly one vault entity.

    Attributes:
        name: The name that was searched for
        kind: Entity kind ("group" or "folder")
        status: Lookup status value ("not-found" or "ambiguous")
    """

    def __init__(self, name: str, kind: str, status: str) -> None:
        super().__init__(
            f"Could not resolve {kind} '{name}': {status}",
            code="UNRESOLVED_ENTITY",
            details={"name": name, "kind": kind, "status": status},
        )
        self.name = name
        self.kind = kind
        self.status = status


class PartialProvisioningError(VaultError):
    """One or more per-user steps failed during a run.

    Attributes:
        failures: The failed steps, in the order they were recorded
    """

    def __init__(self, failures: List[Any]) -> None:
        users = sorted({str(f.user) for f in failures})
        super().__init__(
            f"{len(failures)} provisioning step(s) failed for: {', '.join(users)}",
            code="PARTIAL_PROVISIONING",
            details={"failures": [str(f) for f in failures]},
        )
        self.failures = failures


class ValidationError(VaultError):
    """Run parameters failed validation.

    Raised when:
    - A required parameter is missing or empty
    - An enum value is not recognised
    - Paired parameters are only partly supplied
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field_name},
        )
        self.field_name = field_name
