"""
User folder provisioner.

Reconciles a vault group's membership into one folder per member under
a common parent folder, each visible only to its member (plus an
optional admin group).

Components:
- UniqueResolver: exact-name lookup over fuzzy search
- MembershipResolver: group -> display name -> user id
- FolderReconciler: parent folder, delta, folder creation
- PermissionConvergence: strip group grant, grant user and admin
- ProvisioningEngine: runs the above and produces a RunReport
"""

from .config import (
    AdminPermission,
    AuthMode,
    FolderPermission,
    ProvisionRequest,
    Settings,
)
from .engine import ProvisioningEngine
from .membership import MembershipResolver
from .permissions import PermissionConvergence
from .reconciler import FolderReconciler, compute_delta
from .report import RunReport, Step, StepFailure
from .resolver import UniqueResolver
from .session import open_client

__all__ = [
    "AdminPermission",
    "AuthMode",
    "FolderPermission",
    "ProvisionRequest",
    "Settings",
    "ProvisioningEngine",
    "MembershipResolver",
    "PermissionConvergence",
    "FolderReconciler",
    "compute_delta",
    "RunReport",
    "Step",
    "StepFailure",
    "UniqueResolver",
    "open_client",
]
