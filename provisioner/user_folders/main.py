"""
User folder provisioner - command line entry point.

Creates a folder per member of a vault group under a common parent
folder, visible only to that member (and an optional admin group).

Usage:
    user-folders --url https://vault.example.com/SecretServer \
        --parent-folder "Personal Vaults" --group "Vault Admins" --permission Edit

    # Preview without writing
    user-folders ... --dry-run --json

Secrets come from the environment only (VAULT_PASSWORD, VAULT_TOKEN).
See config.py for all settings.

Exit codes:
    0 - success
    1 - configuration or validation error
    2 - some users failed, others were provisioned
    3 - authentication failure or fatal remote error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import json_log_formatter
import pydantic

from vault_sdk import (
    AmbiguousOrMissingEntityError,
    AuthenticationError,
    PartialProvisioningError,
    RemoteError,
    ValidationError,
)

from .config import FolderPermission, ProvisionRequest, Settings
from .engine import ProvisioningEngine
from .report import RunReport
from .session import open_client

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_PARTIAL = 2
EXIT_FATAL = 3


def setup_logging(settings: Settings, verbose: bool = False) -> None:
    """Configure logging based on settings.

    Args:
        settings: Provisioner settings
        verbose: Force DEBUG level
    """
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="user-folders",
        description="Provision per-user vault folders from group membership",
    )
    parser.add_argument("--url", help="Vault base URL (or VAULT_BASE_URL)")
    parser.add_argument("--parent-folder", required=True, help="Common parent folder name")
    parser.add_argument("--group", required=True, help="Group whose members get folders")
    parser.add_argument(
        "--permission",
        required=True,
        choices=[p.value for p in FolderPermission],
        help="Role each user gets on their folder",
    )
    parser.add_argument("--admin-group", help="Group granted admin access to every user folder")
    parser.add_argument(
        "--admin-permission",
        metavar="PERMISSION",
        help="Admin group role pair: AddSecret\\List (AddSecret/List also accepted)",
    )
    parser.add_argument(
        "--subfolder",
        action="append",
        default=[],
        metavar="NAME",
        help="Subfolder created in each user folder (repeatable)",
    )
    parser.add_argument("--subfolders", help="Comma-separated subfolder names")
    parser.add_argument("--auth-mode", choices=["token", "password", "integrated"])
    parser.add_argument("--username", help="Account for password authentication")
    parser.add_argument("--domain", help="Directory domain of the account")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be created")
    parser.add_argument("--json", action="store_true", help="Print the run report as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from the environment, overridden by command line flags."""
    overrides: dict[str, Any] = {
        "base_url": args.url,
        "auth_mode": args.auth_mode,
        "username": args.username,
        "domain": args.domain,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def build_request(args: argparse.Namespace) -> ProvisionRequest:
    subfolders = list(args.subfolder)
    if args.subfolders:
        subfolders.extend(s for s in args.subfolders.split(",") if s.strip())
    return ProvisionRequest.build(
        parent_folder=args.parent_folder,
        group=args.group,
        permission=args.permission,
        admin_group=args.admin_group,
        admin_permission=args.admin_permission,
        subfolders=subfolders,
        dry_run=args.dry_run,
    )


async def provision(settings: Settings, request: ProvisionRequest, **client_kwargs: Any) -> RunReport:
    """Authenticate, then run the engine once."""
    client = await open_client(settings, **client_kwargs)
    async with client:
        engine = ProvisioningEngine.from_settings(client, settings)
        return await engine.run(request)


def print_report(report: RunReport, as_json: bool) -> None:
    if as_json:
        print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
        return

    verb = "Would create" if report.dry_run else "Created"
    if report.parent_created:
        print(f"{verb} parent folder '{report.parent_folder}'")
    names = report.planned if report.dry_run else sorted(report.created)
    for name in names:
        print(f"{verb} folder '{name}'")
    if report.skipped:
        print(f"Already provisioned: {', '.join(report.skipped)}")
    for failure in report.failures:
        print(f"FAILED {failure}")


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
        request = build_request(args)
    except pydantic.ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except ValidationError as e:
        print(f"Invalid arguments: {e.message}", file=sys.stderr)
        return EXIT_CONFIG

    setup_logging(settings, verbose=args.verbose)
    settings.log_config()

    try:
        report = asyncio.run(provision(settings, request))
    except AuthenticationError as e:
        logger.error(str(e))
        return EXIT_FATAL
    except (AmbiguousOrMissingEntityError, RemoteError) as e:
        logger.error(f"Provisioning aborted: {e}")
        return EXIT_FATAL

    print_report(report, args.json)
    try:
        report.raise_for_failures()
    except PartialProvisioningError as e:
        logger.error(str(e))
        return EXIT_PARTIAL
    return EXIT_OK


def main() -> None:
    """Main entry point."""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        # Folders and grants already written are kept
        sys.exit(130)


if __name__ == "__main__":
    main()
