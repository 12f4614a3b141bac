"""
Client construction from settings.

Authentication happens here, once, before any folder work. The
resulting client is passed explicitly to every component.
"""

from __future__ import annotations

import logging

import httpx

from vault_sdk import VaultClient, fetch_token

from .config import AuthMode, Settings

logger = logging.getLogger(__name__)


async def open_client(
    settings: Settings,
    *,
    auth: httpx.Auth | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> VaultClient:
    """Authenticate and build an unconnected VaultClient.

    Args:
        settings: Provisioner settings
        auth: httpx auth handler used in integrated mode
        transport: Optional transport override (testing)

    Raises:
        AuthenticationError: If the token exchange fails
    """
    token: str | None = None
    if settings.auth_mode is AuthMode.PASSWORD:
        token = await fetch_token(
            settings.base_url,
            settings.username or "",
            settings.password.get_secret_value() if settings.password else "",
            domain=settings.domain,
            timeout=settings.timeout,
            verify=settings.verify_tls,
            transport=transport,
        )
    elif settings.auth_mode is AuthMode.TOKEN:
        token = settings.token.get_secret_value() if settings.token else None

    integrated = settings.auth_mode is AuthMode.INTEGRATED
    logger.debug(f"Using {settings.auth_mode.value} authentication")
    return VaultClient(
        settings.base_url,
        token=token,
        auth=auth if integrated else None,
        integrated=integrated,
        timeout=settings.timeout,
        verify=settings.verify_tls,
        transport=transport,
    )
