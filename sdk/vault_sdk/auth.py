"""
Token exchange for the vault SDK.

Usernames and passwords are exchanged once for a bearer token via the
OAuth2 password grant. The token is then handed to VaultClient.
"""

from __future__ import annotations

import logging

import httpx

from .errors import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth2/token"


async def fetch_token(
    base_url: str,
    username: str,
    password: str,
    *,
    domain: str | None = None,
    timeout: float = 30.0,
    verify: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Exchange credentials for an access token.

    Args:
        base_url: Vault base URL
        username: Account name
        password: Account password
        domain: Optional directory domain of the account
        timeout: Request timeout in seconds
        verify: Verify TLS certificates
        transport: Optional transport override (testing)

    Returns:
        The bearer token

    Raises:
        AuthenticationError: If the exchange fails for any reason
    """
    form = {"grant_type": "password", "username": username, "password": password}
    if domain:
        form["domain"] = domain

    url = base_url.rstrip("/") + TOKEN_PATH
    async with httpx.AsyncClient(timeout=timeout, verify=verify, transport=transport) as http:
        try:
            response = await http.post(url, data=form)
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Token request to {url} failed: {e}") from e

    if not response.is_success:
        raise AuthenticationError(
            f"Authentication failed: {response.status_code} {response.reason_phrase}: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        data = response.json()
    except ValueError:
        data = None
    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise AuthenticationError(
            "Authentication reply did not contain an access token",
            status_code=response.status_code,
            body=response.text,
        )

    logger.info("Obtained vault access token", extra={"username": username})
    return token
