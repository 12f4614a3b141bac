"""
Shared fixtures for the provisioner test suite.
"""

import pytest

from tests.fake_vault import BASE_URL, FakeVault
from vault_sdk import VaultClient


@pytest.fixture
def vault() -> FakeVault:
    """Empty in-memory vault."""
    return FakeVault()


@pytest.fixture
def client(vault: FakeVault) -> VaultClient:
    """Unconnected client bound to the fake vault."""
    return VaultClient(BASE_URL, token=vault.token, transport=vault.transport())
