"""
Integration tests for the command line entry point.
"""

import json
import logging

import pytest

from tests.fake_vault import BASE_URL
from user_folders import main as cli
from user_folders.session import open_client


@pytest.fixture(autouse=True)
def restore_logging():
    """setup_logging replaces the root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def env(monkeypatch, vault):
    """Environment for password auth against the fake vault."""
    monkeypatch.setenv("VAULT_BASE_URL", BASE_URL)
    monkeypatch.setenv("VAULT_USERNAME", "svc")
    monkeypatch.setenv("VAULT_PASSWORD", "secret")
    monkeypatch.setenv("VAULT_SETTLE_DELAY", "0")

    async def fake_open_client(settings, **kwargs):
        return await open_client(settings, transport=vault.transport())

    monkeypatch.setattr(cli, "open_client", fake_open_client)
    return vault


ARGS = ["--parent-folder", "Personal Vaults", "--group", "Vault Admins", "--permission", "Edit"]


class TestCli:
    """Tests for the user-folders CLI."""

    def test_success(self, env, capsys):
        env.add_group("Vault Admins", {1: "Alice", 2: "Bob"})

        code = cli.run(ARGS)

        out = capsys.readouterr().out
        assert code == cli.EXIT_OK
        assert "Created parent folder 'Personal Vaults'" in out
        assert "Created folder 'Alice'" in out
        assert env.folder_named("Bob") is not None

    def test_json_dry_run(self, env, capsys):
        env.add_group("Vault Admins", {1: "Alice"})

        code = cli.run(ARGS + ["--dry-run", "--json", "--subfolders", "Keys,Certs"])

        report = json.loads(capsys.readouterr().out)
        assert code == cli.EXIT_OK
        assert report["dry_run"] is True
        assert report["planned"] == ["Alice"]
        assert env.folders == {}

    def test_partial_failure_exit_code(self, env, capsys):
        env.add_group("Vault Admins", {1: "Alice", 2: "Bob"})
        env.fail_on("POST", "/folders", when=lambda body: body.get("folderName") == "Bob")

        code = cli.run(ARGS)

        assert code == cli.EXIT_PARTIAL
        assert "FAILED Bob: create-folder" in capsys.readouterr().out
        assert env.folder_named("Alice") is not None

    def test_authentication_failure(self, env, monkeypatch):
        monkeypatch.setenv("VAULT_PASSWORD", "wrong")
        env.add_group("Vault Admins", {1: "Alice"})

        assert cli.run(ARGS) == cli.EXIT_FATAL
        assert env.requests == []

    def test_unknown_group(self, env):
        assert cli.run(ARGS) == cli.EXIT_FATAL

    def test_admin_group_without_permission(self, env, capsys):
        code = cli.run(ARGS + ["--admin-group", "Helpdesk"])
        assert code == cli.EXIT_CONFIG
        assert "Admin group and admin permission" in capsys.readouterr().err

    def test_invalid_url(self, env, capsys):
        assert cli.run(ARGS + ["--url", "vault.example.com"]) == cli.EXIT_CONFIG
        assert "Configuration error" in capsys.readouterr().err

    def test_invalid_permission_is_rejected_by_parser(self, env):
        with pytest.raises(SystemExit):
            cli.run(["--parent-folder", "P", "--group", "G", "--permission", "Admin"])

    def test_admin_permission_accepts_forward_slash(self, env):
        admin_id = env.add_group("Helpdesk")
        env.add_group("Vault Admins", {1: "Alice"})

        code = cli.run(ARGS + ["--admin-group", "Helpdesk", "--admin-permission", "AddSecret/List"])

        assert code == cli.EXIT_OK
        alice = env.folder_named("Alice")
        admin = [g for g in env.grants_on(alice["id"]) if g["groupId"] == admin_id]
        assert [(g["folderAccessRoleName"], g["secretAccessRoleName"]) for g in admin] == [("Add Secret", "List")]

    def test_invalid_admin_permission(self, env, capsys):
        code = cli.run(ARGS + ["--admin-group", "Helpdesk", "--admin-permission", "Owner"])

        assert code == cli.EXIT_CONFIG
        assert "Invalid admin permission 'Owner'" in capsys.readouterr().err
        assert env.requests == []
