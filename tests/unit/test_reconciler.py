"""
Unit tests for folder reconciliation.

Tests cover:
- Delta computation
- Parent folder creation and grants
- Inheritance flags of user folders and subfolders
"""

import pytest

from user_folders.reconciler import FolderReconciler, compute_delta
from user_folders.resolver import UniqueResolver
from vault_sdk import FolderStub


class TestComputeDelta:
    """Tests for compute_delta."""

    def test_existing_users_are_skipped(self):
        members = {"Alice": 1, "Bob": 2, "Carol": 3}
        assert compute_delta(members, {"Alice"}) == {"Bob": 2, "Carol": 3}

    def test_inputs_are_not_mutated(self):
        members = {"Alice": 1}
        existing = {"Alice"}
        delta = compute_delta(members, existing)

        assert delta == {}
        assert members == {"Alice": 1}
        assert existing == {"Alice"}

    def test_empty_membership(self):
        assert compute_delta({}, {"Alice"}) == {}

    def test_unrelated_folders_are_ignored(self):
        assert compute_delta({"Alice": 1}, ["Shared", "alice"]) == {"Alice": 1}


class TestFolderReconciler:
    """Tests for FolderReconciler against the in-memory vault."""

    @pytest.fixture
    def stub(self):
        return FolderStub()

    @pytest.mark.asyncio
    async def test_find_parent(self, vault, client):
        parent_id = vault.add_folder("Personal Vaults")
        async with client:
            reconciler = FolderReconciler(client, UniqueResolver(client))
            assert await reconciler.find_parent("Personal Vaults") == parent_id
            assert await reconciler.find_parent("Team Vaults") is None

    @pytest.mark.asyncio
    async def test_create_parent_grants_group_view_list(self, vault, client, stub):
        group_id = vault.add_group("Vault Admins")
        admin_id = vault.add_group("Helpdesk")

        async with client:
            reconciler = FolderReconciler(client, UniqueResolver(client))
            parent = await reconciler.create_parent("Personal Vaults", stub, group_id, admin_id)

        grants = vault.grants_on(parent.id)
        assert vault.folders[parent.id]["parentFolderId"] == -1
        assert {(g["groupId"], g["folderAccessRoleName"], g["secretAccessRoleName"]) for g in grants} == {
            (group_id, "View", "List"),
            (admin_id, "View", "List"),
        }

    @pytest.mark.asyncio
    async def test_existing_children_are_direct_only(self, vault, client):
        parent_id = vault.add_folder("Personal Vaults")
        alice = vault.add_folder("Alice", parent_id, inherit_permissions=False)
        vault.add_folder("Keys", alice)

        async with client:
            names = await FolderReconciler(client, UniqueResolver(client)).existing_children(parent_id)

        assert names == {"Alice"}

    @pytest.mark.asyncio
    async def test_inheritance_flags(self, vault, client, stub):
        parent_id = vault.add_folder("Personal Vaults")

        async with client:
            reconciler = FolderReconciler(client, UniqueResolver(client))
            user_folder = await reconciler.create_user_folder(parent_id, "Alice", stub)
            subfolder = await reconciler.create_subfolder(user_folder.id, "Keys", stub)

        assert user_folder.parent_id == parent_id
        assert user_folder.inherit_permissions is False
        assert user_folder.inherit_secret_policy is True
        assert subfolder.parent_id == user_folder.id
        assert subfolder.inherit_permissions is True
        assert subfolder.inherit_secret_policy is True
