"""
Unit tests for vault wire models.

Tests cover:
- Lookup results
- Folder parsing and child enumeration
- Request serialisation
- Permission grant principals
"""

import pytest

from vault_sdk import (
    AmbiguousOrMissingEntityError,
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
)


class TestLookupResult:
    """Tests for LookupResult."""

    def test_require_returns_id_when_found(self):
        result = LookupResult("Eng", EntityKind.GROUP, LookupStatus.FOUND, id=7)
        assert result.found
        assert result.require() == 7

    @pytest.mark.parametrize("status", [LookupStatus.NOT_FOUND, LookupStatus.AMBIGUOUS])
    def test_require_raises_when_not_found(self, status):
        result = LookupResult("Eng", EntityKind.GROUP, status)
        assert not result.found
        with pytest.raises(AmbiguousOrMissingEntityError) as exc:
            result.require()
        assert exc.value.name == "Eng"
        assert exc.value.kind == "group"
        assert exc.value.status == status.value


class TestFolder:
    """Tests for Folder parsing."""

    def test_from_dict_with_flat_children(self):
        """Descendants returned flat are filtered to direct children."""
        folder = Folder.from_dict(
            {
                "id": 10,
                "folderName": "Personal Vaults",
                "parentFolderId": -1,
                "childFolders": [
                    {"id": 11, "folderName": "Alice", "parentFolderId": 10},
                    {"id": 12, "folderName": "Keys", "parentFolderId": 11},
                    {"id": 13, "folderName": "Bob", "parentFolderId": 10},
                ],
            }
        )
        assert folder.id == 10
        assert folder.parent_id == -1
        assert len(folder.children) == 3
        assert folder.child_names() == {"Alice", "Bob"}

    def test_children_without_parent_id_count_as_direct(self):
        folder = Folder.from_dict({"id": 1, "folderName": "p", "childFolders": [{"id": 2, "folderName": "c"}]})
        assert folder.child_names() == {"c"}

    def test_no_children(self):
        folder = Folder.from_dict({"id": 1, "folderName": "p", "childFolders": None})
        assert folder.children == []
        assert folder.child_names() == set()


class TestFolderCreateRequest:
    """Tests for FolderCreateRequest."""

    def test_from_stub_uses_template_defaults(self):
        stub = FolderStub(folder_type_id=3, inherit_permissions=True, inherit_secret_policy=False)
        request = FolderCreateRequest.from_stub(stub, "Personal Vaults")

        assert request.folder_name == "Personal Vaults"
        assert request.parent_folder_id == -1
        assert request.folder_type_id == 3
        assert request.inherit_secret_policy is False

    def test_from_stub_overrides(self):
        request = FolderCreateRequest.from_stub(
            FolderStub(), "Alice", 10, inherit_permissions=False, inherit_secret_policy=True
        )
        assert request.to_dict() == {
            "folderName": "Alice",
            "parentFolderId": 10,
            "inheritPermissions": False,
            "inheritSecretPolicy": True,
            "folderTypeId": 1,
            "secretPolicyId": -1,
        }

    def test_stub_from_dict(self):
        stub = FolderStub.from_dict({"folderTypeId": 1, "parentFolderId": None, "inheritPermissions": False})
        assert stub.parent_folder_id == -1
        assert stub.inherit_permissions is False


class TestPermissions:
    """Tests for permission models."""

    def test_grant_with_user_id_is_user_principal(self):
        grant = PermissionGrant.from_dict(
            {
                "id": 1,
                "folderId": 10,
                "groupId": 55,
                "userId": 2,
                "folderAccessRoleName": "Edit",
                "secretAccessRoleName": "Edit",
            }
        )
        assert grant.principal == Principal.user(2)
        assert grant.principal.type is PrincipalType.USER

    def test_grant_without_user_id_is_group_principal(self):
        grant = PermissionGrant.from_dict(
            {"id": 1, "folderId": 10, "groupId": 55, "userId": None, "folderAccessRoleName": "View"}
        )
        assert grant.principal == Principal.group(55)
        assert grant.secret_access_role == ""

    def test_create_request_user_body(self):
        body = PermissionCreateRequest(10, Principal.user(2), "Owner", "Owner").to_dict()
        assert body == {
            "folderId": 10,
            "userId": 2,
            "folderAccessRoleName": "Owner",
            "secretAccessRoleName": "Owner",
        }

    def test_create_request_group_body(self):
        body = PermissionCreateRequest(10, Principal.group(9), "Add Secret", "List").to_dict()
        assert body["groupId"] == 9
        assert "userId" not in body

    def test_principal_str(self):
        assert str(Principal.group(9)) == "group:9"
