import unittest
from types import SimpleNamespace

from backend.app.database.models import UserCompanyAccess
from backend.app.utils.security.permissions import (
    access_allows,
    can_invite,
    effective_permissions,
    has_platform_permission,
    is_valid_permission,
    platform_permissions,
    validate_permissions,
)
from backend.app.utils.system_utils.exceptions import BusinessRuleError


def _access(role="collaborator", permissions=None, status="active"):
    return UserCompanyAccess(role=role, permissions=permissions or [], status=status)


# Tests for the validation of permission strings
class TestPermissionValidation(unittest.TestCase):

    # Test module permissions and the two special permissions are known
    def test_is_valid_permission(self):
        self.assertTrue(is_valid_permission("records.write"))

        self.assertTrue(is_valid_permission("all"))

        self.assertTrue(is_valid_permission("invite"))

        self.assertFalse(is_valid_permission("records.delete"))

        self.assertFalse(is_valid_permission("marketing.read"))

    # Test duplicates are dropped in order
    def test_validate_permissions(self):
        self.assertEqual(validate_permissions(["dpia.read", "actions.write", "dpia.read"]), ["dpia.read", "actions.write"])

    # Test an unknown permission is refused
    def test_validate_unknown(self):
        with self.assertRaises(BusinessRuleError):
            validate_permissions(["records.read", "billing.write"])


# Tests for company access evaluation
class TestCompanyAccess(unittest.TestCase):

    # Test write implies read on the same module only
    def test_write_implies_read(self):
        access = _access(permissions=["records.write"])

        self.assertTrue(access_allows(access, "records", "read"))

        self.assertTrue(access_allows(access, "records", "write"))

        self.assertFalse(access_allows(access, "dpia", "read"))

    # Test owners and "all" grant every module
    def test_owner_and_all(self):
        self.assertTrue(access_allows(_access(role="owner"), "breaches", "write"))

        self.assertTrue(access_allows(_access(permissions=["all"]), "policies", "write"))

        self.assertIn("invite", effective_permissions(_access(role="owner")))

    # Test pending or revoked accesses grant nothing
    def test_inactive_access(self):
        self.assertEqual(effective_permissions(_access(role="owner", status="revoked")), set())

        self.assertEqual(effective_permissions(None), set())

    # Test only owners and entitled admins may invite
    def test_can_invite(self):
        self.assertTrue(can_invite(_access(role="owner")))

        self.assertTrue(can_invite(_access(role="admin", permissions=["invite"])))

        self.assertFalse(can_invite(_access(role="admin", permissions=["records.write"])))

        self.assertFalse(can_invite(_access(role="collaborator", permissions=["all"])))

        self.assertFalse(can_invite(_access(role="owner", status="pending")))


# Tests for platform permissions
class TestPlatformPermissions(unittest.TestCase):

    # Test each role inherits the permissions of the previous one
    def test_role_inheritance(self):
        user = set(platform_permissions("user"))
        admin = set(platform_permissions("admin"))
        super_admin = set(platform_permissions("super_admin"))

        self.assertTrue(user < admin < super_admin)

    # Test unknown roles fall back to the user permissions
    def test_unknown_role(self):
        self.assertEqual(platform_permissions("guest"), platform_permissions("user"))

    # Test a permission check on a user
    def test_has_platform_permission(self):
        self.assertTrue(has_platform_permission(SimpleNamespace(role="admin"), "manage:prompts"))

        self.assertFalse(has_platform_permission(SimpleNamespace(role="admin"), "view:logs"))


if __name__ == "__main__":
    unittest.main()
