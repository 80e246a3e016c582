"""Tests de validación de privilegios (escalamiento de roles)"""

import pytest

from app.exceptions import PrivilegeEscalationError, AdminRoleRequirementError
from app.utils.privileges import (
    GrantorContext,
    RoleHierarchy,
    validate_role_assignment,
    validate_admin_organizations,
    validate_admin_role_requirements,
    validate_target_user,
)


def grantor(*roles, super_admin=False, admin_orgs=()):
    return GrantorContext(
        id=1,
        roles=list(roles),
        is_super_admin=super_admin,
        admin_organization_ids=list(admin_orgs),
    )


class TestValidateRoleAssignment:

    def test_admin_cannot_assign_admin(self):
        with pytest.raises(PrivilegeEscalationError, match="'admin'"):
            validate_role_assignment(["admin"], grantor("admin"))

    def test_admin_can_assign_lower_roles(self):
        validate_role_assignment(["manager", "employee"], grantor("admin"))

    def test_super_admin_cannot_replicate_itself(self):
        with pytest.raises(PrivilegeEscalationError, match="nivel 4"):
            validate_role_assignment(["super_admin"], grantor("super_admin"))

    def test_super_admin_can_assign_admin(self):
        validate_role_assignment(["admin"], grantor("super_admin"))

    def test_grantor_without_roles_is_employee(self):
        # employee (1) >= employee (1)
        with pytest.raises(PrivilegeEscalationError):
            validate_role_assignment(["employee"], grantor())

    def test_highest_role_wins(self):
        validate_role_assignment(["manager"], grantor("employee", "admin"))

    def test_unknown_roles_are_always_allowed(self):
        validate_role_assignment(["hr", "feedback_reviewer"], grantor("employee"))

    def test_message_includes_both_levels(self):
        with pytest.raises(PrivilegeEscalationError) as exc_info:
            validate_role_assignment(["admin"], grantor("manager"))

        message = exc_info.value.message
        assert "MANAGER (nivel 2)" in message
        assert "ADMIN (nivel 3)" in message

    def test_missing_grantor_is_rejected(self):
        with pytest.raises(PrivilegeEscalationError, match="SEGURIDAD"):
            validate_role_assignment(["employee"], None)

    def test_custom_role_hierarchy(self):
        custom = RoleHierarchy({"viewer": 1, "editor": 2, "owner": 3}, default_role="viewer")

        validate_role_assignment(["editor"], grantor("owner"), role_hierarchy=custom)
        with pytest.raises(PrivilegeEscalationError, match="OWNER"):
            validate_role_assignment(["owner"], grantor("owner"), role_hierarchy=custom)

    def test_role_hierarchy_requires_known_default(self):
        with pytest.raises(ValueError):
            RoleHierarchy({"viewer": 1}, default_role="employee")


class TestValidateAdminOrganizations:

    def test_unmanaged_org_is_named(self):
        with pytest.raises(PrivilegeEscalationError) as exc_info:
            validate_admin_organizations([10, 20], grantor("admin", admin_orgs=[10]))

        assert "20" in exc_info.value.message
        assert "10," not in exc_info.value.message

    def test_all_violations_are_listed(self):
        with pytest.raises(PrivilegeEscalationError, match="20, 30"):
            validate_admin_organizations([10, 20, 30], grantor("admin", admin_orgs=[10]))

    def test_managed_orgs_pass(self):
        validate_admin_organizations([10], grantor("admin", admin_orgs=[10, 11]))

    def test_super_admin_bypasses_check(self):
        validate_admin_organizations([99], grantor("super_admin", super_admin=True))


class TestValidateAdminRoleRequirements:

    def test_admin_without_orgs_is_rejected(self):
        with pytest.raises(AdminRoleRequirementError):
            validate_admin_role_requirements(["admin"], [])

        with pytest.raises(AdminRoleRequirementError):
            validate_admin_role_requirements(["manager", "admin"], None)

    def test_admin_with_orgs_passes(self):
        validate_admin_role_requirements(["admin"], [1])

    def test_other_roles_need_no_orgs(self):
        validate_admin_role_requirements(["manager"], None)


class TestValidateTargetUser:

    def test_admin_cannot_touch_super_admin(self):
        with pytest.raises(PrivilegeEscalationError, match="SUPER_ADMIN"):
            validate_target_user(["super_admin"], [], grantor("admin", admin_orgs=[10]))

    def test_admin_cannot_touch_peer_admin(self):
        with pytest.raises(PrivilegeEscalationError):
            validate_target_user(["admin"], [10], grantor("admin", admin_orgs=[10]))

    def test_lower_user_passes(self):
        validate_target_user(["manager", "hr"], [], grantor("admin", admin_orgs=[10]))

    def test_foreign_admin_grants_are_protected(self):
        custom = RoleHierarchy({"employee": 1, "admin": 2, "owner": 3})

        with pytest.raises(PrivilegeEscalationError, match="20"):
            validate_target_user(["admin"], [10, 20], grantor("owner", admin_orgs=[10]), role_hierarchy=custom)

    def test_super_admin_reaches_any_admin(self):
        validate_target_user(["admin"], [99], grantor("super_admin", super_admin=True))

    def test_missing_grantor_is_rejected(self):
        with pytest.raises(PrivilegeEscalationError, match="SEGURIDAD"):
            validate_target_user(["employee"], [], None)
