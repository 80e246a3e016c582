"""Tests de /api/users y /api/organizations (asignación de roles)"""

import pytest


@pytest.fixture
def admin(make_user):
    return make_user("Ada", roles=["admin"])


@pytest.fixture
def root(make_user):
    return make_user("Root", roles=["super_admin"])


@pytest.fixture
def worker(make_user):
    return make_user("Wendy")


def assign(client, headers, user_id, roles, admin_organization_ids=None):
    return client.put(
        f"/api/users/{user_id}/roles",
        json={"roles": roles, "admin_organization_ids": admin_organization_ids},
        headers=headers,
    )


class TestReadUsers:

    def test_me(self, client, admin, auth_headers):
        response = client.get("/api/users/me", headers=auth_headers(admin))

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Ada"
        assert data["role_names"] == ["admin"]
        assert data["admin_organization_ids"] == [admin.organization_id]

    def test_list_defaults_to_own_org(self, client, admin, worker, make_org, make_user, auth_headers):
        make_user("Mallory", organization=make_org("Other"))

        response = client.get("/api/users/", headers=auth_headers(worker))

        assert [user["name"] for user in response.json()] == ["Ada", "Wendy"]

    def test_list_of_other_org_is_forbidden(self, client, worker, make_org, auth_headers):
        other = make_org("Other")
        response = client.get("/api/users/", params={"organization_id": other.id}, headers=auth_headers(worker))
        assert response.status_code == 403

    def test_missing_user(self, client, worker, auth_headers):
        response = client.get("/api/users/9999", headers=auth_headers(worker))
        assert response.status_code == 404


class TestAssignRoles:

    def test_admin_assigns_lower_role(self, client, admin, worker, auth_headers):
        response = assign(client, auth_headers(admin), worker.id, ["manager"])

        assert response.status_code == 200
        assert response.json()["role_names"] == ["manager"]

    def test_admin_cannot_assign_admin(self, client, org, admin, worker, auth_headers):
        response = assign(client, auth_headers(admin), worker.id, ["admin"], [org.id])

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
        assert "'admin'" in response.json()["detail"]

    def test_admin_requires_organizations(self, client, root, worker, auth_headers):
        response = assign(client, auth_headers(root), worker.id, ["admin"], [])

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_super_admin_grants_admin(self, client, org, root, worker, auth_headers):
        response = assign(client, auth_headers(root), worker.id, ["admin", "employee"], [org.id])

        assert response.status_code == 200
        data = response.json()
        assert data["role_names"] == ["admin", "employee"]
        assert data["admin_organization_ids"] == [org.id]

    def test_super_admin_cannot_replicate_itself(self, client, root, worker, auth_headers):
        response = assign(client, auth_headers(root), worker.id, ["super_admin"])
        assert response.status_code == 403

    def test_employee_cannot_assign_roles(self, client, worker, make_user, auth_headers):
        colleague = make_user("Walter")
        response = assign(client, auth_headers(worker), colleague.id, ["employee"])
        assert response.status_code == 403

    def test_admin_of_other_org(self, client, worker, make_org, make_user, auth_headers):
        foreign_admin = make_user("Mallory", roles=["admin"], organization=make_org("Other"))

        response = assign(client, auth_headers(foreign_admin), worker.id, ["employee"])

        assert response.status_code == 403

    def test_assign_to_missing_user(self, client, admin, auth_headers):
        response = assign(client, auth_headers(admin), 9999, ["employee"])
        assert response.status_code == 404

    def test_roles_are_replaced(self, client, admin, make_user, auth_headers):
        target = make_user("Tom", roles=["manager", "hr"])

        response = assign(client, auth_headers(admin), target.id, ["employee"])

        assert response.json()["role_names"] == ["employee"]


class TestOrganizations:

    def test_super_admin_creates_organization(self, client, root, auth_headers):
        response = client.post(
            "/api/organizations/", json={"name": "Globex", "slug": "globex"}, headers=auth_headers(root)
        )

        assert response.status_code == 201
        assert response.json()["slug"] == "globex"

    def test_duplicate_slug(self, client, org, root, auth_headers):
        response = client.post(
            "/api/organizations/", json={"name": "Acme 2", "slug": org.slug}, headers=auth_headers(root)
        )
        assert response.status_code == 400

    def test_admin_cannot_create_organization(self, client, admin, auth_headers):
        response = client.post(
            "/api/organizations/", json={"name": "Globex", "slug": "globex"}, headers=auth_headers(admin)
        )
        assert response.status_code == 403

    def test_listing_is_scoped(self, client, org, admin, root, make_org, auth_headers):
        make_org("Other")

        mine = client.get("/api/organizations/", headers=auth_headers(admin)).json()
        everything = client.get("/api/organizations/", headers=auth_headers(root)).json()

        assert [o["slug"] for o in mine] == ["acme"]
        assert [o["slug"] for o in everything] == ["acme", "other"]


class TestProtectedTargets:

    def test_admin_cannot_demote_super_admin(self, client, db, admin, root, auth_headers):
        response = assign(client, auth_headers(admin), root.id, ["employee"])

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
        db.expire_all()
        assert root.role_names == ["super_admin"]

    def test_admin_cannot_strip_peer_admin(self, client, db, org, admin, make_user, auth_headers):
        peer = make_user("Peter", roles=["admin"])

        response = assign(client, auth_headers(admin), peer.id, [])

        assert response.status_code == 403
        db.expire_all()
        assert peer.role_names == ["admin"]
        assert peer.admin_organization_ids == [org.id]

    def test_super_admin_can_demote_admin(self, client, admin, root, auth_headers):
        response = assign(client, auth_headers(root), admin.id, ["employee"])

        assert response.status_code == 200
        assert response.json()["admin_organization_ids"] == []
