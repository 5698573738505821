"""
Tests for user management endpoints
"""
from fastapi import status

from app.models.audit_log import AuditLog
from app.tests.utils import auth_headers


def _new_user_payload(**overrides):
    payload = {
        "email": "created@example.com",
        "password": "Cr3ated!Pass",
        "first_name": "Created",
        "last_name": "User",
        "employee_code": "EMP900",
    }
    payload.update(overrides)
    return payload


def test_list_users_requires_permission(client, employee_user):
    response = client.get("/api/v1/users", headers=auth_headers(client, employee_user.email))

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_list_users_paginates(client, hr_user, make_user):
    for _ in range(4):
        make_user()
    headers = auth_headers(client, hr_user.email)

    response = client.get("/api/v1/users?page=2&limit=2&sort_by=email&sort_order=asc", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["meta"] == {
        "page": 2,
        "limit": 2,
        "total": 5,
        "total_pages": 3,
        "has_next": True,
        "has_previous": True,
    }
    assert len(data["data"]) == 2


def test_list_users_filters(client, hr_user, make_user, seeded):
    make_user("manager", email="boss@example.com")
    headers = auth_headers(client, hr_user.email)

    by_role = client.get(f"/api/v1/users?role_id={seeded['manager'].id}", headers=headers).json()
    assert [u["email"] for u in by_role["data"]] == ["boss@example.com"]

    by_search = client.get("/api/v1/users?search=boss", headers=headers).json()
    assert by_search["meta"]["total"] == 1


def test_create_user(client, db, admin_user, seeded):
    response = client.post(
        "/api/v1/users",
        json=_new_user_payload(role_id=seeded["manager"].id),
        headers=auth_headers(client, admin_user.email),
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["role"]["slug"] == "manager"
    assert "password_hash" not in data
    assert db.query(AuditLog).filter(AuditLog.entity_type == "user", AuditLog.action == "CREATE").count() == 1


def test_create_user_defaults_to_employee_role(client, hr_user):
    response = client.post("/api/v1/users", json=_new_user_payload(), headers=auth_headers(client, hr_user.email))

    assert response.json()["role"]["slug"] == "employee"


def test_create_user_conflicts(client, hr_user, employee_user):
    headers = auth_headers(client, hr_user.email)

    duplicate_email = client.post("/api/v1/users", json=_new_user_payload(email=employee_user.email), headers=headers)
    assert duplicate_email.status_code == status.HTTP_409_CONFLICT

    duplicate_code = client.post(
        "/api/v1/users", json=_new_user_payload(employee_code=employee_user.employee_code), headers=headers
    )
    assert duplicate_code.status_code == status.HTTP_409_CONFLICT


def test_create_user_unknown_role(client, admin_user):
    response = client.post(
        "/api/v1/users", json=_new_user_payload(role_id=9999), headers=auth_headers(client, admin_user.email)
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["kind"] == "not_found"


def test_get_self_without_permission(client, employee_user, manager_user):
    headers = auth_headers(client, employee_user.email)

    assert client.get(f"/api/v1/users/{employee_user.id}", headers=headers).status_code == status.HTTP_200_OK
    assert client.get(f"/api/v1/users/{manager_user.id}", headers=headers).status_code == status.HTTP_403_FORBIDDEN


def test_get_unknown_user(client, hr_user):
    response = client.get("/api/v1/users/9999", headers=auth_headers(client, hr_user.email))

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_own_profile(client, employee_user):
    response = client.patch(
        f"/api/v1/users/{employee_user.id}",
        json={"first_name": "Renamed", "phone": "+1 555 0100"},
        headers=auth_headers(client, employee_user.email),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["first_name"] == "Renamed"
    assert response.json()["phone"] == "+1 555 0100"


def test_cannot_change_own_role_without_permission(client, employee_user, seeded):
    response = client.patch(
        f"/api/v1/users/{employee_user.id}",
        json={"role_id": seeded["super-admin"].id},
        headers=auth_headers(client, employee_user.email),
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_role_manager_can_reassign_role(client, admin_user, employee_user, seeded):
    response = client.patch(
        f"/api/v1/users/{employee_user.id}",
        json={"role_id": seeded["manager"].id},
        headers=auth_headers(client, admin_user.email),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["role"]["slug"] == "manager"


def test_hr_cannot_promote_self_to_super_admin(client, db, hr_user, seeded):
    response = client.patch(
        f"/api/v1/users/{hr_user.id}",
        json={"role_id": seeded["super-admin"].id},
        headers=auth_headers(client, hr_user.email),
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["kind"] == "forbidden"
    db.refresh(hr_user)
    assert hr_user.role_id == seeded["hr-manager"].id


def test_hr_cannot_reassign_other_roles(client, hr_user, employee_user, seeded):
    response = client.patch(
        f"/api/v1/users/{employee_user.id}",
        json={"role_id": seeded["manager"].id},
        headers=auth_headers(client, hr_user.email),
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_hr_cannot_create_user_with_role(client, hr_user, seeded):
    response = client.post(
        "/api/v1/users",
        json=_new_user_payload(role_id=seeded["super-admin"].id),
        headers=auth_headers(client, hr_user.email),
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_hr_can_still_update_other_admin_fields(client, hr_user, employee_user):
    response = client.patch(
        f"/api/v1/users/{employee_user.id}",
        json={"employee_code": "EMP777"},
        headers=auth_headers(client, hr_user.email),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["employee_code"] == "EMP777"


def test_deactivated_user_cannot_log_in(client, hr_user, employee_user):
    client.patch(
        f"/api/v1/users/{employee_user.id}",
        json={"is_active": False},
        headers=auth_headers(client, hr_user.email),
    )

    response = client.post("/api/v1/auth/login", json={"email": employee_user.email, "password": "Passw0rd!"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_delete_user(client, hr_user, employee_user):
    headers = auth_headers(client, hr_user.email)

    response = client.delete(f"/api/v1/users/{employee_user.id}", headers=headers)
    assert response.status_code == status.HTTP_200_OK

    assert client.get(f"/api/v1/users/{employee_user.id}", headers=headers).status_code == status.HTTP_404_NOT_FOUND


def test_cannot_delete_self(client, hr_user):
    response = client.delete(f"/api/v1/users/{hr_user.id}", headers=auth_headers(client, hr_user.email))

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_my_permissions(client, employee_user, admin_user):
    mine = client.get("/api/v1/users/me/permissions", headers=auth_headers(client, employee_user.email)).json()
    assert mine["unrestricted"] is False
    assert "leave:create" in mine["permissions"]
    assert "payroll:read" not in mine["permissions"]

    admin = client.get("/api/v1/users/me/permissions", headers=auth_headers(client, admin_user.email)).json()
    assert admin["unrestricted"] is True
    assert "payroll:approve" in admin["permissions"]
