from unittest.mock import patch

import pytest

from salessync.core import config
from salessync.models.company import Company
from salessync.models.user import User
from salessync.models.warehouse import Warehouse
from salessync.services.bootstrap import bootstrap_super_admin, upsert_super_admin
from salessync.services.passwords import verify_password
from tests.factories import auth_headers, make_company, make_row, make_user
from tests.fixtures_data import DEFAULT_PASSWORD


@pytest.fixture
def root(db):
    platform = make_company(db, name="Platform", slug="platform", subscription_tier="enterprise")
    return make_user(db, platform, role="SUPER_ADMIN")


def test_super_admin_creates_company_with_normalized_slug(client, root):
    response = client.post(
        "/api/admin/companies",
        json={"name": "Água Viva Distribuidora", "subscription_tier": "professional"},
        headers=auth_headers(root),
    )

    assert response.status_code == 201
    assert response.json()["data"]["slug"] == "agua-viva-distribuidora"
    assert response.json()["data"]["subscription_tier"] == "professional"


def test_company_slug_must_be_unique(client, root, tenants):
    response = client.post(
        "/api/admin/companies",
        json={"name": "Copycat", "slug": "a-co"},
        headers=auth_headers(root),
    )

    assert response.status_code == 409
    assert response.json()["error"] == "Company slug already in use"


def test_company_admin_cannot_use_platform_endpoints(client, tenants):
    response = client.get("/api/admin/companies", headers=auth_headers(tenants["a"]["admin"]))

    assert response.status_code == 403


def test_get_company_reports_user_count(client, root, tenants):
    response = client.get(f"/api/admin/companies/{tenants['a']['company'].id}", headers=auth_headers(root))

    assert response.json()["data"]["user_count"] == 4


def test_super_admin_cannot_deactivate_own_company(client, root, tenants):
    own = client.delete(f"/api/admin/companies/{root.company_id}", headers=auth_headers(root))
    other = client.delete(f"/api/admin/companies/{tenants['b']['company'].id}", headers=auth_headers(root))

    assert own.status_code == 400
    assert other.status_code == 200


def test_admin_metrics_expose_per_company_counters(client, root, tenants):
    client.get("/api/customers", headers=auth_headers(tenants["a"]["agent"]))

    response = client.get("/api/admin/metrics", headers=auth_headers(root))

    data = response.json()["data"]
    assert "GET /api/customers" in data["endpoints"]
    assert str(tenants["a"]["company"].id) in data["companies"]


def test_company_admin_creates_user_in_own_company(client, db, tenants):
    response = client.post(
        "/api/users",
        json={
            "email": "New.Agent@Acme.io",
            "password": "Str0ngPass!",
            "first_name": "New",
            "last_name": "Agent",
            "role": "FIELD_MARKETING_AGENT",
        },
        headers=auth_headers(tenants["a"]["admin"]),
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "new.agent@acme.io"
    assert data["company_id"] == tenants["a"]["company"].id
    stored = db.query(User).filter(User.email == "new.agent@acme.io").first()
    assert verify_password("Str0ngPass!", stored.password_hash)


def test_company_admin_cannot_grant_super_admin(client, tenants):
    response = client.post(
        "/api/users",
        json={
            "email": "sneaky@acme.io",
            "password": "Str0ngPass!",
            "first_name": "Sneaky",
            "last_name": "User",
            "role": "SUPER_ADMIN",
        },
        headers=auth_headers(tenants["a"]["admin"]),
    )

    assert response.status_code == 403
    assert response.json()["error"] == "Cannot assign the SUPER_ADMIN role"


def test_duplicate_email_is_rejected(client, tenants):
    response = client.post(
        "/api/users",
        json={
            "email": tenants["b"]["agent"].email,
            "password": "Str0ngPass!",
            "first_name": "Dup",
            "last_name": "User",
        },
        headers=auth_headers(tenants["a"]["admin"]),
    )

    assert response.status_code == 409


def test_admin_cannot_deactivate_self(client, tenants):
    admin = tenants["a"]["admin"]

    response = client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot deactivate your own account"


def test_managers_can_list_but_not_edit_users(client, tenants):
    headers = auth_headers(tenants["a"]["manager"])

    assert client.get("/api/users?role=agent", headers=headers).status_code == 200
    response = client.put(f"/api/users/{tenants['a']['agent'].id}", json={"first_name": "X"}, headers=headers)
    assert response.status_code == 403


def test_upsert_super_admin_creates_platform_company(db):
    user, created = upsert_super_admin(db, email="Root@SalesSync.io", password="Sup3rSecret!", company_name="SalesSync HQ")

    assert created is True
    assert user.email == "root@salessync.io"
    assert user.role == "SUPER_ADMIN"
    assert db.query(Company).filter(Company.slug == "salessync-hq").count() == 1

    again, created_again = upsert_super_admin(db, email="root@salessync.io", password=None, company_name="Ignored")
    assert created_again is False
    assert again.id == user.id


def test_upsert_super_admin_requires_password_to_create(db):
    with pytest.raises(ValueError):
        upsert_super_admin(db, email="root@salessync.io", password="", company_name="SalesSync")


def test_bootstrap_skips_when_super_admin_exists(db, root):
    with patch.object(config, "BOOTSTRAP_ADMIN_PASSWORD", "Sup3rSecret!"), patch.object(config, "BOOTSTRAP_ALLOW", False):
        assert bootstrap_super_admin(db) is None


def test_bootstrap_creates_first_super_admin(db):
    with patch.object(config, "BOOTSTRAP_ADMIN_PASSWORD", "Sup3rSecret!"), patch.object(
        config, "BOOTSTRAP_ADMIN_EMAIL", "ops@salessync.io"
    ):
        user = bootstrap_super_admin(db)

    assert user.email == "ops@salessync.io"
    assert verify_password("Sup3rSecret!", user.password_hash)


@pytest.mark.parametrize("changes", [{"password": "Takeover123!"}, {"is_active": False}, {"first_name": "Renamed"}])
def test_company_admin_cannot_edit_super_admin_in_same_company(client, db, tenants, changes):
    company = tenants["a"]["company"]
    operator = make_user(db, company, role="SUPER_ADMIN", email="operator@a-co.salessync.io")

    response = client.put(f"/api/users/{operator.id}", json=changes, headers=auth_headers(tenants["a"]["admin"]))

    assert response.status_code == 403
    assert response.json()["error"] == "Cannot change a super admin"
    db.refresh(operator)
    assert operator.is_active is True
    assert verify_password(DEFAULT_PASSWORD, operator.password_hash)


def test_super_admin_password_stays_after_rejected_reset(client, db, tenants):
    company = tenants["a"]["company"]
    operator = make_user(db, company, role="SUPER_ADMIN", email="operator@a-co.salessync.io")
    client.put(
        f"/api/users/{operator.id}",
        json={"password": "Takeover123!"},
        headers=auth_headers(tenants["a"]["admin"]),
    )

    login = client.post("/api/auth/login", json={"email": operator.email, "password": "Takeover123!"})

    assert login.status_code == 401


def test_user_names_cannot_be_cleared(client, tenants):
    response = client.put(
        f"/api/users/{tenants['a']['agent'].id}",
        json={"first_name": None},
        headers=auth_headers(tenants["a"]["admin"]),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_warehouse_manager_must_share_the_warehouse_company(client, db, root, tenants):
    warehouse = make_row(db, Warehouse, company_id=tenants["a"]["company"].id, name="Main depot")

    foreign = client.put(
        f"/api/warehouses/{warehouse.id}",
        json={"manager_id": tenants["b"]["manager"].id},
        headers=auth_headers(root),
    )
    local = client.put(
        f"/api/warehouses/{warehouse.id}",
        json={"manager_id": tenants["a"]["manager"].id},
        headers=auth_headers(root),
    )

    assert foreign.status_code == 400
    assert foreign.json()["error"] == "Manager belongs to another company"
    assert local.status_code == 200
    assert local.json()["data"]["manager_id"] == tenants["a"]["manager"].id
