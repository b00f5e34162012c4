from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from salessync.services.tenant_scope import TenantScope, resolve_company_id
from tests.fixtures_data import TENANT_ACCESS_DENIED


class _Column:
    def __init__(self, name):
        self.name = name

    def __eq__(self, other):
        return (self.name, other)

    __hash__ = object.__hash__


class _FakeModel:
    id = _Column("id")
    company_id = _Column("company_id")
    agent_id = _Column("agent_id")


class _FakeQuery:
    def __init__(self, row=None):
        self.row = row
        self.filters = []

    def filter(self, *criteria):
        self.filters.extend(criteria)
        return self

    def first(self):
        return self.row


class _FakeDb:
    def __init__(self, row=None):
        self.query_obj = _FakeQuery(row)

    def query(self, _model):
        return self.query_obj


def _user(role="COMPANY_ADMIN", company_id=1, user_id=10):
    return SimpleNamespace(id=user_id, company_id=company_id, role=role)


def test_resolve_company_id_ignores_header_for_regular_users():
    assert resolve_company_id(_user(company_id=5), "99") == 5


def test_resolve_company_id_reads_header_for_super_admin():
    assert resolve_company_id(_user(role="SUPER_ADMIN"), " 7 ") == 7
    assert resolve_company_id(_user(role="SUPER_ADMIN"), None) is None
    assert resolve_company_id(_user(role="SUPER_ADMIN"), "") is None


def test_resolve_company_id_rejects_non_numeric_header():
    with pytest.raises(HTTPException) as exc:
        resolve_company_id(_user(role="SUPER_ADMIN"), "acme")

    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid X-Tenant-ID header"


def test_filter_adds_company_criterion():
    scope = TenantScope(user=_user(company_id=3), company_id=3)
    query = scope.filter(_FakeQuery(), _FakeModel)

    assert query.filters == [("company_id", 3)]


def test_filter_is_unrestricted_for_platform_wide_super_admin():
    scope = TenantScope(user=_user(role="SUPER_ADMIN"), company_id=None)
    query = scope.filter(_FakeQuery(), _FakeModel)

    assert query.filters == []


def test_filter_own_restricts_agents_to_their_rows():
    scope = TenantScope(user=_user(role="FIELD_SALES_AGENT", company_id=3, user_id=44), company_id=3)
    query = scope.filter_own(_FakeQuery(), _FakeModel)

    assert query.filters == [("company_id", 3), ("agent_id", 44)]


def test_filter_own_leaves_managers_company_wide():
    scope = TenantScope(user=_user(role="AREA_MANAGER", company_id=3), company_id=3)
    query = scope.filter_own(_FakeQuery(), _FakeModel)

    assert query.filters == [("company_id", 3)]


def test_require_company_for_super_admin_without_header():
    scope = TenantScope(user=_user(role="SUPER_ADMIN"), company_id=None)

    with pytest.raises(HTTPException) as exc:
        scope.require_company()

    assert exc.value.status_code == 400
    assert exc.value.detail == "Tenant context required"


def test_get_or_404_reports_missing_row():
    scope = TenantScope(user=_user(), company_id=1)

    with pytest.raises(HTTPException) as exc:
        scope.get_or_404(_FakeDb(None), _FakeModel, 5, label="Customer")

    assert exc.value.status_code == 404
    assert exc.value.detail == "Customer not found"


def test_get_or_404_denies_row_of_another_company():
    scope = TenantScope(user=_user(company_id=1), company_id=1)
    row = SimpleNamespace(id=5, company_id=2)

    with pytest.raises(HTTPException) as exc:
        scope.get_or_404(_FakeDb(row), _FakeModel, 5)

    assert exc.value.status_code == TENANT_ACCESS_DENIED["expected_status_code"]
    assert exc.value.detail == TENANT_ACCESS_DENIED["expected_error"]


def test_get_or_404_returns_any_row_to_platform_wide_super_admin():
    scope = TenantScope(user=_user(role="SUPER_ADMIN"), company_id=None)
    row = SimpleNamespace(id=5, company_id=2)

    assert scope.get_or_404(_FakeDb(row), _FakeModel, 5) is row


def test_ensure_own_blocks_agent_from_colleague_rows():
    scope = TenantScope(user=_user(role="AGENT", user_id=10), company_id=1)

    scope.ensure_own(SimpleNamespace(agent_id=10, company_id=1))
    with pytest.raises(HTTPException) as exc:
        scope.ensure_own(SimpleNamespace(agent_id=11, company_id=1))

    assert exc.value.status_code == 403
