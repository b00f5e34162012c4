from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from salessync.core.roles import ADMIN_ROLES, MANAGER_ROLES
from salessync.deps import get_current_user, get_tenant_scope, require_role, require_scope
from salessync.services.security import create_access_token, create_refresh_token


def _build_request(
    path: str = "/api/resource",
    method: str = "GET",
    query_string: str = "",
    headers: dict | None = None,
) -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query_string.encode(),
        "headers": [(key.lower().encode(), value.encode()) for key, value in (headers or {}).items()],
        "path_params": {},
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


class _FakeQuery:
    def __init__(self, result):
        self._result = result

    def filter(self, *_args, **_kwargs):
        return self

    def first(self):
        return self._result


class _FakeDb:
    def __init__(self, user):
        self._user = user

    def query(self, _model):
        return _FakeQuery(self._user)


def _user(**overrides):
    values = {
        "id": 12,
        "company_id": 3,
        "role": "COMPANY_ADMIN",
        "is_active": True,
        "company": SimpleNamespace(id=3, is_active=True),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_require_role_denies_role_outside_allowed_set():
    user = _user(role="AGENT")
    request = _build_request(path="/api/users", method="POST")
    dependency = require_role(ADMIN_ROLES)

    with pytest.raises(HTTPException) as exc:
        dependency(request=request, user=user)

    assert exc.value.status_code == 403
    assert exc.value.detail == "Insufficient permissions"


def test_require_role_accepts_lowercase_role_values():
    user = _user(role="area_manager")
    dependency = require_role(MANAGER_ROLES)

    assert dependency(request=_build_request(), user=user) is user


def test_require_scope_returns_scope_bound_to_user_company():
    user = _user(role="TEAM_LEADER", company_id=9)
    dependency = require_scope(MANAGER_ROLES)

    scope = dependency(request=_build_request(headers={"X-Tenant-ID": "4"}), user=user)

    assert scope.company_id == 9
    assert scope.user is user


def test_get_tenant_scope_lets_super_admin_choose_company():
    user = _user(role="SUPER_ADMIN", company_id=1)

    scope = get_tenant_scope(request=_build_request(headers={"X-Tenant-ID": "42"}), user=user)

    assert scope.company_id == 42
    assert scope.is_super_admin is True


def test_get_current_user_requires_token():
    with pytest.raises(HTTPException) as exc:
        get_current_user(request=_build_request(), credentials=None, db=_FakeDb(None))

    assert exc.value.status_code == 401
    assert exc.value.detail == "Access token required"
    assert exc.value.headers == {"WWW-Authenticate": "Bearer"}


def test_get_current_user_rejects_refresh_token_as_access_token():
    user = _user()
    refresh_token, _ = create_refresh_token(user)
    request = _build_request(headers={"Authorization": f"Bearer {refresh_token}"})

    with pytest.raises(HTTPException) as exc:
        get_current_user(request=request, credentials=None, db=_FakeDb(user))

    assert exc.value.status_code == 401
    assert exc.value.detail == "Invalid or expired token"


def test_get_current_user_accepts_quoted_and_double_prefixed_tokens():
    user = _user()
    token = create_access_token(user)
    request = _build_request(headers={"Authorization": f'Bearer "Bearer {token}"'})

    resolved = get_current_user(request=request, credentials=None, db=_FakeDb(user))

    assert resolved is user
    assert request.state.user is user


@pytest.mark.parametrize(
    ("overrides", "detail"),
    [
        ({"is_active": False}, "User not found or inactive"),
        ({"company": SimpleNamespace(id=3, is_active=False)}, "Company is inactive"),
    ],
)
def test_get_current_user_rejects_inactive_accounts(overrides, detail):
    user = _user(**overrides)
    request = _build_request(headers={"Authorization": f"Bearer {create_access_token(user)}"})

    with pytest.raises(HTTPException) as exc:
        get_current_user(request=request, credentials=None, db=_FakeDb(user))

    assert exc.value.status_code == 401
    assert exc.value.detail == detail


def test_get_current_user_rejects_unknown_user():
    user = _user()
    request = _build_request(headers={"Authorization": f"Bearer {create_access_token(user)}"})

    with pytest.raises(HTTPException) as exc:
        get_current_user(request=request, credentials=None, db=_FakeDb(None))

    assert exc.value.detail == "User not found or inactive"
