from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"  # platform operator, may act across companies
    COMPANY_ADMIN = "COMPANY_ADMIN"
    REGIONAL_MANAGER = "REGIONAL_MANAGER"
    AREA_MANAGER = "AREA_MANAGER"
    TEAM_LEADER = "TEAM_LEADER"
    SENIOR_AGENT = "SENIOR_AGENT"
    AGENT = "AGENT"
    FIELD_SALES_AGENT = "FIELD_SALES_AGENT"
    FIELD_MARKETING_AGENT = "FIELD_MARKETING_AGENT"
    PROMOTER = "PROMOTER"


ALL_ROLES = frozenset(role.value for role in UserRole)

ADMIN_ROLES = frozenset({UserRole.SUPER_ADMIN.value, UserRole.COMPANY_ADMIN.value})

MANAGER_ROLES = ADMIN_ROLES | {
    UserRole.REGIONAL_MANAGER.value,
    UserRole.AREA_MANAGER.value,
    UserRole.TEAM_LEADER.value,
}

AGENT_ROLES = frozenset(
    {
        UserRole.SENIOR_AGENT.value,
        UserRole.AGENT.value,
        UserRole.FIELD_SALES_AGENT.value,
        UserRole.FIELD_MARKETING_AGENT.value,
        UserRole.PROMOTER.value,
    }
)

FIELD_SALES_ROLES = MANAGER_ROLES | {
    UserRole.SENIOR_AGENT.value,
    UserRole.AGENT.value,
    UserRole.FIELD_SALES_AGENT.value,
}

FIELD_MARKETING_ROLES = MANAGER_ROLES | {
    UserRole.SENIOR_AGENT.value,
    UserRole.AGENT.value,
    UserRole.FIELD_MARKETING_AGENT.value,
}

PROMOTION_ROLES = MANAGER_ROLES | {
    UserRole.SENIOR_AGENT.value,
    UserRole.PROMOTER.value,
}

REPORTING_ROLES = MANAGER_ROLES


def normalize_role(role: str | None) -> str:
    return (role or "").strip().upper()


def is_super_admin(user) -> bool:
    return normalize_role(getattr(user, "role", None)) == UserRole.SUPER_ADMIN.value


def is_agent(user) -> bool:
    return normalize_role(getattr(user, "role", None)) in AGENT_ROLES
