from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, joinedload

from salessync.core.database import utcnow
from salessync.core.roles import AGENT_ROLES
from salessync.models.activation import Activation
from salessync.models.sale import Sale, SaleItem
from salessync.models.street_interaction import StreetInteraction
from salessync.models.survey import SurveyResponse
from salessync.models.user import User
from salessync.models.visit import Visit
from salessync.schemas.common import to_naive_utc
from salessync.services.tenant_scope import TenantScope

PERIOD_DAYS = {"1d": 1, "7d": 7, "30d": 30, "90d": 90}
DEFAULT_PERIOD = "7d"
REPORT_ROW_LIMIT = 100


def resolve_period(period: str | None, now: datetime | None = None) -> tuple[str, datetime, datetime]:
    key = period if period in PERIOD_DAYS else DEFAULT_PERIOD
    end = now or utcnow()
    return key, end - timedelta(days=PERIOD_DAYS[key]), end


def completion_rate(completed: int, total: int) -> float:
    if not total:
        return 0.0
    return round(completed / total * 100, 1)


def _in_range(query, column, start: Optional[datetime], end: Optional[datetime]):
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column <= end)
    return query


def _money_sum(values) -> float:
    return float(sum((Decimal(str(value or 0)) for value in values), Decimal("0")))


def dashboard_metrics(db: Session, scope: TenantScope, period: str | None) -> Dict[str, Any]:
    key, start, end = resolve_period(period)

    sales = _in_range(scope.filter(db.query(Sale), Sale), Sale.created_at, start, end).all()
    visits = _in_range(scope.filter(db.query(Visit), Visit), Visit.created_at, start, end).all()
    responses = _in_range(
        scope.filter(db.query(SurveyResponse), SurveyResponse), SurveyResponse.created_at, start, end
    ).count()
    activations = _in_range(
        scope.filter(db.query(Activation), Activation), Activation.created_at, start, end
    ).all()

    completed_visits = sum(1 for visit in visits if visit.status == "COMPLETED")
    completed_activations = sum(1 for activation in activations if activation.status == "COMPLETED")
    return {
        "period": key,
        "date_range": {"start": start, "end": end},
        "metrics": {
            "total_sales": _money_sum(sale.total_amount for sale in sales),
            "sales_count": len(sales),
            "total_visits": len(visits),
            "completed_visits": completed_visits,
            "visit_completion_rate": completion_rate(completed_visits, len(visits)),
            "survey_responses": responses,
            "total_activations": len(activations),
            "completed_activations": completed_activations,
            "activation_completion_rate": completion_rate(completed_activations, len(activations)),
        },
    }


def sales_report(
    db: Session,
    scope: TenantScope,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    agent_id: Optional[int] = None,
    limit: int = REPORT_ROW_LIMIT,
) -> Dict[str, Any]:
    query = scope.filter(db.query(Sale), Sale).options(
        joinedload(Sale.agent),
        joinedload(Sale.customer),
        joinedload(Sale.items).joinedload(SaleItem.product),
    )
    query = _in_range(query, Sale.created_at, start_date, end_date)
    if agent_id is not None:
        query = query.filter(Sale.agent_id == agent_id)

    sales = query.order_by(Sale.created_at.desc()).limit(limit).all()
    total_amount = _money_sum(sale.total_amount for sale in sales)
    return {
        "sales": sales,
        "summary": {
            "total_sales": len(sales),
            "total_amount": total_amount,
            "average_amount": round(total_amount / len(sales), 2) if sales else 0.0,
        },
    }


def visits_report(
    db: Session,
    scope: TenantScope,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    agent_id: Optional[int] = None,
    status: Optional[str] = None,
    limit: int = REPORT_ROW_LIMIT,
) -> Dict[str, Any]:
    query = scope.filter(db.query(Visit), Visit).options(joinedload(Visit.agent), joinedload(Visit.customer))
    query = _in_range(query, Visit.created_at, start_date, end_date)
    if agent_id is not None:
        query = query.filter(Visit.agent_id == agent_id)
    if status:
        query = query.filter(Visit.status == status.upper())

    visits = query.order_by(Visit.created_at.desc()).limit(limit).all()
    return {
        "visits": visits,
        "summary": {
            "total_visits": len(visits),
            "status_breakdown": dict(Counter(visit.status for visit in visits)),
        },
    }


def agent_performance(
    db: Session,
    scope: TenantScope,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> list[Dict[str, Any]]:
    agents = (
        scope.filter(db.query(User), User)
        .filter(User.role.in_(sorted(AGENT_ROLES)))
        .order_by(User.id)
        .all()
    )

    result = []
    for agent in agents:
        sales = _in_range(db.query(Sale).filter(Sale.agent_id == agent.id), Sale.created_at, start_date, end_date).all()
        visits = _in_range(
            db.query(Visit).filter(Visit.agent_id == agent.id), Visit.created_at, start_date, end_date
        ).all()
        responses = _in_range(
            db.query(SurveyResponse).filter(SurveyResponse.agent_id == agent.id),
            SurveyResponse.created_at,
            start_date,
            end_date,
        ).count()
        completed_visits = sum(1 for visit in visits if visit.status == "COMPLETED")
        result.append(
            {
                "agent": {
                    "id": agent.id,
                    "first_name": agent.first_name,
                    "last_name": agent.last_name,
                    "email": agent.email,
                    "role": agent.role,
                },
                "metrics": {
                    "total_sales": _money_sum(sale.total_amount for sale in sales),
                    "sales_count": len(sales),
                    "total_visits": len(visits),
                    "completed_visits": completed_visits,
                    "visit_completion_rate": completion_rate(completed_visits, len(visits)),
                    "survey_responses": responses,
                },
            }
        )
    return result


def interaction_analytics(
    db: Session,
    scope: TenantScope,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    campaign_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Street-marketing figures for the calling agent.

    An interaction counts as converted once a customer was captured on it.
    """
    query = scope.filter(db.query(StreetInteraction), StreetInteraction).filter(
        StreetInteraction.agent_id == scope.user.id
    )
    if campaign_id is not None:
        query = query.filter(StreetInteraction.campaign_id == campaign_id)
    interactions = _in_range(query, StreetInteraction.created_at, start_date, end_date).all()

    total = len(interactions)
    completed = sum(1 for row in interactions if row.status == "COMPLETED")
    converted = sum(1 for row in interactions if row.customer_id is not None)
    durations = [
        (row.end_time - row.start_time).total_seconds() / 60
        for row in interactions
        if row.start_time is not None and row.end_time is not None
    ]

    daily: Dict[str, Dict[str, int]] = {}
    for row in interactions:
        day = daily.setdefault(row.created_at.date().isoformat(), {"interactions": 0, "conversions": 0})
        day["interactions"] += 1
        if row.customer_id is not None:
            day["conversions"] += 1

    return {
        "total_interactions": total,
        "completed_interactions": completed,
        "converted_interactions": converted,
        "completion_rate": completion_rate(completed, total),
        "conversion_rate": completion_rate(converted, total),
        "average_duration_minutes": round(sum(durations) / len(durations), 1) if durations else 0.0,
        "outcomes": dict(Counter(row.outcome for row in interactions if row.outcome)),
        "daily": daily,
    }
