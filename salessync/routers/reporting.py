from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from salessync.core.database import get_db
from salessync.core.roles import REPORTING_ROLES
from salessync.deps import require_scope
from salessync.models.company import Company
from salessync.schemas.common import ok
from salessync.schemas.field_sales import SaleRead, VisitRead
from salessync.services import reporting
from salessync.services.reports_pdf import render_sales_report_pdf
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/reporting", tags=["reporting"])

reporting_scope = require_scope(REPORTING_ROLES)


@router.get("/dashboard")
def dashboard(
    period: str = reporting.DEFAULT_PERIOD,
    scope: TenantScope = Depends(reporting_scope),
    db: Session = Depends(get_db),
):
    return ok(reporting.dashboard_metrics(db, scope, period))


@router.get("/sales")
def sales(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    agent_id: Optional[int] = None,
    limit: int = Query(reporting.REPORT_ROW_LIMIT, ge=1, le=1000),
    scope: TenantScope = Depends(reporting_scope),
    db: Session = Depends(get_db),
):
    report = reporting.sales_report(
        db, scope, start_date=start_date, end_date=end_date, agent_id=agent_id, limit=limit
    )
    report["sales"] = [SaleRead.model_validate(sale) for sale in report["sales"]]
    return ok(report)


@router.get("/sales/export.pdf")
def sales_pdf(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    agent_id: Optional[int] = None,
    scope: TenantScope = Depends(reporting_scope),
    db: Session = Depends(get_db),
):
    report = reporting.sales_report(db, scope, start_date=start_date, end_date=end_date, agent_id=agent_id)
    company_name = None
    if scope.company_id is not None:
        company = db.query(Company).filter(Company.id == scope.company_id).first()
        company_name = company.name if company else None
    return Response(
        content=render_sales_report_pdf(report, company_name=company_name),
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="sales-report.pdf"'},
    )


@router.get("/visits")
def visits(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    agent_id: Optional[int] = None,
    status: Optional[str] = None,
    limit: int = Query(reporting.REPORT_ROW_LIMIT, ge=1, le=1000),
    scope: TenantScope = Depends(reporting_scope),
    db: Session = Depends(get_db),
):
    report = reporting.visits_report(
        db, scope, start_date=start_date, end_date=end_date, agent_id=agent_id, status=status, limit=limit
    )
    report["visits"] = [VisitRead.model_validate(visit) for visit in report["visits"]]
    return ok(report)


@router.get("/agents")
def agents(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    scope: TenantScope = Depends(reporting_scope),
    db: Session = Depends(get_db),
):
    return ok(reporting.agent_performance(db, scope, start_date=start_date, end_date=end_date))
