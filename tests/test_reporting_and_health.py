from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from salessync import main
from salessync.core.database import get_db
from salessync.models.customer import Customer
from salessync.models.sale import Sale
from salessync.models.visit import Visit
from salessync.services.reporting import completion_rate, resolve_period
from tests.factories import auth_headers, make_row


class _BrokenDb:
    def execute(self, *_args, **_kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def _seed_activity(db, tenants):
    company_id = tenants["a"]["company"].id
    customer = make_row(db, Customer, company_id=company_id, name="Corner Shop")
    agent = tenants["a"]["agent"]
    for status in ("COMPLETED", "COMPLETED", "PLANNED"):
        make_row(db, Visit, company_id=company_id, agent_id=agent.id, customer_id=customer.id, status=status)
    for index, amount in enumerate(("10.00", "25.50")):
        make_row(
            db,
            Sale,
            company_id=company_id,
            agent_id=agent.id,
            customer_id=customer.id,
            invoice_number=f"INV-20260101-00000{index}",
            total_amount=Decimal(amount),
            payment_method="CASH",
            payment_status="PAID",
            paid_amount=Decimal(amount),
        )
    foreign_customer = make_row(db, Customer, company_id=tenants["b"]["company"].id, name="Other")
    make_row(
        db,
        Sale,
        company_id=tenants["b"]["company"].id,
        agent_id=tenants["b"]["agent"].id,
        customer_id=foreign_customer.id,
        invoice_number="INV-20260101-FFFFFF",
        total_amount=Decimal("999.00"),
    )


def test_resolve_period_falls_back_to_a_week():
    now = datetime(2026, 3, 10, 12, 0)

    assert resolve_period("30d", now) == ("30d", now - timedelta(days=30), now)
    assert resolve_period("yesterday", now) == ("7d", now - timedelta(days=7), now)
    assert resolve_period(None, now)[0] == "7d"


def test_completion_rate():
    assert completion_rate(2, 3) == 66.7
    assert completion_rate(0, 0) == 0.0


def test_dashboard_metrics_are_company_scoped(client, db, tenants):
    _seed_activity(db, tenants)

    response = client.get("/api/reporting/dashboard?period=1d", headers=auth_headers(tenants["a"]["manager"]))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["period"] == "1d"
    assert data["metrics"]["total_sales"] == 35.5
    assert data["metrics"]["sales_count"] == 2
    assert data["metrics"]["total_visits"] == 3
    assert data["metrics"]["completed_visits"] == 2
    assert data["metrics"]["visit_completion_rate"] == 66.7


def test_agents_cannot_read_reports(client, tenants):
    response = client.get("/api/reporting/dashboard", headers=auth_headers(tenants["a"]["agent"]))

    assert response.status_code == 403


def test_sales_report_summary(client, db, tenants):
    _seed_activity(db, tenants)

    response = client.get("/api/reporting/sales", headers=auth_headers(tenants["a"]["admin"]))

    summary = response.json()["data"]["summary"]
    assert summary == {"total_sales": 2, "total_amount": 35.5, "average_amount": 17.75}


def test_visits_report_breaks_down_status(client, db, tenants):
    _seed_activity(db, tenants)

    response = client.get("/api/reporting/visits", headers=auth_headers(tenants["a"]["admin"]))

    assert response.json()["data"]["summary"]["status_breakdown"] == {"COMPLETED": 2, "PLANNED": 1}


def test_agent_performance_lists_agent_roles_only(client, db, tenants):
    _seed_activity(db, tenants)

    response = client.get("/api/reporting/agents", headers=auth_headers(tenants["a"]["manager"]))

    rows = {row["agent"]["id"]: row["metrics"] for row in response.json()["data"]}
    assert set(rows) == {tenants["a"]["agent"].id, tenants["a"]["agent2"].id}
    assert rows[tenants["a"]["agent"].id]["sales_count"] == 2
    assert rows[tenants["a"]["agent2"].id]["total_visits"] == 0


def test_sales_report_pdf_export(client, db, tenants):
    _seed_activity(db, tenants)

    response = client.get("/api/reporting/sales/export.pdf", headers=auth_headers(tenants["a"]["admin"]))

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "attachment" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_health_reports_connected_database(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["environment"] == "test"


def test_health_returns_503_when_database_is_down(client):
    main.app.dependency_overrides[get_db] = lambda: _BrokenDb()

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"
    assert response.json()["database"] == "disconnected"


def test_health_is_not_rate_limited_or_authenticated(client):
    assert client.get("/status").json()["status"] == "ok"
    assert "X-RateLimit-Limit" not in client.get("/health").headers
