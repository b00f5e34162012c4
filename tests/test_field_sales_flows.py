import re
from decimal import Decimal

import pytest
from fastapi import HTTPException

from salessync.models.customer import Customer
from salessync.models.product import Product
from salessync.models.survey import Survey, SurveyResponse
from salessync.models.visit import Visit
from salessync.routers.field_sales import apply_visit_transition
from salessync.services.sales import default_payment_status, line_total, sale_total
from tests.factories import auth_headers, make_row, make_user
from tests.fixtures_data import HAPPY_PATH_SALE_PAYLOAD


@pytest.fixture
def catalog(db, tenants):
    company_id = tenants["a"]["company"].id
    return {
        "customer": make_row(db, Customer, company_id=company_id, name="Corner Shop"),
        "other_customer": make_row(db, Customer, company_id=company_id, name="Kiosk"),
        "cola": make_row(db, Product, company_id=company_id, name="Cola", sku="COLA", unit_price=Decimal("2.50")),
        "water": make_row(db, Product, company_id=company_id, name="Water", sku="H2O", unit_price=Decimal("1.00")),
        "retired": make_row(
            db, Product, company_id=company_id, name="Old", sku="OLD", unit_price=Decimal("1.00"), is_active=False
        ),
        "foreign": make_row(
            db, Product, company_id=tenants["b"]["company"].id, name="Cola", sku="COLA", unit_price=Decimal("9.99")
        ),
    }


def test_line_and_sale_totals():
    lines = [line_total(3, Decimal("2.50"), Decimal("0.50")), line_total(2, "1.00")]

    assert lines == [Decimal("7.00"), Decimal("2.00")]
    assert sale_total(lines, tax_amount="1.50", discount_amount="0.50") == Decimal("10.00")


def test_discounts_cannot_make_totals_negative():
    with pytest.raises(HTTPException) as line_exc:
        line_total(1, "1.00", "2.00")
    with pytest.raises(HTTPException) as sale_exc:
        sale_total([Decimal("1.00")], discount_amount="5.00")

    assert line_exc.value.status_code == 400
    assert sale_exc.value.detail == "Discount exceeds sale amount"


def test_default_payment_status_depends_on_method():
    assert default_payment_status("CASH") == "PAID"
    assert default_payment_status("CREDIT") == "PENDING"


def test_visit_lifecycle(client, tenants, catalog):
    headers = auth_headers(tenants["a"]["agent"])
    created = client.post(
        "/api/field-sales/visits",
        json={"customer_id": catalog["customer"].id, "latitude": -26.2, "longitude": 28.04},
        headers=headers,
    )
    assert created.status_code == 201
    visit = created.json()["data"]
    assert visit["status"] == "PLANNED"
    assert visit["agent_id"] == tenants["a"]["agent"].id

    complete_too_early = client.put(f"/api/field-sales/visits/{visit['id']}/complete", headers=headers)
    assert complete_too_early.status_code == 409
    assert complete_too_early.json()["error"] == "Cannot complete a visit in status PLANNED"

    started = client.put(f"/api/field-sales/visits/{visit['id']}/start", headers=headers)
    assert started.json()["data"]["status"] == "IN_PROGRESS"
    assert started.json()["data"]["actual_start_time"] is not None

    completed = client.put(
        f"/api/field-sales/visits/{visit['id']}/complete",
        json={"notes": "Restocked shelf"},
        headers=headers,
    )
    assert completed.status_code == 200
    assert completed.json()["data"]["status"] == "COMPLETED"
    assert completed.json()["data"]["notes"] == "Restocked shelf"

    delete = client.delete(f"/api/field-sales/visits/{visit['id']}", headers=headers)
    assert delete.status_code == 409


def test_cancelled_visit_is_terminal():
    visit = Visit(status="PLANNED", actual_start_time=None)

    apply_visit_transition(visit, "cancel")

    assert visit.status == "CANCELLED"
    assert visit.actual_end_time is None
    with pytest.raises(HTTPException) as exc:
        apply_visit_transition(visit, "start")
    assert exc.value.status_code == 409


def test_agent_cannot_plan_visit_for_colleague(client, tenants, catalog):
    response = client.post(
        "/api/field-sales/visits",
        json={"customer_id": catalog["customer"].id, "agent_id": tenants["a"]["agent2"].id},
        headers=auth_headers(tenants["a"]["agent"]),
    )

    assert response.status_code == 403


def test_manager_can_plan_visit_for_agent(client, tenants, catalog):
    response = client.post(
        "/api/field-sales/visits",
        json={"customer_id": catalog["customer"].id, "agent_id": tenants["a"]["agent"].id},
        headers=auth_headers(tenants["a"]["manager"]),
    )

    assert response.status_code == 201
    assert response.json()["data"]["agent_id"] == tenants["a"]["agent"].id


def test_agents_only_see_their_own_visits(client, db, tenants, catalog):
    company_id = tenants["a"]["company"].id
    own = make_row(db, Visit, company_id=company_id, agent_id=tenants["a"]["agent"].id, customer_id=catalog["customer"].id)
    other = make_row(
        db, Visit, company_id=company_id, agent_id=tenants["a"]["agent2"].id, customer_id=catalog["customer"].id
    )
    agent_headers = auth_headers(tenants["a"]["agent"])

    listed = client.get("/api/field-sales/visits", headers=agent_headers)
    forbidden = client.get(f"/api/field-sales/visits/{other.id}", headers=agent_headers)
    manager_view = client.get("/api/field-sales/visits", headers=auth_headers(tenants["a"]["manager"]))

    assert [row["id"] for row in listed.json()["data"]] == [own.id]
    assert forbidden.status_code == 403
    assert {row["id"] for row in manager_view.json()["data"]} == {own.id, other.id}


def test_visit_status_filter_rejects_unknown_value(client, tenants):
    response = client.get("/api/field-sales/visits?status=lost", headers=auth_headers(tenants["a"]["agent"]))

    assert response.status_code == 400


def test_create_sale_computes_totals_server_side(client, tenants, catalog):
    payload = {
        **HAPPY_PATH_SALE_PAYLOAD,
        "customer_id": catalog["customer"].id,
        "items": [
            {"product_id": catalog["cola"].id, "quantity": 3, "discount": "0.50"},
            {"product_id": catalog["water"].id, "quantity": 2, "unit_price": "0.90"},
        ],
    }

    response = client.post("/api/field-sales/sales", json=payload, headers=auth_headers(tenants["a"]["agent"]))

    assert response.status_code == 201
    sale = response.json()["data"]
    assert re.fullmatch(r"INV-\d{8}-[0-9A-F]{6}", sale["invoice_number"])
    assert [item["total"] for item in sale["items"]] == [7.0, 1.8]
    assert sale["total_amount"] == 9.8
    assert sale["payment_status"] == "PAID"
    assert sale["paid_amount"] == 9.8
    assert sale["agent_id"] == tenants["a"]["agent"].id


def test_credit_sale_starts_pending(client, tenants, catalog):
    payload = {
        "customer_id": catalog["customer"].id,
        "payment_method": "CREDIT",
        "items": [{"product_id": catalog["cola"].id, "quantity": 1}],
    }

    sale = client.post("/api/field-sales/sales", json=payload, headers=auth_headers(tenants["a"]["agent"])).json()["data"]

    assert sale["payment_status"] == "PENDING"
    assert sale["paid_amount"] == 0.0


@pytest.mark.parametrize(
    ("product_key", "expected_status"),
    [("foreign", 403), ("retired", 400)],
)
def test_sale_rejects_foreign_or_inactive_products(client, tenants, catalog, product_key, expected_status):
    payload = {
        "customer_id": catalog["customer"].id,
        "items": [{"product_id": catalog[product_key].id, "quantity": 1}],
    }

    response = client.post("/api/field-sales/sales", json=payload, headers=auth_headers(tenants["a"]["agent"]))

    assert response.status_code == expected_status


def test_sale_requires_items(client, tenants, catalog):
    response = client.post(
        "/api/field-sales/sales",
        json={"customer_id": catalog["customer"].id, "items": []},
        headers=auth_headers(tenants["a"]["agent"]),
    )

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "items"


def test_sale_visit_must_match_customer(client, db, tenants, catalog):
    visit = make_row(
        db,
        Visit,
        company_id=tenants["a"]["company"].id,
        agent_id=tenants["a"]["agent"].id,
        customer_id=catalog["other_customer"].id,
    )
    payload = {
        "customer_id": catalog["customer"].id,
        "visit_id": visit.id,
        "items": [{"product_id": catalog["cola"].id, "quantity": 1}],
    }

    response = client.post("/api/field-sales/sales", json=payload, headers=auth_headers(tenants["a"]["agent"]))

    assert response.status_code == 400
    assert response.json()["error"] == "Visit belongs to another customer"


def test_field_sales_dashboard_counts_weekly_sales(client, tenants, catalog):
    headers = auth_headers(tenants["a"]["agent"])
    client.post(
        "/api/field-sales/sales",
        json={"customer_id": catalog["customer"].id, "items": [{"product_id": catalog["cola"].id, "quantity": 2}]},
        headers=headers,
    )

    response = client.get("/api/field-sales/dashboard", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["weekly_sales"] == {"count": 1, "total_amount": 5.0}


def test_promoter_has_no_field_sales_access(client, db, tenants):
    promoter = make_user(db, tenants["a"]["company"], role="PROMOTER")

    response = client.get("/api/field-sales/visits", headers=auth_headers(promoter))

    assert response.status_code == 403


def test_planned_visit_with_a_sale_cannot_be_deleted(client, db, tenants, catalog):
    headers = auth_headers(tenants["a"]["agent"])
    visit = make_row(
        db,
        Visit,
        company_id=tenants["a"]["company"].id,
        agent_id=tenants["a"]["agent"].id,
        customer_id=catalog["customer"].id,
    )
    sale = client.post(
        "/api/field-sales/sales",
        json={
            "customer_id": catalog["customer"].id,
            "visit_id": visit.id,
            "items": [{"product_id": catalog["cola"].id, "quantity": 1}],
        },
        headers=headers,
    )
    assert sale.status_code == 201

    response = client.delete(f"/api/field-sales/visits/{visit.id}", headers=headers)

    assert response.status_code == 409
    assert response.json()["error"] == "Visit has recorded sales or survey responses and cannot be deleted"
    db.expire_all()
    assert db.get(Visit, visit.id) is not None


def test_planned_visit_with_a_survey_response_cannot_be_deleted(client, db, tenants, catalog):
    company_id = tenants["a"]["company"].id
    agent = tenants["a"]["agent2"]
    visit = make_row(db, Visit, company_id=company_id, agent_id=agent.id, customer_id=catalog["customer"].id)
    survey = make_row(db, Survey, company_id=company_id, title="Shelf", questions=[{"id": "q1"}])
    make_row(
        db,
        SurveyResponse,
        company_id=company_id,
        survey_id=survey.id,
        agent_id=agent.id,
        visit_id=visit.id,
        responses={"q1": "yes"},
    )

    response = client.delete(f"/api/field-sales/visits/{visit.id}", headers=auth_headers(agent))

    assert response.status_code == 409


def test_unreferenced_planned_visit_is_deleted(client, db, tenants, catalog):
    visit = make_row(
        db,
        Visit,
        company_id=tenants["a"]["company"].id,
        agent_id=tenants["a"]["agent"].id,
        customer_id=catalog["customer"].id,
    )

    response = client.delete(f"/api/field-sales/visits/{visit.id}", headers=auth_headers(tenants["a"]["agent"]))

    assert response.status_code == 200


def test_customer_name_cannot_be_cleared(client, tenants, catalog):
    response = client.put(
        f"/api/customers/{catalog['customer'].id}",
        json={"name": None},
        headers=auth_headers(tenants["a"]["manager"]),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert "name cannot be null" in response.json()["details"][0]["message"]


def test_customer_optional_fields_can_be_cleared(client, db, tenants, catalog):
    catalog["customer"].phone = "+27110000000"
    db.commit()

    response = client.put(
        f"/api/customers/{catalog['customer'].id}",
        json={"phone": None},
        headers=auth_headers(tenants["a"]["manager"]),
    )

    assert response.status_code == 200
    assert response.json()["data"]["phone"] is None


def test_visit_planned_time_with_offset_is_stored_as_utc(client, tenants, catalog):
    response = client.post(
        "/api/field-sales/visits",
        json={"customer_id": catalog["customer"].id, "planned_start_time": "2026-04-01T10:00:00+02:00"},
        headers=auth_headers(tenants["a"]["agent"]),
    )

    assert response.status_code == 201
    assert response.json()["data"]["planned_start_time"] == "2026-04-01T08:00:00"
