"""Reusable data for backend test scenarios."""

DEFAULT_PASSWORD = "Password123!"

COMPANY_A = {"name": "Acme Beverages", "slug": "acme"}
COMPANY_B = {"name": "Globex Foods", "slug": "globex"}

HAPPY_PATH_AGENT = {
    "id": 7,
    "company_id": 1,
    "email": "agent@example.com",
    "first_name": "Ana",
    "last_name": "Agent",
    "role": "FIELD_SALES_AGENT",
    "is_active": True,
}

HAPPY_PATH_SALE_PAYLOAD = {
    "tax_amount": "1.50",
    "discount_amount": "0.50",
    "payment_method": "CASH",
}

CAMPAIGN_PAYLOAD = {
    "name": "Summer push",
    "type": "STREET_MARKETING",
    "start_date": "2026-06-01T00:00:00",
    "end_date": "2026-06-30T00:00:00",
    "budget": "1500.00",
}

SURVEY_PAYLOAD = {
    "title": "Shelf audit",
    "questions": [
        {"id": "q1", "text": "Is the product on the shelf?", "type": "boolean"},
        {"id": "q2", "text": "Facings", "type": "number"},
    ],
}

TENANT_ACCESS_DENIED = {
    "expected_status_code": 403,
    "expected_error": "Access to this resource is not allowed",
}
