from __future__ import annotations

import logging
import secrets
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from salessync.core.database import utcnow
from salessync.models.customer import Customer
from salessync.models.product import Product
from salessync.models.sale import Sale, SaleItem
from salessync.models.user import User
from salessync.models.visit import Visit
from salessync.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
PAID_ON_CREATE_METHODS = {"CASH", "CARD", "MOBILE_MONEY", "BANK_TRANSFER"}


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price, discount=None) -> Decimal:
    total = to_money(unit_price) * int(quantity) - to_money(discount)
    if total < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item discount exceeds line amount")
    return to_money(total)


def sale_total(line_totals: Iterable[Decimal], tax_amount=None, discount_amount=None) -> Decimal:
    total = sum((to_money(value) for value in line_totals), Decimal("0.00"))
    total = total + to_money(tax_amount) - to_money(discount_amount)
    if total < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Discount exceeds sale amount")
    return to_money(total)


def generate_invoice_number(now: datetime | None = None) -> str:
    now = now or utcnow()
    return f"INV-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def default_payment_status(payment_method: str) -> str:
    return "PAID" if payment_method in PAID_ON_CREATE_METHODS else "PENDING"


def _resolve_agent_id(db: Session, scope: TenantScope, agent_id: int | None) -> int:
    if agent_id is None or agent_id == scope.user.id or scope.is_agent:
        return scope.user.id
    agent = scope.get_or_404(db, User, agent_id, label="Agent")
    return agent.id


def create_sale(db: Session, scope: TenantScope, payload) -> Sale:
    """Create a sale with server-computed line and order totals.

    Every referenced customer, visit and product must belong to the caller's
    company; prices default to the product's current unit price.
    """
    company_id = scope.require_company()
    customer = scope.get_or_404(db, Customer, payload.customer_id, label="Customer")

    if payload.visit_id is not None:
        visit = scope.get_or_404(db, Visit, payload.visit_id, label="Visit")
        scope.ensure_own(visit)
        if visit.customer_id != customer.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Visit belongs to another customer")

    items: list[SaleItem] = []
    for entry in payload.items:
        product = scope.get_or_404(db, Product, entry.product_id, label="Product")
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product {product.id} is not active",
            )
        unit_price = to_money(entry.unit_price if entry.unit_price is not None else product.unit_price)
        items.append(
            SaleItem(
                product_id=product.id,
                quantity=entry.quantity,
                unit_price=unit_price,
                discount=to_money(entry.discount),
                total=line_total(entry.quantity, unit_price, entry.discount),
            )
        )

    total_amount = sale_total(
        (item.total for item in items),
        tax_amount=payload.tax_amount,
        discount_amount=payload.discount_amount,
    )
    payment_status = payload.payment_status or default_payment_status(payload.payment_method)
    paid_amount = payload.paid_amount
    if paid_amount is None:
        paid_amount = total_amount if payment_status == "PAID" else Decimal("0.00")

    sale = Sale(
        company_id=company_id,
        agent_id=_resolve_agent_id(db, scope, payload.agent_id),
        customer_id=customer.id,
        visit_id=payload.visit_id,
        invoice_number=generate_invoice_number(),
        total_amount=total_amount,
        tax_amount=to_money(payload.tax_amount),
        discount_amount=to_money(payload.discount_amount),
        payment_method=payload.payment_method,
        payment_status=payment_status,
        paid_amount=to_money(paid_amount),
        due_date=payload.due_date,
        items=items,
    )
    db.add(sale)
    db.commit()
    db.refresh(sale)
    logger.info(
        "Sale created sale_id=%s invoice=%s company_id=%s total=%s",
        sale.id,
        sale.invoice_number,
        company_id,
        sale.total_amount,
    )
    return sale
