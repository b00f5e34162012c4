from __future__ import annotations

from io import BytesIO
from typing import Any, Dict

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from salessync.core.database import utcnow

PAGE_MARGIN = 40
PAGE_BOTTOM = 60


def format_money(value) -> str:
    return f"{float(value or 0):,.2f}"


def render_sales_report_pdf(report: Dict[str, Any], *, company_name: str | None = None) -> bytes:
    """Render the output of ``sales_report`` as a one-table PDF."""
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    y = height - PAGE_MARGIN

    def write_line(text: str = "", gap: int = 16, bold: bool = False, font_size: int = 10, mono: bool = False):
        nonlocal y
        if y < PAGE_BOTTOM:
            c.showPage()
            y = height - PAGE_MARGIN
        family = "Courier" if mono else "Helvetica"
        c.setFont(f"{family}-Bold" if bold else family, font_size)
        c.drawString(PAGE_MARGIN, y, text)
        y -= gap

    write_line("SALES REPORT", gap=22, bold=True, font_size=14)
    if company_name:
        write_line(company_name, gap=18)
    write_line(f"Generated: {utcnow().strftime('%Y-%m-%d %H:%M')} UTC", gap=22)

    summary = report.get("summary", {})
    write_line("SUMMARY", bold=True)
    write_line(f"Sales: {summary.get('total_sales', 0)}")
    write_line(f"Total amount: {format_money(summary.get('total_amount'))}")
    write_line(f"Average amount: {format_money(summary.get('average_amount'))}", gap=22)

    header = f"{'INVOICE':<18} {'DATE':<12} {'AGENT':<21} {'CUSTOMER':<25} {'TOTAL':>12}"
    write_line(header, bold=True, font_size=8, mono=True)
    for sale in report.get("sales", []):
        agent = getattr(sale, "agent", None)
        customer = getattr(sale, "customer", None)
        agent_name = agent.full_name if agent is not None else ""
        customer_name = customer.name if customer is not None else ""
        created = sale.created_at.strftime("%Y-%m-%d") if sale.created_at else ""
        write_line(
            f"{sale.invoice_number:<18} {created:<12} {agent_name[:20]:<21} {customer_name[:24]:<25} "
            f"{format_money(sale.total_amount):>12}",
            gap=14,
            font_size=8,
            mono=True,
        )

    c.showPage()
    c.save()
    return buffer.getvalue()
