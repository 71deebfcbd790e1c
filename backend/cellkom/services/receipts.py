from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from cellkom.core.config import get_settings
from cellkom.ledger.types import LedgerStatus
from cellkom.models.installment import Installment
from cellkom.models.sales import SalesTransaction
from cellkom.models.service import ServiceTransaction
from cellkom.services.installments import to_ledger_entry
from cellkom.services.money import format_idr, format_idr_short


TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

_PAYMENT_METHOD_LABELS = {"CASH": "Tunai", "INSTALLMENT": "Cicilan"}


def _format_datetime(value: datetime) -> str:
    return value.strftime("%d/%m/%y %H:%M")


@lru_cache
def _jinja_env(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.filters["idr"] = format_idr
    env.filters["idr_short"] = format_idr_short
    env.filters["dt"] = _format_datetime
    return env


def _store_context() -> dict[str, Any]:
    settings = get_settings()
    return {
        "store_name": settings.store_name,
        "store_tagline": settings.store_tagline,
        "store_address_lines": settings.store_address_lines,
        "store_phone": settings.store_phone,
        "footer_lines": [line for line in settings.receipt_footer.split("\n") if line.strip()],
    }


def render_html(*, template_name: str, context: dict[str, Any]) -> str:
    return _jinja_env().get_template(template_name).render(**_store_context(), **context)


def render_sales_receipt(trx: SalesTransaction) -> str:
    """`trx.items` must be loaded."""
    return render_html(
        template_name="sales_receipt.html",
        context={
            "number": trx.transaction_number,
            "created_at": trx.created_at,
            "cashier": trx.cashier,
            "customer_name": trx.customer_name,
            "items": [
                {
                    "name": item.product_name,
                    "quantity": item.quantity,
                    "price": item.sale_price_at_sale,
                    "line_total": item.line_total,
                }
                for item in trx.items
            ],
            "discount": trx.discount,
            "total": trx.total,
            "payment_method": _PAYMENT_METHOD_LABELS.get(trx.payment_method.value, trx.payment_method.value),
            "payment_amount": trx.payment_amount,
            "change": trx.change,
            "remaining_amount": trx.remaining_amount,
        },
    )


def render_service_receipt(trx: ServiceTransaction) -> str:
    """`trx.parts` and `trx.entry` must be loaded."""
    entry = trx.entry
    return render_html(
        template_name="service_receipt.html",
        context={
            "number": trx.transaction_number,
            "created_at": trx.created_at,
            "cashier": trx.cashier,
            "customer_name": trx.customer_name,
            "device_type": entry.device_type,
            "damage_type": entry.damage_type,
            "technician": entry.technician,
            "description": trx.description,
            "parts": [
                {
                    "name": part.product_name,
                    "quantity": part.quantity,
                    "price": part.retail_price,
                    "line_total": part.line_total,
                }
                for part in trx.parts
            ],
            "service_fee": trx.service_fee,
            "parts_total": trx.parts_total,
            "total": trx.total,
            "payment_amount": trx.payment_amount,
            "change": trx.change,
            "remaining_amount": trx.remaining_amount,
        },
    )


def render_installment_statement(row: Installment, *, printed_at: datetime) -> str:
    """`row.payments` must be loaded."""
    entry = to_ledger_entry(row)
    return render_html(
        template_name="installment_statement.html",
        context={
            "number": row.transaction_number or entry.id,
            "kind": entry.kind.value,
            "customer_name": entry.customer_name,
            "transaction_date": entry.transaction_date,
            "details": entry.details,
            "payments": entry.payment_history,
            "total": entry.total_amount,
            "paid": entry.paid_amount,
            "remaining_amount": entry.remaining_amount,
            "settled": entry.status == LedgerStatus.SETTLED,
            "printed_at": printed_at,
        },
    )
