from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cellkom.ledger.types import LedgerStatus
from cellkom.models.installment import InstallmentPayment
from cellkom.models.sales import SalesTransaction
from cellkom.models.service import ServiceEntry, ServiceTransaction
from cellkom.services.installments import list_installments, to_ledger_entry


@dataclass(frozen=True)
class DayRange:
    start: datetime
    end: datetime


def day_range(*, start: date, end: date) -> DayRange:
    """Half-open UTC datetime range covering the calendar days `start`..`end` inclusive."""
    return DayRange(
        start=datetime.combine(start, time.min, tzinfo=timezone.utc),
        end=datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc),
    )


async def _sales_in_range(session: AsyncSession, *, start: date, end: date) -> list[SalesTransaction]:
    r = day_range(start=start, end=end)
    stmt = (
        select(SalesTransaction)
        .where(and_(SalesTransaction.created_at >= r.start, SalesTransaction.created_at < r.end))
        .options(selectinload(SalesTransaction.items))
        .order_by(SalesTransaction.created_at.asc(), SalesTransaction.transaction_number.asc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def sales_report(session: AsyncSession, *, start: date, end: date) -> dict:
    rows = []
    for trx in await _sales_in_range(session, start=start, end=end):
        rows.append(
            {
                "id": trx.id,
                "created_at": trx.created_at,
                "transaction_number": trx.transaction_number,
                "customer_name": trx.customer_name,
                "total": trx.total,
                "discount": trx.discount,
                "total_profit": trx.profit,
                "items": [
                    {
                        "product_name": item.product_name,
                        "quantity": item.quantity,
                        "sale_price_at_sale": item.sale_price_at_sale,
                        "buy_price_at_sale": item.buy_price_at_sale,
                        "profit": item.profit,
                    }
                    for item in trx.items
                ],
            }
        )

    return {
        "start_date": start,
        "end_date": end,
        "transaction_count": len(rows),
        "revenue": sum(r["total"] for r in rows),
        "profit": sum(r["total_profit"] for r in rows),
        "rows": rows,
    }


async def sales_report_csv(session: AsyncSession, *, start: date, end: date) -> tuple[str, bytes]:
    """One CSV line per sold item; the discount is repeated on each line of its transaction."""
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(
        [
            "transaction_number",
            "created_at",
            "customer_name",
            "product_name",
            "quantity",
            "buy_price",
            "sale_price",
            "line_total",
            "line_profit",
            "discount",
            "transaction_total",
            "transaction_profit",
        ]
    )
    for trx in await _sales_in_range(session, start=start, end=end):
        for item in trx.items:
            w.writerow(
                [
                    trx.transaction_number,
                    trx.created_at.isoformat(),
                    trx.customer_name,
                    item.product_name,
                    item.quantity,
                    item.buy_price_at_sale,
                    item.sale_price_at_sale,
                    item.line_total,
                    item.profit,
                    trx.discount,
                    trx.total,
                    trx.profit,
                ]
            )

    filename = f"sales-report-{start.isoformat()}_{end.isoformat()}.csv"
    return filename, buf.getvalue().encode("utf-8")


async def service_report(session: AsyncSession, *, start: date, end: date) -> dict:
    r = day_range(start=start, end=end)
    stmt = (
        select(ServiceTransaction)
        .where(and_(ServiceTransaction.created_at >= r.start, ServiceTransaction.created_at < r.end))
        .options(selectinload(ServiceTransaction.entry))
        .order_by(ServiceTransaction.created_at.asc(), ServiceTransaction.transaction_number.asc())
    )
    transactions = (await session.execute(stmt)).scalars().all()

    rows = [
        {
            "id": trx.id,
            "created_at": trx.created_at,
            "transaction_number": trx.transaction_number,
            "customer_name": trx.customer_name,
            "device_type": trx.entry.device_type,
            "service_fee": trx.service_fee,
            "parts_total": trx.parts_total,
            "total": trx.total,
            "remaining_amount": trx.remaining_amount,
        }
        for trx in transactions
    ]
    return {
        "start_date": start,
        "end_date": end,
        "transaction_count": len(rows),
        "revenue": sum(r["total"] for r in rows),
        "service_fees": sum(r["service_fee"] for r in rows),
        "rows": rows,
    }


async def installment_report(session: AsyncSession) -> dict:
    entries = [to_ledger_entry(row) for row in await list_installments(session, status=LedgerStatus.UNSETTLED)]
    entries.sort(key=lambda e: e.transaction_date)
    return {
        "open_count": len(entries),
        "outstanding_amount": sum(e.remaining_amount for e in entries),
        "rows": [
            {
                "id": e.id,
                "kind": e.kind,
                "customer_name": e.customer_name,
                "transaction_date": e.transaction_date,
                "total_amount": e.total_amount,
                "paid_amount": e.paid_amount,
                "remaining_amount": e.remaining_amount,
                "payment_count": len(e.payment_history),
            }
            for e in entries
        ],
    }


async def today_report(session: AsyncSession, *, today: date) -> dict:
    r = day_range(start=today, end=today)

    sales_count, sales_revenue, sales_profit = (
        await session.execute(
            select(
                func.count(SalesTransaction.id),
                func.coalesce(func.sum(SalesTransaction.total), 0),
                func.coalesce(func.sum(SalesTransaction.profit), 0),
            ).where(and_(SalesTransaction.created_at >= r.start, SalesTransaction.created_at < r.end))
        )
    ).one()

    service_count, service_revenue = (
        await session.execute(
            select(
                func.count(ServiceTransaction.id),
                func.coalesce(func.sum(ServiceTransaction.total), 0),
            ).where(and_(ServiceTransaction.created_at >= r.start, ServiceTransaction.created_at < r.end))
        )
    ).one()

    # seq 0 rows are down payments already counted in the sale/service totals.
    payments_count, payments_amount = (
        await session.execute(
            select(
                func.count(InstallmentPayment.id),
                func.coalesce(func.sum(InstallmentPayment.amount), 0),
            ).where(
                and_(
                    InstallmentPayment.seq > 0,
                    InstallmentPayment.paid_at >= r.start,
                    InstallmentPayment.paid_at < r.end,
                )
            )
        )
    ).one()

    new_entries = (
        await session.execute(select(func.count(ServiceEntry.id)).where(ServiceEntry.entry_date == today))
    ).scalar_one()

    return {
        "day": today,
        "sales_count": int(sales_count),
        "sales_revenue": int(sales_revenue),
        "sales_profit": int(sales_profit),
        "service_count": int(service_count),
        "service_revenue": int(service_revenue),
        "installment_payments_count": int(payments_count),
        "installment_payments_amount": int(payments_amount),
        "new_service_entries": int(new_entries),
    }
