from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.db import get_session
from cellkom.schemas.reports import (
    DateRangeParams,
    InstallmentReportOut,
    SalesReportOut,
    ServiceReportOut,
    TodayReportOut,
)
from cellkom.services.reports import installment_report, sales_report, sales_report_csv, service_report, today_report


router = APIRouter()


def date_range(start_date: date, end_date: date) -> DateRangeParams:
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    return DateRangeParams(start_date=start_date, end_date=end_date)


@router.get("/sales", response_model=SalesReportOut)
async def sales_report_endpoint(
    params: DateRangeParams = Depends(date_range), session: AsyncSession = Depends(get_session)
) -> SalesReportOut:
    data = await sales_report(session, start=params.start_date, end=params.end_date)
    return SalesReportOut(**data)


@router.get("/sales.csv")
async def sales_report_csv_endpoint(
    params: DateRangeParams = Depends(date_range), session: AsyncSession = Depends(get_session)
) -> Response:
    filename, content = await sales_report_csv(session, start=params.start_date, end=params.end_date)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/services", response_model=ServiceReportOut)
async def service_report_endpoint(
    params: DateRangeParams = Depends(date_range), session: AsyncSession = Depends(get_session)
) -> ServiceReportOut:
    data = await service_report(session, start=params.start_date, end=params.end_date)
    return ServiceReportOut(**data)


@router.get("/installments", response_model=InstallmentReportOut)
async def installment_report_endpoint(session: AsyncSession = Depends(get_session)) -> InstallmentReportOut:
    return InstallmentReportOut(**await installment_report(session))


@router.get("/today", response_model=TodayReportOut)
async def today_report_endpoint(
    day: date | None = None, session: AsyncSession = Depends(get_session)
) -> TodayReportOut:
    return TodayReportOut(**await today_report(session, today=day or date.today()))
