from __future__ import annotations

from fastapi import APIRouter, Depends

from cellkom.api.v1.endpoints import (
    customers,
    installments,
    products,
    reports,
    sales,
    service_entries,
    suppliers,
)
from cellkom.core.security import require_basic_auth


api_router = APIRouter(dependencies=[Depends(require_basic_auth)])

api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(products.router, prefix="/products", tags=["products"])

api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(service_entries.router, prefix="/service-entries", tags=["service-entries"])
api_router.include_router(installments.router, prefix="/installments", tags=["installments"])

api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
