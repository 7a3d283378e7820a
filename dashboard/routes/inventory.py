from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dashboard.models import StockPage, StockStatus
from dashboard.routes.deps import get_session
from dashboard.session import DashboardSession
from dashboard.stock import classify, effective_status

router = APIRouter(prefix="/inventory", tags=["inventory"])


class ClassifyBody(BaseModel):
    quantity: int = Field(..., ge=0)
    threshold: int = Field(default=0, ge=0)
    stored_status: StockStatus = Field(default=StockStatus.IN_STOCK, alias="storedStatus")


class StockSettingsBody(BaseModel):
    quantity: int | None = Field(default=None, ge=0)
    threshold: int | None = Field(default=None, ge=0)
    reason: str | None = None


def _page_content(page: StockPage) -> dict:
    return {
        "products": [
            {
                "id": r.product_id,
                "name": r.name,
                "stockQuantity": r.quantity,
                "lowStockThreshold": r.low_stock_threshold,
                "stockStatus": r.stored_status.value,
                "effectiveStatus": effective_status(r).value,
            }
            for r in page.products
        ],
        "page": page.page,
        "limit": page.limit,
        "totalPages": page.total_pages,
        "totalItems": page.total_items,
    }


@router.get("/low-stock")
async def low_stock(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: DashboardSession = Depends(get_session),
) -> dict:
    return _page_content(await session.inventory.low_stock(page, limit))


@router.get("/out-of-stock")
async def out_of_stock(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: DashboardSession = Depends(get_session),
) -> dict:
    return _page_content(await session.inventory.out_of_stock(page, limit))


@router.post("/classify")
async def classify_stock(body: ClassifyBody) -> dict:
    status = classify(body.quantity, body.threshold, body.stored_status)
    return {"status": status.value}


@router.put("/{product_id}/stock-settings")
async def update_stock_settings(
    product_id: str,
    body: StockSettingsBody,
    session: DashboardSession = Depends(get_session),
) -> JSONResponse:
    """
    Quantity and threshold are separate remote calls. Each step is reported;
    a failed step does not undo the ones before it.
    """
    outcomes = await session.inventory.apply_stock_settings(
        product_id, quantity=body.quantity, threshold=body.threshold, reason=body.reason
    )
    ok = all(o.ok for o in outcomes)
    return JSONResponse(
        status_code=200 if ok else 502,
        content={
            "status": "ok" if ok else "partial_failure",
            "steps": [{"step": o.step, "ok": o.ok, "error": o.error} for o in outcomes],
        },
    )
