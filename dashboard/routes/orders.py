from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from dashboard.models import OrderStatus
from dashboard.routes.deps import get_session
from dashboard.session import DashboardSession

router = APIRouter(prefix="/orders", tags=["orders"])


class StatusChangeBody(BaseModel):
    status: OrderStatus = Field(..., description="Requested next status")


@router.get("")
async def list_orders(
    page: int | None = Query(default=None, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    status: OrderStatus | None = None,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    search: str | None = None,
    refresh: bool = False,
    session: DashboardSession = Depends(get_session),
) -> dict:
    result = await session.orders.list_orders(
        refresh=refresh,
        page=page,
        limit=limit,
        status=status,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return result.model_dump(mode="json", by_alias=True)


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    refresh: bool = False,
    session: DashboardSession = Depends(get_session),
) -> dict:
    order = await session.orders.get_order(order_id, refresh=refresh)
    return order.model_dump(mode="json", by_alias=True)


@router.get("/{order_id}/transitions")
async def order_transitions(order_id: str, session: DashboardSession = Depends(get_session)) -> dict:
    """Statuses the operator may pick next for this order (empty when terminal)."""
    order = await session.orders.get_order(order_id)
    transitions = await session.orders.available_transitions(order_id)
    return {"status": order.status.value, "transitions": [s.value for s in transitions]}


@router.put("/{order_id}/status")
async def change_order_status(
    order_id: str,
    body: StatusChangeBody,
    session: DashboardSession = Depends(get_session),
) -> dict:
    """
    Validate against the transition table, then PUT to the order store.
    422 when the transition is not allowed (nothing sent), 502 when the store fails.
    """
    order = await session.orders.change_status(order_id, body.status)
    return order.model_dump(mode="json", by_alias=True)
