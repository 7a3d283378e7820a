from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dashboard.routes.deps import get_session
from dashboard.session import DashboardSession

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(session: DashboardSession = Depends(get_session)) -> dict:
    """Inbox contents, newest first."""
    events = session.inbox.entries()
    return {
        "count": len(events),
        "notifications": [e.model_dump(mode="json", by_alias=True) for e in events],
    }


@router.delete("/{notification_id}")
async def remove_notification(notification_id: str, session: DashboardSession = Depends(get_session)) -> JSONResponse:
    removed = await session.inbox.remove(notification_id)
    if not removed:
        return JSONResponse(status_code=404, content={"detail": f"Notification {notification_id} not found"})
    return JSONResponse(status_code=200, content={"status": "ok", "id": notification_id})


@router.delete("")
async def clear_notifications(session: DashboardSession = Depends(get_session)) -> dict:
    await session.inbox.clear()
    return {"status": "ok"}
