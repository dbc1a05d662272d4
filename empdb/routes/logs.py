from __future__ import annotations

from fastapi import APIRouter

from ..logs import search_queue
from ..services.employee_svc import TSQ_NAME

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    page: int = 1,
    size: int = 20,
    queue: str | None = TSQ_NAME,
):
    total, items = search_queue(queue, page, size)
    return {"total": total, "items": items}
