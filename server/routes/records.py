"""CRUD, search and statistics endpoints for RCA records."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from services.models import RecordUpdate
from services.records import RecordService

from ..dependencies import get_record_service
from ..schemas import envelope

router = APIRouter(prefix="/api/rca", tags=["rca"])


@router.post("", status_code=201)
async def create_rca(payload: Dict[str, Any] = Body(...),
                     service: RecordService = Depends(get_record_service)):
    record = await service.create(payload)
    return envelope(record, "RCA created successfully")


@router.get("")
async def list_rcas(
    category: Optional[str] = None,
    severity: Optional[str] = None,
    status: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    order: str = "desc",
    page: int = 1,
    limit: int = 10,
    service: RecordService = Depends(get_record_service),
):
    filters = {"category": category, "severity": severity, "status": status}
    records, pagination = await service.list(filters, sort_by, order, page, limit)
    return envelope(records, pagination=pagination)


@router.get("/search")
async def search_rcas(q: Optional[str] = None, category: Optional[str] = None,
                      service: RecordService = Depends(get_record_service)):
    records = await service.search(q, category)
    return envelope(records, count=len(records))


@router.get("/stats")
async def rca_stats(service: RecordService = Depends(get_record_service)):
    return envelope(await service.stats())


@router.get("/{record_id}")
async def get_rca(record_id: str, service: RecordService = Depends(get_record_service)):
    return envelope(await service.get(record_id))


@router.put("/{record_id}")
async def update_rca(record_id: str, payload: RecordUpdate,
                     service: RecordService = Depends(get_record_service)):
    record = await service.update(record_id, payload.provided_fields())
    return envelope(record, "RCA updated successfully")


@router.delete("/{record_id}")
async def delete_rca(record_id: str, service: RecordService = Depends(get_record_service)):
    await service.delete(record_id)
    return envelope(message="RCA deleted successfully")
