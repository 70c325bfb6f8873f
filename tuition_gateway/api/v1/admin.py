"""/v1/admin - Application review"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from tuition_gateway.api.dependencies import (
    get_application_cache,
    get_reconciler,
    get_repository,
    get_request_id,
)
from tuition_gateway.api.v1.schemas import (
    AdminApplicationItem,
    AdminApplicationList,
    StatusChangeRequest,
    StatusChangeResponse,
)
from tuition_gateway.domain.exceptions import ApplicationNotFoundError, DocumentStoreError
from tuition_gateway.domain.models import ApplicationStatus, PaymentStatus
from tuition_gateway.infrastructure.cache import ApplicationListCache
from tuition_gateway.infrastructure.database.repositories import ApplicationRepository
from tuition_gateway.infrastructure.retry import retry_operation
from tuition_gateway.services.reconciliation import ReconciliationService

router = APIRouter()


def _list_item(record: dict) -> dict:
    return AdminApplicationItem(
        application_id=record["id"],
        first_name=record.get("firstName", ""),
        last_name=record.get("lastName", ""),
        email=record.get("email", ""),
        grade=record.get("grade", ""),
        status=record.get("status") or ApplicationStatus.SUBMITTED.value,
        payment_status=record.get("paymentStatus") or PaymentStatus.PENDING.value,
        payment_plan=record.get("paymentPlan"),
    ).model_dump()


@router.get("/admin/applications", response_model=AdminApplicationList)
async def list_applications(
    status: Optional[ApplicationStatus] = Query(None),
    refresh: bool = Query(False, description="Bypass the one-hour cache"),
    repo: ApplicationRepository = Depends(get_repository),
    cache: ApplicationListCache = Depends(get_application_cache),
):
    """
    All applications for review.

    Served from a cache that stays fresh for one hour unless refresh=true
    or a status change invalidates it.
    """
    items = None if refresh else cache.get()
    cached = items is not None
    if items is None:
        try:
            records = await retry_operation(repo.list_all)
        except DocumentStoreError:
            raise HTTPException(status_code=503, detail="Document store unavailable")
        items = [_list_item(record) for record in records]
        cache.put(items)

    if status is not None:
        items = [item for item in items if item["status"] == status.value]

    return AdminApplicationList(cached=cached, applications=items)


@router.patch("/admin/applications/{application_id}/status", response_model=StatusChangeResponse)
async def change_application_status(
    application_id: str,
    request_body: StatusChangeRequest,
    request: Request,
    reconciler: ReconciliationService = Depends(get_reconciler),
    cache: ApplicationListCache = Depends(get_application_cache),
):
    """Move an application to submitted / under-review / approved / rejected"""
    request_id = get_request_id(request)
    try:
        record = await reconciler.change_status(application_id, request_body.status)
    except ApplicationNotFoundError:
        raise HTTPException(status_code=404, detail="Application not found")
    except DocumentStoreError as e:
        logging.error(f"Document store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Document store unavailable")

    cache.invalidate()
    logging.info(
        "Application status changed",
        extra={"request_id": request_id, "application_id": application_id, "status": record["status"]},
    )
    return StatusChangeResponse(
        application_id=application_id,
        status=record["status"],
        status_updates=record["statusUpdates"],
    )
