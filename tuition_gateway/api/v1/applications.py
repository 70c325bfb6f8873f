"""/v1/applications - Application intake, dashboard and plan selection"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from tuition_gateway.api.dependencies import get_reconciler, get_repository, get_request_id
from tuition_gateway.api.v1.schemas import (
    ApplicationRequest,
    ApplicationResponse,
    DashboardResponse,
    PlanSelectionRequest,
    PlanSelectionResponse,
)
from tuition_gateway.domain.exceptions import (
    ApplicationNotFoundError,
    ApplicationValidationError,
    DocumentStoreError,
)
from tuition_gateway.infrastructure.database.repositories import ApplicationRepository
from tuition_gateway.services.applications import dashboard, submit_application
from tuition_gateway.services.reconciliation import ReconciliationService

router = APIRouter()


@router.post("/applications", response_model=ApplicationResponse, status_code=201)
async def create_application(
    request_body: ApplicationRequest,
    request: Request,
    repo: ApplicationRepository = Depends(get_repository),
):
    """Validate and store a submitted application"""
    request_id = get_request_id(request)
    form = request_body.model_dump(exclude={"application_id"})

    try:
        document = await submit_application(repo, request_body.application_id, form)
    except ApplicationValidationError as e:
        logging.warning(f"Application rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=e.errors)
    except DocumentStoreError as e:
        logging.error(f"Document store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Document store unavailable")

    return ApplicationResponse(
        application_id=document["id"],
        status=document["status"],
        payment_status=document["paymentStatus"],
    )


@router.get("/applications/{application_id}", response_model=DashboardResponse)
async def get_application_dashboard(
    application_id: str,
    reconciler: ReconciliationService = Depends(get_reconciler),
):
    """
    Dashboard view of an application.

    Returns:
        Status, selected plan and the month-by-month schedule with paid flags.
        schedule_provisional is true while no plan start date is stored, since
        the months then follow today's date.
    """
    try:
        record = await reconciler.get_application(application_id)
    except ApplicationNotFoundError:
        raise HTTPException(status_code=404, detail="Application not found")
    except DocumentStoreError:
        raise HTTPException(status_code=503, detail="Document store unavailable")

    return DashboardResponse(**dashboard(record, today=reconciler.clock().date()))


@router.put("/applications/{application_id}/plan", response_model=PlanSelectionResponse)
async def select_payment_plan(
    application_id: str,
    request_body: PlanSelectionRequest,
    request: Request,
    reconciler: ReconciliationService = Depends(get_reconciler),
):
    """Select or change the tuition payment plan; the schedule restarts this month"""
    request_id = get_request_id(request)
    try:
        record = await reconciler.select_plan(application_id, request_body.plan)
    except ApplicationNotFoundError:
        raise HTTPException(status_code=404, detail="Application not found")
    except DocumentStoreError as e:
        logging.error(f"Document store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Document store unavailable")

    return PlanSelectionResponse(
        application_id=application_id,
        plan=record["paymentPlan"],
        payment_start_date=record["paymentStartDate"],
    )
