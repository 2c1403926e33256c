"""Credit bureau endpoints - check credit, fetch and list reports"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from finsight_gateway.api.v1.schemas import BureauCheckRequest, BureauReportResponse, BureauReportListResponse
from finsight_gateway.api.dependencies import get_bureau_orchestrator, get_request_id
from finsight_gateway.services.bureau import BureauCheckOrchestrator
from finsight_gateway.domain.exceptions import BureauCheckFailedError, ConfigurationError, NotFoundError
from finsight_gateway.infrastructure.observability.logging import log_bureau_check

router = APIRouter()


@router.post("/bureau/check", response_model=BureauReportResponse)
async def check_credit(
    request_body: BureauCheckRequest,
    request: Request,
    orchestrator: BureauCheckOrchestrator = Depends(get_bureau_orchestrator),
):
    """
    Check credit with the bureau.

    Flow:
    1. Completed report from the last 24h -> returned as-is
    2. Otherwise a pending report is stored, the bureau called with retries
    3. Report finalized as completed (returned) or failed (400)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        report = await orchestrator.check_credit(request_body.user_id)

    except ConfigurationError as e:
        logging.error(f"Bureau misconfigured: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except BureauCheckFailedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        orchestrator.db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    log_bureau_check(
        request_id,
        request_body.user_id,
        report.id,
        report.status.value,
        report.credit_score,
        duration_ms,
    )

    return report


@router.get("/bureau/reports/{report_id}", response_model=BureauReportResponse)
def get_bureau_report(
    report_id: int,
    user_id: int = Query(..., description="User identifier"),
    orchestrator: BureauCheckOrchestrator = Depends(get_bureau_orchestrator),
):
    """Retrieve one of the user's bureau reports"""
    try:
        return orchestrator.get_bureau_report(report_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/bureau/reports", response_model=BureauReportListResponse)
def list_bureau_reports(
    user_id: int = Query(..., description="User identifier"),
    orchestrator: BureauCheckOrchestrator = Depends(get_bureau_orchestrator),
):
    """List the user's bureau reports, newest first"""
    reports = orchestrator.list_bureau_reports(user_id)
    return BureauReportListResponse(
        user_id=user_id,
        reports=[BureauReportResponse.model_validate(report) for report in reports],
    )
