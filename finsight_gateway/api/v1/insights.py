"""Insight endpoints - compute, fetch and list statement analytics"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from finsight_gateway.api.v1.schemas import InsightRunRequest, InsightResponse, InsightListResponse
from finsight_gateway.api.dependencies import get_insight_service, get_request_id
from finsight_gateway.services.insights import InsightService
from finsight_gateway.domain.exceptions import NotFoundError
from finsight_gateway.infrastructure.observability.logging import log_insight_computed

router = APIRouter()


@router.post("/insights/run", response_model=InsightResponse)
def run_insights(
    request_body: InsightRunRequest,
    request: Request,
    service: InsightService = Depends(get_insight_service),
):
    """
    Compute insights for a statement.

    Idempotent: a statement that already has an insight gets the stored one back.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        insight = service.compute_insights(request_body.statement_id, request_body.user_id)

    except NotFoundError as e:
        logging.warning(f"Insight run rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        service.db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    log_insight_computed(
        request_id,
        request_body.user_id,
        request_body.statement_id,
        insight.id,
        len(insight.risk_flags),
        duration_ms,
    )

    return insight


@router.get("/insights/{insight_id}", response_model=InsightResponse)
def get_insight(
    insight_id: int,
    user_id: int = Query(..., description="User identifier"),
    service: InsightService = Depends(get_insight_service),
):
    """Retrieve a computed insight owned by the user"""
    try:
        return service.get_insight(insight_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/insights", response_model=InsightListResponse)
def list_insights(
    user_id: int = Query(..., description="User identifier"),
    service: InsightService = Depends(get_insight_service),
):
    """List the user's insights, newest first"""
    insights = service.list_insights(user_id)
    return InsightListResponse(
        user_id=user_id,
        insights=[InsightResponse.model_validate(insight) for insight in insights],
    )
