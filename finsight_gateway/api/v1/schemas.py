"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from finsight_gateway.domain.models import ReportStatus


class InsightRunRequest(BaseModel):
    """Request body for POST /v1/insights/run"""

    statement_id: int = Field(..., gt=0, description="Statement to analyse")
    user_id: int = Field(..., gt=0, description="Owner of the statement")


class InsightResponse(BaseModel):
    """Computed insight for one statement"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    statement_id: int
    user_id: int
    three_month_avg_income: float
    total_inflow: float
    total_outflow: float
    net_amount: float
    spend_buckets: Dict[str, float]
    risk_flags: List[str]
    generated_at: datetime


class InsightListResponse(BaseModel):
    """Response for GET /v1/insights"""

    user_id: int
    insights: List[InsightResponse]


class BureauCheckRequest(BaseModel):
    """Request body for POST /v1/bureau/check"""

    user_id: int = Field(..., gt=0, description="User to check")


class BureauReportResponse(BaseModel):
    """One credit bureau check attempt"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: ReportStatus
    credit_score: Optional[int] = None
    risk_band: Optional[str] = None
    enquiries_6m: Optional[int] = None
    defaults: Optional[int] = None
    open_loans: Optional[int] = None
    trade_lines: Optional[int] = None
    error_message: Optional[str] = None
    requested_at: datetime


class BureauReportListResponse(BaseModel):
    """Response for GET /v1/bureau/reports"""

    user_id: int
    reports: List[BureauReportResponse]
