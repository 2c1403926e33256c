"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from finsight_gateway.infrastructure.clients.bureau import BureauClient, BureauClientConfig
from finsight_gateway.infrastructure.database.session import get_db
from finsight_gateway.services.bureau import BureauCheckOrchestrator
from finsight_gateway.services.insights import InsightService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_bureau_client() -> BureauClient:
    """Provide credit bureau client built from settings"""
    return BureauClient(BureauClientConfig.from_settings())


def get_insight_service(db: Session = Depends(get_db)) -> InsightService:
    return InsightService(db)


def get_bureau_orchestrator(
    db: Session = Depends(get_db),
    client: BureauClient = Depends(get_bureau_client),
) -> BureauCheckOrchestrator:
    return BureauCheckOrchestrator(db, client)
