"""Insight computation workflow - resolve statement, compute once, persist, audit"""

import logging
from typing import List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from finsight_gateway.domain.insights import compute_insight_summary
from finsight_gateway.domain.exceptions import NotFoundError
from finsight_gateway.domain.models import AuditAction
from finsight_gateway.infrastructure.database.models import Insight
from finsight_gateway.infrastructure.database.repositories import StatementRepository, InsightRepository
from finsight_gateway.infrastructure.observability.audit import AuditService
from finsight_gateway.infrastructure.observability.metrics import record_insight

logger = logging.getLogger(__name__)


class InsightService:
    """Statement-level analytics; one insight per (statement, user), never recomputed"""

    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.statements = StatementRepository(db)
        self.insights = InsightRepository(db)
        self.audit = audit or AuditService(db)

    def compute_insights(self, statement_id: int, user_id: int) -> Insight:
        """
        Compute and store the insight for a statement.

        Flow:
        1. Statement must exist for this user
        2. An existing insight is returned untouched
        3. Otherwise compute, persist, audit

        Raises:
            NotFoundError: statement missing or owned by another user
        """
        statement = self.statements.get_statement(statement_id, user_id)
        if statement is None:
            raise NotFoundError("Statement not found")

        existing = self.insights.find_for_statement(statement_id, user_id)
        if existing is not None:
            return existing

        transactions = self.statements.get_transactions(statement_id)
        summary = compute_insight_summary(transactions)

        try:
            insight = self.insights.create_insight(statement_id, user_id, summary)
        except IntegrityError:
            # A concurrent request stored it first
            self.db.rollback()
            logger.info(
                "Insight already created by a concurrent request",
                extra={"statement_id": statement_id, "user_id": user_id},
            )
            return self.insights.find_for_statement(statement_id, user_id)

        self.audit.log(
            user_id=user_id,
            action=AuditAction.COMPUTE,
            resource="insight",
            resource_id=insight.id,
            details={
                "statement_id": statement_id,
                "avg_income": float(summary.three_month_avg_income),
                "total_inflow": float(summary.total_inflow),
                "total_outflow": float(summary.total_outflow),
                "net_amount": float(summary.net_amount),
            },
        )
        self.db.commit()
        record_insight(summary.risk_flags)

        return insight

    def get_insight(self, insight_id: int, user_id: int) -> Insight:
        insight = self.insights.get_insight(insight_id, user_id)
        if insight is None:
            raise NotFoundError("Insight not found")
        return insight

    def list_insights(self, user_id: int) -> List[Insight]:
        return self.insights.get_insights_by_user(user_id)
