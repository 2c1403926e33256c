"""Credit bureau check orchestration - cache, durable pending row, retried call, finalize"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from finsight_gateway.domain.exceptions import (
    BureauAPIError,
    BureauCheckFailedError,
    NotFoundError,
)
from finsight_gateway.domain.models import AuditAction, BureauScore
from finsight_gateway.domain.retry import RetryPolicy, Sleep, execute_with_retry
from finsight_gateway.infrastructure.clients.bureau import BureauClient
from finsight_gateway.infrastructure.database.models import BureauReport
from finsight_gateway.infrastructure.database.repositories import BureauReportRepository
from finsight_gateway.infrastructure.observability.audit import AuditService
from finsight_gateway.infrastructure.observability.metrics import record_bureau_check
from finsight_gateway.utils.date_utils import utcnow, window_start

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Bureau check cancelled"


@dataclass
class CallOutcome:
    """Result of the external call: exactly one of score / error is set"""

    score: Optional[BureauScore] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.score is not None


class BureauCheckOrchestrator:
    """
    Per-user credit check with a rolling cache window.

    A report row moves pending -> completed | failed exactly once; the pending
    row is committed before the bureau is contacted.
    """

    def __init__(
        self,
        db: Session,
        client: BureauClient,
        audit: AuditService | None = None,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.client = client
        self.config = client.config
        self.reports = BureauReportRepository(db)
        self.audit = audit or AuditService(db)
        self.policy = policy or RetryPolicy(
            max_attempts=self.config.max_retries,
            backoff_base=self.config.backoff_base,
        )
        self.sleep = sleep
        self.clock = clock

    async def check_credit(self, user_id: int) -> BureauReport:
        """
        Return the user's credit report, calling the bureau at most once per cache window.

        Raises:
            ConfigurationError: bureau URL or API key missing (no row is created)
            BureauCheckFailedError: call failed; the report row is already marked failed
        """
        cached = self.reports.find_recent_completed(
            user_id, since=window_start(self.config.cache_hours, now=self.clock())
        )
        if cached is not None:
            record_bureau_check("cached")
            return cached

        self.config.validate()

        report_id = self._begin(user_id)
        try:
            outcome = await self._attempt()
        except asyncio.CancelledError:
            self._abandon(user_id, report_id)
            raise
        return self._finalize(user_id, report_id, outcome)

    def _begin(self, user_id: int) -> int:
        """Durably record the attempt before contacting the bureau"""
        report = self.reports.create_pending(user_id)
        report_id = report.id
        self.db.commit()
        return report_id

    async def _attempt(self) -> CallOutcome:
        try:
            score = await execute_with_retry(self.client.fetch_score, self.policy, self.sleep)
            return CallOutcome(score=score)
        except BureauAPIError as e:
            return CallOutcome(error=e.message)
        except Exception as e:
            logger.exception("Unexpected error during bureau call")
            return CallOutcome(error=f"Unexpected error: {e}")

    def _abandon(self, user_id: int, report_id: int) -> None:
        """Caller went away mid-call; the row still needs a terminal state"""
        self.reports.mark_failed(report_id, CANCELLED_MESSAGE)
        self.db.commit()
        record_bureau_check("failed")
        logger.warning(
            "Bureau check cancelled",
            extra={"user_id": user_id, "report_id": report_id},
        )

    def _finalize(self, user_id: int, report_id: int, outcome: CallOutcome) -> BureauReport:
        """Only place a report leaves pending"""
        if not outcome.succeeded:
            raise self._mark_failed(user_id, report_id, outcome.error)

        try:
            self.reports.mark_completed(report_id, outcome.score)
            report = self.reports.get_report(report_id)

            self.audit.log(
                user_id=user_id,
                action=AuditAction.COMPUTE,
                resource="bureau_report",
                resource_id=report_id,
                details={
                    "credit_score": outcome.score.score,
                    "risk_band": outcome.score.risk_band,
                    "status": "completed",
                },
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Could not store bureau score", extra={"report_id": report_id})
            raise self._mark_failed(user_id, report_id, f"Could not store bureau score: {e}") from e

        record_bureau_check("completed")

        return report

    def _mark_failed(self, user_id: int, report_id: int, error: str) -> BureauCheckFailedError:
        """Persist the failure; returns the error for the caller to raise"""
        self.reports.mark_failed(report_id, error)
        self.db.commit()
        record_bureau_check("failed")
        logger.error(
            f"Bureau check failed: {error}",
            extra={"user_id": user_id, "report_id": report_id},
        )
        return BureauCheckFailedError(error)

    def get_bureau_report(self, report_id: int, user_id: int) -> BureauReport:
        report = self.reports.get_report(report_id, user_id)
        if report is None:
            raise NotFoundError("Bureau report not found")
        return report

    def list_bureau_reports(self, user_id: int) -> List[BureauReport]:
        return self.reports.get_reports_by_user(user_id)
