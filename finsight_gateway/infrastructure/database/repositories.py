"""Data access layer for statements, insights and bureau reports"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from finsight_gateway.infrastructure.database.models import (
    Statement,
    Transaction as TransactionRow,
    Insight,
    BureauReport,
)
from finsight_gateway.domain.models import Transaction, InsightSummary, BureauScore, ReportStatus


def _to_json_number(value: Decimal) -> float:
    """JSON columns cannot hold Decimal"""
    return float(value)


class StatementRepository:
    """Statements and their lines, as written by the ingestion service"""

    def __init__(self, db: Session):
        self.db = db

    def create_statement(
        self,
        user_id: int,
        filename: str,
        transactions: List[dict],
        status: str = "completed",
    ) -> Statement:
        """
        Store a parsed statement with its lines.

        Used by the ingestion service and fixtures; each line needs
        description, amount and transaction_date, balance is optional.
        """
        db_statement = Statement(
            user_id=user_id,
            filename=filename,
            status=status,
            total_transactions=len(transactions),
        )
        self.db.add(db_statement)
        self.db.flush()

        for line in transactions:
            self.db.add(
                TransactionRow(
                    statement_id=db_statement.id,
                    description=line["description"],
                    amount=Decimal(str(line["amount"])),
                    transaction_date=line["transaction_date"],
                    balance=Decimal(str(line["balance"])) if line.get("balance") is not None else None,
                )
            )
        self.db.flush()

        return db_statement

    def get_statement(self, statement_id: int, user_id: int) -> Optional[Statement]:
        return (
            self.db.query(Statement)
            .filter(Statement.id == statement_id, Statement.user_id == user_id)
            .first()
        )

    def get_transactions(self, statement_id: int) -> List[Transaction]:
        """Statement lines as domain objects, oldest first"""
        rows = (
            self.db.query(TransactionRow)
            .filter(TransactionRow.statement_id == statement_id)
            .order_by(TransactionRow.transaction_date.asc(), TransactionRow.id.asc())
            .all()
        )
        return [
            Transaction(
                id=row.id,
                statement_id=row.statement_id,
                description=row.description,
                amount=Decimal(row.amount),
                transaction_date=row.transaction_date,
                balance=Decimal(row.balance) if row.balance is not None else None,
            )
            for row in rows
        ]


class InsightRepository:
    """Repository for computed insights"""

    def __init__(self, db: Session):
        self.db = db

    def find_for_statement(self, statement_id: int, user_id: int) -> Optional[Insight]:
        return (
            self.db.query(Insight)
            .filter(Insight.statement_id == statement_id, Insight.user_id == user_id)
            .first()
        )

    def create_insight(self, statement_id: int, user_id: int, summary: InsightSummary) -> Insight:
        """Persist insight to database"""
        db_insight = Insight(
            statement_id=statement_id,
            user_id=user_id,
            three_month_avg_income=summary.three_month_avg_income,
            total_inflow=summary.total_inflow,
            total_outflow=summary.total_outflow,
            net_amount=summary.net_amount,
            spend_buckets={
                category: _to_json_number(amount)
                for category, amount in summary.spend_buckets.items()
            },
            risk_flags=list(summary.risk_flags),
        )
        self.db.add(db_insight)
        self.db.flush()  # Get ID without committing
        return db_insight

    def get_insight(self, insight_id: int, user_id: int) -> Optional[Insight]:
        return (
            self.db.query(Insight)
            .filter(Insight.id == insight_id, Insight.user_id == user_id)
            .first()
        )

    def get_insights_by_user(self, user_id: int) -> List[Insight]:
        """Fetch insights for a user, newest first"""
        return (
            self.db.query(Insight)
            .filter(Insight.user_id == user_id)
            .order_by(Insight.generated_at.desc(), Insight.id.desc())
            .all()
        )


class BureauReportRepository:
    """Repository for credit bureau reports"""

    def __init__(self, db: Session):
        self.db = db

    def find_recent_completed(self, user_id: int, since: datetime) -> Optional[BureauReport]:
        """Most recent completed report requested at or after since"""
        return (
            self.db.query(BureauReport)
            .filter(
                BureauReport.user_id == user_id,
                BureauReport.status == ReportStatus.COMPLETED,
                BureauReport.requested_at >= since,
            )
            .order_by(BureauReport.requested_at.desc(), BureauReport.id.desc())
            .first()
        )

    def create_pending(self, user_id: int) -> BureauReport:
        db_report = BureauReport(user_id=user_id, status=ReportStatus.PENDING)
        self.db.add(db_report)
        self.db.flush()
        return db_report

    def mark_completed(self, report_id: int, score: BureauScore) -> None:
        (
            self.db.query(BureauReport)
            .filter(BureauReport.id == report_id, BureauReport.status == ReportStatus.PENDING)
            .update(
                {
                    BureauReport.credit_score: score.score,
                    BureauReport.risk_band: score.risk_band,
                    BureauReport.enquiries_6m: score.enquiries_6m,
                    BureauReport.defaults: score.defaults,
                    BureauReport.open_loans: score.open_loans,
                    BureauReport.trade_lines: score.trade_lines,
                    BureauReport.status: ReportStatus.COMPLETED,
                },
                synchronize_session="fetch",
            )
        )

    def mark_failed(self, report_id: int, error_message: str) -> None:
        (
            self.db.query(BureauReport)
            .filter(BureauReport.id == report_id, BureauReport.status == ReportStatus.PENDING)
            .update(
                {
                    BureauReport.status: ReportStatus.FAILED,
                    BureauReport.error_message: error_message,
                },
                synchronize_session="fetch",
            )
        )

    def get_report(self, report_id: int, user_id: Optional[int] = None) -> Optional[BureauReport]:
        query = self.db.query(BureauReport).filter(BureauReport.id == report_id)
        if user_id is not None:
            query = query.filter(BureauReport.user_id == user_id)
        return query.first()

    def get_reports_by_user(self, user_id: int) -> List[BureauReport]:
        """Fetch reports for a user, newest first"""
        return (
            self.db.query(BureauReport)
            .filter(BureauReport.user_id == user_id)
            .order_by(BureauReport.requested_at.desc(), BureauReport.id.desc())
            .all()
        )
