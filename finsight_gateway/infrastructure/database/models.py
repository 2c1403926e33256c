"""SQLAlchemy ORM models for statements, insights, bureau reports and audit logs"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    DateTime,
    Date,
    ForeignKey,
    Text,
    JSON,
    Enum,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from finsight_gateway.domain.models import ReportStatus, AuditAction
from finsight_gateway.utils.date_utils import utcnow

Base = declarative_base()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Statement(Base):
    """Uploaded bank statement, written by the ingestion service"""

    __tablename__ = "statements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    upload_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    status = Column(String(20), nullable=False, default="processing")
    parsing_success_rate = Column(Numeric(5, 2), nullable=True)
    total_transactions = Column(Integer, nullable=False, default=0)

    transactions = relationship(
        "Transaction",
        back_populates="statement",
        cascade="all, delete-orphan",
    )
    insights = relationship("Insight", back_populates="statement", cascade="all, delete-orphan")


class Transaction(Base):
    """Single statement line; positive amount is inflow, negative is outflow"""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    statement_id = Column(Integer, ForeignKey("statements.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    transaction_date = Column(Date, nullable=False)
    balance = Column(Numeric(15, 2), nullable=True)

    statement = relationship("Statement", back_populates="transactions")


class Insight(Base):
    """Analytics computed once per statement"""

    __tablename__ = "insights"
    __table_args__ = (UniqueConstraint("statement_id", "user_id", name="uq_insight_statement_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    statement_id = Column(Integer, ForeignKey("statements.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, nullable=False, index=True)
    three_month_avg_income = Column(Numeric(15, 2), nullable=True)
    total_inflow = Column(Numeric(15, 2), nullable=False)
    total_outflow = Column(Numeric(15, 2), nullable=False)
    net_amount = Column(Numeric(15, 2), nullable=False)
    spend_buckets = Column(JSON, nullable=False)
    risk_flags = Column(JSON, nullable=False)
    generated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    statement = relationship("Statement", back_populates="insights")


class BureauReport(Base):
    """One credit bureau check attempt and its outcome"""

    __tablename__ = "bureau_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    status = Column(
        Enum(ReportStatus, name="bureau_report_status", values_callable=_enum_values),
        nullable=False,
        default=ReportStatus.PENDING,
    )
    credit_score = Column(Integer, nullable=True)
    risk_band = Column(String(50), nullable=True)
    enquiries_6m = Column(Integer, nullable=True)
    defaults = Column(Integer, nullable=True)
    open_loans = Column(Integer, nullable=True)
    trade_lines = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class AuditLog(Base):
    """Append-only record of user-visible operations"""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    action = Column(
        Enum(AuditAction, name="audit_action", values_callable=_enum_values),
        nullable=False,
    )
    resource = Column(String(255), nullable=False)
    resource_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
