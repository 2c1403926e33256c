"""Domain models - pure Python dataclasses representing business entities"""

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional


class ReportStatus(str, enum.Enum):
    """Bureau report lifecycle: pending until the external call resolves"""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class AuditAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    UPLOAD = "upload"
    COMPUTE = "compute"


@dataclass(frozen=True)
class Transaction:
    """Statement line supplied by the ingestion service"""

    id: int
    statement_id: int
    description: str
    amount: Decimal  # positive = inflow, negative = outflow
    transaction_date: date
    balance: Optional[Decimal] = None


@dataclass
class InsightSummary:
    """Analytics derived from one statement's transactions"""

    three_month_avg_income: Decimal
    total_inflow: Decimal
    total_outflow: Decimal
    net_amount: Decimal
    spend_buckets: Dict[str, Decimal] = field(default_factory=dict)
    risk_flags: List[str] = field(default_factory=list)


@dataclass
class BureauScore:
    """Successful response payload from the credit bureau"""

    score: int
    risk_band: str
    enquiries_6m: int
    defaults: int
    open_loans: int
    trade_lines: int
