"""Insight engine - spending analytics and risk flags for a single statement"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, List, Sequence, Tuple
from finsight_gateway.domain.models import Transaction, InsightSummary
from finsight_gateway.utils.date_utils import month_key

ZERO = Decimal("0")

OTHER_CATEGORY = "Other"

HIGH_SPENDING_FLAG = "High spending relative to income"
SMALL_TRANSACTIONS_FLAG = "Frequent small transactions (potential impulse spending)"
NEGATIVE_BALANCE_FLAG = "Multiple negative balance occurrences"

# Risk thresholds
HIGH_SPENDING_RATIO = Decimal("0.8")  # outflow above 80% of income
SMALL_TRANSACTION_LIMIT = Decimal("50")
SMALL_TRANSACTION_MAX_COUNT = 10
NEGATIVE_BALANCE_MAX_COUNT = 2

INCOME_WINDOW_MONTHS = 3


def _contains_any(*keywords: str) -> Callable[[str], bool]:
    """Build a predicate matching a lowercased description against keywords"""
    return lambda description: any(keyword in description for keyword in keywords)


# Evaluated top to bottom, first match wins
CATEGORY_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (_contains_any("grocery", "restaurant", "food"), "Food & Dining"),
    (_contains_any("gas", "fuel", "uber", "lyft"), "Transportation"),
    (_contains_any("amazon", "online", "shopping"), "Shopping"),
    (_contains_any("rent", "mortgage", "utilities"), "Housing"),
    (_contains_any("netflix", "spotify", "entertainment"), "Entertainment"),
]


def chronological(transactions: Sequence[Transaction]) -> List[Transaction]:
    """Order by transaction date; sorted() is stable so ties keep statement order"""
    return sorted(transactions, key=lambda t: t.transaction_date)


def calculate_three_month_avg_income(transactions: Sequence[Transaction]) -> Decimal:
    """
    Average monthly income over the most recent months that had any income.

    - Only positive amounts count as income
    - Months without income are skipped, not treated as zero
    - Fewer than 3 income months averages over what is there
    - Rounded half-up to a whole unit
    """
    monthly_income: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if txn.amount > 0:
            monthly_income[month_key(txn.transaction_date)] += txn.amount

    if not monthly_income:
        return ZERO

    recent_months = sorted(monthly_income, reverse=True)[:INCOME_WINDOW_MONTHS]
    total = sum((monthly_income[month] for month in recent_months), ZERO)
    average = total / len(recent_months)

    return average.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def calculate_totals(transactions: Sequence[Transaction]) -> Tuple[Decimal, Decimal, Decimal]:
    """Returns (total_inflow, total_outflow, net_amount); outflow is reported as a positive figure"""
    total_inflow = sum((t.amount for t in transactions if t.amount > 0), ZERO)
    total_outflow = abs(sum((t.amount for t in transactions if t.amount < 0), ZERO))
    net_amount = sum((t.amount for t in transactions), ZERO)
    return total_inflow, total_outflow, net_amount


def determine_category(description: str) -> str:
    lowered = description.lower()
    for matches, category in CATEGORY_RULES:
        if matches(lowered):
            return category
    return OTHER_CATEGORY


def categorize_spending(transactions: Sequence[Transaction]) -> Dict[str, Decimal]:
    """Bucket absolute outflow amounts by category; income never appears here"""
    buckets: Dict[str, Decimal] = {}
    for txn in transactions:
        if txn.amount < 0:
            category = determine_category(txn.description)
            buckets[category] = buckets.get(category, ZERO) + abs(txn.amount)
    return buckets


def count_negative_balances(transactions: Sequence[Transaction]) -> int:
    """
    Replay amounts from a zero starting balance and count how often the
    running balance ends up below zero. Each transaction's own balance
    field is not used.
    """
    running_balance = ZERO
    negative_count = 0
    for txn in chronological(transactions):
        running_balance += txn.amount
        if running_balance < 0:
            negative_count += 1
    return negative_count


def identify_risk_flags(transactions: Sequence[Transaction]) -> List[str]:
    """
    Threshold tests over the statement, evaluated in a fixed order:

    1. Outflow above 80% of total income (all positive amounts, not the average)
    2. More than 10 outflows under 50
    3. Running balance negative more than twice
    """
    flags: List[str] = []
    total_income, total_outflow, _ = calculate_totals(transactions)

    if total_outflow > total_income * HIGH_SPENDING_RATIO:
        flags.append(HIGH_SPENDING_FLAG)

    small_outflows = sum(
        1 for t in transactions
        if t.amount < 0 and abs(t.amount) < SMALL_TRANSACTION_LIMIT
    )
    if small_outflows > SMALL_TRANSACTION_MAX_COUNT:
        flags.append(SMALL_TRANSACTIONS_FLAG)

    if count_negative_balances(transactions) > NEGATIVE_BALANCE_MAX_COUNT:
        flags.append(NEGATIVE_BALANCE_FLAG)

    return flags


def compute_insight_summary(transactions: Sequence[Transaction]) -> InsightSummary:
    """
    Main entry point: derive every insight figure for one statement.

    An empty statement is valid and yields zero totals, no buckets, no flags.
    """
    total_inflow, total_outflow, net_amount = calculate_totals(transactions)

    return InsightSummary(
        three_month_avg_income=calculate_three_month_avg_income(transactions),
        total_inflow=total_inflow,
        total_outflow=total_outflow,
        net_amount=net_amount,
        spend_buckets=categorize_spending(transactions),
        risk_flags=identify_risk_flags(transactions),
    )
