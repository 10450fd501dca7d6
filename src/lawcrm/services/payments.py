"""Due payments and their breakdown by payment order."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable

ORDER_FIRST = "1"
ORDER_INTERMEDIATE = "5"
ORDER_FINAL = "9"
ORDER_SINGLE = "90"
ORDER_EXPENSE = "99"

ORDER_CODES_BY_TEXT = {
    "first payment": ORDER_FIRST,
    "intermediate payment": ORDER_INTERMEDIATE,
    "final payment": ORDER_FINAL,
    "single payment": ORDER_SINGLE,
    "expense (no vat)": ORDER_EXPENSE,
}

# Fixed conversion rates to NIS
NIS_RATES = {
    "NIS": Decimal("1"),
    "USD": Decimal("3.7"),
    "EUR": Decimal("4.0"),
    "GBP": Decimal("4.7"),
}


def normalize_order_code(value) -> str:
    """Numeric payment-order code from a numeric or free-text column."""
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""
    if text.isdigit():
        return text
    return ORDER_CODES_BY_TEXT.get(text.lower(), text)


def order_category(code: str) -> str:
    if code == ORDER_FIRST:
        return "first"
    if code == ORDER_INTERMEDIATE:
        return "intermediate"
    if code == ORDER_FINAL:
        return "final"
    return "other"


def convert_to_nis(amount, currency: str | None) -> Decimal:
    """Amount in NIS; unknown currencies count as NIS, non-positive amounts as zero."""
    if amount is None:
        return Decimal("0")
    value = Decimal(str(amount))
    if value <= 0:
        return Decimal("0")
    rate = NIS_RATES.get((currency or "NIS").upper(), Decimal("1"))
    return value * rate


@dataclass(frozen=True)
class DuePayment:
    """One installment due in the reporting window."""

    lead_key: str  # lead id, "legacy_<id>" for legacy leads
    amount: Decimal
    currency: str
    order_code: str
    due_date: datetime | None = None
    main_category_id: int | None = None

    @property
    def amount_nis(self) -> Decimal:
        return convert_to_nis(self.amount, self.currency)


@dataclass
class DueBreakdown:
    total: Decimal = field(default_factory=lambda: Decimal("0"))
    first: Decimal = field(default_factory=lambda: Decimal("0"))
    intermediate: Decimal = field(default_factory=lambda: Decimal("0"))
    final_germany: Decimal = field(default_factory=lambda: Decimal("0"))
    final_austria: Decimal = field(default_factory=lambda: Decimal("0"))

    def as_floats(self) -> dict[str, float]:
        return {
            "total": float(self.total),
            "first": float(self.first),
            "intermediate": float(self.intermediate),
            "final_germany": float(self.final_germany),
            "final_austria": float(self.final_austria),
        }


def summarize_dues(
    payments: Iterable[DuePayment],
    germany_id: int | None,
    austria_id: int | None,
) -> DueBreakdown:
    """Sum due payments in NIS, split by order and, for final payments, by jurisdiction."""
    breakdown = DueBreakdown()
    for payment in payments:
        amount = payment.amount_nis
        breakdown.total += amount

        category = order_category(payment.order_code)
        if category == "first":
            breakdown.first += amount
        elif category == "intermediate":
            breakdown.intermediate += amount
        elif category == "final":
            if germany_id is not None and payment.main_category_id == germany_id:
                breakdown.final_germany += amount
            elif austria_id is not None and payment.main_category_id == austria_id:
                breakdown.final_austria += amount
    return breakdown
