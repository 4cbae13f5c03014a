"""
Invoice arithmetic.

Line totals, discounts, profit and the invoice summary are computed here
from raw inputs only; stored summary values are never read back. All money
leaves this module rounded with ``round2``.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from src.exceptions import ValidationError
from src.money import round2, round3, round_whole, to_decimal

DISCOUNT_TYPES = ("percentage", "fixed")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineResult:
    item_subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    profit: Decimal

    @property
    def rounded_discount(self):
        return round2(self.discount_amount)


@dataclass(frozen=True)
class InvoiceSummary:
    subtotal: Decimal
    total_discount: Decimal
    grand_total: Decimal
    round_off: Decimal
    total_profit: Decimal
    round_off_total: bool = False


def discount_for(item_subtotal, discount_type, discount_value):
    """Nominal discount before it is capped at the item subtotal."""
    value = to_decimal(discount_value)
    if discount_type == "percentage":
        return item_subtotal * value / HUNDRED
    return value


def calculate_line(quantity, rate, discount_type="percentage", discount_value=0, base_cost=0):
    """
    Compute one line item.

    An over-generous discount is capped so the total never goes below zero;
    ``discount_amount`` is the part of the discount that actually applied.
    """
    qty = round3(quantity)
    item_subtotal = qty * to_decimal(rate)
    nominal = discount_for(item_subtotal, discount_type, discount_value)
    after_discount = max(ZERO, item_subtotal - nominal)
    total = round2(after_discount)
    profit = round2(total - qty * to_decimal(base_cost))
    return LineResult(
        item_subtotal=item_subtotal,
        discount_amount=item_subtotal - after_discount,
        total=total,
        profit=profit,
    )


def summarize_lines(lines: Iterable[LineResult], round_off_total=False):
    lines = list(lines)
    subtotal = round2(sum((line.item_subtotal for line in lines), ZERO))
    total_discount = round2(sum((line.discount_amount for line in lines), ZERO))
    grand_total = round2(subtotal - total_discount)
    round_off = round2(ZERO)
    if round_off_total:
        rounded = round2(round_whole(grand_total))
        round_off = round2(rounded - grand_total)
        grand_total = rounded
    total_profit = round2(sum((line.profit for line in lines), ZERO))
    return InvoiceSummary(
        subtotal=subtotal,
        total_discount=total_discount,
        grand_total=grand_total,
        round_off=round_off,
        total_profit=total_profit,
        round_off_total=bool(round_off_total),
    )


def due_amount(grand_total, paid_amount):
    return round2(max(ZERO, to_decimal(grand_total) - to_decimal(paid_amount)))


def check_paid_amount(paid_amount, grand_total):
    paid = to_decimal(paid_amount)
    errors = []
    if paid < 0:
        errors.append("paid_amount cannot be negative")
    if paid > to_decimal(grand_total):
        errors.append(f"paid_amount {round2(paid)} exceeds grand total {round2(grand_total)}")
    if errors:
        raise ValidationError(errors)


def payment_status(grand_total, paid_amount):
    paid = to_decimal(paid_amount)
    if paid <= 0 and to_decimal(grand_total) > 0:
        return "Unpaid"
    if due_amount(grand_total, paid) == 0:
        return "Paid"
    return "Partially Paid"
