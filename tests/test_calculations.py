from decimal import Decimal

import pytest

from src.exceptions import ValidationError
from src.money import round2, format_amount, money_str
from invoices.calculations import (
    calculate_line, summarize_lines, due_amount, check_paid_amount, payment_status,
)


def test_percentage_discount_line():
    line = calculate_line(2, 100, "percentage", 10)
    assert line.item_subtotal == Decimal("200")
    assert line.rounded_discount == Decimal("20.00")
    assert line.total == Decimal("180.00")


def test_fixed_discount_is_capped_at_subtotal():
    line = calculate_line(2, 100, "fixed", 250)
    assert line.total == Decimal("0.00")
    assert line.rounded_discount == Decimal("200.00")


def test_profit_uses_base_cost_per_unit():
    line = calculate_line(3, "50.00", "percentage", 0, base_cost="30.00")
    assert line.total == Decimal("150.00")
    assert line.profit == Decimal("60.00")


def test_fractional_quantity_rounded_to_three_places():
    line = calculate_line("1.2345", "10.00")
    assert line.item_subtotal == Decimal("12.350")
    assert line.total == Decimal("12.35")


def test_summary_matches_sum_of_lines():
    lines = [calculate_line(2, 100, "percentage", 10), calculate_line(1, "49.99", "fixed", 5)]
    summary = summarize_lines(lines)
    assert summary.subtotal == Decimal("249.99")
    assert summary.total_discount == Decimal("25.00")
    assert summary.grand_total == Decimal("224.99")
    assert summary.round_off == Decimal("0.00")


def test_round_off_total_rounds_grand_total_to_rupee():
    summary = summarize_lines([calculate_line(1, "180.40")], round_off_total=True)
    assert summary.grand_total == Decimal("180.00")
    assert summary.round_off == Decimal("-0.40")

    summary = summarize_lines([calculate_line(1, "180.50")], round_off_total=True)
    assert summary.grand_total == Decimal("181.00")
    assert summary.round_off == Decimal("0.50")


def test_empty_invoice_summary_is_zero():
    summary = summarize_lines([])
    assert summary.grand_total == Decimal("0.00")
    assert summary.total_profit == Decimal("0.00")


def test_round_half_up():
    assert round2(Decimal("2.675")) == Decimal("2.68")
    assert round2("0.005") == Decimal("0.01")
    assert money_str(Decimal("3")) == "3.00"
    assert format_amount("1234.5") == "₹1234.50"


def test_due_amount_never_negative():
    assert due_amount("180.00", "180.00") == Decimal("0.00")
    assert due_amount("180.00", "50.25") == Decimal("129.75")


def test_paid_amount_above_grand_total_rejected():
    check_paid_amount("180.00", "180.00")
    with pytest.raises(ValidationError) as exc:
        check_paid_amount("200.00", "180.00")
    assert "exceeds grand total" in exc.value.details[0]


def test_negative_paid_amount_rejected():
    with pytest.raises(ValidationError):
        check_paid_amount("-1", "10")


@pytest.mark.parametrize("grand, paid, expected", [
    ("180.00", "0", "Unpaid"),
    ("180.00", "100", "Partially Paid"),
    ("180.00", "180.00", "Paid"),
    ("0", "0", "Paid"),
])
def test_payment_status(grand, paid, expected):
    assert payment_status(grand, paid) == expected
