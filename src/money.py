from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")
THREE_PLACES = Decimal("0.001")
WHOLE = Decimal("1")
ZERO = Decimal("0.00")
CURRENCY_SYMBOL = "₹"


def to_decimal(value):
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value):
    """Round to 2 places, halves away from zero."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round3(value):
    return to_decimal(value).quantize(THREE_PLACES, rounding=ROUND_HALF_UP)


def round_whole(value):
    return to_decimal(value).quantize(WHOLE, rounding=ROUND_HALF_UP)


def format_amount(value):
    return f"{CURRENCY_SYMBOL}{round2(value):.2f}"


def money_str(value):
    return f"{round2(value):.2f}"
