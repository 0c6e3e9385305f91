import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN


def parse_amount(value: str, *, allow_negative: bool = False) -> int:
    """Parse a decimal amount like ``"12,49 €"`` or ``"1.234,50"`` into cents."""
    clean = value.strip().replace("€", "").replace("$", "").replace(" ", "")
    clean = clean.replace(",", ".")
    if clean.count(".") > 1:
        parts = clean.split(".")
        clean = "".join(parts[:-1]) + "." + parts[-1]
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    cents = int((amount * 100).quantize(Decimal("1")))
    if cents < 0 and not allow_negative:
        raise ValueError("Amount must be positive")
    return cents


def parse_cents_input(value: str) -> int:
    """Digit-by-digit price entry: the last two digits typed are the cents.

    ``"123"`` is 1,23 and ``"89"`` is 0,89. Anything that is not a digit is
    ignored, so an already formatted ``"1,23 €"`` parses back to 123.
    """
    digits = re.sub(r"[^\d]", "", value)
    if not digits:
        return 0
    return int(digits)


def line_total_cents(price_cents: int, quantity: float) -> int:
    total = Decimal(price_cents) * Decimal(str(quantity))
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


def format_currency(cents: int, symbol: str = "€") -> str:
    text = f"{cents / 100:,.2f}".translate(str.maketrans(",.", ".,"))
    return f"{text} {symbol}" if symbol else text


def parse_price_input(value: str) -> int:
    """Price as typed into the entry form.

    With a decimal separator it is an amount (``"1,23"``); bare digits are
    typed cents (``"123"``).
    """
    if value.strip().startswith("-"):
        raise ValueError("Amount must be positive")
    if "," in value or "." in value:
        return parse_amount(value)
    return parse_cents_input(value)
