from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from ledger.functional import Either, Left, Right

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round2(value: Any) -> Decimal:
    """Round a money value to the cent, half up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(raw: Any) -> Either[dict, Decimal]:
    """Parse user input into a Decimal.

    Accepts Decimal, int, float and numeric strings (a comma decimal separator
    is tolerated). Rejects empty input, booleans, NaN and infinities instead of
    coercing them to zero.
    """
    if raw is None or isinstance(raw, bool):
        return Left({"error": "invalid_amount", "message": "Amount is required", "raw": raw})

    if isinstance(raw, str):
        text = raw.strip().replace(",", ".")
        if not text:
            return Left({"error": "invalid_amount", "message": "Amount is required", "raw": raw})
    else:
        text = str(raw)

    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        return Left({
            "error": "invalid_amount",
            "message": f"Amount {raw!r} is not a number",
            "raw": raw,
        })

    if not value.is_finite():
        return Left({
            "error": "invalid_amount",
            "message": f"Amount {raw!r} is not a finite number",
            "raw": raw,
        })

    return Right(value)


def sum_money(values) -> Decimal:
    return round2(sum(values, ZERO))
