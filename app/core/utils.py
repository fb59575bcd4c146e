from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")


def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """
    Decimal from int/float/str without binary float artefacts
    (0.1 -> Decimal("0.1"), not 0.1000000000000000055...).
    """
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")


def to_cents(d: Decimal) -> int:
    return int(qround(d) * 100)


def from_cents(cents: int) -> Decimal:
    return qround(Decimal(cents) / 100)
