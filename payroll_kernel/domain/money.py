"""
Money rounding (``payroll_kernel.domain.money``).

Responsibility:
    The one sanctioned place where payroll amounts are converted to
    ``Decimal`` and rounded.  Engines call ``round_money`` exactly once per
    derived amount; intermediate values stay at full precision.

Invariants enforced:
    - No floats: ``to_decimal`` converts through ``str`` so binary float
      artefacts never enter a calculation.
    - ROUND_HALF_UP everywhere, matching the payslip convention.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from payroll_kernel.exceptions import InvalidAmountError

DEFAULT_ROUNDING = ROUND_HALF_UP
MONEY_DECIMAL_PLACES = 2

ZERO = Decimal("0")


def to_decimal(
    value: Decimal | int | str | float | None,
    field: str = "amount",
) -> Decimal:
    """
    Convert an input amount to Decimal. ``None`` becomes zero.

    Raises:
        InvalidAmountError: value is not a finite number.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidAmountError(field, value) from None
    if not amount.is_finite():
        raise InvalidAmountError(field, value)
    return amount


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to ``decimal_places``.

    Preconditions: value is a Decimal.
    Postconditions: value quantized with the given rounding mode.
    """
    exponent = Decimal(1).scaleb(-decimal_places)
    return value.quantize(exponent, rounding=rounding)


def round_whole(value: Decimal, rounding: str = DEFAULT_ROUNDING) -> Decimal:
    """Round to a whole currency unit (statutory deductions)."""
    return value.quantize(Decimal("1"), rounding=rounding)

