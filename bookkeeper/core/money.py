"""
Arithmetique monetaire.
Tous les montants du grand livre sont des Decimal a 2 decimales.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Amount = Union[Decimal, int, float, str, None]


def to_decimal(value: Amount) -> Decimal:
    """Convertit une valeur quelconque en Decimal (None -> 0)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # repr evite les artefacts binaires (0.1 -> 0.1000000000000000055...)
        return Decimal(repr(value))
    return Decimal(value)


def money(value: Amount) -> Decimal:
    """Arrondit un montant a 2 decimales (arrondi commercial)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Amount]) -> Decimal:
    """Somme exacte puis arrondie a 2 decimales."""
    total = Decimal("0")
    for value in values:
        total += to_decimal(value)
    return money(total)


def is_zero(value: Amount, tolerance: Optional[Decimal] = None) -> bool:
    """True si |value| est strictement sous la tolerance (0.01 par defaut)."""
    return abs(to_decimal(value)) < (tolerance if tolerance is not None else CENT)
