"""
Fixed-point conversion between user-entered decimal text and the integers
the token contracts work with.
"""

from __future__ import annotations

import re
from decimal import MAX_EMAX, Decimal, InvalidOperation, localcontext

from utils.config import DEFAULT_DECIMALS
from utils.errors import InvalidAmountError

# solo cifras ASCII: Decimal() acepta "1_000", "١٠" o "１２"
_NUMERIC_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def parse_amount(text: object, decimals: int = DEFAULT_DECIMALS) -> int:
    """Convert ``text`` into a strictly positive fixed-point integer.

    Raises :class:`InvalidAmountError` for empty, non-numeric, non-finite,
    non-positive values and for values with more fractional digits than
    ``decimals`` allows.
    """
    if text is None:
        raise InvalidAmountError(text, "cantidad vacía")
    raw_text = str(text).strip()
    if not raw_text:
        raise InvalidAmountError(text, "cantidad vacía")
    if not _NUMERIC_RE.fullmatch(raw_text):
        raise InvalidAmountError(text, "cantidad no numérica")
    try:
        value = Decimal(raw_text)
    except InvalidOperation:
        raise InvalidAmountError(text, "cantidad no numérica") from None
    if value <= 0:
        raise InvalidAmountError(text, "la cantidad debe ser positiva")

    # uint256 no admite más de 78 cifras enteras
    if value.adjusted() + decimals > 77:
        raise InvalidAmountError(text, "cantidad fuera de rango")

    digits = len(value.as_tuple().digits)
    try:
        with localcontext() as ctx:
            ctx.prec = digits + decimals + 2
            ctx.Emax = MAX_EMAX
            scaled = value.scaleb(decimals)
    except ArithmeticError:
        raise InvalidAmountError(text, "cantidad fuera de rango") from None
    # se trata como entrada inválida (alerta, sin llamadas a la red)
    if scaled != scaled.to_integral_value():
        raise InvalidAmountError(text, f"más de {decimals} decimales")
    return int(scaled)


def format_units(raw: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render a fixed-point integer as decimal text.

    Trailing zeros are trimmed, but one fractional digit is always kept:
    ``format_units(1234500) == "123.45"``, ``format_units(500000) == "50.0"``.
    """
    raw = int(raw)
    sign = "-" if raw < 0 else ""
    whole, frac = divmod(abs(raw), 10 ** decimals)
    if decimals == 0:
        return f"{sign}{whole}.0"
    frac_txt = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_txt}"
