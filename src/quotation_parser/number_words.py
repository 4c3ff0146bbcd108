#!/usr/bin/env python3
"""
Spanish amount-in-words for Mexican peso totals.

    >>> amount_to_words(Decimal('12345.67'))
    'doce mil trescientos cuarenta y cinco pesos 67/100 M.N.'
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

logger = logging.getLogger(__name__)

PLACEHOLDER = "Importe no disponible"

MAX_AMOUNT = Decimal('999999999999.99')

_UNITS = [
    "", "uno", "dos", "tres", "cuatro", "cinco", "seis", "siete", "ocho", "nueve",
]

_TEENS_AND_TWENTIES = [
    "diez", "once", "doce", "trece", "catorce", "quince",
    "dieciséis", "diecisiete", "dieciocho", "diecinueve",
    "veinte", "veintiuno", "veintidós", "veintitrés", "veinticuatro",
    "veinticinco", "veintiséis", "veintisiete", "veintiocho", "veintinueve",
]

_TENS = {
    3: "treinta", 4: "cuarenta", 5: "cincuenta", 6: "sesenta",
    7: "setenta", 8: "ochenta", 9: "noventa",
}

_HUNDREDS = [
    "", "ciento", "doscientos", "trescientos", "cuatrocientos", "quinientos",
    "seiscientos", "setecientos", "ochocientos", "novecientos",
]


def _below_hundred(n: int) -> str:
    if n < 10:
        return _UNITS[n]
    if n < 30:
        return _TEENS_AND_TWENTIES[n - 10]
    tens, units = divmod(n, 10)
    if units:
        return f"{_TENS[tens]} y {_UNITS[units]}"
    return _TENS[tens]


def _below_thousand(n: int) -> str:
    if n == 100:
        return "cien"
    hundreds, rest = divmod(n, 100)
    parts = []
    if hundreds:
        parts.append(_HUNDREDS[hundreds])
    if rest:
        parts.append(_below_hundred(rest))
    return " ".join(parts)


def _apocopate(words: str) -> str:
    """'uno' shortens to 'un' in front of a noun (mil, millones, pesos)."""
    if words.endswith("veintiuno"):
        return words[:-len("veintiuno")] + "veintiún"
    if words.endswith("uno"):
        return words[:-len("uno")] + "un"
    return words


def _below_million(n: int) -> str:
    thousands, rest = divmod(n, 1000)
    parts = []
    if thousands == 1:
        parts.append("mil")
    elif thousands:
        parts.append(f"{_apocopate(_below_thousand(thousands))} mil")
    if rest:
        parts.append(_below_thousand(rest))
    return " ".join(parts)


def integer_to_words(n: int) -> str:
    """Spell out a non-negative integer below one trillion."""
    if n == 0:
        return "cero"

    millions, rest = divmod(n, 1_000_000)
    parts = []
    if millions == 1:
        parts.append("un millón")
    elif millions:
        parts.append(f"{_apocopate(_below_million(millions))} millones")
    if rest:
        parts.append(_below_million(rest))
    return " ".join(parts)


def _to_decimal(amount: Any) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        # repr keeps 150.5 as 150.5 instead of its binary expansion
        return Decimal(repr(amount))
    return Decimal(str(amount))


def amount_to_words(amount: Any) -> str:
    """
    Render a peso amount in Spanish words for the legal total line.

    Args:
        amount: Non-negative number (Decimal, int, float or numeric string)

    Returns:
        Text such as "ciento cincuenta pesos 50/100 M.N.", or the
        placeholder "Importe no disponible" for negative, non-finite,
        non-numeric or out-of-range input
    """
    if isinstance(amount, bool) or amount is None:
        return PLACEHOLDER

    try:
        value = _to_decimal(amount)
    except (InvalidOperation, ValueError, TypeError):
        logger.debug(f"Amount not convertible to words: {amount!r}")
        return PLACEHOLDER

    # Range check comes before quantize, which fails past the context precision
    if not value.is_finite() or value < 0 or value > MAX_AMOUNT:
        logger.debug(f"Amount out of range for words: {amount!r}")
        return PLACEHOLDER

    value = value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    # 999999999999.995 rounds past the upper bound
    if value > MAX_AMOUNT:
        logger.debug(f"Amount out of range for words: {amount!r}")
        return PLACEHOLDER

    pesos = int(value)
    cents = int((value - pesos) * 100)

    words = integer_to_words(pesos)
    if pesos == 1:
        currency = "un peso"
    else:
        currency = f"{_apocopate(words)} pesos"
        # "un millón de pesos", "dos millones de pesos"
        if pesos >= 1_000_000 and pesos % 1_000_000 == 0:
            currency = f"{_apocopate(words)} de pesos"

    return f"{currency} {cents:02d}/100 M.N."
