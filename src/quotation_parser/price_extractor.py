#!/usr/bin/env python3
"""
Price extraction for quotation line items.

Amounts arrive as the verbatim text of a table cell ("$12,345.67",
"$1,200.00 MXN", "Consultar"). Extraction is best effort: anything that is
not a number counts as zero, so a malformed price under-totals the document
instead of breaking its rendering.
"""

import logging
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Iterable, Optional

from .models import LineItem
from .number_words import PLACEHOLDER

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
CENT = Decimal('0.01')

_CURRENCY_SYMBOLS = r'[\$\€\£\¥]'
_CURRENCY_CODES = r'(?<![A-Za-z])(?:MXN|USD|M\.N\.?|MN)(?![A-Za-z])'
_NUMBER = re.compile(r'^-?\d+(?:\.\d+)?$')


def normalize_price(price_str: Any) -> str:
    """Strip currency markers and thousands separators from a price string."""
    if price_str is None:
        return ""

    price_str = str(price_str)

    # Markdown emphasis around amounts is common in generated tables
    price_str = price_str.replace('*', '')

    # Remove currency codes, symbols and separators
    price_str = re.sub(_CURRENCY_CODES, '', price_str, flags=re.IGNORECASE)
    price_str = re.sub(_CURRENCY_SYMBOLS, '', price_str)
    price_str = price_str.replace(',', '')
    price_str = re.sub(r'\s+', '', price_str)

    return price_str


def extract_price(price_str: Any) -> Decimal:
    """
    Extract the numeric amount of a line-item price.

    Args:
        price_str: Cell text such as "$1,234.50", "1,234.50 MXN" or "Consultar"

    Returns:
        The amount as a Decimal, or 0 when the text is not a number
    """
    cleaned = normalize_price(price_str)
    if not cleaned or not _NUMBER.match(cleaned):
        if cleaned:
            logger.debug(f"Non-numeric price treated as zero: {price_str!r}")
        return ZERO

    try:
        return Decimal(cleaned)
    except InvalidOperation:
        logger.debug(f"Invalid price format: {price_str!r}")
        return ZERO


def calculate_total(line_items: Iterable[LineItem]) -> Decimal:
    """Sum the extracted importe of every line item in one table block."""
    total = ZERO
    for item in line_items:
        total += extract_price(item.importe)
    return total


def document_total(tables: Iterable[Iterable[LineItem]]) -> Decimal:
    """The document total is the total of the first table block."""
    for table in tables:
        return calculate_total(table)
    return ZERO


def format_currency(amount: Optional[Decimal], symbol: str = '$') -> str:
    """Format an amount as "$1,234.50"."""
    if amount is None:
        amount = ZERO

    amount = Decimal(amount)
    if not amount.is_finite():
        logger.debug(f"Amount cannot be formatted: {amount!r}")
        return PLACEHOLDER

    with localcontext() as ctx:
        # Room for every integer digit plus the cents
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        rounded_amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded_amount < 0:
        return f"-{symbol}{rounded_amount.copy_abs():,.2f}"
    return f"{symbol}{rounded_amount:,.2f}"
