#!/usr/bin/env python3
"""
Financial Calculator for Quotation Documents
Computes table totals as Money values using the prices library, with the
formatted amount and the amount in words printed under each table.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Tuple

from prices import Money

from .models import LineItem, ParsedQuotation
from .number_words import amount_to_words
from .price_extractor import extract_price, format_currency

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = 'MXN'


@dataclass(frozen=True)
class TableTotals:
    """Total row of one quotation table."""
    total: Money
    formatted: str
    words: str
    item_count: int
    unpriced_count: int

    @property
    def amount(self) -> Decimal:
        return self.total.amount


class FinancialCalculator:
    """
    Sums line-item amounts of quotation tables.

    Amounts that cannot be read ("Consultar", "$abc") count as zero; they
    are reported in ``unpriced_count`` so callers can flag the under-total.
    """

    def __init__(self, currency_code: str = DEFAULT_CURRENCY, currency_symbol: str = '$'):
        self.currency_code = currency_code
        self.currency_symbol = currency_symbol

    def zero(self) -> Money:
        return Money(Decimal('0'), self.currency_code)

    def table_totals(self, line_items: Iterable[LineItem]) -> TableTotals:
        """Compute the total row for one table block."""
        total = self.zero()
        item_count = 0
        unpriced_count = 0

        for item in line_items:
            item_count += 1
            amount = extract_price(item.importe)
            if amount == 0:
                unpriced_count += 1
            total += Money(amount, self.currency_code)

        if unpriced_count:
            logger.debug(f"{unpriced_count} of {item_count} line items have no readable amount")

        return TableTotals(
            total=total,
            formatted=format_currency(total.amount, self.currency_symbol),
            words=amount_to_words(total.amount),
            item_count=item_count,
            unpriced_count=unpriced_count,
        )

    def quotation_totals(self, quotation: ParsedQuotation) -> Tuple[TableTotals, ...]:
        """Totals for every table of a quotation, in table order."""
        return tuple(self.table_totals(table) for table in quotation.tables)

    def document_total(self, quotation: ParsedQuotation) -> Money:
        """The document total is the total of the first table."""
        if not quotation.tables:
            return self.zero()
        return self.table_totals(quotation.tables[0]).total


def calculate_quotation_totals(quotation: ParsedQuotation,
                               currency_code: str = DEFAULT_CURRENCY) -> Tuple[TableTotals, ...]:
    """
    Convenience function to calculate the table totals of a quotation.
    """
    calculator = FinancialCalculator(currency_code)
    return calculator.quotation_totals(quotation)
