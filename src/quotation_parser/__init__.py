"""
IMPAG Quotation Parser

Turns AI-generated quotation responses into structured internal and
customer quotations, with totals, amounts in words and document exports.
"""

__version__ = "1.0.0"
__author__ = "IMPAG"
__email__ = "impaqtodoparaelcampo@gmail.com"

from .dual_parser import build_dual_response, extract_section, parse_dual_quotation_response
from .financial_calculator import FinancialCalculator, calculate_quotation_totals
from .markdown_parser import parse_internal_quotation_markdown, parse_quotation_markdown
from .models import (
    DualQuotationResult,
    InternalQuotationLineItem,
    ParsedInternalQuotation,
    ParsedQuotation,
    QuotationLineItem,
    QuotationSection,
)
from .number_words import amount_to_words
from .price_extractor import calculate_total, extract_price, format_currency
from .quotation_id import generate_quotation_id

__all__ = [
    "DualQuotationResult",
    "FinancialCalculator",
    "InternalQuotationLineItem",
    "ParsedInternalQuotation",
    "ParsedQuotation",
    "QuotationLineItem",
    "QuotationSection",
    "amount_to_words",
    "build_dual_response",
    "calculate_quotation_totals",
    "calculate_total",
    "extract_price",
    "extract_section",
    "format_currency",
    "generate_quotation_id",
    "parse_dual_quotation_response",
    "parse_internal_quotation_markdown",
    "parse_quotation_markdown",
]
