#!/usr/bin/env python3
"""
Splitting of dual quotation responses.

The assistant answers with two documents multiplexed in one text, each
between HTML-comment sentinels:

    <!-- INTERNAL_QUOTATION_START -->
    ...cost and margin breakdown...
    <!-- INTERNAL_QUOTATION_END -->

    <!-- CUSTOMER_QUOTATION_START -->
    ...customer price table...
    <!-- CUSTOMER_QUOTATION_END -->
"""

import logging
import re
from typing import Optional

from .markdown_parser import parse_internal_quotation_markdown, parse_quotation_markdown
from .models import DualQuotationResult

logger = logging.getLogger(__name__)

INTERNAL_START = "<!-- INTERNAL_QUOTATION_START -->"
INTERNAL_END = "<!-- INTERNAL_QUOTATION_END -->"
CUSTOMER_START = "<!-- CUSTOMER_QUOTATION_START -->"
CUSTOMER_END = "<!-- CUSTOMER_QUOTATION_END -->"


def _marker(name: str) -> re.Pattern:
    return re.compile(r'<!--\s*' + name + r'\s*-->')


_MARKERS = {
    "internal": (_marker("INTERNAL_QUOTATION_START"), _marker("INTERNAL_QUOTATION_END")),
    "customer": (_marker("CUSTOMER_QUOTATION_START"), _marker("CUSTOMER_QUOTATION_END")),
}


def extract_section(text: Optional[str], side: str) -> Optional[str]:
    """
    Return the trimmed text between one pair of sentinels.

    Args:
        text: Raw assistant response
        side: "internal" or "customer"

    Returns:
        The enclosed markdown, or None when the start marker is missing or
        has no end marker after it
    """
    if not text:
        return None

    start_pattern, end_pattern = _MARKERS[side]
    start = start_pattern.search(text)
    if start is None:
        return None

    end = end_pattern.search(text, start.end())
    if end is None:
        logger.info(f"{side} quotation start marker without end marker; treating as absent")
        return None

    return text[start.end():end.start()].strip()


def split_dual_response(text: Optional[str]):
    """Return (internal_markdown, customer_markdown); None for an absent side."""
    return extract_section(text, "internal"), extract_section(text, "customer")


def parse_dual_quotation_response(text: Optional[str]) -> DualQuotationResult:
    """
    Split a raw response and parse each half.

    Never raises. A side whose markers are absent or unpaired comes back as
    None with empty markdown; callers then show ``raw_response`` as is.
    """
    raw_response = text or ""
    internal_markdown, customer_markdown = split_dual_response(raw_response)

    internal = None
    if internal_markdown is not None:
        internal = parse_internal_quotation_markdown(internal_markdown)

    customer = None
    if customer_markdown is not None:
        customer = parse_quotation_markdown(customer_markdown)

    return DualQuotationResult(
        internal=internal,
        customer=customer,
        internal_markdown=internal_markdown or "",
        customer_markdown=customer_markdown or "",
        raw_response=raw_response,
    )


def build_dual_response(internal_markdown: str, customer_markdown: str) -> str:
    """Reassemble stored internal/customer payloads into the sentinel format."""
    return (
        f"{INTERNAL_START}\n{internal_markdown}\n{INTERNAL_END}\n\n"
        f"{CUSTOMER_START}\n{customer_markdown}\n{CUSTOMER_END}"
    )
