"""
Exceptions raised by the Quotation Parser.

Parsing itself never raises; these cover the user-triggered actions
layered on top of it (exports and calls to the backend).
"""

from typing import Optional


class QuotationError(Exception):
    """Base class for quotation errors."""


class ExportError(QuotationError):
    """An export (Markdown, HTML, PDF) failed. The parsed quotation is unaffected."""


class APIError(QuotationError):
    """A request to the quotation backend failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_quota_error(self) -> bool:
        from .api_client import is_quota_error

        return self.status_code == 429 or is_quota_error(str(self))
