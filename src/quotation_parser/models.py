"""
Data models for the Quotation Parser.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class QuotationSection:
    """A block of prose around the tables (characteristics, remarks)."""
    title: Optional[str]
    content: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "content": list(self.content)}


@dataclass(frozen=True)
class QuotationLineItem:
    """Represents a single customer-facing line item."""
    descripcion: str = ""
    unidad: str = ""
    cantidad: str = ""
    precio_unitario: str = ""
    importe: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "descripcion": self.descripcion,
            "unidad": self.unidad,
            "cantidad": self.cantidad,
            "precioUnitario": self.precio_unitario,
            "importe": self.importe,
        }


@dataclass(frozen=True)
class InternalQuotationLineItem:
    """Line item of the internal document, with supplier and margin columns."""
    descripcion: str = ""
    proveedor: str = ""
    costo_unitario: str = ""
    margen: str = ""
    precio_unitario: str = ""
    cantidad: str = ""
    importe: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "descripcion": self.descripcion,
            "proveedor": self.proveedor,
            "costoUnitario": self.costo_unitario,
            "margen": self.margen,
            "precioUnitario": self.precio_unitario,
            "cantidad": self.cantidad,
            "importe": self.importe,
        }


LineItem = Union[QuotationLineItem, InternalQuotationLineItem]


@dataclass(frozen=True)
class ParsedQuotation:
    """Customer quotation parsed from one markdown payload."""
    title: Optional[str] = None
    sections: Tuple[QuotationSection, ...] = ()
    tables: Tuple[Tuple[QuotationLineItem, ...], ...] = ()
    notes: Tuple[str, ...] = ()
    has_table: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "sections": [section.to_dict() for section in self.sections],
            "tables": [[item.to_dict() for item in table] for table in self.tables],
            "notes": list(self.notes),
            "hasTable": self.has_table,
        }


@dataclass(frozen=True)
class ParsedInternalQuotation(ParsedQuotation):
    """Internal quotation; same shape, internal line items."""
    tables: Tuple[Tuple[InternalQuotationLineItem, ...], ...] = ()


@dataclass(frozen=True)
class DualQuotationResult:
    """Both halves of one AI response, plus the text they came from."""
    internal: Optional[ParsedInternalQuotation]
    customer: Optional[ParsedQuotation]
    internal_markdown: str = ""
    customer_markdown: str = ""
    raw_response: str = ""

    @property
    def is_complete(self) -> bool:
        return self.internal is not None and self.customer is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "internal": self.internal.to_dict() if self.internal else None,
            "customer": self.customer.to_dict() if self.customer else None,
            "internalMarkdown": self.internal_markdown,
            "customerMarkdown": self.customer_markdown,
            "rawResponse": self.raw_response,
        }


@dataclass(frozen=True)
class QuotationRecord:
    """A quotation persisted by the history service."""
    id: Optional[int] = None
    user_query: str = ""
    title: Optional[str] = None
    customer_name: Optional[str] = None
    customer_location: Optional[str] = None
    quotation_id: Optional[str] = None
    internal_quotation: str = ""
    customer_quotation: str = ""
    raw_response: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    _FIELDS = (
        "id", "user_query", "title", "customer_name", "customer_location",
        "quotation_id", "internal_quotation", "customer_quotation",
        "raw_response", "created_at", "updated_at",
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuotationRecord":
        known = {name: data.get(name) for name in cls._FIELDS if name in data}
        # The service may send null for the text columns
        for name in ("user_query", "internal_quotation", "customer_quotation"):
            if known.get(name) is None:
                known[name] = ""
        extra = {key: value for key, value in data.items() if key not in cls._FIELDS}
        return cls(extra=extra, **known)

    def to_payload(self) -> Dict[str, Any]:
        """Body for POST /quotation-history/ (server-managed fields left out)."""
        return {
            "user_query": self.user_query,
            "title": self.title,
            "customer_name": self.customer_name,
            "customer_location": self.customer_location,
            "quotation_id": self.quotation_id,
            "internal_quotation": self.internal_quotation,
            "customer_quotation": self.customer_quotation,
            "raw_response": self.raw_response,
        }

    def response_text(self) -> str:
        """
        Text to re-parse for this record.

        The stored internal/customer columns win over raw_response so that
        manual edits in the database show up.
        """
        from .dual_parser import build_dual_response

        if self.internal_quotation and self.customer_quotation:
            return build_dual_response(self.internal_quotation, self.customer_quotation)
        return self.raw_response or ""


class ProcessingOutcome(str, Enum):
    """Final state of a server-side file processing job."""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"
