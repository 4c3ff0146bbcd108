#!/usr/bin/env python3
"""
Document renderers for internal and customer quotations.

Rendering is split in two steps: a pure function builds the view context
(totals, amount in words, trimmed characteristics and notes) and a Jinja2
template turns it into HTML. Both steps only read the parsed quotation; the
date and the quotation ID are supplied by the caller so that rendering the
same input twice gives the same output.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from jinja2 import Environment, PackageLoader, select_autoescape

from .config import Settings
from .financial_calculator import FinancialCalculator
from .models import ParsedInternalQuotation, ParsedQuotation

logger = logging.getLogger(__name__)

CUSTOMER_CHARACTERISTICS_LIMIT = 5
INTERNAL_CHARACTERISTICS_LIMIT = 6
CUSTOMER_NOTES_LIMIT = 5

CUSTOMER_COLUMNS = (
    ('descripcion', 'Descripción', 'left'),
    ('unidad', 'Unidad', 'center'),
    ('cantidad', 'Cantidad', 'center'),
    ('precio_unitario', 'Precio Unitario', 'right'),
    ('importe', 'Importe', 'right'),
)

INTERNAL_COLUMNS = (
    ('descripcion', 'Descripción', 'left'),
    ('proveedor', 'Proveedor', 'left'),
    ('costo_unitario', 'Costo Unitario', 'center'),
    ('margen', 'Margen', 'center'),
    ('precio_unitario', 'Precio Unitario', 'center'),
    ('cantidad', 'Cantidad', 'center'),
    ('importe', 'Importe', 'right'),
)

_CELL_BREAK = re.compile(r'\\n|\n|<br\s*/?>', re.IGNORECASE)

DateLike = Union[date, datetime]

_environment: Optional[Environment] = None


def get_environment() -> Environment:
    """Jinja2 environment for the bundled templates."""
    global _environment
    if _environment is None:
        _environment = Environment(
            loader=PackageLoader('quotation_parser', 'templates'),
            autoescape=select_autoescape(['html', 'xml']),
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _environment


def strip_emphasis(text: str) -> str:
    return text.replace('**', '')


def split_cell_lines(text: str) -> List[str]:
    """Re-split a cell on embedded '\\n' sequences and <br> tags."""
    lines = [strip_emphasis(line).strip() for line in _CELL_BREAK.split(text or '')]
    return [line for line in lines if line] or ['']


def format_date(fecha: DateLike) -> str:
    return fecha.strftime('%d/%m/%Y')


def _sections_context(quotation: ParsedQuotation) -> List[Dict[str, Any]]:
    return [
        {'title': section.title, 'lines': list(section.content)}
        for section in quotation.sections
    ]


def _characteristics(quotation: ParsedQuotation, limit: int) -> List[str]:
    if not quotation.sections or not quotation.sections[0].content:
        return []
    return [strip_emphasis(line) for line in quotation.sections[0].content[:limit]]


def _tables_context(quotation: ParsedQuotation, columns: Sequence[tuple],
                    calculator: FinancialCalculator) -> List[Dict[str, Any]]:
    tables = []
    for table, totals in zip(quotation.tables, calculator.quotation_totals(quotation)):
        rows = [
            [split_cell_lines(getattr(item, field_name)) for field_name, _, _ in columns]
            for item in table
        ]
        tables.append({'rows': rows, 'totals': totals})
    return tables


def _base_context(quotation: ParsedQuotation, fecha: Optional[DateLike],
                  settings: Optional[Settings]) -> Dict[str, Any]:
    settings = settings or Settings()
    return {
        'structured': quotation.has_table,
        'fecha': format_date(fecha or date.today()),
        'sections': _sections_context(quotation),
        'company': settings.company,
    }


def build_customer_context(quotation: ParsedQuotation,
                           fecha: Optional[DateLike] = None,
                           customer_name: Optional[str] = None,
                           customer_location: Optional[str] = None,
                           quotation_id: Optional[str] = None,
                           settings: Optional[Settings] = None,
                           calculator: Optional[FinancialCalculator] = None) -> Dict[str, Any]:
    """
    View context of a customer quotation.

    Args:
        quotation: Parsed customer quotation
        fecha: Date printed on the document; today when omitted
        customer_name: Optional customer name for the header block
        customer_location: Optional customer location for the header block
        quotation_id: Quotation ID, generated once by the caller
        settings: Company profile and bank details
        calculator: Totals calculator (MXN by default)
    """
    settings = settings or Settings()
    calculator = calculator or FinancialCalculator()
    context = _base_context(quotation, fecha, settings)
    context.update({
        'title': quotation.title or 'Cotización',
        'customer_name': customer_name,
        'customer_location': customer_location,
        'quotation_id': quotation_id,
        'columns': CUSTOMER_COLUMNS,
        'characteristics': _characteristics(quotation, CUSTOMER_CHARACTERISTICS_LIMIT),
        'tables': _tables_context(quotation, CUSTOMER_COLUMNS, calculator),
        'notes': [strip_emphasis(note) for note in quotation.notes[:CUSTOMER_NOTES_LIMIT]],
        'bank': settings.bank if settings.bank.is_configured else None,
    })
    return context


def build_internal_context(quotation: ParsedInternalQuotation,
                           fecha: Optional[DateLike] = None,
                           settings: Optional[Settings] = None,
                           calculator: Optional[FinancialCalculator] = None) -> Dict[str, Any]:
    """View context of an internal quotation (every note is kept)."""
    calculator = calculator or FinancialCalculator()
    context = _base_context(quotation, fecha, settings)
    context.update({
        'title': quotation.title or 'Cotización Interna',
        'columns': INTERNAL_COLUMNS,
        'characteristics': _characteristics(quotation, INTERNAL_CHARACTERISTICS_LIMIT),
        'tables': _tables_context(quotation, INTERNAL_COLUMNS, calculator),
        'notes': [strip_emphasis(note) for note in quotation.notes],
    })
    return context


def render_customer_html(quotation: ParsedQuotation, **kwargs) -> str:
    """Render a customer quotation to HTML. Accepts build_customer_context arguments."""
    context = build_customer_context(quotation, **kwargs)
    return get_environment().get_template('customer_quotation.html').render(**context)


def render_internal_html(quotation: ParsedInternalQuotation, **kwargs) -> str:
    """Render an internal quotation to HTML. Accepts build_internal_context arguments."""
    context = build_internal_context(quotation, **kwargs)
    return get_environment().get_template('internal_quotation.html').render(**context)


def render_raw_html(raw_response: str, title: str = 'Cotización') -> str:
    """Fallback for a response without the expected markers: show it verbatim."""
    return get_environment().get_template('raw_response.html').render(
        title=title, raw_response=raw_response or '',
    )
