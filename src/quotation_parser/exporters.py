#!/usr/bin/env python3
"""
Export of rendered quotations to Markdown, HTML and PDF.

Exports are explicit actions on top of a parsed quotation. They never
modify it; a failed export raises ExportError and can simply be retried.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from fpdf import FPDF
from fpdf.enums import XPos, YPos
from jinja2 import TemplateError

from .config import Settings
from .exceptions import ExportError
from .financial_calculator import FinancialCalculator
from .models import DualQuotationResult, ParsedInternalQuotation, ParsedQuotation
from .renderers import (
    CUSTOMER_CHARACTERISTICS_LIMIT,
    CUSTOMER_COLUMNS,
    CUSTOMER_NOTES_LIMIT,
    INTERNAL_CHARACTERISTICS_LIMIT,
    INTERNAL_COLUMNS,
    format_date,
    render_customer_html,
    render_internal_html,
    split_cell_lines,
    strip_emphasis,
)

logger = logging.getLogger(__name__)

SIDES = ('internal', 'customer')

_FILE_PREFIX = {
    'internal': 'cotizacion_interna',
    'customer': 'cotizacion_cliente',
}

# Core PDF fonts are Latin-1 only
_PDF_REPLACEMENTS = {
    '•': '-', '–': '-', '—': '-', '“': '"', '”': '"', '‘': "'", '’': "'",
    '…': '...', '✓': 'x', '✅': '', '⚠️': '', '⚠': '',
}

# Relative widths of the PDF table columns
_CUSTOMER_WIDTHS = (46, 12, 12, 15, 15)
_INTERNAL_WIDTHS = (30, 16, 11, 9, 11, 10, 13)


def default_filename(side: str, extension: str, on_date: Optional[Union[date, datetime]] = None) -> str:
    """'cotizacion_cliente_2026-10-19.pdf'"""
    on_date = on_date or date.today()
    return f"{_FILE_PREFIX[side]}_{on_date:%Y-%m-%d}.{extension}"


def export_markdown(result: DualQuotationResult, side: str) -> str:
    """Markdown of one side, or the raw response when that side is absent."""
    if side not in SIDES:
        raise ExportError(f"Unknown quotation side: {side}")
    markdown = result.internal_markdown if side == 'internal' else result.customer_markdown
    return markdown or result.raw_response


def write_export(content: Union[str, bytes], path: Union[str, Path]) -> Path:
    """Write an export to disk, wrapping I/O failures in ExportError."""
    path = Path(path)
    try:
        if isinstance(content, (bytes, bytearray)):
            path.write_bytes(bytes(content))
        else:
            path.write_text(content, encoding='utf-8')
    except OSError as e:
        logger.error(f"❌ Export to {path} failed: {e}")
        raise ExportError(f"Could not write {path}: {e}") from e

    logger.info(f"✅ Export saved to: {path}")
    return path


def export_html(quotation: ParsedQuotation, path: Optional[Union[str, Path]] = None, **kwargs) -> str:
    """
    Render a quotation to HTML and write it to ``path`` when given.

    Keyword arguments are passed to the renderer; the customer block is
    dropped for internal quotations.
    """
    try:
        if isinstance(quotation, ParsedInternalQuotation):
            for name in ('customer_name', 'customer_location', 'quotation_id'):
                kwargs.pop(name, None)
            html = render_internal_html(quotation, **kwargs)
        else:
            html = render_customer_html(quotation, **kwargs)
    except TemplateError as e:
        logger.error(f"❌ HTML export failed: {e}")
        raise ExportError(f"HTML export failed: {e}") from e

    if path is not None:
        write_export(html, path)
    return html


def pdf_safe(text: str) -> str:
    """Map text to what the core PDF fonts can encode."""
    for original, replacement in _PDF_REPLACEMENTS.items():
        text = text.replace(original, replacement)
    return text.encode('latin-1', 'replace').decode('latin-1')


class QuotationPDF(FPDF):
    """A4 page with the company footer on every page."""

    def __init__(self, settings: Settings, footer_suffix: str = ''):
        super().__init__(orientation='P', unit='mm', format='A4')
        self.settings = settings
        self.footer_suffix = footer_suffix
        self.set_auto_page_break(auto=True, margin=22)

    def footer(self):
        company = self.settings.company
        self.set_y(-20)
        self.set_font('Helvetica', 'B', 8)
        self.set_text_color(90)
        self.cell(0, 4, pdf_safe(f"{company.name}{self.footer_suffix}"), align='C',
                  new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_font('Helvetica', '', 7)
        self.cell(0, 4, pdf_safe(company.address), align='C',
                  new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.cell(0, 4, pdf_safe(f"Tel: {company.phone} - Email: {company.email}  |  Página {self.page_no()}"),
                  align='C')

    def line_text(self, text: str, size: int = 9, style: str = '', align: str = 'L', height: float = 5):
        self.set_font('Helvetica', style, size)
        self.multi_cell(0, height, pdf_safe(text), align=align,
                        new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def heading(self, text: str, size: int = 10):
        self.ln(2)
        self.line_text(text, size=size, style='B', height=6)

    def quotation_table(self, table, columns, widths, totals):
        self.set_font('Helvetica', '', 8)
        alignments = tuple({'left': 'LEFT', 'center': 'CENTER', 'right': 'RIGHT'}[align]
                           for _, _, align in columns)
        with self.table(col_widths=widths, text_align=alignments, line_height=5) as pdf_table:
            header = pdf_table.row()
            for _, label, _ in columns:
                header.cell(pdf_safe(label))
            for item in table:
                row = pdf_table.row()
                for field_name, _, _ in columns:
                    row.cell(pdf_safe('\n'.join(split_cell_lines(getattr(item, field_name)))))
            total_row = pdf_table.row()
            total_row.cell('Total', colspan=len(columns) - 1, align='RIGHT')
            total_row.cell(pdf_safe(totals.formatted), align='RIGHT')
        self.line_text(f"({totals.words})", size=8, style='I')


def _quotation_pdf(quotation: ParsedQuotation, internal: bool, fecha, settings: Settings,
                   customer_name=None, customer_location=None, quotation_id=None) -> bytes:
    calculator = FinancialCalculator()
    pdf = QuotationPDF(settings, footer_suffix=' - Uso Interno' if internal else '')
    pdf.add_page()

    if not quotation.has_table:
        for section in quotation.sections:
            if section.title:
                pdf.heading(section.title)
            for line in section.content:
                pdf.line_text(line)
        return bytes(pdf.output())

    pdf.line_text(f"Fecha: {format_date(fecha)}", size=8, align='R')
    if quotation_id:
        pdf.line_text(f"Cotización No. {quotation_id}", size=8, align='R')
    if customer_name:
        pdf.line_text(f"Cliente: {customer_name}")
    if customer_location:
        pdf.line_text(f"Ubicación: {customer_location}")

    if internal:
        pdf.heading(quotation.title or 'Cotización Interna', size=14)
        pdf.line_text('Uso interno - No compartir con cliente', size=8, style='I')
    else:
        pdf.heading(quotation.title or 'Cotización', size=14)

    limit = INTERNAL_CHARACTERISTICS_LIMIT if internal else CUSTOMER_CHARACTERISTICS_LIMIT
    if quotation.sections and quotation.sections[0].content:
        pdf.heading('Características principales:')
        for line in quotation.sections[0].content[:limit]:
            pdf.line_text(strip_emphasis(line), size=8)

    columns = INTERNAL_COLUMNS if internal else CUSTOMER_COLUMNS
    widths = _INTERNAL_WIDTHS if internal else _CUSTOMER_WIDTHS
    for table, totals in zip(quotation.tables, calculator.quotation_totals(quotation)):
        pdf.heading('Detalles de Productos' if internal else 'Opciones Disponibles')
        pdf.quotation_table(table, columns, widths, totals)

    notes = quotation.notes if internal else quotation.notes[:CUSTOMER_NOTES_LIMIT]
    if notes:
        if internal:
            pdf.heading('Notas Internas:')
        else:
            pdf.ln(3)
        for note in notes:
            pdf.line_text(strip_emphasis(note), size=8)

    if not internal and settings.bank.is_configured:
        bank = settings.bank
        pdf.heading('Datos bancarios')
        for label, value in (('Banco', bank.bank_name), ('Titular', bank.account_holder),
                             ('Cuenta', bank.account_number), ('CLABE', bank.clabe)):
            if value:
                pdf.line_text(f"{label}: {value}", size=8)

    return bytes(pdf.output())


def export_pdf(quotation: ParsedQuotation,
               fecha: Optional[Union[date, datetime]] = None,
               customer_name: Optional[str] = None,
               customer_location: Optional[str] = None,
               quotation_id: Optional[str] = None,
               settings: Optional[Settings] = None) -> bytes:
    """
    Build the PDF of a quotation.

    Internal quotations (ParsedInternalQuotation) get the internal layout;
    customer details and bank details only appear on customer quotations.

    Raises:
        ExportError: if the PDF could not be generated
    """
    settings = settings or Settings()
    internal = isinstance(quotation, ParsedInternalQuotation)
    if internal:
        customer_name = customer_location = quotation_id = None

    try:
        return _quotation_pdf(quotation, internal, fecha or date.today(), settings,
                              customer_name, customer_location, quotation_id)
    except ExportError:
        raise
    except Exception as e:
        logger.error(f"❌ PDF export failed: {e}")
        raise ExportError(f"PDF export failed: {e}") from e
