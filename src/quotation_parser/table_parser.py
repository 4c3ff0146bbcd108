#!/usr/bin/env python3
"""
Markdown table parsing for quotation line items.

Turns the pipe rows of one table block into line items. Columns are mapped
to fields by matching the header text against a table of Spanish synonyms;
when no header cell is recognised the columns are taken by position.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple, Type

from unidecode import unidecode

from .models import InternalQuotationLineItem, LineItem, QuotationLineItem

logger = logging.getLogger(__name__)

# Field order doubles as the positional fallback mapping
CUSTOMER_FIELDS = ('descripcion', 'unidad', 'cantidad', 'precio_unitario', 'importe')
INTERNAL_FIELDS = (
    'descripcion', 'proveedor', 'costo_unitario', 'margen',
    'precio_unitario', 'cantidad', 'importe',
)

HEADER_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    'descripcion': (
        'descripcion', 'concepto', 'producto', 'articulo', 'material',
        'descripcion del producto', 'producto servicio', 'item',
    ),
    'unidad': ('unidad', 'unidad de medida', 'um', 'u m', 'presentacion', 'unid'),
    'cantidad': ('cantidad', 'cant', 'qty', 'piezas', 'pzas', 'volumen'),
    'precio_unitario': (
        'precio unitario', 'precio unit', 'pu', 'p u', 'precio',
        'precio por unidad', 'precio venta', 'precio de venta', 'precio cliente',
    ),
    'importe': (
        'importe', 'total', 'subtotal', 'monto', 'importe total', 'precio total',
        'costo total', 'total mxn', 'importe mxn', 'total partida',
    ),
    'proveedor': ('proveedor', 'supplier', 'distribuidor', 'fabricante'),
    'costo_unitario': (
        'costo unitario', 'costo unit', 'costo', 'cu', 'c u',
        'costo proveedor', 'costo de compra',
    ),
    'margen': ('margen', 'margen %', '% margen', 'utilidad', 'margen de utilidad', 'markup'),
}

# Descriptions of rows that summarise the table rather than price a product
SUMMARY_ROW_LABELS = ('total', 'subtotal', 'sub total', 'iva', 'gran total', 'total general')
_SUMMARY_LABEL = re.compile(
    r'^(?:' + '|'.join(sorted(SUMMARY_ROW_LABELS, key=len, reverse=True)) + r')'
    r'(?: \d+(?: \d+)? ?%?| mxn| m n| con iva| sin iva)?$'
)
_SEPARATOR_CELL = re.compile(r'^:?-+:?$')
_CELL_SPLIT = re.compile(r'(?<!\\)\|')


def normalize_header(text: str) -> str:
    """Lowercase, strip accents and punctuation: 'Precio Unitario (MXN)' -> 'precio unitario mxn'."""
    text = unidecode(text or '').lower()
    text = re.sub(r'[^a-z0-9%\s]', ' ', text)
    return re.sub(r'\s+', ' ', text).strip()


def _build_synonym_lookup() -> List[Tuple[str, str]]:
    lookup = [
        (normalize_header(synonym), field_name)
        for field_name, synonyms in HEADER_SYNONYMS.items()
        for synonym in synonyms
    ]
    # Longest synonyms first so "costo unitario" wins over "costo"
    # and "precio total" over "precio"
    lookup.sort(key=lambda pair: len(pair[0]), reverse=True)
    return lookup


_SYNONYM_LOOKUP = _build_synonym_lookup()
_EXACT_SYNONYMS = dict(_SYNONYM_LOOKUP)


def is_table_row(line: str) -> bool:
    """True for pipe-delimited rows such as '| a | b |'."""
    stripped = line.strip()
    return len(stripped) >= 2 and stripped.startswith('|') and stripped.endswith('|')


def split_cells(line: str) -> List[str]:
    """Split a pipe row into trimmed cells; escaped pipes stay in the cell."""
    stripped = line.strip()
    if stripped.startswith('|'):
        stripped = stripped[1:]
    if stripped.endswith('|') and not stripped.endswith('\\|'):
        stripped = stripped[:-1]
    return [cell.strip().replace('\\|', '|') for cell in _CELL_SPLIT.split(stripped)]


def is_separator_row(line: str) -> bool:
    """True for the '|---|:---:|' row between header and body."""
    if not is_table_row(line):
        return False
    cells = [cell.replace(" ", "") for cell in split_cells(line)]
    filled = [cell for cell in cells if cell]
    return bool(filled) and all(_SEPARATOR_CELL.match(cell) for cell in filled)


def match_header(cell: str) -> Optional[str]:
    """Field name for a header cell, or None when it is not recognised."""
    normalized = normalize_header(cell)
    if not normalized:
        return None

    if normalized in _EXACT_SYNONYMS:
        return _EXACT_SYNONYMS[normalized]

    # "Precio unitario (con IVA)" still reads as precio unitario
    padded = f' {normalized} '
    for synonym, field_name in _SYNONYM_LOOKUP:
        if f' {synonym} ' in padded:
            return field_name
    return None


def map_columns(header: Sequence[str], fields: Sequence[str]) -> Dict[int, str]:
    """
    Map column indexes to field names.

    Headers are matched against the synonym table; columns whose field is
    not part of ``fields`` are dropped. If no header cell is recognised the
    columns are mapped by position.
    """
    mapping: Dict[int, str] = {}
    recognised = False
    for index, cell in enumerate(header):
        field_name = match_header(cell)
        if field_name is None:
            continue
        recognised = True
        if field_name in fields and field_name not in mapping.values():
            mapping[index] = field_name

    if not recognised:
        logger.debug(f"No known headers in {list(header)}; mapping columns by position")
        return {index: field_name for index, field_name in enumerate(fields)}

    return mapping


def has_known_header(cells: Sequence[str]) -> bool:
    """A first row without separator is a header if two cells are header names."""
    known = [cell for cell in cells if normalize_header(cell) in _EXACT_SYNONYMS]
    return len(known) >= 2


def _strip_emphasis(text: str) -> str:
    return text.replace('**', '').replace('__', '').strip()


def is_summary_label(cell: str) -> bool:
    """'**Total:**', 'IVA 16%' and 'Subtotal MXN' are labels; 'Total Grow 20kg' is not."""
    return bool(_SUMMARY_LABEL.match(normalize_header(_strip_emphasis(cell))))


def is_summary_row(cells: Sequence[str], description_index: int = 0) -> bool:
    """
    Rows like '| **Total** | | | | $150.50 |' are not line items.

    Only the description cell is checked, unless it is empty; then a label
    in any other cell ('| | | IVA 16% | $24.08 |') marks the row.
    """
    description = cells[description_index] if description_index < len(cells) else ''
    if description.strip():
        return is_summary_label(description)
    return any(is_summary_label(cell) for cell in cells if cell.strip())


class TableParser:
    """Builds line items from the rows of one markdown table block."""

    def __init__(self, item_class: Type = QuotationLineItem, fields: Sequence[str] = CUSTOMER_FIELDS):
        self.item_class = item_class
        self.fields = tuple(fields)

    def parse_rows(self, rows: Sequence[str],
                   previous_header: Optional[Sequence[str]] = None) -> Tuple[LineItem, ...]:
        """
        Parse the raw lines of one table block.

        Args:
            rows: Consecutive pipe rows, separator rows included
            previous_header: Header of the preceding block, reused when this
                block has none and the same number of columns

        Returns:
            Line items in table order (header and summary rows excluded)
        """
        return self.parse_block(rows, previous_header)[0]

    def parse_block(self, rows: Sequence[str], previous_header: Optional[Sequence[str]] = None
                    ) -> Tuple[Tuple[LineItem, ...], Optional[List[str]]]:
        """Like parse_rows, also returning the header the block was read with."""
        data_rows: List[List[str]] = []
        header: Optional[List[str]] = None

        for index, row in enumerate(rows):
            if is_separator_row(row):
                continue
            cells = split_cells(row)
            if index == 0 and self._is_header(rows, cells):
                header = cells
                continue
            data_rows.append(cells)

        if header is None and previous_header is not None and data_rows \
                and len(data_rows[0]) == len(previous_header):
            # A blank line split one table; the rows keep its columns
            logger.debug(f"Block without header reuses previous header {list(previous_header)}")
            header = list(previous_header)

        if header is not None:
            mapping = map_columns(header, self.fields)
        else:
            mapping = {index: field_name for index, field_name in enumerate(self.fields)}

        description_index = next(
            (index for index, field_name in mapping.items() if field_name == 'descripcion'), 0
        )

        line_items = []
        for cells in data_rows:
            if not any(cells):
                continue
            if is_summary_row(cells, description_index):
                logger.debug(f"Skipping summary row: {cells}")
                continue
            values = {field_name: '' for field_name in self.fields}
            for index, field_name in mapping.items():
                if index < len(cells):
                    values[field_name] = cells[index]
            line_items.append(self.item_class(**values))

        return tuple(line_items), header

    def _is_header(self, rows: Sequence[str], cells: Sequence[str]) -> bool:
        followed_by_separator = len(rows) > 1 and is_separator_row(rows[1])
        return followed_by_separator or has_known_header(cells)


customer_table_parser = TableParser(QuotationLineItem, CUSTOMER_FIELDS)
internal_table_parser = TableParser(InternalQuotationLineItem, INTERNAL_FIELDS)
