#!/usr/bin/env python3
"""
Tests for markdown table parsing.
"""

import unittest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quotation_parser.models import InternalQuotationLineItem, QuotationLineItem
from quotation_parser.table_parser import (
    CUSTOMER_FIELDS,
    customer_table_parser,
    internal_table_parser,
    is_separator_row,
    is_summary_row,
    map_columns,
    match_header,
    normalize_header,
    split_cells,
)


class TestRowHelpers(unittest.TestCase):

    def test_split_cells(self):
        self.assertEqual(split_cells("| a | b |  c |"), ["a", "b", "c"])
        self.assertEqual(split_cells("| Tubo 1\\|2 pulgada | 3 |"), ["Tubo 1|2 pulgada", "3"])
        self.assertEqual(split_cells("| a | | |"), ["a", "", ""])

    def test_is_separator_row(self):
        test_cases = [
            ("|---|---|", True),
            ("| :--- | ---: | :---: |", True),
            ("| --- | |", True),
            ("| a | --- |", False),
            ("| | |", False),
            ("---", False),
        ]

        for line, expected in test_cases:
            with self.subTest(line=line):
                self.assertEqual(is_separator_row(line), expected)

    def test_normalize_header(self):
        self.assertEqual(normalize_header("Precio Unitario (MXN)"), "precio unitario mxn")
        self.assertEqual(normalize_header("**Descripción**"), "descripcion")
        self.assertEqual(normalize_header("Margen %"), "margen %")


class TestHeaderMatching(unittest.TestCase):

    def test_match_header(self):
        test_cases = [
            ("Descripción", "descripcion"),
            ("Concepto", "descripcion"),
            ("U.M.", "unidad"),
            ("Cant.", "cantidad"),
            ("P.U.", "precio_unitario"),
            ("Precio Unitario (con IVA)", "precio_unitario"),
            ("Importe", "importe"),
            ("Precio Total", "importe"),
            ("Precio Total (MXN)", "importe"),
            ("Costo Total", "importe"),
            ("Cantidad total", "cantidad"),
            ("Costo Unitario", "costo_unitario"),
            ("Proveedor", "proveedor"),
            ("Margen %", "margen"),
            ("Observaciones", None),
            ("", None),
        ]

        for cell, expected in test_cases:
            with self.subTest(cell=cell):
                self.assertEqual(match_header(cell), expected)

    def test_map_columns_drops_foreign_fields(self):
        header = ["Producto", "Proveedor", "Cantidad", "Importe"]
        self.assertEqual(map_columns(header, CUSTOMER_FIELDS),
                         {0: "descripcion", 2: "cantidad", 3: "importe"})

    def test_map_columns_positional_fallback(self):
        header = ["A", "B", "C"]
        self.assertEqual(map_columns(header, CUSTOMER_FIELDS),
                         dict(enumerate(CUSTOMER_FIELDS)))

    def test_summary_rows(self):
        self.assertTrue(is_summary_row(["**Total**", "", "", "", "$150.50"]))
        self.assertTrue(is_summary_row(["", "", "", "IVA 16%", "$24.08"]))
        self.assertTrue(is_summary_row(["Subtotal", "", "$10.00"]))
        self.assertFalse(is_summary_row(["Totalizador digital", "pza", "1", "$5.00", "$5.00"]))

    def test_summary_labels_must_fill_the_description_cell(self):
        test_cases = [
            (["**Total:**", "", "", "", "$150.50"], True),
            (["IVA (16%)", "", "", "", "$24.08"], True),
            (["Gran Total MXN", "", "", "", "$174.58"], True),
            (["Total Grow fertilizante 20kg", "saco", "1", "$850.00", "$850.00"], False),
            (["IVA incluido en bomba", "pza", "1", "$10.00", "$10.00"], False),
            (["Subtotalizador", "pza", "1", "$5.00", "$5.00"], False),
        ]

        for cells, expected in test_cases:
            with self.subTest(cells=cells):
                self.assertEqual(is_summary_row(cells), expected)

    def test_summary_row_uses_mapped_description_column(self):
        cells = ["1", "Total Grow fertilizante 20kg", "$850.00"]
        self.assertFalse(is_summary_row(cells, description_index=1))
        self.assertTrue(is_summary_row(["", "Total", "$850.00"], description_index=1))


class TestTableParser(unittest.TestCase):
    """Test cases for TableParser.parse_rows."""

    def test_customer_table_with_header(self):
        rows = [
            "| Descripción | Unidad | Cantidad | Precio Unitario | Importe |",
            "|---|---|---|---|---|",
            "| Malla sombra | Rollo | 2 | $50.00 | $100.00 |",
            "| **Total** | | | | **$100.00** |",
        ]
        items = customer_table_parser.parse_rows(rows)

        self.assertEqual(items, (QuotationLineItem(
            descripcion="Malla sombra", unidad="Rollo", cantidad="2",
            precio_unitario="$50.00", importe="$100.00",
        ),))

    def test_reordered_columns(self):
        rows = [
            "| Cantidad | Concepto | Importe | P.U. |",
            "|---|---|---|---|",
            "| 3 | Bomba sumergible | $4,500.00 | $1,500.00 |",
        ]
        item = customer_table_parser.parse_rows(rows)[0]

        self.assertEqual(item.descripcion, "Bomba sumergible")
        self.assertEqual(item.cantidad, "3")
        self.assertEqual(item.precio_unitario, "$1,500.00")
        self.assertEqual(item.importe, "$4,500.00")
        self.assertEqual(item.unidad, "")

    def test_header_without_separator(self):
        rows = [
            "| Concepto | Cantidad | Importe |",
            "| Bomba | 1 | $500.00 |",
        ]
        items = customer_table_parser.parse_rows(rows)

        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].descripcion, "Bomba")
        self.assertEqual(items[0].importe, "$500.00")

    def test_rows_without_header_are_positional(self):
        rows = ["| Manguera 1/2 | m | 50 | $12.00 | $600.00 |"]
        items = customer_table_parser.parse_rows(rows)

        self.assertEqual(items, (QuotationLineItem("Manguera 1/2", "m", "50", "$12.00", "$600.00"),))

    def test_short_rows_are_padded(self):
        rows = [
            "| Descripción | Unidad | Cantidad | Precio Unitario | Importe |",
            "|---|---|---|---|---|",
            "| Flete a domicilio |",
        ]
        item = customer_table_parser.parse_rows(rows)[0]
        self.assertEqual(item.descripcion, "Flete a domicilio")
        self.assertEqual(item.importe, "")

    def test_empty_rows_are_skipped(self):
        rows = [
            "| Descripción | Importe |",
            "|---|---|",
            "| | |",
        ]
        self.assertEqual(customer_table_parser.parse_rows(rows), ())

    def test_internal_table(self):
        rows = [
            "| Descripción | Proveedor | Costo Unitario | Margen | Precio Unitario | Cantidad | Importe |",
            "|---|---|---|---|---|---|---|",
            "| Malla sombra | Agroplast | $40.00 | 25% | $50.00 | 2 | $100.00 |",
        ]
        items = internal_table_parser.parse_rows(rows)

        self.assertEqual(items, (InternalQuotationLineItem(
            descripcion="Malla sombra", proveedor="Agroplast", costo_unitario="$40.00",
            margen="25%", precio_unitario="$50.00", cantidad="2", importe="$100.00",
        ),))

    def test_precio_total_column_is_the_amount(self):
        rows = [
            "| Descripción | Cantidad | Precio Unitario | Precio Total |",
            "|---|---|---|---|",
            "| Malla | 2 | $50.00 | $100.00 |",
        ]
        item = customer_table_parser.parse_rows(rows)[0]

        self.assertEqual(item.precio_unitario, "$50.00")
        self.assertEqual(item.importe, "$100.00")

    def test_product_named_like_a_summary_label_is_kept(self):
        rows = [
            "| Descripción | Unidad | Cantidad | Precio Unitario | Importe |",
            "|---|---|---|---|---|",
            "| Total Grow fertilizante 20kg | Saco | 1 | $850.00 | $850.00 |",
            "| **Total** | | | | **$850.00** |",
        ]
        items = customer_table_parser.parse_rows(rows)

        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].descripcion, "Total Grow fertilizante 20kg")
        self.assertEqual(items[0].importe, "$850.00")

    def test_block_without_header_reuses_previous_header(self):
        first = [
            "| Concepto | Cantidad | Precio | Importe |",
            "|---|---|---|---|",
            "| Bomba | 1 | $10.00 | $10.00 |",
        ]
        second = ["| Manguera | 1 | $5.00 | $5.00 |"]

        _, header = customer_table_parser.parse_block(first)
        items, carried = customer_table_parser.parse_block(second, header)

        self.assertEqual(header, ["Concepto", "Cantidad", "Precio", "Importe"])
        self.assertEqual(carried, header)
        self.assertEqual(items, (QuotationLineItem(
            descripcion="Manguera", unidad="", cantidad="1",
            precio_unitario="$5.00", importe="$5.00",
        ),))

    def test_previous_header_ignored_when_column_count_differs(self):
        previous = ["Concepto", "Cantidad", "Importe"]
        rows = ["| Manguera 1/2 | m | 50 | $12.00 | $600.00 |"]

        items, header = customer_table_parser.parse_block(rows, previous)

        self.assertIsNone(header)
        self.assertEqual(items, (QuotationLineItem("Manguera 1/2", "m", "50", "$12.00", "$600.00"),))


if __name__ == "__main__":
    unittest.main()
