#!/usr/bin/env python3
"""
Tests for the HTML document renderers.
"""

import unittest
from datetime import date

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from quotation_parser.config import BankDetails, Settings
from quotation_parser.markdown_parser import parse_internal_quotation_markdown, parse_quotation_markdown
from quotation_parser.models import ParsedQuotation, QuotationSection
from quotation_parser.renderers import (
    build_customer_context,
    build_internal_context,
    render_customer_html,
    render_internal_html,
    render_raw_html,
    split_cell_lines,
)
from samples import CUSTOMER_MARKDOWN, INTERNAL_MARKDOWN

FECHA = date(2026, 10, 19)


class TestCellHelpers(unittest.TestCase):

    def test_split_cell_lines(self):
        self.assertEqual(split_cell_lines("Malla\\n**50%**<br>negra"), ["Malla", "50%", "negra"])
        self.assertEqual(split_cell_lines(""), [""])


class TestCustomerRendering(unittest.TestCase):
    """Test cases for the customer document."""

    def setUp(self):
        self.quotation = parse_quotation_markdown(CUSTOMER_MARKDOWN)

    def test_context(self):
        context = build_customer_context(self.quotation, fecha=FECHA, quotation_id="123456191026")

        self.assertTrue(context["structured"])
        self.assertEqual(context["fecha"], "19/10/2026")
        self.assertEqual(context["title"], "Cotización de Malla Sombra")
        self.assertEqual(context["characteristics"],
                         ["- Malla sombra 50% color negro", "- Tratamiento UV"])
        self.assertEqual(context["tables"][0]["totals"].formatted, "$150.50")
        self.assertIsNone(context["bank"])

    def test_notes_are_limited(self):
        quotation = ParsedQuotation(notes=tuple(f"Nota {n}" for n in range(8)), has_table=True)
        self.assertEqual(len(build_customer_context(quotation)["notes"]), 5)
        self.assertEqual(len(build_internal_context(quotation)["notes"]), 8)

    def test_html(self):
        html = render_customer_html(
            self.quotation, fecha=FECHA, quotation_id="123456191026",
            customer_name="Rancho El Sauz", customer_location="Nuevo Ideal, Durango",
        )

        self.assertIn("Fecha: 19/10/2026", html)
        self.assertIn("Cotización No. 123456191026", html)
        self.assertIn("Rancho El Sauz", html)
        self.assertIn("Malla sombra 4x25 m", html)
        self.assertIn("$150.50", html)
        self.assertIn("(ciento cincuenta pesos 50/100 M.N.)", html)
        self.assertIn("Precios incluyen IVA", html)
        self.assertIn("IMPAG", html)
        self.assertNotIn("**", html)
        self.assertNotIn("Datos bancarios", html)

    def test_html_is_deterministic(self):
        first = render_customer_html(self.quotation, fecha=FECHA, quotation_id="1")
        second = render_customer_html(self.quotation, fecha=FECHA, quotation_id="1")
        self.assertEqual(first, second)

    def test_values_are_escaped(self):
        html = render_customer_html(self.quotation, fecha=FECHA, customer_name="<script>x</script>")
        self.assertNotIn("<script>", html)
        self.assertIn("&lt;script&gt;", html)

    def test_bank_details(self):
        settings = Settings(bank=BankDetails(bank_name="BBVA", clabe="012345678901234567"))
        html = render_customer_html(self.quotation, fecha=FECHA, settings=settings)

        self.assertIn("Datos bancarios", html)
        self.assertIn("CLABE: 012345678901234567", html)

    def test_oversized_amount_renders_placeholder(self):
        quotation = parse_quotation_markdown(
            "| Descripción | Importe |\n|---|---|\n| Bomba | $" + "9" * 40 + " |")
        html = render_customer_html(quotation, fecha=FECHA)

        self.assertIn("(Importe no disponible)", html)

    def test_default_title(self):
        quotation = parse_quotation_markdown("| Descripción | Importe |\n|---|---|\n| Bomba | $10.00 |")
        self.assertIn("<h2>Cotización</h2>", render_customer_html(quotation, fecha=FECHA))

    def test_unstructured_fallback(self):
        quotation = ParsedQuotation(
            title="Propuesta",
            sections=(QuotationSection("Siguientes pasos", ("Le llamaremos.",)),),
        )
        html = render_customer_html(quotation, fecha=FECHA)

        self.assertIn("<h3>Siguientes pasos</h3>", html)
        self.assertIn("Le llamaremos.", html)
        self.assertNotIn("Opciones Disponibles", html)


class TestInternalRendering(unittest.TestCase):

    def test_html(self):
        quotation = parse_internal_quotation_markdown(INTERNAL_MARKDOWN)
        html = render_internal_html(quotation, fecha=FECHA)

        self.assertIn("Uso interno - No compartir con cliente", html)
        self.assertIn("Costo Unitario", html)
        self.assertIn("Ferretera del Norte", html)
        self.assertIn("$150.50", html)
        self.assertIn("Notas Internas:", html)
        self.assertIn("Confirmar existencia con proveedor", html)
        self.assertIn("IMPAG - Uso Interno", html)


class TestRawRendering(unittest.TestCase):

    def test_raw_response_is_shown_verbatim(self):
        html = render_raw_html("Precio < $100 & envío")
        self.assertIn("Precio &lt; $100 &amp; envío", html)


if __name__ == "__main__":
    unittest.main()
