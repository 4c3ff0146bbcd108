#!/usr/bin/env python3
"""
Quotation Parser CLI
Parses, renders and exports AI-generated quotations, and talks to the
quotation backend for chat and history.
"""

import json
import logging
import sys
from datetime import date, datetime
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .api_client import QuotationAPIClient
from .chat import QuotationChat
from .config import Settings
from .dual_parser import parse_dual_quotation_response
from .exceptions import APIError, ExportError
from .exporters import default_filename, export_html, export_markdown, export_pdf, write_export
from .financial_calculator import FinancialCalculator
from .markdown_parser import parse_internal_quotation_markdown, parse_quotation_markdown
from .models import DualQuotationResult, ParsedInternalQuotation, ParsedQuotation
from .quotation_id import generate_quotation_id, with_location_code
from .renderers import (
    CUSTOMER_CHARACTERISTICS_LIMIT,
    CUSTOMER_COLUMNS,
    CUSTOMER_NOTES_LIMIT,
    INTERNAL_CHARACTERISTICS_LIMIT,
    INTERNAL_COLUMNS,
    format_date,
    render_raw_html,
    split_cell_lines,
    strip_emphasis,
)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)

console = Console()


def _has_markers(result: DualQuotationResult) -> bool:
    return result.internal is not None or result.customer is not None


def load_result(text: str) -> DualQuotationResult:
    """
    Parse CLI input. Text without sentinels is treated as one customer
    markdown payload and also parsed with the internal column set.
    """
    result = parse_dual_quotation_response(text)
    if _has_markers(result):
        return result
    return DualQuotationResult(
        internal=parse_internal_quotation_markdown(text),
        customer=parse_quotation_markdown(text),
        raw_response=text,
    )


def print_quotation(quotation: Optional[ParsedQuotation], raw_response: str, heading: str,
                    fecha: date, quotation_id: Optional[str] = None) -> None:
    """Print a parsed quotation as rich tables, or the raw text as fallback."""
    if quotation is None:
        console.print(Panel(escape(raw_response), title=heading, border_style="yellow"))
        return

    internal = isinstance(quotation, ParsedInternalQuotation)
    subtitle = f"Fecha: {format_date(fecha)}"
    if quotation_id:
        subtitle += f" • No. {quotation_id}"
    console.print(Panel.fit(
        f"[bold blue]{escape(quotation.title or heading)}[/bold blue]\n[dim]{subtitle}[/dim]",
        border_style="blue",
    ))

    if not quotation.has_table:
        for section in quotation.sections:
            if section.title:
                console.print(f"[bold]{escape(section.title)}[/bold]")
            for line in section.content:
                console.print(escape(line))
        return

    limit = INTERNAL_CHARACTERISTICS_LIMIT if internal else CUSTOMER_CHARACTERISTICS_LIMIT
    if quotation.sections and quotation.sections[0].content:
        console.print("[bold]Características principales:[/bold]")
        for line in quotation.sections[0].content[:limit]:
            console.print(f"  {escape(strip_emphasis(line))}")

    columns = INTERNAL_COLUMNS if internal else CUSTOMER_COLUMNS
    calculator = FinancialCalculator()
    for table, totals in zip(quotation.tables, calculator.quotation_totals(quotation)):
        rich_table = Table(show_lines=True)
        for _, label, align in columns:
            rich_table.add_column(label, justify=align)
        for item in table:
            rich_table.add_row(*(escape("\n".join(split_cell_lines(getattr(item, field_name))))
                                 for field_name, _, _ in columns))
        rich_table.add_row(*([""] * (len(columns) - 2)), "[bold]Total[/bold]",
                           f"[bold]{totals.formatted}[/bold]")
        console.print(rich_table)
        console.print(f"[italic]({totals.words})[/italic]")
        if totals.unpriced_count:
            console.print(f"[yellow]⚠️  {totals.unpriced_count} partida(s) sin importe numérico[/yellow]")

    notes = quotation.notes if internal else quotation.notes[:CUSTOMER_NOTES_LIMIT]
    if notes:
        console.print(Panel(escape("\n".join(strip_emphasis(note) for note in notes)),
                            title="Notas Internas" if internal else "Notas",
                            border_style="dim"))


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Quotation Parser - structured internal and customer quotations from AI responses."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    ctx.ensure_object(dict)
    ctx.obj['settings'] = Settings.from_env()


@cli.command()
@click.argument('source', type=click.File('r', encoding='utf-8'))
@click.option('--internal', is_flag=True, help='Parse plain markdown with the internal column set')
@click.option('--output', '-o', type=click.Path(), help='Output JSON file path')
def parse(source, internal: bool, output: Optional[str]):
    """Parse a quotation (dual response or plain markdown) into JSON."""
    text = source.read()
    result = parse_dual_quotation_response(text)
    if _has_markers(result):
        data = result.to_dict()
    elif internal:
        data = parse_internal_quotation_markdown(text).to_dict()
    else:
        data = parse_quotation_markdown(text).to_dict()

    json_str = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        try:
            write_export(json_str, output)
        except ExportError as e:
            click.echo(f"Error saving result: {e}", err=True)
            raise click.Abort()
        click.echo(f"💾 Results saved to: {output}")
    else:
        click.echo(json_str)


@cli.command()
@click.argument('source', type=click.File('r', encoding='utf-8'))
@click.option('--side', type=click.Choice(['customer', 'internal']), default='customer',
              show_default=True, help='Which document to render')
@click.option('--format', 'output_format', type=click.Choice(['console', 'html', 'pdf', 'markdown']),
              default='console', show_default=True)
@click.option('--output', '-o', type=click.Path(), help='Output file path')
@click.option('--customer-name', help='Customer name for the header block')
@click.option('--customer-location', help='Customer location for the header block')
@click.option('--quotation-id', help='Quotation ID; generated when omitted')
@click.option('--date', 'fecha', type=click.DateTime(formats=['%Y-%m-%d', '%d/%m/%Y']),
              help='Document date (default: today)')
@click.pass_context
def render(ctx: click.Context, source, side: str, output_format: str, output: Optional[str],
           customer_name: Optional[str], customer_location: Optional[str],
           quotation_id: Optional[str], fecha: Optional[datetime]):
    """Render one side of a quotation to the console, HTML, PDF or Markdown."""
    settings: Settings = ctx.obj['settings']
    result = load_result(source.read())
    fecha = fecha.date() if fecha else date.today()
    quotation = result.internal if side == 'internal' else result.customer
    if side == 'customer' and quotation is not None:
        quotation_id = quotation_id or generate_quotation_id(fecha)

    try:
        if output_format == 'console':
            print_quotation(quotation, result.raw_response,
                            'Cotización Interna' if side == 'internal' else 'Cotización',
                            fecha, quotation_id if side == 'customer' else None)
            return

        if output_format == 'markdown':
            content = export_markdown(result, side)
        elif output_format == 'html':
            if quotation is None:
                content = render_raw_html(result.raw_response)
            else:
                content = export_html(
                    quotation, fecha=fecha, customer_name=customer_name,
                    customer_location=customer_location, quotation_id=quotation_id,
                    settings=settings,
                )
        else:
            if quotation is None:
                click.echo(f"❌ No {side} quotation found in the input", err=True)
                raise click.Abort()
            content = export_pdf(quotation, fecha=fecha, customer_name=customer_name,
                                 customer_location=customer_location,
                                 quotation_id=quotation_id, settings=settings)
            output = output or default_filename(side, 'pdf', fecha)

        if output:
            write_export(content, output)
            click.echo(f"💾 Saved to: {output}")
        else:
            click.echo(content)
    except ExportError as e:
        click.echo(f"❌ Export failed: {e}", err=True)
        raise click.Abort()


@cli.command('new-id')
@click.option('--location', help='Customer location, printed as a three-letter code after the ID')
def new_id(location: Optional[str]):
    """Generate a quotation ID (6 random digits + DDMMYY)."""
    click.echo(with_location_code(generate_quotation_id(), location))


@cli.group()
def history():
    """Browse the quotation history."""


@history.command('list')
@click.pass_context
def history_list(ctx: click.Context):
    """List saved quotations."""
    client = QuotationAPIClient.from_settings(ctx.obj['settings'])
    try:
        records = client.list_history()
    except APIError as e:
        click.echo(f"Error loading quotation history: {e}", err=True)
        raise click.Abort()

    table = Table(title="Historial de Cotizaciones")
    table.add_column("ID", justify="right")
    table.add_column("Cotización")
    table.add_column("Cliente")
    table.add_column("Fecha")
    for record in records:
        table.add_row(str(record.id), record.title or record.quotation_id or "-",
                      record.customer_name or "-", record.created_at or "-")
    console.print(table)


@history.command('show')
@click.argument('record_id', type=int)
@click.option('--side', type=click.Choice(['both', 'customer', 'internal']), default='both',
              show_default=True)
@click.pass_context
def history_show(ctx: click.Context, record_id: int, side: str):
    """Show one saved quotation."""
    client = QuotationAPIClient.from_settings(ctx.obj['settings'])
    try:
        record = client.get_history(record_id)
    except APIError as e:
        click.echo(f"Error loading quotation {record_id}: {e}", err=True)
        raise click.Abort()

    result = parse_dual_quotation_response(record.response_text())
    fecha = _record_date(record.created_at)
    if side in ('both', 'internal'):
        print_quotation(result.internal, record.internal_quotation or result.raw_response,
                        'Cotización Interna', fecha)
    if side in ('both', 'customer'):
        print_quotation(result.customer, record.customer_quotation or result.raw_response,
                        'Cotización', fecha, record.quotation_id)


def _record_date(created_at: Optional[str]) -> date:
    if created_at:
        try:
            return datetime.fromisoformat(created_at.replace('Z', '+00:00')).date()
        except ValueError:
            logger.debug(f"Unreadable created_at: {created_at!r}")
    return date.today()


@cli.command()
@click.argument('query')
@click.option('--customer-name', help='Customer name sent with the request')
@click.option('--customer-location', help='Customer location sent with the request')
@click.option('--save/--no-save', default=True, show_default=True,
              help='Save complete quotations to the history')
@click.pass_context
def ask(ctx: click.Context, query: str, customer_name: Optional[str],
        customer_location: Optional[str], save: bool):
    """Ask the assistant for a quotation and print both documents."""
    client = QuotationAPIClient.from_settings(ctx.obj['settings'])
    chat = QuotationChat(client, customer_name=customer_name,
                         customer_location=customer_location, save_history=save)
    try:
        with console.status("Generando cotización..."):
            answer = chat.send(query)
    except APIError as e:
        click.echo(f"Error al generar la cotización: {e}", err=True)
        raise click.Abort()

    result = answer.quotation
    fecha = answer.message.timestamp.date()
    if not _has_markers(result):
        console.print(Panel(escape(result.raw_response), border_style="yellow"))
        return
    print_quotation(result.internal, result.raw_response, 'Cotización Interna', fecha)
    print_quotation(result.customer, result.raw_response, 'Cotización', fecha,
                    answer.message.quotation_id)
    if answer.saved_record is not None:
        console.print(f"[green]💾 Guardada en historial (ID {answer.saved_record.id})[/green]")


@cli.command()
@click.argument('file_id', type=int)
@click.option('--wait', is_flag=True, help='Poll until processing finishes')
@click.pass_context
def status(ctx: click.Context, file_id: int, wait: bool):
    """Show the processing status of an uploaded file."""
    settings: Settings = ctx.obj['settings']
    client = QuotationAPIClient.from_settings(settings)
    try:
        if wait:
            outcome = client.wait_for_processing(file_id, timeout=settings.poll_timeout,
                                                 interval=settings.poll_interval)
            click.echo(outcome.value)
        else:
            click.echo(client.get_processing_status(file_id).get('processing_status', 'unknown'))
    except APIError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()


def main():
    """Main CLI entry point."""
    cli(obj={})


if __name__ == '__main__':
    sys.exit(main())
