#!/usr/bin/env python3
"""
Markdown quotation parser.

Scans an AI-generated quotation line by line and assembles the title, prose
sections, table blocks and trailing notes. The scan is a small state
machine:

    BEFORE_TABLE --table row--> IN_TABLE --any other line--> AFTER_TABLE
    AFTER_TABLE  --table row--> IN_TABLE

Text seen in AFTER_TABLE is held back: if another table follows it becomes
section content, otherwise it ends up in ``notes``.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .models import (
    ParsedInternalQuotation,
    ParsedQuotation,
    QuotationSection,
)
from .table_parser import (
    TableParser,
    customer_table_parser,
    internal_table_parser,
    is_separator_row,
    is_table_row,
)

logger = logging.getLogger(__name__)

_HEADING = re.compile(r'^#{1,6}\s+(.*?)\s*#*\s*$')
_RULE = re.compile(r'^(?:-{3,}|\*{3,}|_{3,})$')
_BULLET = re.compile(r'^(?:[-*+•]|\d+[.)])\s+')


class ParserState(Enum):
    BEFORE_TABLE = "before-table"
    IN_TABLE = "in-table"
    AFTER_TABLE = "after-table"


class LineKind(Enum):
    BLANK = "blank"
    RULE = "rule"
    HEADING = "heading"
    TABLE_SEPARATOR = "table-separator"
    TABLE_ROW = "table-row"
    TEXT = "text"


def classify_line(line: str) -> LineKind:
    """Classify one markdown line."""
    stripped = line.strip()
    if not stripped:
        return LineKind.BLANK
    if is_separator_row(stripped):
        return LineKind.TABLE_SEPARATOR
    if is_table_row(stripped):
        return LineKind.TABLE_ROW
    if _HEADING.match(stripped):
        return LineKind.HEADING
    if _RULE.match(stripped):
        return LineKind.RULE
    return LineKind.TEXT


def heading_text(line: str) -> str:
    match = _HEADING.match(line.strip())
    text = match.group(1) if match else line.strip()
    return text.replace('**', '').strip()


def note_text(line: str) -> str:
    """One note per line, without its bullet marker."""
    return _BULLET.sub('', line.strip(), count=1).strip()


@dataclass
class _SectionBuffer:
    title: Optional[str]
    content: List[str] = field(default_factory=list)

    def freeze(self) -> QuotationSection:
        return QuotationSection(title=self.title, content=tuple(self.content))


@dataclass
class _ScanContext:
    """Mutable accumulators of one scan; frozen into the result at the end."""
    title: Optional[str] = None
    sections: List[_SectionBuffer] = field(default_factory=list)
    tables: List[tuple] = field(default_factory=list)
    table_rows: List[str] = field(default_factory=list)
    # Header of the last table block, for blocks split off by a blank line
    header: Optional[List[str]] = None
    # Held back after a table until another table starts or the text ends
    trailing: List[_SectionBuffer] = field(default_factory=list)

    def add_content(self, line: str) -> None:
        if not self.sections:
            self.sections.append(_SectionBuffer(title=None))
        self.sections[-1].content.append(line)

    def add_trailing(self, line: str) -> None:
        if not self.trailing:
            self.trailing.append(_SectionBuffer(title=None))
        self.trailing[-1].content.append(line)

    def promote_trailing(self) -> None:
        """Text between two tables is section content, not notes."""
        for buffer in self.trailing:
            self.sections.append(_SectionBuffer(title=buffer.title, content=list(buffer.content)))
        self.trailing = []


class MarkdownQuotationParser:
    """Parses one markdown payload into a ParsedQuotation."""

    def __init__(self, table_parser: TableParser = customer_table_parser,
                 result_class=ParsedQuotation):
        self.table_parser = table_parser
        self.result_class = result_class

    def parse(self, markdown: Optional[str]) -> ParsedQuotation:
        """
        Parse markdown text into a structured quotation.

        Never raises: lines that cannot be classified end up as section
        content, and empty input gives an empty quotation with
        ``has_table`` False.
        """
        if not markdown or not str(markdown).strip():
            return self.result_class()

        context = _ScanContext()
        state = ParserState.BEFORE_TABLE

        for line in str(markdown).replace('\r\n', '\n').replace('\r', '\n').split('\n'):
            kind = classify_line(line)
            state = self._step(state, kind, line.strip(), context)

        if state is ParserState.IN_TABLE:
            self._close_table(context)

        return self._finish(context)

    def _step(self, state: ParserState, kind: LineKind, line: str,
              context: _ScanContext) -> ParserState:
        """Apply one line to the scan and return the next state."""
        if state is ParserState.IN_TABLE:
            if kind in (LineKind.TABLE_ROW, LineKind.TABLE_SEPARATOR):
                context.table_rows.append(line)
                return ParserState.IN_TABLE
            self._close_table(context)
            return self._step(ParserState.AFTER_TABLE, kind, line, context)

        if kind in (LineKind.TABLE_ROW, LineKind.TABLE_SEPARATOR):
            if state is ParserState.AFTER_TABLE:
                context.promote_trailing()
            context.table_rows.append(line)
            return ParserState.IN_TABLE

        if kind in (LineKind.BLANK, LineKind.RULE):
            return state

        if state is ParserState.BEFORE_TABLE:
            if kind is LineKind.HEADING:
                if context.title is None:
                    context.title = heading_text(line)
                else:
                    context.sections.append(_SectionBuffer(title=heading_text(line)))
            else:
                context.add_content(line)
            return state

        # AFTER_TABLE
        if kind is LineKind.HEADING:
            context.trailing.append(_SectionBuffer(title=heading_text(line)))
        else:
            context.add_trailing(line)
        return state

    def _close_table(self, context: _ScanContext) -> None:
        rows, context.table_rows = context.table_rows, []
        items, header = self.table_parser.parse_block(rows, context.header)
        context.header = header or context.header
        if items:
            context.tables.append(items)
        else:
            logger.debug(f"Table block of {len(rows)} rows produced no line items")

    def _finish(self, context: _ScanContext) -> ParsedQuotation:
        notes: List[str] = []
        sections = [buffer.freeze() for buffer in context.sections]
        for buffer in context.trailing:
            if buffer.title is not None:
                sections.append(QuotationSection(title=buffer.title))
            notes.extend(text for text in (note_text(line) for line in buffer.content) if text)

        result = self.result_class(
            title=context.title,
            sections=tuple(sections),
            tables=tuple(context.tables),
            notes=tuple(notes),
            has_table=bool(context.tables),
        )
        logger.debug(
            f"Parsed quotation: {len(result.sections)} sections, "
            f"{len(result.tables)} tables, {len(result.notes)} notes"
        )
        return result


_customer_parser = MarkdownQuotationParser(customer_table_parser, ParsedQuotation)
_internal_parser = MarkdownQuotationParser(internal_table_parser, ParsedInternalQuotation)


def parse_quotation_markdown(markdown: Optional[str]) -> ParsedQuotation:
    """Parse a customer-facing quotation."""
    return _customer_parser.parse(markdown)


def parse_internal_quotation_markdown(markdown: Optional[str]) -> ParsedInternalQuotation:
    """Parse an internal (cost and margin) quotation."""
    return _internal_parser.parse(markdown)

