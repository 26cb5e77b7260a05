"""HTML to DOCX conversion for drafted contracts.

Walks the drafted markup with BeautifulSoup and writes the equivalent
python-docx structure. Only the element vocabulary the drafting contract
asks for is mapped (headings, sections, paragraphs, lists, definition
lists, tables, signature rows); unknown containers are descended into.
"""

from __future__ import annotations

import re
from io import BytesIO

from bs4 import BeautifulSoup, NavigableString, Tag
from docx import Document
from docx.document import Document as DocxDocument
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Mm, Pt
from docx.text.paragraph import Paragraph

from app.schemas.domain import FooterFields

_WHITESPACE = re.compile(r"\s+")
_SKIPPED = {"head", "style", "script", "title", "meta", "link"}
_HEADINGS = {"h1": 0, "h2": 1, "h3": 2, "h4": 3, "h5": 4, "h6": 5}
_BOLD = {"strong", "b"}
_ITALIC = {"em", "i"}


def _clean(text: str) -> str:
    return _WHITESPACE.sub(" ", text)


def _has_class(tag: Tag, name: str) -> bool:
    return name in (tag.get("class") or [])


def _add_runs(paragraph: Paragraph, node: Tag, *, bold: bool = False, italic: bool = False, underline: bool = False) -> None:
    """Append the inline content of node to paragraph as formatted runs."""
    for child in node.children:
        if isinstance(child, NavigableString):
            text = _clean(str(child))
            if not text.strip() and not paragraph.runs:
                continue
            run = paragraph.add_run(text)
            run.bold = bold or None
            run.italic = italic or None
            run.underline = underline or None
        elif isinstance(child, Tag):
            if child.name == "br":
                paragraph.add_run().add_break()
                continue
            _add_runs(
                paragraph,
                child,
                bold=bold or child.name in _BOLD,
                italic=italic or child.name in _ITALIC,
                underline=underline or child.name == "u",
            )


def _trim(paragraph: Paragraph) -> Paragraph:
    if paragraph.runs:
        first, last = paragraph.runs[0], paragraph.runs[-1]
        first.text = first.text.lstrip()
        last.text = last.text.rstrip()
    return paragraph


def _write_heading(document: DocxDocument, tag: Tag) -> None:
    heading = document.add_heading(level=_HEADINGS[tag.name])
    _add_runs(heading, tag)
    _trim(heading)
    # Section headings stay attached to their first paragraph
    heading.paragraph_format.keep_with_next = True


def _write_paragraph(document: DocxDocument, tag: Tag, *, style: str | None = None, keep: bool = False) -> None:
    paragraph = document.add_paragraph(style=style)
    _add_runs(paragraph, tag)
    _trim(paragraph)
    if keep:
        paragraph.paragraph_format.keep_together = True


def _write_list(document: DocxDocument, tag: Tag, keep: bool) -> None:
    style = "List Number" if tag.name == "ol" else "List Bullet"
    for item in tag.find_all("li", recursive=False):
        _write_paragraph(document, item, style=style, keep=keep)


def _write_definitions(document: DocxDocument, tag: Tag, keep: bool) -> None:
    for child in tag.find_all(["dt", "dd"], recursive=False):
        paragraph = document.add_paragraph()
        _add_runs(paragraph, child, bold=child.name == "dt")
        _trim(paragraph)
        if child.name == "dt":
            paragraph.paragraph_format.keep_with_next = True
        elif keep:
            paragraph.paragraph_format.keep_together = True


def _write_table(document: DocxDocument, tag: Tag) -> None:
    rows = tag.find_all("tr")
    if not rows:
        return
    width = max(len(row.find_all(["td", "th"], recursive=False)) for row in rows)
    if width == 0:
        return
    table = document.add_table(rows=len(rows), cols=width)
    table.style = "Table Grid"
    for row_index, row in enumerate(rows):
        for col_index, cell_tag in enumerate(row.find_all(["td", "th"], recursive=False)):
            paragraph = table.cell(row_index, col_index).paragraphs[0]
            _add_runs(paragraph, cell_tag, bold=cell_tag.name == "th")
            _trim(paragraph)


def _write_signatures(document: DocxDocument, tag: Tag) -> None:
    """Lay out signature blocks side by side in a borderless table."""
    blocks = [child for child in tag.find_all(True, recursive=False)]
    if not blocks:
        return
    document.add_paragraph()
    table = document.add_table(rows=1, cols=len(blocks))
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    for index, block in enumerate(blocks):
        paragraph = table.cell(0, index).paragraphs[0]
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.add_run("_" * 30).add_break()
        _add_runs(paragraph, block)
        _trim(paragraph)


def _write_blocks(document: DocxDocument, container: Tag, keep: bool = False) -> None:
    for child in container.children:
        if isinstance(child, NavigableString):
            text = _clean(str(child)).strip()
            if text:
                document.add_paragraph(text)
            continue
        if not isinstance(child, Tag) or child.name in _SKIPPED:
            continue

        name = child.name
        if name in _HEADINGS:
            _write_heading(document, child)
        elif name == "p":
            _write_paragraph(document, child, keep=keep)
        elif name in ("ul", "ol"):
            _write_list(document, child, keep)
        elif name == "dl":
            _write_definitions(document, child, keep)
        elif name == "table":
            _write_table(document, child)
        elif name == "hr":
            document.add_paragraph()
        elif _has_class(child, "signature-row"):
            _write_signatures(document, child)
        else:
            _write_blocks(document, child, keep=keep or _has_class(child, "section"))


def _add_page_field(paragraph: Paragraph) -> None:
    field = OxmlElement("w:fldSimple")
    field.set(qn("w:instr"), "PAGE")
    run = OxmlElement("w:r")
    text = OxmlElement("w:t")
    text.text = "1"
    run.append(text)
    field.append(run)
    paragraph._p.append(field)


def _write_footer(document: DocxDocument, footer: FooterFields) -> None:
    paragraph = document.sections[0].footer.paragraphs[0]
    lines = [line for line in (footer.name, footer.address, *footer.contact) if line]
    for line in lines:
        run = paragraph.add_run(line)
        run.font.size = Pt(8)
        run.add_break()
    paragraph.add_run("Page ").font.size = Pt(8)
    _add_page_field(paragraph)


def _setup_page(document: DocxDocument) -> None:
    section = document.sections[0]
    section.page_width = Mm(210)
    section.page_height = Mm(297)
    section.top_margin = Mm(20)
    section.bottom_margin = Mm(25)
    section.left_margin = Mm(20)
    section.right_margin = Mm(20)


def html_to_docx(markup: str, footer: FooterFields) -> bytes:
    """Convert drafted HTML into DOCX bytes with a per-page footer."""
    soup = BeautifulSoup(markup, "html.parser")
    document = Document()
    _setup_page(document)
    _write_blocks(document, soup.body or soup)
    _write_footer(document, footer)

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


__all__ = ["html_to_docx"]
