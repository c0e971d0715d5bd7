"""Analytics export rendering"""

import csv
import io
import json
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from treasury_analytics.domain.exceptions import InvalidRequestError
from treasury_analytics.domain.models import AnalyticsSummary, ExportResult

EXPORT_FORMATS = {
    "json": "application/json",
    "csv": "text/csv",
    "pdf": "application/pdf",
    "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
FILE_EXTENSIONS = {"excel": "xlsx"}

EXPORT_TEMPLATES = ("executive_summary", "detailed_report", "board_presentation", "regulatory")
DEFAULT_TEMPLATE = "standard"

# section name -> key in the exported document
EXPORT_SECTIONS = {
    "overview": "summary",
    "cashflow": "cashFlow",
    "categories": "categories",
    "liquidity": "liquidity",
    "patterns": "patterns",
    "trends": "trends",
    "forecasting": "forecasting",
    "benchmarking": "benchmarking",
}

PDF_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F0F0F0")),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
    ]
)

# (title, rows); the first row is the header
TableData = Tuple[str, List[List[Any]]]

# fields that name a record when it gets tables of its own
LABEL_FIELDS = ("type", "name", "category")


def validate_export_format(fmt: str) -> str:
    normalized = (fmt or "").lower()
    if normalized not in EXPORT_FORMATS:
        raise InvalidRequestError("Invalid export format")
    return normalized


def validate_export_template(template: Optional[str]) -> str:
    """Missing template means the standard layout"""
    if not template:
        return DEFAULT_TEMPLATE
    if template not in EXPORT_TEMPLATES:
        raise InvalidRequestError(f"Invalid template. Valid options: {', '.join(EXPORT_TEMPLATES)}")
    return template


def validate_export_sections(sections: Optional[Sequence[str]]) -> List[str]:
    """
    Requested sections in request order, duplicates dropped.

    Accepts repeated values as well as comma separated ones; nothing requested
    means every section.
    """
    requested: List[str] = []
    for value in sections or []:
        for section in value.split(","):
            section = section.strip().lower()
            if section and section not in requested:
                requested.append(section)

    unknown = [s for s in requested if s not in EXPORT_SECTIONS]
    if unknown:
        raise InvalidRequestError(f"Invalid section. Valid options: {', '.join(EXPORT_SECTIONS)}")
    return requested or list(EXPORT_SECTIONS)


def _plain(value: Any) -> Any:
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if is_dataclass(value):
        return asdict(value)
    return value


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return value


def _flatten(record: Dict[str, Any], prefix: str = "") -> Iterator[Tuple[str, Any]]:
    """Nested dicts as dotted key/value pairs: period.start_date"""
    for key, value in record.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _flatten(value, f"{name}.")
        else:
            yield name, _cell(value)


def _has_records(value: Any) -> bool:
    if isinstance(value, list):
        return True
    return isinstance(value, dict) and any(_has_records(inner) for inner in value.values())


def _holds_record_list(item: Any) -> bool:
    return isinstance(item, dict) and any(
        isinstance(value, list) and any(isinstance(inner, dict) for inner in value) for value in item.values()
    )


def tabulate(title: str, data: Any) -> List[TableData]:
    """
    Lay one exported section out as flat tables.

    A list becomes one table with a column per field. Inside a dict, every
    list (or dict holding lists) gets its own "title.key" table and the
    remaining values form a metric/value table placed first.
    """
    if isinstance(data, list) and any(_holds_record_list(item) for item in data):
        # seasonal patterns, spending patterns: one table per item
        tables: List[TableData] = []
        for index, item in enumerate(data):
            label = next((item[key] for key in LABEL_FIELDS if isinstance(item, dict) and item.get(key)), index)
            tables.extend(tabulate(f"{title}.{label}", item))
        return tables

    if isinstance(data, list):
        records = [dict(_flatten(item)) if isinstance(item, dict) else {"value": _cell(item)} for item in data]
        if not records:
            return [(title, [])]
        header = list(records[0])
        return [(title, [header] + [[record.get(column, "") for column in header] for record in records])]

    if not isinstance(data, dict):
        return [(title, [["value"], [_cell(data)]])]

    scalars: Dict[str, Any] = {}
    nested: List[TableData] = []
    for key, value in data.items():
        if _has_records(value):
            nested.extend(tabulate(f"{title}.{key}", value))
        else:
            scalars[key] = value

    tables = nested
    if scalars:
        tables = [(title, [["metric", "value"]] + [list(pair) for pair in _flatten(scalars)])] + nested
    return tables


def _render_summary_csv(summary: AnalyticsSummary) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow(["section", "metric", "value"])
    for metric, value in _flatten(asdict(summary.metrics)):
        writer.writerow(["overview", metric, value])
    writer.writerow([])

    writer.writerow(["period", "inflow", "outflow", "net_flow", "balance"])
    for bucket in summary.cash_flow:
        writer.writerow([bucket.period_key, bucket.inflow, bucket.outflow, bucket.net_flow, bucket.balance])
    writer.writerow([])

    writer.writerow(["category", "amount", "count", "percentage", "trend"])
    for item in summary.categories:
        writer.writerow([item.category, item.amount, item.count, item.percentage, item.trend])

    return buffer.getvalue()


def _render_tables_csv(sections: List[Tuple[str, Any]]) -> str:
    """Every table preceded by its title row and followed by a blank line"""
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    for name, data in sections:
        for title, rows in tabulate(name, data):
            writer.writerow([title])
            writer.writerows(rows)
            writer.writerow([])

    return buffer.getvalue()


def _render_excel(sections: List[Tuple[str, Any]]) -> bytes:
    """One worksheet per section, its tables stacked with bold titles and headers"""
    wb = Workbook()
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    for name, data in sections:
        ws = wb.create_sheet(name[:31])
        for title, rows in tabulate(name, data):
            ws.append([title])
            ws.cell(row=ws.max_row, column=1).font = Font(bold=True, size=12)
            for index, row in enumerate(rows):
                ws.append(row)
                if index == 0:
                    for cell in ws[ws.max_row]:
                        cell.font = Font(bold=True)
            ws.append([])

        ws.column_dimensions["A"].width = 28
        ws.column_dimensions["B"].width = 18

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _render_pdf(document_title: str, sections: List[Tuple[str, Any]]) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(LETTER), title=document_title)
    styles = getSampleStyleSheet()

    story = [Paragraph(document_title, styles["Title"]), Spacer(1, 12)]
    for name, data in sections:
        story.append(Paragraph(name, styles["Heading2"]))
        for title, rows in tabulate(name, data):
            if title != name:
                story.append(Paragraph(title, styles["Heading3"]))
            if rows:
                table = Table([[str(value) for value in row] for row in rows], hAlign="LEFT", repeatRows=1)
                table.setStyle(PDF_TABLE_STYLE)
                story.append(table)
            story.append(Spacer(1, 12))

    doc.build(story)
    return buf.getvalue()


def _render(fmt: str, document_title: str, document: Dict[str, Any]) -> Any:
    sections = list(document.items())
    if fmt == "csv":
        return _render_tables_csv(sections)
    if fmt == "excel":
        return _render_excel(sections)
    if fmt == "pdf":
        return _render_pdf(document_title, sections)
    return json.dumps(document, indent=2)


def render_export(client_id: str, fmt: str, summary: AnalyticsSummary, generated_at: str) -> ExportResult:
    """Analytics summary as a downloadable document"""
    fmt = validate_export_format(fmt)
    if fmt == "csv":
        content = _render_summary_csv(summary)
    else:
        content = _render(fmt, f"Treasury Analytics - {client_id}", asdict(summary))

    return ExportResult(
        format=fmt,
        media_type=EXPORT_FORMATS[fmt],
        filename=f"analytics-{client_id}.{FILE_EXTENSIONS.get(fmt, fmt)}",
        content=content,
        metadata={"clientId": client_id, "generatedAt": generated_at, "format": fmt},
    )


def build_enhanced_document(
    client_id: str,
    fmt: str,
    template: str,
    sections: List[str],
    generated_at: str,
    summary: AnalyticsSummary,
    forecasting: Any,
    benchmarking: Any,
) -> Dict[str, Any]:
    """
    Metadata block plus the requested sections, in section order.

    Sections that were not requested are left out of the document entirely.
    """
    sources = {
        "overview": summary.metrics,
        "cashflow": summary.cash_flow,
        "categories": summary.categories,
        "liquidity": summary.liquidity,
        "patterns": summary.patterns,
        "trends": summary.trends,
        "forecasting": forecasting,
        "benchmarking": benchmarking,
    }

    document: Dict[str, Any] = {
        "metadata": {
            "clientId": client_id,
            "generatedAt": generated_at,
            "template": template,
            "format": fmt,
            "sections": sections,
        }
    }
    for section, key in EXPORT_SECTIONS.items():
        if section in sections:
            document[key] = _plain(sources[section])
    return document


def render_enhanced_export(document: Dict[str, Any]) -> ExportResult:
    metadata = document["metadata"]
    client_id, fmt, template = metadata["clientId"], metadata["format"], metadata["template"]

    if fmt in ("pdf", "excel"):
        filename = f"analytics-enhanced-{client_id}-{template}.{FILE_EXTENSIONS.get(fmt, fmt)}"
    else:
        filename = f"analytics-enhanced-{client_id}.{fmt}"

    title = f"Treasury Analytics - {client_id} ({template.replace('_', ' ')})"
    return ExportResult(
        format=fmt,
        media_type=EXPORT_FORMATS[fmt],
        filename=filename,
        content=_render(fmt, title, document),
        metadata=dict(metadata),
    )
