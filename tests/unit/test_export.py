"""Unit tests for export validation, tabulation and rendering"""

import json
from dataclasses import asdict
from io import BytesIO

import pytest
from openpyxl import load_workbook
from treasury_analytics.domain.exceptions import InvalidRequestError
from treasury_analytics.domain.export import (
    EXPORT_SECTIONS,
    build_enhanced_document,
    render_enhanced_export,
    render_export,
    tabulate,
    validate_export_format,
    validate_export_sections,
    validate_export_template,
)
from treasury_analytics.domain.models import (
    AnalyticsOverview,
    AnalyticsSummary,
    CategoryBreakdown,
    ForecastResult,
    LiquiditySnapshot,
    PeriodBucket,
    ReportPeriod,
    SeasonalFactor,
    SeasonalPattern,
    SeasonalPeriod,
    Seasonality,
    SpendingPattern,
    TrendPoint,
    TrendSet,
    VendorBreakdown,
)

GENERATED_AT = "2024-06-15T12:00:00"


@pytest.fixture
def summary() -> AnalyticsSummary:
    return AnalyticsSummary(
        metrics=AnalyticsOverview(
            total_inflow=5200.0,
            total_outflow=3300.0,
            net_cash_flow=1900.0,
            average_daily_balance=102666.67,
            liquidity_ratio=31.11,
            idle_balance=102336.67,
            transaction_count=6,
            period=ReportPeriod(start_date="2024-05-16T12:00:00"),
        ),
        cash_flow=[PeriodBucket("2024-06-10", inflow=5000.0, net_flow=5000.0, balance=105200.0)],
        categories=[CategoryBreakdown("Revenue", 5000.0, 1, 68.49, "new")],
        liquidity=LiquiditySnapshot(102666.67, 100000.0, 105200.0, 0.02, 2, 9.0, False, 25000.0),
        patterns=[
            SpendingPattern(
                "Payroll",
                "Payroll",
                1000.0,
                "low",
                "consistent",
                vendors=[VendorBreakdown("ADP", 2000.0, 2, 100.0, ["ach", "wire"])],
            )
        ],
        trends=TrendSet(inflow=[TrendPoint("2024-06", 5000.0, 4800.0, 2400.0)], outflow=[], balance=[]),
    )


@pytest.fixture
def forecasting() -> ForecastResult:
    return ForecastResult(
        forecast=[],
        seasonality=Seasonality(
            patterns=[SeasonalPattern("monthly", [SeasonalPeriod("Jun", 5000.0, 2300.0, 4)])],
            factors=[SeasonalFactor("Peak months", "Months with the most inflow", ["Jun"])],
        ),
        recommendations=["Maintain current liquidity levels"],
    )


@pytest.mark.parametrize("fmt,expected", [("JSON", "json"), ("csv", "csv"), ("Pdf", "pdf"), ("EXCEL", "excel")])
def test_export_format_is_case_insensitive(fmt, expected):
    assert validate_export_format(fmt) == expected


@pytest.mark.parametrize("fmt", ["xml", "xlsx", "", None])
def test_invalid_export_format(fmt):
    with pytest.raises(InvalidRequestError, match="Invalid export format"):
        validate_export_format(fmt)


def test_template_defaults_to_standard():
    assert validate_export_template(None) == "standard"
    assert validate_export_template("") == "standard"
    assert validate_export_template("board_presentation") == "board_presentation"


def test_invalid_template_lists_options():
    with pytest.raises(InvalidRequestError) as exc:
        validate_export_template("quarterly")

    assert exc.value.status_code == 400
    assert exc.value.message == (
        "Invalid template. Valid options: executive_summary, detailed_report, board_presentation, regulatory"
    )


def test_sections_default_to_all():
    assert validate_export_sections(None) == list(EXPORT_SECTIONS)
    assert validate_export_sections([]) == list(EXPORT_SECTIONS)


def test_sections_accept_repeated_and_comma_separated_values():
    assert validate_export_sections(["trends,Overview", "trends", " liquidity "]) == ["trends", "overview", "liquidity"]


def test_unknown_section_rejected():
    with pytest.raises(InvalidRequestError, match="Invalid section"):
        validate_export_sections(["overview", "taxes"])


def test_tabulate_flattens_overview(summary):
    [(title, rows)] = tabulate("summary", asdict(summary.metrics))

    assert title == "summary"
    assert rows[0] == ["metric", "value"]
    assert rows[1] == ["total_inflow", 5200.0]
    assert ["period.start_date", "2024-05-16T12:00:00"] in rows
    assert ["period.end_date", ""] in rows


def test_tabulate_splits_nested_records(summary):
    trends = tabulate("trends", asdict(summary.trends))
    patterns = tabulate("patterns", [asdict(p) for p in summary.patterns])

    assert [title for title, _ in trends] == ["trends.inflow", "trends.outflow", "trends.balance"]
    assert trends[0][1] == [["period", "value", "change", "change_percent"], ["2024-06", 5000.0, 4800.0, 2400.0]]
    assert trends[1][1] == []
    assert [title for title, _ in patterns] == ["patterns.Payroll", "patterns.Payroll.vendors"]
    vendors = patterns[1][1]
    assert vendors[0] == ["vendor_name", "total_amount", "transaction_count", "percentage", "payment_methods"]
    assert vendors[1] == ["ADP", 2000.0, 2, 100.0, "ach, wire"]


def test_tabulate_forecast(forecasting):
    tables = dict(tabulate("forecasting", asdict(forecasting)))

    assert list(tables) == [
        "forecasting.forecast",
        "forecasting.seasonality.patterns.monthly",
        "forecasting.seasonality.patterns.monthly.data",
        "forecasting.seasonality.factors",
        "forecasting.recommendations",
    ]
    assert tables["forecasting.forecast"] == []
    assert tables["forecasting.seasonality.factors"][1] == ["Peak months", "Months with the most inflow", "Jun"]
    assert tables["forecasting.recommendations"] == [["value"], ["Maintain current liquidity levels"]]


def test_summary_csv_export(summary):
    result = render_export("client-1", "csv", summary, GENERATED_AT)

    assert result.filename == "analytics-client-1.csv"
    assert result.content.splitlines()[:2] == ["section,metric,value", "overview,total_inflow,5200.0"]
    assert "overview,period.end_date," in result.content
    assert result.metadata == {"clientId": "client-1", "generatedAt": GENERATED_AT, "format": "csv"}


def test_summary_json_export(summary):
    result = render_export("client-1", "json", summary, GENERATED_AT)

    document = json.loads(result.content)
    assert document["metrics"]["total_inflow"] == 5200
    assert document["trends"]["outflow"] == []


def test_summary_excel_export(summary):
    result = render_export("client-1", "excel", summary, GENERATED_AT)

    assert result.filename == "analytics-client-1.xlsx"
    assert result.media_type == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    workbook = load_workbook(BytesIO(result.content))
    assert workbook.sheetnames == ["metrics", "cash_flow", "categories", "liquidity", "patterns", "trends"]
    sheet = workbook["metrics"]
    assert sheet["A1"].value == "metrics"
    assert sheet["A2"].value == "metric"
    assert sheet["A2"].font.bold
    assert (sheet["A3"].value, sheet["B3"].value) == ("total_inflow", 5200)


def test_summary_pdf_export(summary):
    result = render_export("client-1", "pdf", summary, GENERATED_AT)

    assert result.filename == "analytics-client-1.pdf"
    assert result.media_type == "application/pdf"
    assert result.content.startswith(b"%PDF")


def test_enhanced_document_keeps_requested_sections_only(summary):
    document = build_enhanced_document(
        "client-1", "json", "standard", ["trends", "overview"], GENERATED_AT, summary, None, None
    )

    assert list(document) == ["metadata", "summary", "trends"]
    assert document["metadata"] == {
        "clientId": "client-1",
        "generatedAt": GENERATED_AT,
        "template": "standard",
        "format": "json",
        "sections": ["trends", "overview"],
    }
    assert document["summary"]["net_cash_flow"] == 1900


def test_enhanced_document_includes_forecast(summary, forecasting):
    document = build_enhanced_document(
        "client-1", "json", "standard", ["forecasting"], GENERATED_AT, summary, forecasting, None
    )

    assert document["forecasting"]["recommendations"] == ["Maintain current liquidity levels"]


@pytest.mark.parametrize(
    "fmt,template,filename",
    [
        ("excel", "regulatory", "analytics-enhanced-client-1-regulatory.xlsx"),
        ("pdf", "standard", "analytics-enhanced-client-1-standard.pdf"),
        ("csv", "executive_summary", "analytics-enhanced-client-1.csv"),
        ("json", "standard", "analytics-enhanced-client-1.json"),
    ],
)
def test_enhanced_filenames(summary, fmt, template, filename):
    document = build_enhanced_document("client-1", fmt, template, ["overview"], GENERATED_AT, summary, None, None)
    assert render_enhanced_export(document).filename == filename


def test_enhanced_csv_starts_with_metadata(summary):
    document = build_enhanced_document(
        "client-1", "csv", "standard", ["overview", "liquidity"], GENERATED_AT, summary, None, None
    )

    lines = render_enhanced_export(document).content.splitlines()

    assert lines[:3] == ["metadata", "metric,value", "clientId,client-1"]
    assert "summary" in lines
    assert "liquidity_score,9.0" in lines


def test_enhanced_excel_sheet_per_section(summary):
    document = build_enhanced_document(
        "client-1", "excel", "detailed_report", ["overview", "cashflow"], GENERATED_AT, summary, None, None
    )

    result = render_enhanced_export(document)

    assert load_workbook(BytesIO(result.content)).sheetnames == ["metadata", "summary", "cashFlow"]
    assert result.metadata["template"] == "detailed_report"
