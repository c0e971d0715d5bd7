"""GET /v1/clients/{client_id}/analytics/* - treasury analytics endpoints"""

import logging
import time
from datetime import datetime
from typing import Awaitable, List, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from starlette.responses import Response

from treasury_analytics.api.dependencies import get_analytics_filter, get_analytics_service, get_request_id
from treasury_analytics.api.v1.schemas import (
    BenchmarkResponse,
    CategoryBreakdownSchema,
    DashboardResponse,
    ForecastResponse,
    LiquidityResponse,
    OverviewResponse,
    PeriodBucketSchema,
    SpendingPatternSchema,
    SummaryResponse,
    TrendPointSchema,
    VendorBreakdownSchema,
)
from treasury_analytics.domain.bucketing import GRANULARITIES
from treasury_analytics.domain.dashboard import COMPARE_MODES, DATE_RANGES
from treasury_analytics.domain.exceptions import AnalyticsError
from treasury_analytics.domain.export import EXPORT_FORMATS, EXPORT_SECTIONS, EXPORT_TEMPLATES
from treasury_analytics.domain.models import AnalyticsFilter, ExportResult
from treasury_analytics.domain.trends import TREND_METRICS
from treasury_analytics.infrastructure.observability.logging import log_analytics_request
from treasury_analytics.infrastructure.observability.metrics import record_analytics_request
from treasury_analytics.services.analytics import AnalyticsService
from treasury_analytics.utils.date_utils import to_naive_utc

router = APIRouter(prefix="/clients/{client_id}/analytics")

T = TypeVar("T")


async def run_analytics(operation: str, request: Request, client_id: str, call: Awaitable[T]) -> T:
    """
    Await an analytics call, translating domain errors to HTTP responses.

    404/400 keep their status and message; anything else becomes a 500.
    Records latency and outcome for every call.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    status_code = 200

    try:
        return await call

    except AnalyticsError as e:
        status_code = e.status_code
        logging.warning(
            f"Analytics request rejected: {e}",
            extra={"request_id": request_id, "client_id": client_id, "operation": operation},
        )
        raise HTTPException(status_code=e.status_code, detail=e.message)

    except Exception as e:
        status_code = 500
        logging.error(
            f"Unexpected error: {e}",
            extra={"request_id": request_id, "client_id": client_id, "operation": operation},
        )
        raise HTTPException(status_code=500, detail="Internal server error")

    finally:
        duration = time.time() - start_time
        record_analytics_request(operation, status_code, duration)
        if status_code == 200:
            log_analytics_request(request_id, client_id, operation, duration * 1000)


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    client_id: str,
    request: Request,
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Inflow, outflow, net cash flow, balance and liquidity ratio"""
    return await run_analytics("overview", request, client_id, service.get_analytics_overview(client_id, filters))


@router.get("/cash-flow", response_model=List[PeriodBucketSchema])
async def get_cash_flow(
    client_id: str,
    request: Request,
    period: str = Query("daily", description=" | ".join(GRANULARITIES)),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Cash flow buckets for the window (default: last 30 days)"""
    return await run_analytics(
        "cash_flow",
        request,
        client_id,
        service.get_cash_flow_analytics(
            client_id,
            period,
            to_naive_utc(start_date) if start_date else None,
            to_naive_utc(end_date) if end_date else None,
        ),
    )


@router.get("/categories", response_model=List[CategoryBreakdownSchema])
async def get_categories(
    client_id: str,
    request: Request,
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await run_analytics("categories", request, client_id, service.get_category_analytics(client_id, filters))


@router.get("/liquidity", response_model=LiquidityResponse)
async def get_liquidity(
    client_id: str,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await run_analytics("liquidity", request, client_id, service.get_liquidity_analytics(client_id))


@router.get("/spending-patterns", response_model=List[SpendingPatternSchema])
async def get_spending_patterns(
    client_id: str,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await run_analytics("spending_patterns", request, client_id, service.get_spending_patterns(client_id))


@router.get("/vendors", response_model=List[VendorBreakdownSchema])
async def get_vendors(
    client_id: str,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await run_analytics("vendors", request, client_id, service.get_vendor_analytics(client_id))


@router.get("/trends", response_model=List[TrendPointSchema])
async def get_trends(
    client_id: str,
    request: Request,
    metric: str = Query(..., description=" | ".join(TREND_METRICS)),
    period: str = Query("12m", description="Lookback in months, e.g. 12m"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Monthly trend of one metric"""
    return await run_analytics("trends", request, client_id, service.get_trend_analytics(client_id, metric, period))


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    client_id: str,
    request: Request,
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await run_analytics("summary", request, client_id, service.get_analytics_summary(client_id, filters))


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    client_id: str,
    request: Request,
    date_range: str = Query("30d", alias="dateRange", description=" | ".join(DATE_RANGES)),
    compare_mode: str = Query("previous", alias="compareMode", description=" | ".join(COMPARE_MODES)),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    KPI cards and chart data for the dashboard.

    Returns:
        metrics, charts (cashFlow, categories, trends), kpis and the covered period
    """
    return await run_analytics(
        "dashboard", request, client_id, service.get_dashboard(client_id, date_range, compare_mode)
    )


@router.get("/forecast", response_model=ForecastResponse)
async def get_forecast(
    client_id: str,
    request: Request,
    forecast_period: str = Query("90d", alias="forecastPeriod"),
    confidence_level: float = Query(0.85, alias="confidenceLevel"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await run_analytics(
        "forecast",
        request,
        client_id,
        service.get_forecasting_analytics(client_id, forecast_period, confidence_level),
    )


@router.get("/benchmarks", response_model=BenchmarkResponse)
async def get_benchmarks(
    client_id: str,
    request: Request,
    industry: Optional[str] = Query(None),
    business_segment: Optional[str] = Query(None, alias="businessSegment"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await run_analytics(
        "benchmarks",
        request,
        client_id,
        service.get_benchmarking_analytics(client_id, industry, business_segment),
    )


EXPORT_METADATA_HEADERS = {
    "clientId": "X-Client-ID",
    "generatedAt": "X-Generated-At",
    "format": "X-Export-Format",
    "template": "X-Export-Template",
    "sections": "X-Export-Sections",
}


def export_response(result: ExportResult) -> Response:
    """Attachment download with the export metadata echoed as X- headers"""
    headers = {"Content-Disposition": f'attachment; filename="{result.filename}"'}
    for key, value in result.metadata.items():
        if key in EXPORT_METADATA_HEADERS:
            headers[EXPORT_METADATA_HEADERS[key]] = ",".join(value) if isinstance(value, list) else str(value)

    return Response(content=result.content, media_type=result.media_type, headers=headers)


@router.get("/export")
async def export_analytics(
    client_id: str,
    request: Request,
    format: str = Query("json", description=" | ".join(EXPORT_FORMATS)),
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Download the analytics summary"""
    result = await run_analytics(
        "export", request, client_id, service.export_analytics_data(client_id, format, filters)
    )
    return export_response(result)


@router.get("/export/enhanced")
async def export_enhanced_analytics(
    client_id: str,
    request: Request,
    format: str = Query("json", description=" | ".join(EXPORT_FORMATS)),
    template: Optional[str] = Query(None, description=" | ".join(EXPORT_TEMPLATES)),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    sections: Optional[List[str]] = Query(None, description=" | ".join(EXPORT_SECTIONS)),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Download summary, forecast and benchmarks in one document.

    Sections may be repeated or comma separated; none means all of them.
    """
    result = await run_analytics(
        "export_enhanced",
        request,
        client_id,
        service.export_enhanced_analytics(
            client_id,
            format,
            template,
            to_naive_utc(start_date) if start_date else None,
            to_naive_utc(end_date) if end_date else None,
            sections,
        ),
    )
    return export_response(result)
