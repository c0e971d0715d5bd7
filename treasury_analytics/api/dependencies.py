"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import List, Optional

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from treasury_analytics.domain.models import AnalyticsFilter
from treasury_analytics.infrastructure.database.session import get_session_factory
from treasury_analytics.services.analytics import AnalyticsService
from treasury_analytics.utils.date_utils import to_naive_utc


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_analytics_service(session_factory: async_sessionmaker = Depends(get_session_factory)) -> AnalyticsService:
    """Provide an analytics service bound to the database"""
    return AnalyticsService(session_factory)


def get_analytics_filter(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    account_id: Optional[str] = Query(None, alias="accountId"),
    categories: Optional[List[str]] = Query(None),
    transaction_types: Optional[List[str]] = Query(None, alias="transactionTypes"),
    min_amount: Optional[float] = Query(None, alias="minAmount"),
    max_amount: Optional[float] = Query(None, alias="maxAmount"),
) -> AnalyticsFilter:
    """Transaction filters from the query string"""
    return AnalyticsFilter(
        start_date=to_naive_utc(start_date) if start_date else None,
        end_date=to_naive_utc(end_date) if end_date else None,
        account_id=account_id,
        categories=categories or None,
        transaction_types=transaction_types or None,
        min_amount=min_amount,
        max_amount=max_amount,
    )
