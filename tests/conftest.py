"""Pytest fixtures for testing"""

import itertools
from datetime import datetime
from typing import AsyncIterator, Callable, Iterable, Optional

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from treasury_analytics.api.main import create_app
from treasury_analytics.api.dependencies import get_analytics_service
from treasury_analytics.domain.models import Transaction
from treasury_analytics.infrastructure.database.models import Base, ClientRecord, TransactionRecord
from treasury_analytics.infrastructure.database.session import build_engine, build_session_factory, get_session_factory
from treasury_analytics.services.analytics import AnalyticsService

# Fixed "now" for everything that resolves relative windows
NOW = datetime(2024, 6, 15, 12, 0, 0)
CLIENT_ID = "client-1"


@pytest.fixture
def make_txn() -> Callable[..., Transaction]:
    """Factory for domain transactions with sensible defaults"""
    ids = itertools.count(1)

    def _make(
        date: datetime,
        amount: float,
        balance_after: Optional[float] = None,
        category: Optional[str] = None,
        counterparty: Optional[str] = None,
        type: str = "wire",
        client_id: str = CLIENT_ID,
        account_id: str = "acct-1",
    ) -> Transaction:
        return Transaction(
            id=f"tx-{next(ids)}",
            client_id=client_id,
            account_id=account_id,
            date=date,
            amount=amount,
            type=type,
            description="Test",
            balance_after=balance_after,
            category=category,
            counterparty=counterparty,
        )

    return _make


@pytest.fixture
async def session_factory(tmp_path) -> AsyncIterator[async_sessionmaker]:
    """Fresh SQLite database per test"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def seed(session_factory: async_sessionmaker):
    """Insert a client and its transactions"""

    async def _seed(
        transactions: Iterable[Transaction] = (),
        client_id: str = CLIENT_ID,
        industry: Optional[str] = "technology",
        business_segment: Optional[str] = "small",
    ) -> None:
        async with session_factory() as session:
            session.add(
                ClientRecord(id=client_id, name="Test Client", industry=industry, business_segment=business_segment)
            )
            for txn in transactions:
                session.add(
                    TransactionRecord(
                        id=txn.id,
                        client_id=txn.client_id,
                        account_id=txn.account_id,
                        date=txn.date,
                        amount=txn.amount,
                        balance_after=txn.balance_after,
                        category=txn.category,
                        counterparty=txn.counterparty,
                        type=txn.type,
                        description=txn.description,
                    )
                )
            await session.commit()

    return _seed


@pytest.fixture
def sample_transactions(make_txn) -> list[Transaction]:
    """
    Six transactions for CLIENT_ID around NOW.

    Two fall in the window before the default 30-day window (May 1-2),
    four inside it (June 10-12).
    """
    return [
        make_txn(datetime(2024, 5, 1, 10), -1000, 100000, "Payroll", "ADP", "ach"),
        make_txn(datetime(2024, 5, 2, 10), 200, 100200, "Software", "GitHub", "refund"),
        make_txn(datetime(2024, 6, 10, 9), 5000, 105200, "Revenue", "Acme Corp", "wire"),
        make_txn(datetime(2024, 6, 11, 10), -1200, 104000, "Payroll", "ADP", "ach"),
        make_txn(datetime(2024, 6, 11, 15), -300, 103700, "Software", "GitHub", "card"),
        make_txn(datetime(2024, 6, 12, 11), -800, 102900, "Payroll", "ADP", "wire"),
    ]


@pytest.fixture
def service(session_factory: async_sessionmaker) -> AnalyticsService:
    """Analytics service pinned to NOW"""
    return AnalyticsService(session_factory, clock=lambda: NOW)


@pytest.fixture
async def api_client(
    service: AnalyticsService, session_factory: async_sessionmaker
) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client against the app with the test database"""
    app = create_app()
    app.dependency_overrides[get_analytics_service] = lambda: service
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
