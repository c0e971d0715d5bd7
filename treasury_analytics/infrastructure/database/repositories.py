"""Data access layer for clients and transactions"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from treasury_analytics.domain.models import AnalyticsFilter, CategoryTotal, Transaction, VendorTotal
from treasury_analytics.infrastructure.database.models import ClientRecord, TransactionRecord


def _to_domain(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        client_id=record.client_id,
        account_id=record.account_id,
        date=record.date,
        amount=record.amount,
        type=record.type,
        description=record.description or "",
        balance_after=record.balance_after,
        category=record.category,
        counterparty=record.counterparty,
    )


def build_transaction_conditions(client_id: str, filters: Optional[AnalyticsFilter] = None) -> list:
    """WHERE conditions for a client's transactions narrowed by the optional filters"""
    filters = filters or AnalyticsFilter()
    conditions = [TransactionRecord.client_id == client_id]

    if filters.start_date is not None:
        conditions.append(TransactionRecord.date >= filters.start_date)
    if filters.end_date is not None:
        conditions.append(TransactionRecord.date <= filters.end_date)
    if filters.account_id:
        conditions.append(TransactionRecord.account_id == filters.account_id)
    if filters.categories:
        conditions.append(TransactionRecord.category.in_(filters.categories))
    if filters.transaction_types:
        conditions.append(TransactionRecord.type.in_(filters.transaction_types))
    if filters.min_amount is not None:
        conditions.append(TransactionRecord.amount >= filters.min_amount)
    if filters.max_amount is not None:
        conditions.append(TransactionRecord.amount <= filters.max_amount)

    return conditions


class ClientRepository:
    """Repository for treasury clients"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get_client(self, client_id: str) -> Optional[ClientRecord]:
        async with self.session_factory() as session:
            return await session.get(ClientRecord, client_id)


class TransactionRepository:
    """
    Read-only queries over the transaction table.

    Each method opens its own session so independent queries can be awaited
    concurrently with asyncio.gather.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def sum_amounts(
        self,
        client_id: str,
        filters: Optional[AnalyticsFilter] = None,
        direction: str = "inflow",
    ) -> Tuple[Optional[float], int]:
        """Signed sum and count of inflows (amount > 0) or outflows (amount < 0)"""
        sign = TransactionRecord.amount > 0 if direction == "inflow" else TransactionRecord.amount < 0
        stmt = select(func.sum(TransactionRecord.amount), func.count(TransactionRecord.id)).where(
            *build_transaction_conditions(client_id, filters), sign
        )
        async with self.session_factory() as session:
            total, count = (await session.execute(stmt)).one()
        return total, count

    async def count(self, client_id: str, filters: Optional[AnalyticsFilter] = None) -> int:
        stmt = select(func.count(TransactionRecord.id)).where(*build_transaction_conditions(client_id, filters))
        async with self.session_factory() as session:
            return (await session.execute(stmt)).scalar_one()

    async def get_recent(self, client_id: str, limit: int) -> List[Transaction]:
        """Latest transactions, newest first"""
        stmt = (
            select(TransactionRecord)
            .where(TransactionRecord.client_id == client_id)
            .order_by(TransactionRecord.date.desc())
            .limit(limit)
        )
        async with self.session_factory() as session:
            records = (await session.execute(stmt)).scalars().all()
        return [_to_domain(r) for r in records]

    async def get_in_range(
        self,
        client_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Transaction]:
        """Transactions inside the window, oldest first"""
        stmt = (
            select(TransactionRecord)
            .where(*build_transaction_conditions(client_id, AnalyticsFilter(start_date=start_date, end_date=end_date)))
            .order_by(TransactionRecord.date.asc())
        )
        async with self.session_factory() as session:
            records = (await session.execute(stmt)).scalars().all()
        return [_to_domain(r) for r in records]

    async def get_outgoing(self, client_id: str) -> List[Transaction]:
        stmt = (
            select(TransactionRecord)
            .where(TransactionRecord.client_id == client_id, TransactionRecord.amount < 0)
            .order_by(TransactionRecord.date.asc())
        )
        async with self.session_factory() as session:
            records = (await session.execute(stmt)).scalars().all()
        return [_to_domain(r) for r in records]

    async def get_category_totals(self, client_id: str, filters: Optional[AnalyticsFilter] = None) -> List[CategoryTotal]:
        """Sum of absolute amounts and count per category, largest first"""
        total = func.sum(func.abs(TransactionRecord.amount))
        stmt = (
            select(TransactionRecord.category, total, func.count(TransactionRecord.id))
            .where(*build_transaction_conditions(client_id, filters))
            .group_by(TransactionRecord.category)
            .order_by(total.desc())
        )
        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [CategoryTotal(category=category, amount=amount or 0.0, count=count) for category, amount, count in rows]

    async def get_vendor_totals(self, client_id: str, limit: int = 50) -> List[VendorTotal]:
        """Outgoing spend per counterparty, most negative sum first"""
        total = func.sum(TransactionRecord.amount)
        stmt = (
            select(TransactionRecord.counterparty, total, func.count(TransactionRecord.id))
            .where(
                TransactionRecord.client_id == client_id,
                TransactionRecord.counterparty.is_not(None),
                TransactionRecord.amount < 0,
            )
            .group_by(TransactionRecord.counterparty)
            .order_by(total.asc())
            .limit(limit)
        )
        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [VendorTotal(counterparty=name, amount=amount or 0.0, count=count) for name, amount, count in rows]

    async def get_payment_methods(self, client_id: str, counterparty: str) -> List[str]:
        """Distinct transaction types used with a counterparty, in either direction"""
        stmt = (
            select(TransactionRecord.type)
            .where(TransactionRecord.client_id == client_id, TransactionRecord.counterparty == counterparty)
            .distinct()
        )
        async with self.session_factory() as session:
            return list((await session.execute(stmt)).scalars().all())
