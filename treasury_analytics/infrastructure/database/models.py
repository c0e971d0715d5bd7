"""SQLAlchemy ORM models for the client and transaction tables"""

import uuid
from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class ClientRecord(Base):
    """Treasury client (company) served by a relationship manager"""

    __tablename__ = "client"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    industry = Column(Text, nullable=True)
    business_segment = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    transactions = relationship("TransactionRecord", back_populates="client", cascade="all, delete-orphan")


class TransactionRecord(Base):
    """Bank statement line with signed amount and running balance"""

    __tablename__ = "bank_transaction"

    id = Column(String(36), primary_key=True, default=_new_id)
    client_id = Column(String(36), ForeignKey("client.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(String(36), nullable=False)
    date = Column(DateTime, nullable=False)
    amount = Column(Float, nullable=False)  # > 0 inflow, < 0 outflow
    balance_after = Column(Float, nullable=True)  # null on legacy rows
    category = Column(Text, nullable=True)
    counterparty = Column(Text, nullable=True)
    type = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")

    client = relationship("ClientRecord", back_populates="transactions")

    __table_args__ = (
        Index("ix_bank_transaction_client_date", "client_id", "date"),
        Index("ix_bank_transaction_client_counterparty", "client_id", "counterparty"),
    )
