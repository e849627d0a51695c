"""Accounting ledger DTOs."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class AccountingEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_id: int
    amount: float
    description: str
    created_at: datetime


class AccountingProfile(BaseModel):
    """Revenue summary for a billing product, cached per user and product."""

    model_config = ConfigDict(from_attributes=True)

    product_id: str
    revenue: float = 0.0
    count: int = 0
    entries: list[AccountingEntry] = Field(default_factory=list)
