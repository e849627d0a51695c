"""Customer-related DTOs shared across services."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class Subscription(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile_pin: str | None = None
    subscription_status: str | None = None
    subscription_price: float
    subscription_purchased: datetime
    subscription_expires: datetime | None = None


class Profile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile_id: str
    profile_name: str | None = None
    created_at: datetime


class AccountSummary(BaseModel):
    """Account as seen from one of its customers, with the linking terms."""

    model_config = ConfigDict(from_attributes=True)

    account_id: str
    account_name: str
    product_id: str
    subscription: Subscription | None = None


class Customer(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: str
    user_id: str
    customer_firstname: str
    customer_lastname: str
    customer_phone: str | None = None
    customer_email: str | None = None
    created_at: datetime
    updated_at: datetime
    profiles: list[Profile] = Field(default_factory=list)
    accounts: list[AccountSummary] = Field(default_factory=list)
    subscription: Subscription | None = None


class CustomerList(BaseModel):
    """Collection payload served, and cached, for a user's customers."""

    count: int
    customers: list[Customer]
