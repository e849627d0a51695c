from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .account import Account


@dataclass(slots=True)
class Profile:
    """Display enrichment attached to a customer."""

    profile_id: str
    customer_id: str
    profile_name: str | None
    created_at: datetime


@dataclass(slots=True)
class Subscription:
    """Billing terms carried by the account/customer association."""

    account_id: str
    customer_id: str
    subscription_price: float
    subscription_purchased: datetime
    profile_pin: str | None = None
    subscription_status: str | None = None
    subscription_expires: datetime | None = None


@dataclass(slots=True)
class Customer:
    """Customer record owned by a single user (tenant).

    ``accounts`` is only populated on detail reads, ``subscription`` only when
    the customer was loaded through an account.
    """

    customer_id: str
    user_id: str
    customer_firstname: str
    customer_lastname: str
    customer_phone: str | None
    customer_email: str | None
    created_at: datetime
    updated_at: datetime
    profiles: list[Profile] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    subscription: Subscription | None = None


@dataclass(slots=True)
class User:
    """Tenant root together with the customers loaded for it."""

    user_id: str
    customers: list[Customer] = field(default_factory=list)
