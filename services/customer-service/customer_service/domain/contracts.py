"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

UPDATABLE_CUSTOMER_FIELDS = frozenset(
    {"customer_firstname", "customer_lastname", "customer_phone", "customer_email"}
)
NON_NULL_CUSTOMER_FIELDS = frozenset({"customer_firstname", "customer_lastname"})


@dataclass(slots=True)
class CustomerInput:
    """Fields required to create a customer within a tenant."""

    customer_firstname: str
    customer_lastname: str
    customer_phone: str | None = None
    customer_email: str | None = None


@dataclass(slots=True)
class SubscriptionInput:
    """Billing terms recorded when a customer is attached to an account."""

    subscription_price: float
    subscription_purchased: datetime
    profile_pin: str | None = None
    subscription_status: str | None = None
    subscription_expires: datetime | None = None
