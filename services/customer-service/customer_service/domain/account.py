from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .customer import Customer, Subscription


@dataclass(slots=True)
class Account:
    """User-owned account billed against an accounting product."""

    account_id: str
    user_id: str
    account_name: str
    product_id: str
    customers: list[Customer] = field(default_factory=list)
    subscription: Subscription | None = None
