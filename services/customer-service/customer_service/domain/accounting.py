"""Accounting notifications for subscriptions and the cached accounting profile."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from schemas import AccountingEntry, AccountingProfile

from .account import Account
from .contracts import CustomerInput, SubscriptionInput
from ..cache.keys import accounting_key
from ..cache.store import CacheStore
from ..repository import AccountingRepository

logger = logging.getLogger(__name__)


class AccountingNotifier(Protocol):
    """Receiver of subscription-driven billing events."""

    def record_subscription(
        self, user_id: str, product_id: str, price: float, description: str
    ) -> None: ...


class LedgerAccountingNotifier:
    """Notifier writing one ledger entry per subscription."""

    def __init__(self, repository: AccountingRepository) -> None:
        self._repository = repository

    def record_subscription(
        self, user_id: str, product_id: str, price: float, description: str
    ) -> None:
        self._repository.record_entry(
            user_id=user_id,
            product_id=product_id,
            amount=price,
            description=description,
        )


def describe_subscription(
    customer: CustomerInput, account: Account, subscription: SubscriptionInput
) -> str:
    """Return the ledger description for a customer subscribing to an account."""
    purchased = subscription.subscription_purchased.date().isoformat()
    return (
        f"{customer.customer_firstname} {customer.customer_lastname} subscribed to account "
        f'"{account.account_name}" at ₱"{subscription.subscription_price:.2f}" on {purchased}'
    )


class AccountingService:
    """Read side of the ledger, cached per user and product."""

    def __init__(
        self,
        repository: AccountingRepository,
        cache: CacheStore,
        *,
        cache_ttl_seconds: int | None = None,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._cache_ttl = cache_ttl_seconds

    def get_profile(self, user_id: str, product_id: str) -> dict[str, Any]:
        """Return the revenue summary for a product, populating the cache on a miss."""
        key = accounting_key(user_id, product_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("cache hit for %s", key)
            return cached

        entries = self._repository.list_entries(user_id=user_id, product_id=product_id)
        payload = AccountingProfile(
            product_id=product_id,
            revenue=round(sum(entry.amount for entry in entries), 2),
            count=len(entries),
            entries=[AccountingEntry.model_validate(entry) for entry in entries],
        ).model_dump(mode="json")
        self._cache.set(key, payload, self._cache_ttl)
        logger.debug("cache populated for %s", key)
        return payload
