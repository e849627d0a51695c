"""Customer service orchestrating persistence, accounting, and cache coherence."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from prometheus_client import Counter

import schemas

from .account import Account
from .accounting import AccountingNotifier, describe_subscription
from .contracts import (
    NON_NULL_CUSTOMER_FIELDS,
    UPDATABLE_CUSTOMER_FIELDS,
    CustomerInput,
    SubscriptionInput,
)
from .customer import Customer
from .errors import NotFoundError, UpstreamError, ValidationFailure
from ..cache.keys import accounting_key, customers_key
from ..cache.store import CacheStore
from ..repository import CustomerRepository

logger = logging.getLogger(__name__)

CACHE_LOOKUPS = Counter(
    "customer_cache_lookups_total",
    "Cache lookups performed by the customer read paths.",
    ["resource", "result"],
)


class CustomerService:
    """Customer workflows backed by the repository and a shared cache.

    Writes never patch cached payloads. Each mutating workflow computes the
    set of keys whose payloads embed the rows it touched and drops them, and
    the next read repopulates from the database.
    """

    def __init__(
        self,
        repository: CustomerRepository,
        cache: CacheStore,
        notifier: AccountingNotifier,
        *,
        cache_ttl_seconds: int | None = None,
    ) -> None:
        """Store dependencies used to orchestrate persistence, billing, and caching."""
        self._repository = repository
        self._cache = cache
        self._notifier = notifier
        self._cache_ttl = cache_ttl_seconds

    def list_customers(self, user_id: str) -> dict[str, Any]:
        """Return ``{count, customers}`` for a user, serving from cache when possible.

        The payload is the JSON-ready dump of :class:`schemas.CustomerList`
        whether it comes from the cache or the database.
        """
        key = customers_key(user_id)
        cached = self._cache.get(key)
        if cached is not None:
            CACHE_LOOKUPS.labels(resource="customers", result="hit").inc()
            logger.debug("cache hit for %s", key)
            return cached
        CACHE_LOOKUPS.labels(resource="customers", result="miss").inc()

        user = self._repository.find_user_with_customers(user_id)
        if user is None:
            raise NotFoundError("user not found")

        payload = schemas.CustomerList(
            count=len(user.customers),
            customers=[schemas.Customer.model_validate(customer) for customer in user.customers],
        ).model_dump(mode="json")
        self._cache.set(key, payload, self._cache_ttl)
        logger.debug("cache populated for %s", key)
        return payload

    def get_customer(self, user_id: str, customer_id: str) -> Customer:
        """Return one customer of the user including its accounts. Never cached."""
        user = self._repository.find_user_with_customers(user_id, customer_id=customer_id)
        if user is None or not user.customers:
            raise NotFoundError("customer not found")
        return user.customers[0]

    def add_customer(
        self,
        user_id: str,
        account_id: str,
        customer_input: CustomerInput,
        subscription_input: SubscriptionInput,
    ) -> Account:
        """Create a customer, subscribe it to an account, and bill the subscription.

        There is no rollback: once the customer row exists the workflow always
        invalidates the affected cache keys, even if a later step fails. The
        accounting notification is best-effort and delivered at most once.
        """
        account = self._repository.find_account(account_id, user_id)
        if account is None:
            raise NotFoundError("account not found")

        customer = self._repository.create_customer(user_id, customer_input)
        stale_keys = {
            accounting_key(user_id, account.product_id),
            customers_key(user_id),
        }
        try:
            self._repository.link_customer_to_account(account, customer, subscription_input)
            self._notify_accounting(user_id, account, customer_input, subscription_input)

            refreshed = self._repository.find_account(account_id, user_id, include_customers=True)
            if refreshed is None:
                raise NotFoundError("account not found")
        except Exception:
            self._invalidate(stale_keys, raise_errors=False)
            raise
        self._invalidate(stale_keys)

        logger.info(
            "customer %s subscribed to account %s for user %s",
            customer.customer_id,
            account_id,
            user_id,
        )
        return refreshed

    def add_indirect_customer(self, user_id: str, customer_input: CustomerInput) -> Customer:
        """Create a customer that is not yet attached to any account."""
        if not self._repository.user_exists(user_id):
            raise NotFoundError("user not found")
        customer = self._repository.create_customer(user_id, customer_input)
        self._invalidate({customers_key(user_id)})
        return customer

    def update_customer(self, user_id: str, customer_id: str, changes: dict[str, Any]) -> None:
        """Apply a partial update to one of the user's customers."""
        unknown = set(changes) - UPDATABLE_CUSTOMER_FIELDS
        if unknown:
            raise ValidationFailure(f"unsupported fields: {', '.join(sorted(unknown))}")
        nulled = sorted(name for name in NON_NULL_CUSTOMER_FIELDS if name in changes and changes[name] is None)
        if nulled:
            raise ValidationFailure(f"fields cannot be null: {', '.join(nulled)}")
        affected = self._repository.update_customer(user_id, customer_id, changes)
        if not affected:
            raise NotFoundError("customer not found")
        self._invalidate({customers_key(user_id)})

    def delete_customer(self, user_id: str, customer_id: str) -> None:
        """Delete one of the user's customers together with its subscriptions."""
        affected = self._repository.delete_customer(user_id, customer_id)
        if not affected:
            raise NotFoundError("customer not found")
        self._invalidate({customers_key(user_id)})

    def _notify_accounting(
        self,
        user_id: str,
        account: Account,
        customer_input: CustomerInput,
        subscription_input: SubscriptionInput,
    ) -> None:
        description = describe_subscription(customer_input, account, subscription_input)
        try:
            self._notifier.record_subscription(
                user_id,
                account.product_id,
                subscription_input.subscription_price,
                description,
            )
        except Exception:
            logger.warning(
                "accounting notification dropped for product %s", account.product_id, exc_info=True
            )

    def _invalidate(self, keys: Iterable[str], *, raise_errors: bool = True) -> None:
        """Drop every key, even when some fail; re-raise the first failure."""
        failure: UpstreamError | None = None
        for key in sorted(keys):
            try:
                self._cache.invalidate(key)
            except UpstreamError as exc:
                logger.error("cache invalidation failed for %s: %s", key, exc.message)
                if failure is None:
                    failure = exc
                continue
            logger.debug("cache invalidated for %s", key)
        if failure is not None and raise_errors:
            raise failure
