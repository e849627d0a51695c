from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from customer_service.api import routes
from customer_service.api.errors import register_exception_handlers
from customer_service.cache.store import MemoryCacheStore
from customer_service.domain.account import Account
from customer_service.domain.accounting import AccountingService, LedgerAccountingNotifier
from customer_service.domain.contracts import CustomerInput, SubscriptionInput
from customer_service.domain.customer import Customer, Profile, Subscription, User
from customer_service.domain.errors import UpstreamError
from customer_service.domain.service import CustomerService
from customer_service.repository import AccountingEntryRecord


class FakeCustomerRepository:
    """In-memory repository mimicking Postgres-backed behaviors."""

    def __init__(self) -> None:
        self._users: set[str] = set()
        self._accounts: dict[str, Account] = {}
        self._customers: dict[str, Customer] = {}
        self._profiles: list[Profile] = []
        self._subscriptions: dict[tuple[str, str], Subscription] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def add_user(self, user_id: str) -> None:
        self._users.add(user_id)

    def add_account(self, user_id: str, account_id: str, account_name: str, product_id: str) -> None:
        self._accounts[account_id] = Account(
            account_id=account_id,
            user_id=user_id,
            account_name=account_name,
            product_id=product_id,
        )

    def add_profile(self, customer_id: str, profile_name: str) -> None:
        self._profiles.append(
            Profile(
                profile_id=str(uuid.uuid4()),
                customer_id=customer_id,
                profile_name=profile_name,
                created_at=datetime.now(timezone.utc),
            )
        )

    def remove_account(self, account_id: str) -> None:
        self._accounts.pop(account_id, None)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise UpstreamError(f"{name} failed")

    def user_exists(self, user_id: str) -> bool:
        self._record("user_exists")
        return user_id in self._users

    def find_user_with_customers(self, user_id: str, customer_id: str | None = None):
        self._record("find_user_with_customers")
        if user_id not in self._users:
            return None
        customers = []
        for stored in self._customers.values():
            if stored.user_id != user_id:
                continue
            if customer_id is not None and stored.customer_id != customer_id:
                continue
            customer = replace(
                stored,
                profiles=[p for p in self._profiles if p.customer_id == stored.customer_id],
                accounts=[],
                subscription=None,
            )
            if customer_id is not None:
                for (account_id, linked_id), subscription in self._subscriptions.items():
                    if linked_id == stored.customer_id:
                        customer.accounts.append(
                            replace(self._accounts[account_id], customers=[], subscription=subscription)
                        )
            customers.append(customer)
        return User(user_id=user_id, customers=customers)

    def find_account(self, account_id: str, user_id: str, *, include_customers: bool = False):
        self._record("find_account")
        stored = self._accounts.get(account_id)
        if stored is None or stored.user_id != user_id:
            return None
        account = replace(stored, customers=[], subscription=None)
        if include_customers:
            for (linked_account, customer_id), subscription in self._subscriptions.items():
                if linked_account == account_id:
                    account.customers.append(
                        replace(
                            self._customers[customer_id],
                            profiles=[],
                            accounts=[],
                            subscription=subscription,
                        )
                    )
        return account

    def create_customer(self, user_id: str, payload: CustomerInput) -> Customer:
        self._record("create_customer")
        if user_id not in self._users:
            raise UpstreamError("customers.user_id violates foreign key constraint")
        now = datetime.now(timezone.utc)
        customer = Customer(
            customer_id=str(uuid.uuid4()),
            user_id=user_id,
            customer_firstname=payload.customer_firstname,
            customer_lastname=payload.customer_lastname,
            customer_phone=payload.customer_phone,
            customer_email=payload.customer_email,
            created_at=now,
            updated_at=now,
        )
        self._customers[customer.customer_id] = customer
        return replace(customer)

    def link_customer_to_account(
        self, account: Account, customer: Customer, subscription: SubscriptionInput
    ) -> Subscription:
        self._record("link_customer_to_account")
        record = Subscription(
            account_id=account.account_id,
            customer_id=customer.customer_id,
            subscription_price=subscription.subscription_price,
            subscription_purchased=subscription.subscription_purchased,
            profile_pin=subscription.profile_pin,
            subscription_status=subscription.subscription_status,
            subscription_expires=subscription.subscription_expires,
        )
        self._subscriptions[(account.account_id, customer.customer_id)] = record
        return record

    def update_customer(self, user_id: str, customer_id: str, changes: dict[str, Any]) -> int:
        self._record("update_customer")
        stored = self._customers.get(customer_id)
        if stored is None or stored.user_id != user_id:
            return 0
        for column, value in changes.items():
            setattr(stored, column, value)
        stored.updated_at = datetime.now(timezone.utc)
        return 1

    def delete_customer(self, user_id: str, customer_id: str) -> int:
        self._record("delete_customer")
        stored = self._customers.get(customer_id)
        if stored is None or stored.user_id != user_id:
            return 0
        del self._customers[customer_id]
        self._profiles = [p for p in self._profiles if p.customer_id != customer_id]
        for key in [key for key in self._subscriptions if key[1] == customer_id]:
            del self._subscriptions[key]
        return 1


class FakeAccountingRepository:
    """In-memory ledger mirroring accounting_entries."""

    def __init__(self) -> None:
        self.entries: list[AccountingEntryRecord] = []
        self.list_calls = 0

    def record_entry(self, *, user_id: str, product_id: str, amount: float, description: str) -> None:
        self.entries.append(
            AccountingEntryRecord(
                entry_id=len(self.entries) + 1,
                user_id=user_id,
                product_id=product_id,
                amount=amount,
                description=description,
                created_at=datetime.now(timezone.utc),
            )
        )

    def list_entries(self, *, user_id: str, product_id: str) -> list[AccountingEntryRecord]:
        self.list_calls += 1
        matching = [e for e in self.entries if e.user_id == user_id and e.product_id == product_id]
        return list(reversed(matching))


@dataclass
class NotifierCall:
    user_id: str
    product_id: str
    price: float
    description: str


class RecordingNotifier:
    """Accounting notifier capturing calls, optionally failing each one."""

    def __init__(self) -> None:
        self.calls: list[NotifierCall] = []
        self.error: Exception | None = None

    def record_subscription(self, user_id: str, product_id: str, price: float, description: str) -> None:
        self.calls.append(NotifierCall(user_id, product_id, price, description))
        if self.error is not None:
            raise self.error


@pytest.fixture
def repository() -> FakeCustomerRepository:
    repo = FakeCustomerRepository()
    repo.add_user("u1")
    repo.add_user("u2")
    repo.add_account("u1", "a1", "Netflix", "p1")
    repo.add_account("u2", "a2", "Spotify", "p2")
    return repo


@pytest.fixture
def cache() -> MemoryCacheStore:
    return MemoryCacheStore(default_ttl_seconds=600)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(repository, cache, notifier) -> CustomerService:
    return CustomerService(repository, cache, notifier, cache_ttl_seconds=600)


@pytest.fixture
def ledger() -> FakeAccountingRepository:
    return FakeAccountingRepository()


@pytest.fixture
def api_client(repository, cache, ledger):
    """Provide a FastAPI test client wired to in-memory collaborators."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes.router)
    app.state.customer_service = CustomerService(
        repository, cache, LedgerAccountingNotifier(ledger), cache_ttl_seconds=600
    )
    app.state.accounting_service = AccountingService(ledger, cache, cache_ttl_seconds=600)

    with TestClient(app) as client:
        yield client
