"""Database repositories for customer, account, and accounting data."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import psycopg
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account
from .domain.contracts import UPDATABLE_CUSTOMER_FIELDS, CustomerInput, SubscriptionInput
from .domain.customer import Customer, Profile, Subscription, User
from .domain.errors import UpstreamError

_CUSTOMER_COLUMNS = """
    c.customer_id, c.user_id, c.customer_firstname, c.customer_lastname,
    c.customer_phone, c.customer_email, c.created_at, c.updated_at
"""

_SUBSCRIPTION_COLUMNS = """
    s.account_id, s.customer_id, s.subscription_price, s.subscription_purchased,
    s.profile_pin, s.subscription_status, s.subscription_expires
"""


@dataclass(slots=True)
class AccountingEntryRecord:
    """Row projection for items in accounting_entries."""

    entry_id: int
    user_id: str
    product_id: str
    amount: float
    description: str
    created_at: datetime


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except psycopg.Error as exc:
        raise UpstreamError(f"{operation} failed: {exc}") from exc


class CustomerRepository:
    """Postgres-backed persistence for users, accounts, customers and subscriptions."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def user_exists(self, user_id: str) -> bool:
        """Return ``True`` when the user (tenant root) exists."""
        with _translate_errors("user lookup"), self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute("SELECT 1 FROM users WHERE user_id = %s", (user_id,))
                return cur.fetchone() is not None

    def find_user_with_customers(
        self, user_id: str, customer_id: str | None = None
    ) -> User | None:
        """Load a user with its customers and their profiles.

        When ``customer_id`` is given the customer list is filtered to that one
        row and each customer also carries its accounts and subscription terms.
        Returns ``None`` if the user does not exist.
        """
        with _translate_errors("customer lookup"), self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute("SELECT user_id FROM users WHERE user_id = %s", (user_id,))
                if cur.fetchone() is None:
                    return None

                clauses = ["c.user_id = %s"]
                params: list[Any] = [user_id]
                if customer_id is not None:
                    clauses.append("c.customer_id = %s")
                    params.append(customer_id)
                cur.execute(
                    f"""
                    SELECT {_CUSTOMER_COLUMNS}
                    FROM customers c
                    WHERE {" AND ".join(clauses)}
                    ORDER BY c.created_at, c.customer_id
                    """,
                    params,
                )
                customers = [self._map_customer(row) for row in cur.fetchall()]
                if not customers:
                    return User(user_id=user_id, customers=[])

                by_id = {customer.customer_id: customer for customer in customers}
                cur.execute(
                    """
                    SELECT profile_id, customer_id, profile_name, created_at
                    FROM profiles
                    WHERE customer_id = ANY(%s)
                    ORDER BY created_at, profile_id
                    """,
                    (list(by_id),),
                )
                for row in cur.fetchall():
                    by_id[row[1]].profiles.append(
                        Profile(profile_id=row[0], customer_id=row[1], profile_name=row[2], created_at=row[3])
                    )

                if customer_id is not None:
                    cur.execute(
                        f"""
                        SELECT a.account_id, a.user_id, a.account_name, a.product_id, {_SUBSCRIPTION_COLUMNS}
                        FROM subscriptions s
                        JOIN accounts a ON a.account_id = s.account_id
                        WHERE s.customer_id = ANY(%s)
                        ORDER BY a.account_name, a.account_id
                        """,
                        (list(by_id),),
                    )
                    for row in cur.fetchall():
                        account = self._map_account(row[:4])
                        account.subscription = self._map_subscription(row[4:])
                        by_id[account.subscription.customer_id].accounts.append(account)

        return User(user_id=user_id, customers=customers)

    def find_account(
        self, account_id: str, user_id: str, *, include_customers: bool = False
    ) -> Account | None:
        """Fetch an account owned by ``user_id``, optionally with its subscribed customers."""
        with _translate_errors("account lookup"), self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT account_id, user_id, account_name, product_id
                    FROM accounts
                    WHERE account_id = %s AND user_id = %s
                    """,
                    (account_id, user_id),
                )
                row = cur.fetchone()
                if not row:
                    return None
                account = self._map_account(row)

                if include_customers:
                    cur.execute(
                        f"""
                        SELECT {_CUSTOMER_COLUMNS}, {_SUBSCRIPTION_COLUMNS}
                        FROM subscriptions s
                        JOIN customers c ON c.customer_id = s.customer_id
                        WHERE s.account_id = %s
                        ORDER BY s.created_at, c.customer_id
                        """,
                        (account_id,),
                    )
                    for customer_row in cur.fetchall():
                        customer = self._map_customer(customer_row[:8])
                        customer.subscription = self._map_subscription(customer_row[8:])
                        account.customers.append(customer)
        return account

    def create_customer(self, user_id: str, payload: CustomerInput) -> Customer:
        """Insert a customer row owned by ``user_id``."""
        customer_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with _translate_errors("customer creation"), self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    INSERT INTO customers (
                        customer_id, user_id, customer_firstname, customer_lastname,
                        customer_phone, customer_email, created_at, updated_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING customer_id, user_id, customer_firstname, customer_lastname,
                              customer_phone, customer_email, created_at, updated_at
                    """,
                    (
                        customer_id,
                        user_id,
                        payload.customer_firstname,
                        payload.customer_lastname,
                        payload.customer_phone,
                        payload.customer_email,
                        now,
                        now,
                    ),
                )
                row = cur.fetchone()
                conn.commit()
        return self._map_customer(row)

    def link_customer_to_account(
        self, account: Account, customer: Customer, subscription: SubscriptionInput
    ) -> Subscription:
        """Create the subscription row associating ``customer`` with ``account``."""
        with _translate_errors("subscription link"), self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    INSERT INTO subscriptions (
                        account_id, customer_id, profile_pin, subscription_status,
                        subscription_price, subscription_purchased, subscription_expires
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    RETURNING account_id, customer_id, subscription_price, subscription_purchased,
                              profile_pin, subscription_status, subscription_expires
                    """,
                    (
                        account.account_id,
                        customer.customer_id,
                        subscription.profile_pin,
                        subscription.subscription_status,
                        subscription.subscription_price,
                        subscription.subscription_purchased,
                        subscription.subscription_expires,
                    ),
                )
                row = cur.fetchone()
                conn.commit()
        return self._map_subscription(row)

    def update_customer(self, user_id: str, customer_id: str, changes: dict[str, Any]) -> int:
        """Apply ``changes`` to a tenant's customer and return the affected row count."""
        assignments = ["updated_at = %s"]
        params: list[Any] = [datetime.now(timezone.utc)]
        for column in sorted(changes):
            if column not in UPDATABLE_CUSTOMER_FIELDS:
                raise ValueError(f"column {column!r} is not updatable")
            assignments.append(f"{column} = %s")
            params.append(changes[column])
        params.extend([customer_id, user_id])

        with _translate_errors("customer update"), self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    UPDATE customers
                    SET {", ".join(assignments)}
                    WHERE customer_id = %s AND user_id = %s
                    """,
                    params,
                )
                affected = cur.rowcount
                conn.commit()
        return affected

    def delete_customer(self, user_id: str, customer_id: str) -> int:
        """Remove a tenant's customer; profiles and subscriptions cascade."""
        with _translate_errors("customer deletion"), self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM customers WHERE customer_id = %s AND user_id = %s",
                    (customer_id, user_id),
                )
                affected = cur.rowcount
                conn.commit()
        return affected

    def _map_customer(self, row: tuple) -> Customer:
        """Convert a raw database tuple into the domain ``Customer`` dataclass."""
        return Customer(
            customer_id=row[0],
            user_id=row[1],
            customer_firstname=row[2],
            customer_lastname=row[3],
            customer_phone=row[4],
            customer_email=row[5],
            created_at=row[6],
            updated_at=row[7],
        )

    def _map_account(self, row: tuple) -> Account:
        return Account(account_id=row[0], user_id=row[1], account_name=row[2], product_id=row[3])

    def _map_subscription(self, row: tuple) -> Subscription:
        return Subscription(
            account_id=row[0],
            customer_id=row[1],
            subscription_price=float(row[2]),
            subscription_purchased=row[3],
            profile_pin=row[4],
            subscription_status=row[5],
            subscription_expires=row[6],
        )


class AccountingRepository:
    """Append-only ledger of subscription revenue per billing product."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def record_entry(self, *, user_id: str, product_id: str, amount: float, description: str) -> None:
        """Append a ledger entry for ``product_id``."""
        with _translate_errors("accounting entry"), self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO accounting_entries (user_id, product_id, amount, description)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (user_id, product_id, amount, description),
                )
                conn.commit()

    def list_entries(self, *, user_id: str, product_id: str) -> list[AccountingEntryRecord]:
        """Return the ledger entries for a user's product, newest first."""
        with _translate_errors("accounting lookup"), self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT entry_id, user_id, product_id, amount, description, created_at
                    FROM accounting_entries
                    WHERE user_id = %s AND product_id = %s
                    ORDER BY created_at DESC, entry_id DESC
                    """,
                    (user_id, product_id),
                )
                return [
                    AccountingEntryRecord(
                        entry_id=row[0],
                        user_id=row[1],
                        product_id=row[2],
                        amount=float(row[3]),
                        description=row[4],
                        created_at=row[5],
                    )
                    for row in cur.fetchall()
                ]
