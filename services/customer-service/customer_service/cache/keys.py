"""Cache key derivation for tenant-scoped payloads.

Every read path that populates an entry and every write path that invalidates
one goes through these helpers, so both sides always agree on the key.
"""

from __future__ import annotations


def customers_key(user_id: str) -> str:
    """Key of the customer collection payload for a user."""
    return f"{user_id}/customers"


def accounting_key(user_id: str, product_id: str) -> str:
    """Key of the accounting profile payload for one of a user's products."""
    return f"{user_id}/{product_id}/accounting"
