"""Shared schema exports."""

from .account import Account
from .accounting import AccountingEntry, AccountingProfile
from .customer import AccountSummary, Customer, CustomerList, Profile, Subscription

__all__ = [
    "Account",
    "AccountSummary",
    "AccountingEntry",
    "AccountingProfile",
    "Customer",
    "CustomerList",
    "Profile",
    "Subscription",
]
