"""Account-related DTOs shared across services."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .customer import Customer


class Account(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: str
    user_id: str
    account_name: str
    product_id: str
    customers: list[Customer] = Field(default_factory=list)
