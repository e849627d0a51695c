"""HTTP route definitions for the customer service."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr

import schemas

from ..domain.accounting import AccountingService
from ..domain.contracts import CustomerInput, SubscriptionInput
from ..domain.service import CustomerService

router = APIRouter()


class CreateCustomerRequest(BaseModel):
    """Payload accepted when creating a customer without an account."""

    customer_firstname: str
    customer_lastname: str
    customer_phone: str | None = None
    customer_email: EmailStr | None = None

    def to_input(self) -> CustomerInput:
        return CustomerInput(
            customer_firstname=self.customer_firstname,
            customer_lastname=self.customer_lastname,
            customer_phone=self.customer_phone,
            customer_email=self.customer_email,
        )


class SubscribeCustomerRequest(CreateCustomerRequest):
    """Customer fields plus the subscription terms linking it to an account."""

    subscription_price: float
    subscription_purchased: datetime
    profile_pin: str | None = None
    subscription_status: str | None = None
    subscription_expires: datetime | None = None

    def to_subscription(self) -> SubscriptionInput:
        return SubscriptionInput(
            subscription_price=self.subscription_price,
            subscription_purchased=self.subscription_purchased,
            profile_pin=self.profile_pin,
            subscription_status=self.subscription_status,
            subscription_expires=self.subscription_expires,
        )


class UpdateCustomerRequest(BaseModel):
    """Partial customer update; omitted fields keep their stored value."""

    customer_firstname: str | None = None
    customer_lastname: str | None = None
    customer_phone: str | None = None
    customer_email: EmailStr | None = None


class AccountEnvelope(BaseModel):
    account: schemas.Account


class CustomerEnvelope(BaseModel):
    customer: schemas.Customer


class MessageResponse(BaseModel):
    message: str


def get_service(request: Request) -> CustomerService:
    """Resolve the `CustomerService` stored on the FastAPI application state."""
    service: CustomerService = request.app.state.customer_service
    return service


def get_accounting_service(request: Request) -> AccountingService:
    service: AccountingService = request.app.state.accounting_service
    return service


@router.get("/users/{user_id}/customers", response_model=schemas.CustomerList)
def list_customers(
    user_id: str,
    service: CustomerService = Depends(get_service),
) -> dict:
    """List the user's customers with their profiles."""
    return service.list_customers(user_id)


@router.get("/users/{user_id}/customers/{customer_id}", response_model=schemas.Customer)
def get_customer(
    user_id: str,
    customer_id: str,
    service: CustomerService = Depends(get_service),
) -> schemas.Customer:
    """Retrieve one customer with the accounts it is subscribed to."""
    return schemas.Customer.model_validate(service.get_customer(user_id, customer_id))


@router.post(
    "/users/{user_id}/accounts/{account_id}/customers",
    response_model=AccountEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def add_customer(
    user_id: str,
    account_id: str,
    payload: SubscribeCustomerRequest,
    service: CustomerService = Depends(get_service),
) -> AccountEnvelope:
    """Create a customer and subscribe it to the account."""
    account = service.add_customer(
        user_id, account_id, payload.to_input(), payload.to_subscription()
    )
    return AccountEnvelope(account=schemas.Account.model_validate(account))


@router.post(
    "/users/{user_id}/customers",
    response_model=CustomerEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def add_indirect_customer(
    user_id: str,
    payload: CreateCustomerRequest,
    service: CustomerService = Depends(get_service),
) -> CustomerEnvelope:
    """Create a customer that is not attached to any account yet."""
    customer = service.add_indirect_customer(user_id, payload.to_input())
    return CustomerEnvelope(customer=schemas.Customer.model_validate(customer))


@router.patch("/users/{user_id}/customers/{customer_id}", response_model=MessageResponse)
def update_customer(
    user_id: str,
    customer_id: str,
    payload: UpdateCustomerRequest,
    service: CustomerService = Depends(get_service),
) -> MessageResponse:
    service.update_customer(user_id, customer_id, payload.model_dump(exclude_unset=True))
    return MessageResponse(message="Successfully updated customer")


@router.delete("/users/{user_id}/customers/{customer_id}", response_model=MessageResponse)
def delete_customer(
    user_id: str,
    customer_id: str,
    service: CustomerService = Depends(get_service),
) -> MessageResponse:
    service.delete_customer(user_id, customer_id)
    return MessageResponse(message="Successfully deleted customer")


@router.get(
    "/users/{user_id}/products/{product_id}/accounting",
    response_model=schemas.AccountingProfile,
)
def get_accounting_profile(
    user_id: str,
    product_id: str,
    service: AccountingService = Depends(get_accounting_service),
) -> dict:
    """Return the cached revenue summary for one of the user's products."""
    return service.get_profile(user_id, product_id)
