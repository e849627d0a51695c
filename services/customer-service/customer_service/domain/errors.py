"""Error kinds raised by the customer workflows and mapped to HTTP responses."""

from __future__ import annotations


class CustomerServiceError(Exception):
    """Base class for failures surfaced to API consumers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CustomerServiceError):
    """A user, account or customer referenced by the request does not exist."""

    status_code = 404


class ValidationFailure(CustomerServiceError):
    status_code = 422


class UpstreamError(CustomerServiceError):
    """The database or cache backend failed while serving the request."""

    status_code = 502
