"""
Domain errors and the failure values returned by the status engine and the
cart aggregator.

Pure domain functions never raise for expected business conditions. They
return an ``Outcome``; the service layer calls ``unwrap()`` which turns a
failure into the matching ``DomainError`` for the HTTP boundary.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class DomainError(Exception):
    status_code = 400
    default_message = "Request could not be processed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    default_message = "Validation failed."


class InvalidTarget(ValidationError):
    default_message = "Invalid status value."


class IllegalTransition(DomainError):
    status_code = 400
    default_message = "Invalid transition."


class TerminalState(DomainError):
    status_code = 400
    default_message = "Status can no longer be changed."


class Unauthorized(DomainError):
    status_code = 401
    default_message = "Missing token."


class Forbidden(DomainError):
    status_code = 403
    default_message = "Forbidden."


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found."


class CartNotFound(NotFound):
    default_message = "Cart not found."


class ItemNotInCart(NotFound):
    default_message = "Item not in cart."


class Internal(DomainError):
    status_code = 500
    default_message = "Internal server error."


class FailureKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_TARGET = "invalid_target"
    TERMINAL_STATE = "terminal_state"
    ILLEGAL_TRANSITION = "illegal_transition"
    CART_NOT_FOUND = "cart_not_found"
    ITEM_NOT_IN_CART = "item_not_in_cart"


ERRORS = {
    FailureKind.VALIDATION: ValidationError,
    FailureKind.NOT_FOUND: NotFound,
    FailureKind.FORBIDDEN: Forbidden,
    FailureKind.INVALID_TARGET: InvalidTarget,
    FailureKind.TERMINAL_STATE: TerminalState,
    FailureKind.ILLEGAL_TRANSITION: IllegalTransition,
    FailureKind.CART_NOT_FOUND: CartNotFound,
    FailureKind.ITEM_NOT_IN_CART: ItemNotInCart,
}


@dataclass(frozen=True)
class Outcome:
    value: Any = None
    failure: Optional[FailureKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: FailureKind, detail: str = "") -> "Outcome":
        return cls(failure=failure, detail=detail)

    def unwrap(self) -> Any:
        if self.failure is not None:
            raise ERRORS[self.failure](self.detail or None)
        return self.value
