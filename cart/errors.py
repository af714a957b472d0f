"""
Error values returned by the cart engine.

Operations return a ``CartResult`` instead of raising for expected failures;
the views turn the error kind into an HTTP status.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    NOT_FOUND = 'not_found'
    PRECONDITION_FAILED = 'precondition_failed'
    VALIDATION_FAILED = 'validation_failed'
    CONFLICT = 'conflict'


# Machine-readable codes
PRODUCT_NOT_FOUND = 'PRODUCT_NOT_FOUND'
PRODUCT_UNAVAILABLE = 'PRODUCT_UNAVAILABLE'
RESTAURANT_INACTIVE = 'RESTAURANT_INACTIVE'
CART_ITEM_NOT_FOUND = 'CART_ITEM_NOT_FOUND'
NO_CARTS_FOUND = 'NO_CARTS_FOUND'
INVALID_MODIFIER_GROUP = 'INVALID_MODIFIER_GROUP'
INVALID_MODIFIER_OPTION = 'INVALID_MODIFIER_OPTION'
MODIFIER_GROUP_MISMATCH = 'MODIFIER_GROUP_MISMATCH'
MODIFIERS_REQUIRED = 'MODIFIERS_REQUIRED'
INVALID_MODIFIER_SELECTION = 'INVALID_MODIFIER_SELECTION'
INVALID_PRODUCT_MODIFIERS = 'INVALID_PRODUCT_MODIFIERS'
CART_CONFLICT = 'CART_CONFLICT'
INVALID_QUANTITY = 'INVALID_QUANTITY'


@dataclass(frozen=True)
class CartError:
    kind: ErrorKind
    code: str
    message: str
    details: dict = field(default_factory=dict)

    @classmethod
    def not_found(cls, code, message, **details):
        return cls(ErrorKind.NOT_FOUND, code, message, details)

    @classmethod
    def precondition(cls, code, message, **details):
        return cls(ErrorKind.PRECONDITION_FAILED, code, message, details)

    @classmethod
    def invalid(cls, code, message, **details):
        return cls(ErrorKind.VALIDATION_FAILED, code, message, details)

    @classmethod
    def conflict(cls, code, message, **details):
        details.setdefault('retryable', True)
        return cls(ErrorKind.CONFLICT, code, message, details)


@dataclass(frozen=True)
class CartResult:
    value: Any = None
    error: Optional[CartError] = None

    @property
    def ok(self):
        return self.error is None

    @classmethod
    def success(cls, value=None):
        return cls(value=value)

    @classmethod
    def failure(cls, error):
        return cls(error=error)
