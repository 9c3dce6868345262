from __future__ import annotations


class PosError(Exception):
    """Base exception for the point-of-sale core."""


class ValidationError(PosError, ValueError):
    """Missing selection, non-positive quantity or unknown id."""


class InsufficientStockError(PosError):
    """A product lacks the stock an operation needs."""

    def __init__(self, product_name: str, required: int, available: int) -> None:
        super().__init__(
            f"Not enough stock of {product_name}. Required: {required}, Available: {available}"
        )
        self.product_name = product_name
        self.required = int(required)
        self.available = int(available)


class TransportError(PosError):
    """The underlying store rejected or failed a call."""
