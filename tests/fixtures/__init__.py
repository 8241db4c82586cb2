"""Test fixtures for simple-mapper tests."""

from .models import (
    Address,
    AddressDto,
    Customer,
    CustomerDto,
    Order,
    OrderDto,
    OrderLine,
    OrderLineDto,
)

__all__ = [
    "Address",
    "AddressDto",
    "Customer",
    "CustomerDto",
    "Order",
    "OrderDto",
    "OrderLine",
    "OrderLineDto",
]
