"""Sample source and destination types shared by the tests."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class Status(Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


# Users: computed members and ignored members


@dataclass
class UserEntity:
    id: int = 0
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    password_hash: str = ""
    status: Status = Status.ACTIVE


@dataclass
class UserDto:
    id: int = 0
    full_name: str = ""
    email: Optional[str] = None
    status: Status = Status.ACTIVE


@dataclass
class Person:
    id: int = 0
    surname: str = ""


@dataclass
class PersonDto:
    id: int = 0
    last_name: str = ""


# Same member name with incompatible types


@dataclass
class Ticket:
    id: int = 0
    code: int = 5


@dataclass
class TicketDto:
    id: int = 0
    code: Optional[str] = None


# Customers: nested objects and scalar sequences


@dataclass
class Address:
    street: str = ""
    city: str = ""


@dataclass
class AddressDto:
    street: str = ""
    city: str = ""


@dataclass
class Customer:
    id: int = 0
    name: Optional[str] = None
    address: Optional[Address] = None
    tags: list[str] = field(default_factory=list)


@dataclass
class CustomerDto:
    id: int = 0
    name: Optional[str] = None
    address: Optional[AddressDto] = None
    tags: list[str] = field(default_factory=list)


# Orders: sequences of complex elements


@dataclass
class OrderLine:
    sku: str = ""
    quantity: int = 0


@dataclass
class OrderLineDto:
    sku: str = ""
    quantity: int = 0


@dataclass
class Order:
    id: int = 0
    lines: list[OrderLine] = field(default_factory=list)


@dataclass
class OrderDto:
    id: int = 0
    lines: list[OrderLineDto] = field(default_factory=list)


@dataclass
class OrderSnapshot:
    id: int = 0
    lines: tuple[OrderLineDto, ...] = ()


# Cycles


@dataclass(eq=False)
class Parent:
    name: str = ""
    child: Optional["Child"] = None


@dataclass(eq=False)
class Child:
    name: str = ""
    parent: Optional[Parent] = None


@dataclass(eq=False)
class ParentDto:
    name: str = ""
    child: Optional["ChildDto"] = None


@dataclass(eq=False)
class ChildDto:
    name: str = ""
    parent: Optional[ParentDto] = None


@dataclass(eq=False)
class Team:
    lead: Optional[Child] = None
    backup: Optional[Child] = None


@dataclass(eq=False)
class TeamDto:
    lead: Optional[ChildDto] = None
    backup: Optional[ChildDto] = None


# Depth


@dataclass
class Level3:
    name: str = ""


@dataclass
class Level2:
    name: str = ""
    level3: Optional[Level3] = None


@dataclass
class Level1:
    name: str = ""
    level2: Optional[Level2] = None


@dataclass
class Level3Dto:
    name: str = ""


@dataclass
class Level2Dto:
    name: str = ""
    level3: Optional[Level3Dto] = None


@dataclass
class Level1Dto:
    name: str = ""
    level2: Optional[Level2Dto] = None


# Partial updates


@dataclass
class Product:
    id: int = 0
    name: str = ""
    price: Decimal = Decimal("0")
    description: Optional[str] = None
    stock: int = 0
    supplier: Optional[Address] = None


@dataclass
class UpdateProductDto:
    name: Optional[str] = None
    price: Optional[Decimal] = None
    description: Optional[str] = None
    stock: Optional[int] = None
    supplier: Optional[AddressDto] = None


# Plain classes, properties and failures


class Thermometer:
    """Plain class with an annotated attribute and a derived property."""

    celsius: float

    def __init__(self, celsius: float = 0.0):
        self.celsius = celsius

    @property
    def fahrenheit(self) -> float:
        return self.celsius * 9 / 5 + 32


@dataclass
class Reading:
    celsius: float = 0.0
    fahrenheit: float = 0.0


class Unassigned:
    """Declares a member that instances never set."""

    name: str
    count: int = 0


@dataclass(frozen=True)
class Point:
    x: int = 0
    y: int = 0


class Exploding:
    @property
    def value(self) -> int:
        raise ValueError("sensor offline")


@dataclass
class Holder:
    value: int = 0


class RequiresArguments:
    value: int

    def __init__(self, value: int):
        self.value = value


class Untyped:
    """No annotations at all; described through an explicit schema."""

    def __init__(self, code=None, label=None):
        self.code = code
        self.label = label


# Linked nodes: cycles through a single self-referencing member


@dataclass(eq=False)
class Node:
    name: str = ""
    next: Optional["Node"] = None


@dataclass(eq=False)
class NodeDto:
    name: str = ""
    next: Optional["NodeDto"] = None
