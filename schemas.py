"""
Database Schemas for the Daycare Records API

Each entity model corresponds to one key -> document map in the entity store:
- Owner -> "owner"
- Guardian -> "guardian"
- Child -> "child"
- FeeStructure -> "fee_structure"
- Payment -> "payment"
- ActiveConfiguration -> "configuration"

Request models validate the JSON bodies accepted by the API. Field names are
snake_case in Python and camelCase on the wire.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PlainSerializer,
    StringConstraints,
    StrictFloat,
    StrictInt,
    StrictStr,
)
from pydantic.alias_generators import to_camel

# Bounds keep every accepted amount exactly representable as a JSON number
MAX_AMOUNT = Decimal("1000000000")
AMOUNT_DECIMAL_PLACES = 2

# Amounts are Decimals internally and plain JSON numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PhoneNumber = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^\d{10}$")]


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"


class Entity(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RequestBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# ---------- Stored entities ----------
class Owner(Entity):
    id: str
    name: str
    email: str
    phone_number: str
    created_at: datetime


class Guardian(Entity):
    id: str
    name: str
    email: str
    phone_number: str
    child_ids: List[str] = Field(default_factory=list, description="Children registered under this guardian")
    created_at: datetime


class Child(Entity):
    id: str
    name: str
    birthdate: date
    guardian_id: str
    created_at: datetime


class FeeStructure(Entity):
    id: str
    name: str
    amount: Money = Field(..., gt=0, description="Fee charged per child")
    owner_id: str
    created_at: datetime


class Payment(Entity):
    id: str
    child_id: str
    amount: Money = Field(..., ge=0, description="Amount applied to this child")
    status: PaymentStatus
    date: datetime


class ActiveConfiguration(Entity):
    """Single record naming the facility owner and the fee structure in force."""

    owner_id: Optional[str] = None
    active_fee_structure_id: Optional[str] = None
    updated_at: Optional[datetime] = None


class BalanceEntry(Entity):
    child_id: str
    balance: Money


class AllocationResult(Entity):
    payments: List[Payment]
    balances: List[BalanceEntry] = Field(..., alias="balancePerChild")


# ---------- Request bodies ----------
class OwnerCreate(RequestBody):
    name: NonBlank
    email: EmailStr
    phone_number: PhoneNumber


class GuardianCreate(RequestBody):
    name: NonBlank
    email: EmailStr
    phone_number: PhoneNumber


class ChildCreate(RequestBody):
    name: NonBlank
    birthdate: date
    guardian_id: NonBlank


class ChildUpdate(RequestBody):
    """Only these fields of a child may change after registration."""

    name: Optional[NonBlank] = None
    birthdate: Optional[date] = None


class FeeStructureCreate(RequestBody):
    name: NonBlank
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=AMOUNT_DECIMAL_PLACES, allow_inf_nan=False)
    owner_id: NonBlank


class PaymentCreate(RequestBody):
    child_ids: Annotated[List[str], Field(min_length=1)]
    # Parsed and range-checked by the allocator so it can report InvalidAmount
    amount: Union[StrictInt, StrictFloat, StrictStr]
    guardian_id: NonBlank
