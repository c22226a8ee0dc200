"""Pydantic schemas for request and response models.

Pydantic models validate and serialise data that crosses the boundary
of the API.  Field names are snake_case in Python and camelCase on the
wire (``providerId``, ``hasFixedPrice``...), except ``item_total`` which
the bill payloads have always spelled that way.

Money is carried as :class:`~decimal.Decimal` end to end and serialises
as a string, so ``"7.50"`` never drifts into ``7.499999``.

Schemas are intentionally separate from the ORM models in
``vegbills.models.tables``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from vegbills.utils.helpers import parse_iso_datetime

# Bounds keep every amount representable in the NUMERIC(12, 2) money columns:
# MAX_ITEMS lines of MAX_QUANTITY at MAX_PRICE stay below 10**10.
MAX_PRICE = Decimal("99999.99")
MAX_QUANTITY = Decimal("999.999")
MAX_ITEMS = 100
CENT = Decimal("0.01")


class APIModel(BaseModel):
    """Base model accepting both field names and their wire aliases."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ---------------------------------------------------------------------------
# Vegetables


class VegetableCreate(APIModel):
    name: str = Field(min_length=1)
    is_available: bool = Field(default=True, alias="isAvailable")
    has_fixed_price: bool = Field(default=False, alias="hasFixedPrice")
    fixed_price: Optional[Decimal] = Field(
        default=None, gt=0, le=MAX_PRICE, max_digits=12, decimal_places=2, alias="fixedPrice"
    )

    @model_validator(mode="after")
    def _fixed_price_present(self) -> "VegetableCreate":
        if self.has_fixed_price and self.fixed_price is None:
            raise ValueError("fixedPrice must be provided when hasFixedPrice is true")
        if not self.has_fixed_price:
            self.fixed_price = None
        return self


class VegetableUpdate(APIModel):
    """Partial update; the fixed-price invariant is checked on the merged row."""

    name: Optional[str] = Field(default=None, min_length=1)
    is_available: Optional[bool] = Field(default=None, alias="isAvailable")
    has_fixed_price: Optional[bool] = Field(default=None, alias="hasFixedPrice")
    fixed_price: Optional[Decimal] = Field(
        default=None, gt=0, le=MAX_PRICE, max_digits=12, decimal_places=2, alias="fixedPrice"
    )


class VegetableRead(APIModel):
    id: str
    name: str
    is_available: bool = Field(alias="isAvailable")
    has_fixed_price: bool = Field(alias="hasFixedPrice")
    fixed_price: Optional[Decimal] = Field(default=None, alias="fixedPrice")


# ---------------------------------------------------------------------------
# Providers & signers


class ProviderCreate(APIModel):
    name: str = Field(min_length=1)
    mobile: str = Field(min_length=1)
    address: Optional[str] = None


class ProviderRead(APIModel):
    id: str
    name: str
    mobile: str
    address: Optional[str] = None


class SignerCreate(APIModel):
    name: str = Field(min_length=1)


class SignerRead(APIModel):
    id: str
    name: str


# ---------------------------------------------------------------------------
# Bills


class BillItemCreate(APIModel):
    """Line item as submitted.  ``id`` and ``item_total`` are never trusted."""

    name: str = Field(min_length=1)
    quantity: Decimal = Field(gt=0, le=MAX_QUANTITY, max_digits=12, decimal_places=3)
    price: Decimal = Field(gt=0, le=MAX_PRICE, max_digits=12, decimal_places=2)

    @model_validator(mode="after")
    def _nonzero_total(self) -> "BillItemCreate":
        if (self.price * self.quantity).quantize(CENT, rounding=ROUND_HALF_UP) <= 0:
            raise ValueError("price x quantity rounds to 0.00")
        return self


class BillItemRead(APIModel):
    """Line item after reconciliation and pricing."""

    id: str
    name: str
    quantity: Decimal
    price: Decimal
    item_total: Decimal
    is_available: bool = Field(default=True, alias="isAvailable")
    has_fixed_price: bool = Field(default=False, alias="hasFixedPrice")
    fixed_price: Optional[Decimal] = Field(default=None, alias="fixedPrice")


class BillCreate(APIModel):
    provider_id: str = Field(min_length=1, alias="providerId")
    provider_name: str = Field(min_length=1, alias="providerName")
    items: List[BillItemCreate] = Field(min_length=1, max_length=MAX_ITEMS)
    signer: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator("date", mode="before")
    @classmethod
    def _lenient_iso(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_iso_datetime(value) or value
        return value

    @field_validator("signer", mode="before")
    @classmethod
    def _blank_signer(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BillRead(APIModel):
    id: str
    provider_id: str = Field(alias="providerId")
    provider_name: str = Field(alias="providerName")
    items: List[BillItemRead]
    total: Decimal
    date: datetime
    signer: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")


class BulkDeleteResult(APIModel):
    message: str
    count: int
    deleted_bills: List[BillRead] = Field(default_factory=list, alias="deletedBills")


class CacheKeys(APIModel):
    count: int
    keys: List[str]


class HealthStatus(APIModel):
    status: str
