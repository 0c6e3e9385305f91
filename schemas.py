from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import DuplicatePolicy
from money import parse_price_input


def _strip_text(value):
    if isinstance(value, str):
        return value.strip()
    return value


class LookupIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., max_length=100)
    on_duplicate: Optional[DuplicatePolicy] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        return _strip_text(value)


class LookupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class EntryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., gt=0)
    price_cents: int = Field(..., gt=0)
    purchase_date: date
    category_id: int
    store_id: int


class PurchaseIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., gt=0)
    price_cents: int = Field(..., gt=0)
    purchase_date: date
    category: str = Field(..., max_length=100)
    store: str = Field(..., max_length=100)

    @field_validator("category", "store", mode="before")
    @classmethod
    def _strip_lookups(cls, value):
        return _strip_text(value)

    @field_validator("price_cents", mode="before")
    @classmethod
    def _typed_price(cls, value):
        if isinstance(value, str):
            return parse_price_input(value)
        return value


class CreatedOut(BaseModel):
    id: int


class EntryView(BaseModel):
    id: int
    name: str
    quantity: float
    price_cents: int
    purchase_date: date
    category_id: int
    store_id: Optional[int]
    category_name: Optional[str]
    store_name: Optional[str]
    total_cents: int


class EntryListOut(BaseModel):
    items: list[EntryView]
    total_cents: int
    total_display: str
