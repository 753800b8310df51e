from __future__ import annotations
import re
from datetime import date as Date, datetime
from typing import List, Literal, Optional

from fastapi import Query
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

# Collections:
# - menu_category
# - menu_item
# - order
# - reservation
# - review
# - cart


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class PageParams:
    def __init__(self, page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
        self.page = page
        self.limit = limit


# ---------- Menu ----------
class MenuCategoryIn(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = Field(None, max_length=200)
    is_orderable: bool = True


class MenuCategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, max_length=200)
    is_orderable: Optional[bool] = None


class MenuCategoryOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    is_orderable: bool = True


class MenuItemIn(CamelModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    description: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = None


class MenuItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = None
    available: Optional[bool] = None
    category_id: Optional[str] = None


class MenuItemOut(CamelModel):
    id: str
    name: str
    price: float
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: str
    available: bool = True


# ---------- Orders ----------
PaymentMethod = Literal["Cash", "Card", "UPI"]


class OrderLineIn(CamelModel):
    item_id: str
    quantity: int = Field(1, ge=1)


class OrderCreate(CamelModel):
    items: List[OrderLineIn] = Field(..., min_length=1)
    payment_method: PaymentMethod
    table_number: str = Field(..., min_length=1)
    customer_phone: str
    customer_email: EmailStr
    order_notes: str = ""

    @field_validator("customer_phone")
    @classmethod
    def ten_digits(cls, value: str) -> str:
        if not re.fullmatch(r"\d{10}", value):
            raise ValueError("Phone must be 10 digits")
        return value


class LineOut(CamelModel):
    item_id: str
    quantity: int
    item: Optional[MenuItemOut] = None


class OrderOut(CamelModel):
    id: str
    user_id: str
    items: List[LineOut]
    total_amount: float
    status: str
    payment_method: str
    table_number: str
    customer_phone: str
    customer_email: str
    order_notes: str = ""
    created_at: datetime
    updated_at: Optional[datetime] = None


class StatusUpdate(CamelModel):
    status: str


class InvoiceLineOut(CamelModel):
    name: str
    quantity: int
    unit_price: float
    line_total: float


class InvoiceOut(CamelModel):
    order_id: str
    customer: str
    created_at: datetime
    lines: List[InvoiceLineOut]
    subtotal: float
    gst_rate: float
    gst: float
    service_fee: float
    total: float
    currency: str
    payment_uri: str


# ---------- Reservations ----------
class ReservationCreate(CamelModel):
    name: str = Field(..., min_length=1)
    people_count: int = Field(..., ge=1, le=20)
    date: Date
    time: str = Field(..., min_length=1)
    special_request: str = Field("", max_length=200)

    @field_validator("date")
    @classmethod
    def not_in_past(cls, value: Date) -> Date:
        if value < Date.today():
            raise ValueError("Reservation date cannot be in the past.")
        return value


class ReservationOut(CamelModel):
    id: str
    user_id: str
    name: str
    people_count: int
    date: datetime
    time: str
    special_request: str = ""
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---------- Reviews ----------
class ReviewCreate(CamelModel):
    name: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=300)


class ReviewOut(CamelModel):
    id: str
    user_id: str
    name: str
    rating: int
    comment: str
    created_at: datetime


# ---------- Cart ----------
class CartAdd(CamelModel):
    item_id: str
    quantity: int = Field(1, ge=1)


class CartQuantity(CamelModel):
    quantity: int


class CartOut(CamelModel):
    id: str
    user_id: str
    items: List[LineOut] = []
    updated_at: Optional[datetime] = None
