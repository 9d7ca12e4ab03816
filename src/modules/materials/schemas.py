"""Schemas for one-off material (textbook) sales."""

from datetime import date
from typing import Literal

from pydantic import Field

from src.shared.schemas.base import BaseSchema


class MaterialSale(BaseSchema):
    """A one-off charge billed in full in its billing period; never prorated."""

    billing_type: Literal["material"] = "material"
    id: str
    student_id: str
    item_name: str = ""
    unit_price: int = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    sale_date: date
    billing_year: int = Field(..., ge=2000, le=2100)
    billing_month: int = Field(..., ge=1, le=12)
    notes: str = ""

    @property
    def total_amount(self) -> int:
        return self.unit_price * self.quantity

    def is_billed_in(self, year: int, month: int) -> bool:
        return self.billing_year == year and self.billing_month == month


def billed_amount(sale: MaterialSale, year: int, month: int) -> int:
    return sale.total_amount if sale.is_billed_in(year, month) else 0
