# expense_tracker/schemas.py
import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


# 字段都允许为空，交给 models 里的校验给出具体的错误信息
class ExpenseIn(BaseModel):
    name: Optional[str] = None
    expense_type: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[dt.date] = None


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    expense_type: str
    amount: Decimal
    date: dt.date
    creation_date: Optional[dt.datetime] = None


class ExpensePage(BaseModel):
    items: List[ExpenseOut]
    page: int
    size: int
    total: int
    total_pages: int
    has_next: bool


class ExpenseTotal(BaseModel):
    total: Decimal
    display: str


class CategoryIn(BaseModel):
    expense_category: Optional[str] = None


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    expense_category: str
