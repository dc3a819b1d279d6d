# expense_tracker/services.py
from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from . import crud, models
from .config import CSV_HEADER
from .errors import NotFoundError
from .paging import Page, PageRequest

logger = logging.getLogger(__name__)


def month_window(year: int, month: int) -> Tuple[date, date]:
    """返回某年某月的第一天和最后一天（两头都包含），自动处理大小月和闰年。"""

    _, last_day = calendar.monthrange(year, month)
    return date(year, month, 1), date(year, month, last_day)


class ExpenseService:
    """记账的业务层：所有读写都走 crud 里的函数。"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, expense: models.Expense) -> models.Expense:
        return crud.save(self.db, expense)

    def find_by_id(self, expense_id: int) -> models.Expense:
        """按 id 找记录，找不到抛 NotFoundError。"""

        expense = crud.find_by_id(self.db, expense_id)
        if expense is None:
            raise NotFoundError(expense_id)
        return expense

    def find_all_paged(self, page_request: PageRequest) -> Page:
        """
        分页列出记录，永远按创建时间倒序（最新的在前）。
        page_request 里带的 sort 会被忽略。
        """

        return crud.find_all_paged(
            self.db, page_request.page, page_request.size, sort=crud.NEWEST_FIRST
        )

    def find_all(self) -> List[models.Expense]:
        return crud.find_all(self.db)

    def delete_by_id(self, expense_id: int) -> None:
        expense = self.find_by_id(expense_id)
        crud.delete(self.db, expense)

    @staticmethod
    def get_total_amount(expenses: Iterable[models.Expense]) -> Decimal:
        return sum((e.amount for e in expenses), Decimal(0))

    def get_expenses_by_year_month_and_type(
        self, year: int, month: int, expense_type: str, page_request: PageRequest
    ) -> Page:
        start, end = month_window(year, month)
        logger.debug("expenses of type %r between %s and %s", expense_type, start, end)
        return crud.find_by_date_between_and_expense_type_order_by_creation_date_desc(
            self.db, start, end, expense_type, page_request
        )

    def get_expenses_by_year_month(self, year: int, month: int, page_request: PageRequest) -> Page:
        start, end = month_window(year, month)
        logger.debug("expenses between %s and %s", start, end)
        return crud.find_by_date_between_order_by_creation_date_desc(
            self.db, start, end, page_request
        )

    def get_expenses_by_type(self, expense_type: str, page_request: PageRequest) -> Page:
        return crud.find_by_expense_type_order_by_creation_date_desc(
            self.db, expense_type, page_request
        )

    @staticmethod
    def convert_to_csv(expenses: Iterable[models.Expense], header: str = CSV_HEADER) -> str:
        """
        导出成 CSV 文本：第一行是表头，之后每条记录一行
        （id, 名称, 分类, 金额, 日期, 创建时间）。

        字段直接用逗号拼接，不加引号，名称里有逗号会错列。
        整个字符串都在内存里拼，个人记账的数据量没问题。
        """

        lines = [header]
        for e in expenses:
            created = "" if e.creation_date is None else str(e.creation_date)
            lines.append(
                f"{e.id},{e.name},{e.expense_type},{e.amount},{e.date.isoformat()},{created}"
            )
        return "\n".join(lines) + "\n"

    # ---------- categories ----------
    def save_category(self, category: models.ExpenseCategory) -> models.ExpenseCategory:
        return crud.save_category(self.db, category)

    def find_all_categories(self) -> List[models.ExpenseCategory]:
        return crud.find_all_categories(self.db)

    def find_category_by_id(self, category_id: int) -> models.ExpenseCategory:
        category = crud.find_category_by_id(self.db, category_id)
        if category is None:
            raise NotFoundError(category_id, "The expense category does not exist")
        return category

    def delete_category_by_id(self, category_id: int) -> None:
        crud.delete_category(self.db, self.find_category_by_id(category_id))
