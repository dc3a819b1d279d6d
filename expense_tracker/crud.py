# expense_tracker/crud.py
"""
数据库访问层：只管查和存，不做业务判断。
所有函数第一个参数都是 Session，出错时 rollback 后原样抛出。
"""
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import asc, desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from . import models
from .paging import Page, PageRequest

logger = logging.getLogger(__name__)

NEWEST_FIRST = "-creation_date"


def _commit(db: Session, what: str):
    try:
        db.commit()
    except SQLAlchemyError:
        logger.exception("commit failed while %s", what)
        db.rollback()
        raise


def _order_by(q: Query, sort: Optional[str]) -> Query:
    """
    sort 形如 "-creation_date,name"：逗号分隔，前缀 "-" 表示倒序。
    最后总是按 id 同方向兜底，保证同一秒创建的记录顺序稳定。
    """
    E = models.Expense
    if not sort:
        return q
    direction = None
    for part in sort.split(","):
        part = part.strip()
        if not part:
            continue
        order = desc if part.startswith("-") else asc
        col_name = part.lstrip("-+")
        if col_name not in E.__table__.columns:
            raise ValueError(f"cannot sort expenses by {col_name!r}")
        q = q.order_by(order(getattr(E, col_name)))
        direction = direction or order
    if direction is not None:
        q = q.order_by(direction(E.id))
    return q


def _page(q: Query, page_request: PageRequest) -> Page:
    # count 要在 order_by 之前做，省掉排序
    total = q.order_by(None).count()
    items = q.offset(page_request.offset).limit(page_request.size).all()
    return Page(items=items, page=page_request.page, size=page_request.size, total=total)


# ---------- Expense ----------
def save(db: Session, expense: models.Expense) -> models.Expense:
    """没有 id 就插入，有 id 就整条覆盖（merge），返回数据库里的那条记录。"""
    obj = db.merge(expense)
    _commit(db, "saving expense")
    db.refresh(obj)
    logger.info("saved expense id=%s", obj.id)
    return obj


def find_by_id(db: Session, expense_id: int) -> Optional[models.Expense]:
    return db.get(models.Expense, expense_id)


def find_all(db: Session) -> List[models.Expense]:
    return db.query(models.Expense).all()


def find_all_paged(db: Session, page: int, size: int, sort: Optional[str] = None) -> Page:
    q = _order_by(db.query(models.Expense), sort)
    return _page(q, PageRequest(page=page, size=size, sort=sort))


def delete(db: Session, expense: models.Expense) -> None:
    expense_id = expense.id
    db.delete(expense)
    _commit(db, "deleting expense")
    logger.info("deleted expense id=%s", expense_id)


def find_by_date_between_order_by_creation_date_desc(
    db: Session, start: date, end: date, page_request: PageRequest
) -> Page:
    E = models.Expense
    q = db.query(E).filter(E.date.between(start, end))
    return _page(_order_by(q, NEWEST_FIRST), page_request)


def find_by_expense_type_order_by_creation_date_desc(
    db: Session, expense_type: str, page_request: PageRequest
) -> Page:
    E = models.Expense
    q = db.query(E).filter(E.expense_type == expense_type)
    return _page(_order_by(q, NEWEST_FIRST), page_request)


def find_by_date_between_and_expense_type_order_by_creation_date_desc(
    db: Session, start: date, end: date, expense_type: str, page_request: PageRequest
) -> Page:
    E = models.Expense
    q = (
        db.query(E)
        .filter(E.date.between(start, end))
        .filter(E.expense_type == expense_type)
    )
    return _page(_order_by(q, NEWEST_FIRST), page_request)


# ---------- ExpenseCategory ----------
def save_category(db: Session, category: models.ExpenseCategory) -> models.ExpenseCategory:
    obj = db.merge(category)
    _commit(db, "saving expense category")
    db.refresh(obj)
    logger.info("saved expense category id=%s %r", obj.id, obj.expense_category)
    return obj


def find_category_by_id(db: Session, category_id: int) -> Optional[models.ExpenseCategory]:
    return db.get(models.ExpenseCategory, category_id)


def find_all_categories(db: Session) -> List[models.ExpenseCategory]:
    C = models.ExpenseCategory
    return db.query(C).order_by(func.lower(C.expense_category), C.id).all()


def delete_category(db: Session, category: models.ExpenseCategory) -> None:
    category_id = category.id
    db.delete(category)
    _commit(db, "deleting expense category")
    logger.info("deleted expense category id=%s", category_id)
