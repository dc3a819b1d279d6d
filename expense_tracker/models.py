# expense_tracker/models.py
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, func
from sqlalchemy.orm import validates

from .db import Base
from .errors import ValidationError

AMOUNT_INTEGER_DIGITS = 15
AMOUNT_FRACTION_DIGITS = 0


def _required_text(field: str, value, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(field, message)
    return str(value).strip()


def _count_digits(value: Decimal):
    """返回 (整数位数, 小数位数)，先去掉末尾的 0，所以 10.00 算 2 位整数 0 位小数。"""
    # 不用 normalize()，它会按 context 精度（28 位）四舍五入
    _, digits, exponent = value.as_tuple()
    digits = list(digits)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    if exponent >= 0:
        return len(digits) + exponent, 0
    return max(len(digits) + exponent, 0), -exponent


class ExpenseCategory(Base):
    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True)
    expense_category = Column(String(50), unique=True, nullable=False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.expense_category is None:
            raise ValidationError("expense_category", "Please name the expense category")

    @validates("expense_category")
    def _validate_label(self, key, value):
        return _required_text(key, value, "Please name the expense category")

    def __repr__(self):
        return f"<ExpenseCategory id={self.id} {self.expense_category!r}>"


class Expense(Base):
    __tablename__ = "expenses"
    # 保证 id 单调递增，删掉的 id 不会被复用
    __table_args__ = {"sqlite_autoincrement": True}

    REQUIRED = {
        "name": "Please enter a name or description for the expense",
        "expense_type": "Please choose an expense category",
        "amount": "Please enter the amount of the transaction",
        "date": "Please enter the date of the transaction",
    }

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(200), nullable=False)

    # 按分类名字匹配，不做外键
    expense_type = Column(String(50), nullable=False, index=True)

    amount = Column(Numeric(AMOUNT_INTEGER_DIGITS, AMOUNT_FRACTION_DIGITS), nullable=False)

    # 交易日期
    date = Column(Date, nullable=False, index=True)

    creation_date = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        for field, message in self.REQUIRED.items():
            if getattr(self, field) is None:
                raise ValidationError(field, message)

    @validates("name", "expense_type")
    def _validate_text(self, key, value):
        return _required_text(key, value, self.REQUIRED[key])

    @validates("amount")
    def _validate_amount(self, key, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(key, self.REQUIRED[key])
        if isinstance(value, bool):
            raise ValidationError(key, "The amount must be a number")
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(key, "The amount must be a number")

        if not amount.is_finite():
            raise ValidationError(key, "The amount must be a number")
        if amount <= 0:
            raise ValidationError(key, "The amount must be greater than 0")

        integer_digits, fraction_digits = _count_digits(amount)
        if integer_digits > AMOUNT_INTEGER_DIGITS or fraction_digits > AMOUNT_FRACTION_DIGITS:
            raise ValidationError(
                key,
                f"The amount may have at most {AMOUNT_INTEGER_DIGITS} digits "
                f"and no decimal places",
            )
        return amount

    @validates("date")
    def _validate_date(self, key, value):
        if value is None or value == "":
            raise ValidationError(key, self.REQUIRED[key])
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            raise ValidationError(key, "The date must look like YYYY-MM-DD")

    @validates("creation_date")
    def _validate_creation_date(self, key, value):
        # 只能由数据库写入（server_default），从库里加载不会经过这里
        if value != self.creation_date:
            raise ValidationError(key, "The creation timestamp is set by the database and cannot be changed")
        return value

    def __repr__(self):
        return f"<Expense id={self.id} {self.name!r} {self.expense_type!r} {self.amount} {self.date}>"
