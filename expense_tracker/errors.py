# expense_tracker/errors.py


class ExpenseTrackerError(Exception):
    """本项目所有自定义异常的基类。"""


class ValidationError(ExpenseTrackerError, ValueError):
    """入库前字段校验失败，field 是出错的字段名。"""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(ExpenseTrackerError, LookupError):
    def __init__(self, entity_id, message: str = "The record you are looking for does not exist"):
        super().__init__(f"{message} (id={entity_id})")
        self.entity_id = entity_id
        self.message = message
