# expense_tracker/formatting.py
"""金额显示用的小工具。"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .config import CURRENCY_LABEL


def format_money(amount: Optional[Decimal], label: str = CURRENCY_LABEL) -> str:
    """Decimal("1234567") -> "1,234,567 VND"，四舍五入到整数。"""

    if amount is None:
        return ""
    whole = Decimal(amount).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    text = f"{whole:,}"
    return f"{text} {label}" if label else text
