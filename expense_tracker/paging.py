# expense_tracker/paging.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from .config import DEFAULT_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """页码从 0 开始；sort 是调用方想要的排序，查询层可以忽略它。"""

    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    sort: Optional[str] = None

    def __post_init__(self):
        if self.page < 0:
            raise ValueError("page must not be negative")
        if self.size < 1:
            raise ValueError("size must be at least 1")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)
