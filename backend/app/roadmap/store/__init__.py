"""Store Package

그리드 행 인메모리 저장소
"""

from .row_model import LINK_FIELDS, RowModel, RowModelListener, normalize_weeks

__all__ = [
    "LINK_FIELDS",
    "RowModel",
    "RowModelListener",
    "normalize_weeks",
]
