"""Ordering Package

prevId/nextId 기반 행 순서 유지
"""

from .order_maintainer import (
    LinkChange,
    OrderMaintainer,
    compute_links,
    move_id,
    order_from_links,
)

__all__ = [
    "LinkChange",
    "OrderMaintainer",
    "compute_links",
    "move_id",
    "order_from_links",
]
