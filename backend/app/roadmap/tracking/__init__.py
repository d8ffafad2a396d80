"""Tracking Package

증분 변경 추적(ChangeTracker)과 스냅샷 비교(Diff Engine)
"""

from .change_tracker import ChangeTracker, ChangeTrackerListener
from .data_diff import calculate_data_changes, compare_records, deep_equal, has_changes

__all__ = [
    "ChangeTracker",
    "ChangeTrackerListener",
    "calculate_data_changes",
    "compare_records",
    "deep_equal",
    "has_changes",
]
