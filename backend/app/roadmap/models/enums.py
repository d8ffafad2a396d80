"""Shared Enums for Roadmap Models"""

from enum import Enum


class RowKind(str, Enum):
    """그리드 행 종류 (순서 체인은 종류별로 독립)"""
    RESOURCE = "resource"
    TASK = "task"


class TaskStatus(str, Enum):
    """작업 상태"""
    TODO = "Todo"
    BACKLOG = "Backlog"
    CANCELLED = "Cancelled"


class EntityKind(str, Enum):
    """변경 추적 대상 엔티티"""
    TASK = "task"
    RESOURCE = "resource"
    TEAM = "team"
    SPRINT = "sprint"
    FUNCTION = "function"
    EMPLOYEE = "employee"

    @property
    def plural(self) -> str:
        """와이어 페이로드 키 (tasks, resources, ...)"""
        return f"{self.value}s"

    @classmethod
    def for_row(cls, kind: RowKind) -> "EntityKind":
        return cls(kind.value)


class RowAction(str, Enum):
    """행 단위 변경"""
    ADDED = "added"
    DELETED = "deleted"


class DropSide(str, Enum):
    """드래그 드롭 위치"""
    TOP = "top"
    BOTTOM = "bottom"


class SaveStatus(str, Enum):
    """자동 저장 상태"""
    IDLE = "idle"
    PENDING_DEBOUNCE = "pending_debounce"
    SAVING = "saving"
    ERROR = "error"


class PlanMode(str, Enum):
    """작업 주차 벡터의 소유자"""
    AUTO = "auto"
    MANUAL = "manual"
