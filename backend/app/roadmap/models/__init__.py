"""Models - Pydantic 모델 패키지

구조:
- enums.py: RowKind, TaskStatus, EntityKind 등 공용 Enum
- rows.py: ResourceRow, TaskRow
- reference.py: TeamData, Sprint, Function, Employee, RoadmapSnapshot
- changes.py: 변경 이벤트, ChangeLog, SaveRequest/SaveResponse, AutoSaveState
- confirmation.py: ConfirmationRequest/ConfirmationResponse

사용 예:
    from backend.app.roadmap.models import TaskRow, ChangeLog
"""

# Enums
from .enums import (
    DropSide,
    EntityKind,
    PlanMode,
    RowAction,
    RowKind,
    SaveStatus,
    TaskStatus,
)

# Rows
from .rows import (
    ROW_TYPES,
    ResourceRow,
    RoadmapModel,
    Row,
    TaskRow,
    new_id,
)

# Reference data
from .reference import (
    ENTITY_TYPES,
    Employee,
    Function,
    RoadmapSnapshot,
    Sprint,
    TeamData,
)

# Changes
from .changes import (
    AutoSaveState,
    CellChange,
    ChangeLog,
    ChangeSnapshot,
    DeletedIds,
    RowChange,
    SaveRequest,
    SaveResponse,
)

# Confirmation
from .confirmation import ConfirmationRequest, ConfirmationResponse

__all__ = [
    # Enums
    "DropSide",
    "EntityKind",
    "PlanMode",
    "RowAction",
    "RowKind",
    "SaveStatus",
    "TaskStatus",
    # Rows
    "ROW_TYPES",
    "ResourceRow",
    "RoadmapModel",
    "Row",
    "TaskRow",
    "new_id",
    # Reference data
    "ENTITY_TYPES",
    "Employee",
    "Function",
    "RoadmapSnapshot",
    "Sprint",
    "TeamData",
    # Changes
    "AutoSaveState",
    "CellChange",
    "ChangeLog",
    "ChangeSnapshot",
    "DeletedIds",
    "RowChange",
    "SaveRequest",
    "SaveResponse",
    # Confirmation
    "ConfirmationRequest",
    "ConfirmationResponse",
]
