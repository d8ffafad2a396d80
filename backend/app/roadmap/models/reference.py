"""Reference Data Models

팀, 스프린트, 직무(function), 직원 및 전체 스냅샷
"""

from typing import Optional

from pydantic import Field

from backend.app.roadmap.models.enums import EntityKind
from backend.app.roadmap.models.rows import ResourceRow, RoadmapModel, TaskRow


class TeamData(RoadmapModel):
    """팀 (안정적인 id가 없을 수 있어 name을 키로 사용)"""

    id: Optional[str] = None
    name: str
    jira_project: str = ""
    feature_team: str = ""
    issue_type: str = ""

    @property
    def key(self) -> str:
        return self.id or self.name


class Sprint(RoadmapModel):
    """스프린트 (code가 키)"""

    code: str  # QxSy
    start: str  # YYYY-MM-DD
    end: str  # YYYY-MM-DD

    @property
    def key(self) -> str:
        return self.code


class Function(RoadmapModel):
    """직무 (BE, FE, PO, AN ...)"""

    id: str
    name: str
    color: Optional[str] = None


class Employee(RoadmapModel):
    """직원"""

    id: str
    name: str
    color: Optional[str] = None


class RoadmapSnapshot(RoadmapModel):
    """서버와 주고받는 전체 데이터"""

    version: int = 0
    teams: list[TeamData] = Field(default_factory=list)
    sprints: list[Sprint] = Field(default_factory=list)
    functions: list[Function] = Field(default_factory=list)
    employees: list[Employee] = Field(default_factory=list)
    resources: list[ResourceRow] = Field(default_factory=list)
    tasks: list[TaskRow] = Field(default_factory=list)


ENTITY_TYPES: dict[EntityKind, type[RoadmapModel]] = {
    EntityKind.TASK: TaskRow,
    EntityKind.RESOURCE: ResourceRow,
    EntityKind.TEAM: TeamData,
    EntityKind.SPRINT: Sprint,
    EntityKind.FUNCTION: Function,
    EntityKind.EMPLOYEE: Employee,
}
