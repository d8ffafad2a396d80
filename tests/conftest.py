"""테스트 설정 및 공통 fixture"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import pytest

# 프로젝트 루트를 Python 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from backend.app.core.errors import ConcurrencyError, ErrorCode, TransportError  # noqa: E402
from backend.app.roadmap.models import RoadmapSnapshot, SaveRequest, SaveResponse  # noqa: E402
from backend.app.roadmap.session import RoadmapSession  # noqa: E402

WEEK_COUNT = 8


class FakeTransport:
    """메모리 저장 서버

    conflicts/failures 만큼 다음 저장을 실패시키고,
    gate가 있으면 저장 응답을 그 이벤트가 set될 때까지 붙잡는다.
    """

    def __init__(self, version: int = 1, snapshot: Optional[RoadmapSnapshot] = None):
        self.version = version
        self.snapshot = snapshot or RoadmapSnapshot(version=version)
        self.requests: list[dict] = []
        self.conflicts = 0
        self.failures = 0
        self.version_calls = 0
        self.gate: Optional[asyncio.Event] = None

    async def save(self, request: SaveRequest) -> SaveResponse:
        self.requests.append(request.to_payload())
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            self.failures -= 1
            raise TransportError(ErrorCode.TRANSPORT_FAILED)
        if self.conflicts:
            self.conflicts -= 1
            # 다른 사용자가 먼저 저장한 상황
            self.version += 1
            raise ConcurrencyError(
                message=f"Version conflict: server version {self.version}",
                server_version=self.version,
            )
        self.version += 1
        return SaveResponse(version=self.version, success=True)

    async def get_version(self) -> int:
        self.version_calls += 1
        return self.version

    async def fetch_data(self) -> RoadmapSnapshot:
        return self.snapshot.model_copy(update={"version": self.version}, deep=True)


@pytest.fixture
def week_count():
    return WEEK_COUNT


@pytest.fixture
def sample_resource_data():
    """샘플 리소스 행 (BE, Core 팀, 매주 1명)"""
    return {
        "id": "r-be",
        "kind": "resource",
        "team": ["Core"],
        "fn": "BE",
        "weeks": [1.0] * WEEK_COUNT,
    }


@pytest.fixture
def sample_task_data():
    """샘플 작업 행 (1명 x 3주, Auto)"""
    return {
        "id": "t-1",
        "kind": "task",
        "task": "API 설계",
        "team": "Core",
        "fn": "BE",
        "planEmpl": 1,
        "planWeeks": 3,
        "autoPlanEnabled": True,
        "weeks": [0.0] * WEEK_COUNT,
    }


@pytest.fixture
def sample_snapshot_data(sample_resource_data, sample_task_data):
    """샘플 전체 스냅샷 (와이어 포맷)"""
    return {
        "version": 1,
        "teams": [{"name": "Core", "jiraProject": "CORE"}],
        "sprints": [
            {"code": "Q3S1", "start": "2025-06-02", "end": "2025-06-15"},
            {"code": "Q3S2", "start": "2025-06-16", "end": "2025-06-29"},
        ],
        "functions": [{"id": "BE", "name": "Backend"}],
        "employees": [],
        "resources": [sample_resource_data],
        "tasks": [
            sample_task_data,
            {
                "id": "t-2",
                "kind": "task",
                "task": "배포",
                "team": "Core",
                "fn": "BE",
                "planEmpl": 1,
                "planWeeks": 2,
                "weeks": [0.0] * WEEK_COUNT,
            },
        ],
    }


@pytest.fixture
def fake_transport():
    return FakeTransport(version=1)


@pytest.fixture
def session_factory(sample_snapshot_data):
    """스냅샷을 적재하고 한 번 계획을 돌린 세션 생성기"""

    def build(
        transport: Optional[FakeTransport] = None,
        autosave_enabled: bool = False,
        delay_ms: int = 20,
        **kwargs,
    ) -> RoadmapSession:
        session = RoadmapSession(
            transport or FakeTransport(version=1),
            week_count=WEEK_COUNT,
            autosave_delay_ms=delay_ms,
            autosave_enabled=autosave_enabled,
            **kwargs,
        )
        session.load(RoadmapSnapshot.model_validate(sample_snapshot_data))
        session.scheduler.schedule_all()
        session.tracker.reset()
        return session

    return build


@pytest.fixture
def session(session_factory, fake_transport):
    return session_factory(fake_transport)
