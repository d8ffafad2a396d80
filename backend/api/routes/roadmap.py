"""Roadmap Routes

그리드 편집 API 엔드포인트. 모든 편집은 RoadmapSession을 거쳐
변경 추적과 자동 저장으로 이어진다.
"""

from typing import Any

from fastapi import APIRouter, Depends

from backend.api.schemas.request import (
    AddRowRequest,
    AutoPlanToggleRequest,
    ConfirmationAnswerRequest,
    ReorderRequest,
    UpdateFieldRequest,
    WeekValueRequest,
)
from backend.api.schemas.response import (
    AutoPlanToggleResponse,
    ConfirmationAnswerResponse,
    OverloadResponse,
    ReorderResponse,
    RowResponse,
)
from backend.app.core.logging import get_logger
from backend.app.roadmap.session import RoadmapSession, get_roadmap_session

router = APIRouter(prefix="/roadmap", tags=["Roadmap"])
logger = get_logger(__name__)


# ── Snapshot / Save ──


@router.get("")
async def get_roadmap(
    session: RoadmapSession = Depends(get_roadmap_session),
) -> dict[str, Any]:
    """전체 스냅샷 (camelCase 와이어 포맷)"""
    return session.snapshot().to_wire()


@router.get("/save-status")
async def get_save_status(
    session: RoadmapSession = Depends(get_roadmap_session),
) -> dict[str, Any]:
    """자동 저장 상태 {isSaving, lastSaved, error, hasUnsavedChanges}"""
    return session.save_state.to_wire()


@router.post("/save")
async def save_now(
    session: RoadmapSession = Depends(get_roadmap_session),
) -> dict[str, Any]:
    """디바운스를 건너뛰고 즉시 저장"""
    state = await session.force_save()
    return state.to_wire()


# ── Rows ──


@router.post("/rows", response_model=RowResponse)
async def add_row(
    request: AddRowRequest,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    """행 추가"""
    row = session.add_row(
        request.kind,
        anchor_id=request.anchor_id,
        side=request.side,
        **request.fields,
    )
    return RowResponse(row=row.to_wire())


@router.post("/rows/{row_id}/duplicate", response_model=RowResponse)
async def duplicate_row(
    row_id: str,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    """행 복제 (원본 바로 아래)"""
    row = session.duplicate_row(row_id)
    return RowResponse(row=row.to_wire())


@router.delete("/rows/{row_id}", response_model=RowResponse)
async def delete_row(
    row_id: str,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    """행 삭제"""
    row = session.delete_row(row_id)
    return RowResponse(row=row.to_wire())


@router.patch("/rows/{row_id}", response_model=RowResponse)
async def update_field(
    row_id: str,
    request: UpdateFieldRequest,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    """일반 필드 편집"""
    row = session.update_field(row_id, request.field, request.value)
    return RowResponse(row=row.to_wire())


@router.put("/tasks/{task_id}/weeks/{week}", response_model=RowResponse)
async def edit_task_week(
    task_id: str,
    week: int,
    request: WeekValueRequest,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    """작업 주차 셀 편집 (Auto면 Manual로 전환)"""
    row = session.edit_task_week(task_id, week, request.value)
    return RowResponse(row=row.to_wire())


@router.put("/resources/{resource_id}/weeks/{week}", response_model=RowResponse)
async def edit_resource_week(
    resource_id: str,
    week: int,
    request: WeekValueRequest,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    """리소스 가용 인원 셀 편집"""
    row = session.edit_resource_week(resource_id, week, request.value)
    return RowResponse(row=row.to_wire())


@router.post("/reorder", response_model=ReorderResponse)
async def reorder(
    request: ReorderRequest,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> ReorderResponse:
    """드래그 재정렬"""
    changes = session.reorder(request.dragged_id, request.target_id, request.side)
    return ReorderResponse(changes=[change.to_wire() for change in changes])


# ── Blockers ──


@router.post("/tasks/{task_id}/blockers/{blocker_id}", response_model=RowResponse)
async def add_blocker(
    task_id: str,
    blocker_id: str,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    """선행 작업 추가 (순환이면 거부)"""
    row = session.add_blocker(task_id, blocker_id)
    return RowResponse(row=row.to_wire())


@router.delete("/tasks/{task_id}/blockers/{blocker_id}", response_model=RowResponse)
async def remove_blocker(
    task_id: str,
    blocker_id: str,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    row = session.remove_blocker(task_id, blocker_id)
    return RowResponse(row=row.to_wire())


@router.post("/tasks/{task_id}/week-blockers/{week}", response_model=RowResponse)
async def add_week_blocker(
    task_id: str,
    week: int,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    """주차 블로커 추가 (해당 주차 이후로 계획)"""
    row = session.add_week_blocker(task_id, week)
    return RowResponse(row=row.to_wire())


@router.delete("/tasks/{task_id}/week-blockers/{week}", response_model=RowResponse)
async def remove_week_blocker(
    task_id: str,
    week: int,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> RowResponse:
    row = session.remove_week_blocker(task_id, week)
    return RowResponse(row=row.to_wire())


# ── Auto plan ──


@router.put("/tasks/{task_id}/auto-plan", response_model=AutoPlanToggleResponse)
async def set_auto_plan(
    task_id: str,
    request: AutoPlanToggleRequest,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> AutoPlanToggleResponse:
    """Auto 토글

    수동 계획을 버려야 하면 Auto를 켜지 않고 확인 요청을 돌려준다.
    """
    confirmation = session.set_auto_plan(task_id, request.enabled)
    task = session.rows.get_task(task_id)
    return AutoPlanToggleResponse(
        task_id=task_id,
        auto_plan_enabled=task.auto_plan_enabled,
        confirmation=confirmation.to_wire() if confirmation else None,
    )


@router.post("/confirmations/{request_id}", response_model=ConfirmationAnswerResponse)
async def answer_confirmation(
    request_id: str,
    request: ConfirmationAnswerRequest,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> ConfirmationAnswerResponse:
    """확인 요청 응답 (승인 시 Auto 켜고 재계획)"""
    pending = session.confirmations.get_request(request_id)
    session.resolve_confirmation(request_id, request.accepted)
    task = session.rows.get_task(pending.task_id)
    return ConfirmationAnswerResponse(
        request_id=request_id,
        accepted=request.accepted,
        row=task.to_wire(),
    )


# ── Overload ──


@router.get("/resources/{resource_id}/overload", response_model=OverloadResponse)
async def get_overload(
    resource_id: str,
    session: RoadmapSession = Depends(get_roadmap_session),
) -> OverloadResponse:
    """리소스 주차별 과부하 여부"""
    return OverloadResponse(resource_id=resource_id, weeks=session.overload(resource_id))
