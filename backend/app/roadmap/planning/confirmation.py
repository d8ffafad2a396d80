"""Confirmation Manager

사용자 확인(yes/no) 요청을 보관하고 응답을 받는다. 요청을 만든 쪽은 결과를
동기적으로 기다리지 않고, 응답이 submit_response로 들어올 때 이어서 처리한다.
"""

from typing import Optional

from backend.app.core.config import settings
from backend.app.core.errors import ConfirmationError, ErrorCode
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import ConfirmationRequest, ConfirmationResponse

logger = get_logger(__name__)


class ConfirmationManager:
    """확인 요청 관리자 (작업당 대기 요청은 하나)"""

    def __init__(self, timeout_sec: Optional[int] = None):
        self.timeout_sec = timeout_sec or settings.CONFIRMATION_TIMEOUT_SEC
        # request_id → ConfirmationRequest
        self._pending: dict[str, ConfirmationRequest] = {}

    def create_request(
        self,
        task_id: str,
        message: str,
        current_weeks: list[float],
        proposed_weeks: list[float],
    ) -> ConfirmationRequest:
        """확인 요청 생성 (같은 작업의 이전 요청은 대체)"""
        self.cancel_for_task(task_id)

        request = ConfirmationRequest(
            task_id=task_id,
            message=message,
            current_weeks=current_weeks,
            proposed_weeks=proposed_weeks,
            timeout_sec=self.timeout_sec,
        )
        self._pending[request.request_id] = request

        logger.info(
            "Confirmation requested",
            request_id=request.request_id,
            task_id=task_id,
        )
        return request

    def get_request(self, request_id: str) -> ConfirmationRequest:
        """대기 중인 요청 조회

        Raises:
            ConfirmationError: 없거나 만료됨 (만료된 요청은 제거)
        """
        request = self._pending.get(request_id)
        if request is None:
            raise ConfirmationError(
                ErrorCode.CONFIRMATION_NOT_FOUND,
                details={"request_id": request_id},
            )
        if request.is_expired():
            del self._pending[request_id]
            logger.warning("Confirmation expired", request_id=request_id)
            raise ConfirmationError(
                ErrorCode.CONFIRMATION_EXPIRED,
                details={"request_id": request_id},
            )
        return request

    def get_pending_for_task(self, task_id: str) -> Optional[ConfirmationRequest]:
        for request in self._pending.values():
            if request.task_id == task_id and not request.is_expired():
                return request
        return None

    def pending_requests(self) -> list[ConfirmationRequest]:
        return [r for r in self._pending.values() if not r.is_expired()]

    def submit_response(self, request_id: str, accepted: bool) -> ConfirmationResponse:
        """응답 제출 (요청은 소비됨)"""
        request = self.get_request(request_id)
        del self._pending[request_id]

        response = ConfirmationResponse(
            request_id=request_id,
            task_id=request.task_id,
            accepted=accepted,
        )
        logger.info(
            "Confirmation answered",
            request_id=request_id,
            task_id=request.task_id,
            accepted=accepted,
        )
        return response

    def cancel_for_task(self, task_id: str) -> bool:
        """작업의 대기 요청 취소 (작업 삭제, 요청 대체 시)"""
        stale = [rid for rid, r in self._pending.items() if r.task_id == task_id]
        for request_id in stale:
            del self._pending[request_id]
            logger.info("Confirmation cancelled", request_id=request_id, task_id=task_id)
        return bool(stale)
