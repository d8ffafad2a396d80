"""Persistence Coordinator

변경을 디바운스해 한 번의 저장으로 묶고, 서버 버전을 추적한다.

상태: idle → pending_debounce → saving → (idle | error)

- 변경이 들어올 때마다 디바운스 타이머를 다시 건다. 마지막 예약만 살아남는다.
- 저장 요청은 한 번에 하나만 나간다.
- 성공하면 보낸 스냅샷까지의 변경만 지운다. 그 사이에 들어온 변경은 다음 저장으로 간다.
- 실패하면 변경을 그대로 두고 error 상태가 된다. force_save로 즉시 재시도할 수 있다.
- 버전 충돌 뒤에는 다음 저장 전에 서버 버전을 다시 읽는다.
"""

import asyncio
import contextlib
from datetime import datetime
from typing import Callable, Optional

from backend.app.core.config import settings
from backend.app.core.decorators import log_execution_time
from backend.app.core.errors import ConcurrencyError, ErrorCode, SystemError, TransportError
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import (
    AutoSaveState,
    ChangeLog,
    SaveRequest,
    SaveResponse,
    SaveStatus,
)
from backend.app.roadmap.models.changes import utcnow
from backend.app.roadmap.persistence.transport import RoadmapTransport
from backend.app.roadmap.tracking.change_tracker import ChangeTracker

logger = get_logger(__name__)


class PersistenceCoordinator:
    """디바운스 자동 저장"""

    def __init__(
        self,
        tracker: ChangeTracker,
        transport: RoadmapTransport,
        user_id: Optional[str] = None,
        delay_ms: Optional[int] = None,
        version: int = 0,
        enabled: Optional[bool] = None,
        on_save_success: Optional[Callable[[int], None]] = None,
        on_save_error: Optional[Callable[[str], None]] = None,
    ):
        self._tracker = tracker
        self._transport = transport
        self.user_id = user_id or settings.USER_ID
        self.delay_sec = (settings.AUTOSAVE_DELAY_MS if delay_ms is None else delay_ms) / 1000
        self.enabled = settings.AUTOSAVE_ENABLED if enabled is None else enabled
        self.version = version
        self._on_save_success = on_save_success
        self._on_save_error = on_save_error

        self._status = SaveStatus.IDLE
        self._error: Optional[str] = None
        self._last_saved: Optional[datetime] = None
        self._stale_version = False
        self._timer: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    # === State ===

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def state(self) -> AutoSaveState:
        return AutoSaveState(
            is_saving=self._status == SaveStatus.SAVING,
            last_saved=self._last_saved,
            error=self._error,
            has_unsaved_changes=self._tracker.has_unsaved_changes,
            status=self._status,
            version=self.version,
        )

    # === Triggers ===

    def notify_change(self) -> None:
        """추적된 변경 알림 (ChangeTracker on_change)"""
        if self._status == SaveStatus.SAVING:
            # 진행 중인 저장이 끝나면 남은 변경으로 다시 예약된다
            return
        if not self.enabled:
            return
        self._schedule()

    async def force_save(self) -> AutoSaveState:
        """타이머를 취소하고 즉시 저장"""
        if self._status != SaveStatus.SAVING:
            self._cancel_timer()
        await self._save()
        return self.state

    async def save_change_log(self, change_log: ChangeLog) -> AutoSaveState:
        """추적기를 거치지 않은 변경 로그(스냅샷 diff) 저장

        진행 중인 저장이 있으면 끝날 때까지 기다렸다가 그 버전으로 보낸다.
        """
        if self._status != SaveStatus.SAVING:
            self._cancel_timer()
        async with self._lock:
            await self._send(change_log, watermark=None, from_tracker=False)
        return self.state

    async def flush(self) -> None:
        """예약/진행 중인 디바운스 저장이 끝날 때까지 대기"""
        while self._timer is not None and not self._timer.done():
            with contextlib.suppress(asyncio.CancelledError):
                await self._timer

    async def close(self) -> None:
        self._cancel_timer()

    # === Internal ===

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, autosave deferred")
            return
        self._cancel_timer()
        self._status = SaveStatus.PENDING_DEBOUNCE
        self._timer = loop.create_task(self._debounced())

    def _cancel_timer(self) -> None:
        timer = self._timer
        if timer is None or timer.done() or timer is asyncio.current_task():
            return
        timer.cancel()
        self._timer = None
        if self._status == SaveStatus.PENDING_DEBOUNCE:
            self._status = SaveStatus.IDLE

    async def _debounced(self) -> None:
        await asyncio.sleep(self.delay_sec)
        await self._save()

    async def _save(self) -> None:
        async with self._lock:
            snapshot = self._tracker.snapshot()
            await self._send(snapshot.change_log, snapshot.watermark, from_tracker=True)

    async def _send(
        self,
        change_log: ChangeLog,
        watermark: Optional[int],
        from_tracker: bool,
    ) -> None:
        if change_log.is_empty:
            if from_tracker:
                self._tracker.clear_changes(watermark)
            if self._status != SaveStatus.ERROR:
                self._status = SaveStatus.IDLE
            return

        self._status = SaveStatus.SAVING
        try:
            if self._stale_version:
                self.version = await self._transport.get_version()
                self._stale_version = False
                logger.info("Server version refreshed", version=self.version)
            request = SaveRequest.from_change_log(change_log, self.version, self.user_id)
            response = await self._round_trip(request)
        except ConcurrencyError as e:
            self._stale_version = True
            self._fail(e.message, from_tracker)
            return
        except TransportError as e:
            self._fail(e.message, from_tracker)
            return
        except asyncio.CancelledError:
            # close() 중 취소: 변경은 남기고 상태만 되돌린다
            if from_tracker:
                self._tracker.release_snapshot()
            self._status = SaveStatus.IDLE
            raise
        except Exception as e:
            self._fail(str(e), from_tracker)
            raise SystemError(ErrorCode.INTERNAL_ERROR, message=str(e)) from e

        self.version = response.version
        self._last_saved = utcnow()
        self._error = None
        if from_tracker:
            self._tracker.clear_changes(watermark)
        self._status = SaveStatus.IDLE
        logger.info(
            "Changes saved",
            version=self.version,
            kinds=sorted(k for k in change_log.to_payload() if k != "deleted"),
        )
        if self._on_save_success is not None:
            self._on_save_success(self.version)

        if self._tracker.has_unsaved_changes and self.enabled:
            self._schedule()

    @log_execution_time("Save round-trip")
    async def _round_trip(self, request: SaveRequest) -> SaveResponse:
        return await self._transport.save(request)

    def _fail(self, message: str, from_tracker: bool) -> None:
        if from_tracker:
            self._tracker.release_snapshot()
        self._status = SaveStatus.ERROR
        self._error = message
        logger.error("Save failed", error=message, version=self.version)
        if self._on_save_error is not None:
            self._on_save_error(message)
