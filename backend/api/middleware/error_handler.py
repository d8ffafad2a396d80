"""Error Handler

PlannerError를 {"success": false, "error": {...}} 응답으로 변환
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.core.errors import ErrorCode, PlannerError
from backend.app.core.logging import get_logger

logger = get_logger(__name__)


def status_code_for(error_code: ErrorCode) -> int:
    """에러 코드에 따른 HTTP 상태 코드"""
    code_value = error_code.value

    # E1xxx: 검증 에러 (400, 404)
    if code_value.startswith("E1"):
        if error_code == ErrorCode.ROW_NOT_FOUND:
            return 404
        return 400

    # E2xxx: 버전 충돌 (409)
    if code_value.startswith("E2"):
        return 409

    # E3xxx: 저장 서버 에러 (502)
    if code_value.startswith("E3"):
        return 502

    # E4xxx: 확인 요청 에러 (404, 410)
    if code_value.startswith("E4"):
        if error_code == ErrorCode.CONFIRMATION_EXPIRED:
            return 410
        return 404

    # E5xxx: 내부 에러 (500)
    return 500


def setup_error_handlers(app: FastAPI) -> None:
    """에러 핸들러 설정

    Args:
        app: FastAPI 앱
    """

    @app.exception_handler(PlannerError)
    async def planner_error_handler(
        request: Request,
        exc: PlannerError,
    ) -> JSONResponse:
        """PlannerError 핸들러"""
        status_code = status_code_for(exc.code)
        log = logger.warning if status_code < 500 else logger.error
        log(
            "Planner error",
            error_code=exc.code.value,
            message=exc.message,
            path=request.url.path,
        )

        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error": exc.to_detail().model_dump(),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """일반 예외 핸들러"""
        logger.exception("Unhandled exception", path=request.url.path, error=str(exc))

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": "Internal server error",
                },
            },
        )
