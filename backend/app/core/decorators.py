"""Core Decorators

실행 시간 로깅 데코레이터 (재계획, 저장 왕복 측정용)
"""

import inspect
import time
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from backend.app.core.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def log_execution_time(
    description: Optional[str] = None,
) -> Callable[[F], F]:
    """실행 시간 로깅 데코레이터

    성공 시 debug, 실패 시 error 레벨로 소요 시간을 남기고 예외는 그대로 전파한다.

    Args:
        description: 로그 설명

    Example:
        @log_execution_time("Full re-plan")
        def schedule_all(self) -> dict[str, AutoPlanResult]:
            ...
    """

    def decorator(func: F) -> F:
        desc = description or func.__name__

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{desc} failed",
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    error=str(e),
                )
                raise
            logger.debug(
                f"{desc} completed",
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{desc} failed",
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    error=str(e),
                )
                raise
            logger.debug(
                f"{desc} completed",
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
