"""Persistence Transport

저장 서버와의 통신. 부분 변경을 보내고 새 버전 또는 충돌을 받는다.

Endpoints:
    GET /api/v1/version  → {"version": n, ...}
    GET /api/v1/data     → 전체 스냅샷
    PUT /api/v1/data     → {version, success, error?}
"""

import re
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from backend.app.core.config import settings
from backend.app.core.errors import ConcurrencyError, ErrorCode, TransportError
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import RoadmapSnapshot, SaveRequest, SaveResponse

logger = get_logger(__name__)

VERSION_CONFLICT_PREFIX = "Version conflict"
_SERVER_VERSION = re.compile(r"server version (\d+)")


class RoadmapTransport(Protocol):
    """저장 서버 인터페이스"""

    async def save(self, request: SaveRequest) -> SaveResponse:
        ...

    async def get_version(self) -> int:
        ...

    async def fetch_data(self) -> RoadmapSnapshot:
        ...


def parse_server_version(message: Optional[str]) -> Optional[int]:
    """충돌 메시지에서 서버 버전 추출"""
    if not message:
        return None
    match = _SERVER_VERSION.search(message)
    return int(match.group(1)) if match else None


class HttpRoadmapTransport:
    """httpx 기반 전송"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.ROADMAP_API_URL,
            timeout=timeout or settings.HTTP_TIMEOUT_SEC,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Persistence request failed", method=method, url=url, error=str(e))
            raise TransportError(
                ErrorCode.TRANSPORT_FAILED,
                details={"method": method, "url": url, "error": str(e)},
            ) from e

    @staticmethod
    def _body(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _raise_for_status(self, response: httpx.Response, body: dict[str, Any]) -> None:
        if not response.is_error:
            return
        raise TransportError(
            ErrorCode.SAVE_REJECTED,
            message=body.get("error") or f"HTTP {response.status_code}",
            details={"status_code": response.status_code},
        )

    async def save(self, request: SaveRequest) -> SaveResponse:
        """부분 변경 저장

        Raises:
            ConcurrencyError: 버전 충돌 (HTTP 409)
            TransportError: 네트워크 오류, 그 밖의 non-2xx, success=false
        """
        response = await self._request("PUT", "/api/v1/data", json=request.to_payload())
        body = self._body(response)
        error = body.get("error")

        if response.status_code == 409 or (
            isinstance(error, str) and error.startswith(VERSION_CONFLICT_PREFIX)
        ):
            raise ConcurrencyError(
                message=error,
                server_version=parse_server_version(error),
            )
        self._raise_for_status(response, body)

        try:
            result = SaveResponse.model_validate(body)
        except PydanticValidationError as e:
            raise self._malformed(response, e) from e
        if not result.success:
            raise TransportError(ErrorCode.SAVE_REJECTED, message=result.error)
        if "version" not in body:
            raise self._malformed(response, ValueError("version missing"))
        return result

    async def get_version(self) -> int:
        response = await self._request("GET", "/api/v1/version")
        body = self._body(response)
        self._raise_for_status(response, body)
        try:
            return int(body["version"])
        except (KeyError, TypeError, ValueError) as e:
            raise self._malformed(response, e) from e

    @staticmethod
    def _malformed(response: httpx.Response, error: Exception) -> TransportError:
        logger.error(
            "Malformed persistence response",
            url=str(response.request.url),
            status_code=response.status_code,
            error=str(error),
        )
        return TransportError(
            ErrorCode.SAVE_REJECTED,
            message=f"Malformed response (HTTP {response.status_code})",
            details={"status_code": response.status_code},
        )

    async def fetch_data(self) -> RoadmapSnapshot:
        response = await self._request("GET", "/api/v1/data")
        body = self._body(response)
        self._raise_for_status(response, body)
        return RoadmapSnapshot.model_validate(body)
