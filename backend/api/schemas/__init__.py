"""API Schemas

API 요청/응답 스키마
"""

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
    ErrorResponse,
    HealthResponse,
    OverloadResponse,
    ReorderResponse,
    RowResponse,
)

__all__ = [
    # Request
    "AddRowRequest",
    "AutoPlanToggleRequest",
    "ConfirmationAnswerRequest",
    "ReorderRequest",
    "UpdateFieldRequest",
    "WeekValueRequest",
    # Response
    "AutoPlanToggleResponse",
    "ConfirmationAnswerResponse",
    "ErrorResponse",
    "HealthResponse",
    "OverloadResponse",
    "ReorderResponse",
    "RowResponse",
]
