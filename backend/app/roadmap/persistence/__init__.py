"""Persistence Package

디바운스 자동 저장과 저장 서버 전송
"""

from .coordinator import PersistenceCoordinator
from .transport import HttpRoadmapTransport, RoadmapTransport, parse_server_version

__all__ = [
    "HttpRoadmapTransport",
    "PersistenceCoordinator",
    "RoadmapTransport",
    "parse_server_version",
]
