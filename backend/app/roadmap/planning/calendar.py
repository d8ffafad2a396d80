"""Week Calendar

주차 번호와 스프린트 코드 매핑. 0번 주차는 첫 스프린트 시작일(없으면 DEFAULT_WEEK0)이다.
"""

from datetime import date, timedelta
from typing import Optional, Sequence

from backend.app.core.config import settings
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import Sprint

logger = get_logger(__name__)


def parse_day(value: str) -> Optional[date]:
    """YYYY-MM-DD 또는 ISO datetime 문자열의 날짜 부분"""
    try:
        return date.fromisoformat(value.split("T")[0][:10])
    except (ValueError, AttributeError):
        return None


def week_zero(sprints: Sequence[Sprint]) -> date:
    if sprints:
        first = parse_day(sprints[0].start)
        if first is not None:
            return first
        logger.warning("Invalid sprint start date", code=sprints[0].code, start=sprints[0].start)
    return date.fromisoformat(settings.DEFAULT_WEEK0)


def week_start(week_index: int, week0: date) -> date:
    return week0 + timedelta(days=7 * week_index)


def sprint_for_week(
    week_index: int,
    sprints: Sequence[Sprint],
    week0: Optional[date] = None,
) -> Optional[str]:
    """0-based 주차가 속한 스프린트 코드"""
    day = week_start(week_index, week0 or week_zero(sprints))
    for sprint in sprints:
        start, end = parse_day(sprint.start), parse_day(sprint.end)
        if start is None or end is None:
            continue
        if start <= day <= end:
            return sprint.code
    return None


def sprints_between(
    start_week: Optional[int],
    end_week: Optional[int],
    sprints: Sequence[Sprint],
) -> list[str]:
    """1-based [start_week, end_week] 구간에 걸친 스프린트 코드 (순서 유지, 중복 제거)"""
    if not start_week or not end_week or not sprints:
        return []
    week0 = week_zero(sprints)
    codes: list[str] = []
    for week_index in range(start_week - 1, end_week):
        code = sprint_for_week(week_index, sprints, week0)
        if code and code not in codes:
            codes.append(code)
    return codes
