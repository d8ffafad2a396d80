"""Dependency Graph Manager

작업 → 블로커 작업 간선과 작업 → 블로킹 주차 관계를 관리한다.
blockerIds를 바꾸는 것은 이 클래스뿐이며, 순환을 만드는 간선은 거부한다.
"""

from backend.app.core.errors import ErrorCode, ValidationError
from backend.app.core.logging import get_logger
from backend.app.roadmap.models import TaskRow
from backend.app.roadmap.store.row_model import RowModel

logger = get_logger(__name__)


class DependencyGraphManager:
    """블로커 그래프 관리자"""

    def __init__(self, row_model: RowModel):
        self._rows = row_model

    def blocker_graph(self) -> dict[str, list[str]]:
        """현재 그래프 (task_id → 블로커 id 목록)"""
        return {task.id: list(task.blocker_ids) for task in self._rows.tasks()}

    @staticmethod
    def has_cycle(graph: dict[str, list[str]]) -> bool:
        """순환 의존성 검사 (DFS)

        재귀 대신 명시적 스택을 써서 긴 블로커 체인에서도 깊이 제한이 없다.

        Args:
            graph: 인접 리스트

        Returns:
            순환 있으면 True
        """
        visited: set[str] = set()
        rec_stack: set[str] = set()

        for root in graph:
            if root in visited:
                continue

            visited.add(root)
            rec_stack.add(root)
            stack = [(root, iter(graph.get(root, [])))]

            while stack:
                node, neighbors = stack[-1]
                advanced = False
                for neighbor in neighbors:
                    if neighbor in rec_stack:
                        return True
                    if neighbor not in visited:
                        visited.add(neighbor)
                        rec_stack.add(neighbor)
                        stack.append((neighbor, iter(graph.get(neighbor, []))))
                        advanced = True
                        break
                if not advanced:
                    rec_stack.discard(node)
                    stack.pop()

        return False

    def can_set_blocker(self, task_id: str, blocker_id: str) -> bool:
        """task_id가 blocker_id에 막히도록 해도 되는지

        현재 그래프에 제안된 간선을 더해 매번 새로 검사한다.
        """
        if task_id == blocker_id:
            return False

        graph = self.blocker_graph()
        edges = graph.setdefault(task_id, [])
        if blocker_id not in edges:
            edges.append(blocker_id)
        return not self.has_cycle(graph)

    def add_blocker(self, task_id: str, blocker_id: str) -> bool:
        """블로커 추가

        Returns:
            추가했으면 True, 이미 있으면 False

        Raises:
            ValidationError: 자기 자신, 작업이 아닌 행, 순환
        """
        task = self._rows.get_task(task_id)
        blocker = self._rows.get(blocker_id)
        if not isinstance(blocker, TaskRow):
            raise ValidationError(
                ErrorCode.BLOCKER_NOT_TASK,
                details={"task_id": task_id, "blocker_id": blocker_id},
            )
        if task_id == blocker_id:
            raise ValidationError(ErrorCode.BLOCKER_SELF, details={"task_id": task_id})
        if blocker_id in task.blocker_ids:
            return False

        if not self.can_set_blocker(task_id, blocker_id):
            logger.warning("Blocker rejected: cycle", task_id=task_id, blocker_id=blocker_id)
            raise ValidationError(
                ErrorCode.BLOCKER_CYCLE,
                details={"task_id": task_id, "blocker_id": blocker_id},
            )

        self._rows.set_field(task_id, "blocker_ids", task.blocker_ids + [blocker_id])
        logger.info("Blocker added", task_id=task_id, blocker_id=blocker_id)
        return True

    def remove_blocker(self, task_id: str, blocker_id: str) -> bool:
        task = self._rows.get_task(task_id)
        if blocker_id not in task.blocker_ids:
            return False
        self._rows.set_field(
            task_id,
            "blocker_ids",
            [b for b in task.blocker_ids if b != blocker_id],
        )
        logger.info("Blocker removed", task_id=task_id, blocker_id=blocker_id)
        return True

    def add_week_blocker(self, task_id: str, week: int) -> bool:
        """블로킹 주차 추가 (1-based, 작업은 그 주 이후에 시작)"""
        task = self._rows.get_task(task_id)
        if not 1 <= week <= self._rows.week_count:
            raise ValidationError(
                ErrorCode.WEEK_OUT_OF_RANGE,
                details={"task_id": task_id, "week": week},
            )
        if week in task.week_blockers:
            return False
        self._rows.set_field(task_id, "week_blockers", task.week_blockers + [week])
        logger.info("Week blocker added", task_id=task_id, week=week)
        return True

    def remove_week_blocker(self, task_id: str, week: int) -> bool:
        task = self._rows.get_task(task_id)
        if week not in task.week_blockers:
            return False
        self._rows.set_field(
            task_id,
            "week_blockers",
            [w for w in task.week_blockers if w != week],
        )
        logger.info("Week blocker removed", task_id=task_id, week=week)
        return True

    def dependents(self, task_id: str) -> list[str]:
        """task_id를 블로커로 가진 작업"""
        return [t.id for t in self._rows.tasks() if task_id in t.blocker_ids]

    def detach(self, task_id: str) -> list[str]:
        """삭제 전에 다른 작업의 blockerIds에서 task_id 제거"""
        affected = self.dependents(task_id)
        for dependent_id in affected:
            self.remove_blocker(dependent_id, task_id)
        return affected

    def topological_order(self) -> list[TaskRow]:
        """블로커가 먼저 오는 작업 순서 (Kahn's algorithm, 같은 단계는 행 순서)

        적재된 데이터에 순환이 남아 있으면 나머지 작업을 행 순서대로 뒤에 붙인다.
        """
        tasks = self._rows.tasks()
        task_map = {t.id: t for t in tasks}

        in_degree: dict[str, int] = {t.id: 0 for t in tasks}
        blocked_by: dict[str, list[str]] = {t.id: [] for t in tasks}
        for task in tasks:
            for blocker_id in task.blocker_ids:
                if blocker_id in task_map and blocker_id != task.id:
                    blocked_by[blocker_id].append(task.id)
                    in_degree[task.id] += 1

        queue = [t.id for t in tasks if in_degree[t.id] == 0]
        result_ids: list[str] = []
        while queue:
            current = queue.pop(0)
            result_ids.append(current)
            for dependent in blocked_by[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(result_ids) < len(tasks):
            placed = set(result_ids)
            leftover = [t.id for t in tasks if t.id not in placed]
            logger.warning("Blocker cycle in loaded data", task_ids=leftover)
            result_ids.extend(leftover)

        return [task_map[task_id] for task_id in result_ids]
