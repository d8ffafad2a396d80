"""행 순서 유지 테스트

위치: backend.app.roadmap.ordering.order_maintainer
"""

import pytest

from backend.app.core.errors import ErrorCode, ValidationError
from backend.app.roadmap.models import DropSide, ResourceRow, RowKind, TaskRow
from backend.app.roadmap.ordering import (
    OrderMaintainer,
    compute_links,
    move_id,
    order_from_links,
)
from backend.app.roadmap.store import RowModel


@pytest.fixture
def row_model():
    """작업 A, B, C와 리소스 R"""
    model = RowModel(week_count=4)
    for task_id in ("A", "B", "C"):
        model.add_row(model.new_row(RowKind.TASK, id=task_id))
    model.add_row(model.new_row(RowKind.RESOURCE, id="R"))
    return model


class TestOrderHelpers:
    """순서 계산 함수"""

    def test_compute_links(self):
        links = compute_links(["A", "B", "C"])

        assert links == {
            "A": (None, "B"),
            "B": ("A", "C"),
            "C": ("B", None),
        }

    def test_move_top(self):
        assert move_id(["A", "B", "C"], "C", "A", DropSide.TOP) == ["C", "A", "B"]

    def test_move_bottom(self):
        assert move_id(["A", "B", "C"], "A", "B", DropSide.BOTTOM) == ["B", "A", "C"]
        assert move_id(["A", "B", "C"], "A", "C", DropSide.BOTTOM) == ["B", "C", "A"]

    def test_order_from_links(self):
        rows = [
            TaskRow(id="B", prev_id="C", next_id=None),
            TaskRow(id="A", prev_id=None, next_id="C"),
            TaskRow(id="C", prev_id="A", next_id="B"),
        ]
        assert order_from_links(rows) == ["A", "C", "B"]

    def test_order_without_links_uses_display_order(self):
        rows = [
            TaskRow(id="A", display_order=2),
            TaskRow(id="B"),
            TaskRow(id="C", display_order=1),
        ]
        assert order_from_links(rows) == ["C", "A", "B"]

    def test_broken_chain_keeps_every_row(self):
        """끊어진 체인/순환도 행을 잃지 않는다"""
        rows = [
            TaskRow(id="A", prev_id=None, next_id="B"),
            TaskRow(id="B", prev_id="A", next_id=None),
            TaskRow(id="X", prev_id="Y", next_id="Y"),
            TaskRow(id="Y", prev_id="X", next_id="X"),
        ]
        order = order_from_links(rows)

        assert order[:2] == ["A", "B"]
        assert sorted(order) == ["A", "B", "X", "Y"]


class TestOrderMaintainer:
    """드래그 재정렬"""

    def test_initial_links(self, row_model):
        a, b, c = (row_model.get(i) for i in ("A", "B", "C"))

        assert (a.prev_id, a.next_id) == (None, "B")
        assert (b.prev_id, b.next_id) == ("A", "C")
        assert (c.prev_id, c.next_id) == ("B", None)

    def test_drag_c_above_a(self, row_model):
        """C를 A 위로 → [C, A, B], 다시 적재해도 같은 순서"""
        changes = OrderMaintainer(row_model).reorder("C", "A", DropSide.TOP)

        assert row_model.order(RowKind.TASK) == ["C", "A", "B"]
        assert changes
        assert row_model.get("C").prev_id is None
        assert row_model.get("C").next_id == "A"
        assert row_model.get("A").prev_id == "C"
        assert row_model.get("B").next_id is None

        reloaded = RowModel(week_count=4)
        reloaded.load(row_model.snapshot())
        assert reloaded.order(RowKind.TASK) == ["C", "A", "B"]

    def test_only_changed_links_reported(self, row_model):
        changes = OrderMaintainer(row_model).reorder("C", "A", DropSide.TOP)

        for change in changes:
            assert change.old_value != change.new_value
        # A.next_id(B)는 그대로
        assert ("A", "next_id") not in {(c.row_id, c.field) for c in changes}

    def test_drop_on_self_is_noop(self, row_model):
        assert OrderMaintainer(row_model).reorder("B", "B", DropSide.TOP) == []
        assert row_model.order(RowKind.TASK) == ["A", "B", "C"]

    def test_drop_in_place_is_noop(self, row_model):
        """B를 A 아래로 → 순서 그대로"""
        assert OrderMaintainer(row_model).reorder("B", "A", DropSide.BOTTOM) == []

    def test_kind_mismatch_rejected(self, row_model):
        with pytest.raises(ValidationError) as exc_info:
            OrderMaintainer(row_model).reorder("R", "A", DropSide.TOP)

        assert exc_info.value.code == ErrorCode.REORDER_KIND_MISMATCH
        assert row_model.order(RowKind.TASK) == ["A", "B", "C"]

    def test_resource_chain_independent(self, row_model):
        row_model.add_row(ResourceRow(id="R2", weeks=[0.0] * 4), anchor_id="R", side=DropSide.TOP)

        assert row_model.order(RowKind.RESOURCE) == ["R2", "R"]
        assert row_model.get("R2").next_id == "R"
        assert row_model.get("A").prev_id is None
