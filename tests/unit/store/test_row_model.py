"""RowModel 테스트

위치: backend.app.roadmap.store.row_model
"""

import pytest

from backend.app.core.errors import ErrorCode, ValidationError
from backend.app.roadmap.models import (
    DropSide,
    EntityKind,
    RoadmapSnapshot,
    RowKind,
    Sprint,
    TaskRow,
)
from backend.app.roadmap.store import RowModel, RowModelListener, normalize_weeks


class RecordingListener(RowModelListener):
    """받은 이벤트를 기록"""

    def __init__(self):
        self.events = []

    def on_cell_change(self, kind, row_id, field, old_value, new_value):
        self.events.append(("cell", kind, row_id, field, old_value, new_value))

    def on_row_add(self, kind, row_id):
        self.events.append(("add", kind, row_id))

    def on_row_delete(self, kind, row_id):
        self.events.append(("delete", kind, row_id))

    def on_reorder(self, kind, changes):
        self.events.append(("reorder", kind, len(changes)))


@pytest.fixture
def loaded_model(sample_snapshot_data, week_count):
    model = RowModel(week_count=week_count)
    model.load(RoadmapSnapshot.model_validate(sample_snapshot_data))
    return model


@pytest.fixture
def listener(loaded_model):
    recorder = RecordingListener()
    loaded_model.add_listener(recorder)
    return recorder


class TestLoad:
    """적재"""

    def test_load_is_silent(self, sample_snapshot_data, week_count):
        model = RowModel(week_count=week_count)
        recorder = RecordingListener()
        model.add_listener(recorder)

        model.load(RoadmapSnapshot.model_validate(sample_snapshot_data))

        assert recorder.events == []
        assert model.order(RowKind.TASK) == ["t-1", "t-2"]
        assert model.version == 1
        assert [s.code for s in model.sprints] == ["Q3S1", "Q3S2"]

    def test_weeks_resized(self, week_count):
        snapshot = RoadmapSnapshot(tasks=[TaskRow(id="t", weeks=[1.0, 2.0])])
        model = RowModel(week_count=week_count)
        model.load(snapshot)

        assert model.get("t").weeks == [1.0, 2.0] + [0.0] * (week_count - 2)

    def test_normalize_weeks(self):
        assert normalize_weeks([1.0, 2.0, 3.0], 2) == [1.0, 2.0]
        assert normalize_weeks([1.0], 3) == [1.0, 0.0, 0.0]

    def test_snapshot_is_deep_copy(self, loaded_model):
        snapshot = loaded_model.snapshot()
        snapshot.tasks[0].weeks[0] = 9.0

        assert loaded_model.get("t-1").weeks[0] == 0.0


class TestSetField:
    """필드 변경"""

    def test_change_emits_event(self, loaded_model, listener):
        assert loaded_model.set_field("t-1", "planWeeks", 5) is True

        assert loaded_model.get_task("t-1").plan_weeks == 5
        assert listener.events == [("cell", EntityKind.TASK, "t-1", "plan_weeks", 3, 5)]

    def test_same_value_is_noop(self, loaded_model, listener):
        assert loaded_model.set_field("t-1", "plan_weeks", 3) is False
        assert listener.events == []

    def test_event_values_are_copies(self, loaded_model, listener):
        weeks = [2.0] * loaded_model.week_count
        loaded_model.set_field("r-be", "weeks", weeks)
        weeks[0] = 5.0

        _, _, _, _, old_value, new_value = listener.events[0]
        new_value[1] = 7.0
        assert loaded_model.get("r-be").weeks == [2.0] * loaded_model.week_count
        assert old_value == [1.0] * loaded_model.week_count

    def test_unknown_field(self, loaded_model):
        with pytest.raises(ValidationError) as exc_info:
            loaded_model.set_field("t-1", "nope", 1)
        assert exc_info.value.code == ErrorCode.INVALID_FIELD

    def test_id_is_immutable(self, loaded_model):
        with pytest.raises(ValidationError) as exc_info:
            loaded_model.set_field("t-1", "id", "other")
        assert exc_info.value.code == ErrorCode.INVALID_FIELD

    def test_weeks_length_checked(self, loaded_model):
        with pytest.raises(ValidationError) as exc_info:
            loaded_model.set_field("t-1", "weeks", [1.0])
        assert exc_info.value.code == ErrorCode.INVALID_VALUE

    def test_invalid_value(self, loaded_model, listener):
        with pytest.raises(ValidationError) as exc_info:
            loaded_model.set_field("t-1", "plan_empl", -1)

        assert exc_info.value.code == ErrorCode.INVALID_VALUE
        assert loaded_model.get_task("t-1").plan_empl == 1
        assert listener.events == []

    def test_missing_row(self, loaded_model):
        with pytest.raises(ValidationError) as exc_info:
            loaded_model.set_field("ghost", "task", "x")
        assert exc_info.value.code == ErrorCode.ROW_NOT_FOUND


class TestRows:
    """행 추가/복제/삭제"""

    def test_add_at_end(self, loaded_model, listener):
        row = loaded_model.add_row(loaded_model.new_row(RowKind.TASK, id="t-3"))

        assert loaded_model.order(RowKind.TASK) == ["t-1", "t-2", "t-3"]
        assert row.weeks == [0.0] * loaded_model.week_count
        assert listener.events[0] == ("add", EntityKind.TASK, "t-3")
        assert row.prev_id == "t-2"
        assert loaded_model.get("t-2").next_id == "t-3"

    def test_add_above_anchor(self, loaded_model):
        loaded_model.add_row(
            loaded_model.new_row(RowKind.TASK, id="t-0"),
            anchor_id="t-1",
            side=DropSide.TOP,
        )
        assert loaded_model.order(RowKind.TASK) == ["t-0", "t-1", "t-2"]

    def test_add_with_foreign_anchor(self, loaded_model):
        with pytest.raises(ValidationError) as exc_info:
            loaded_model.add_row(loaded_model.new_row(RowKind.TASK), anchor_id="r-be")
        assert exc_info.value.code == ErrorCode.REORDER_KIND_MISMATCH

    def test_duplicate_id_rejected(self, loaded_model):
        with pytest.raises(ValidationError):
            loaded_model.add_row(loaded_model.new_row(RowKind.TASK, id="t-1"))

    def test_duplicate_row(self, loaded_model):
        copy = loaded_model.duplicate_row("t-1")

        assert copy.id != "t-1"
        assert copy.task == "API 설계"
        assert loaded_model.order(RowKind.TASK) == ["t-1", copy.id, "t-2"]

    def test_delete_relinks(self, loaded_model, listener):
        loaded_model.delete_row("t-1")

        assert loaded_model.order(RowKind.TASK) == ["t-2"]
        assert loaded_model.get("t-2").prev_id is None
        assert listener.events[0] == ("delete", EntityKind.TASK, "t-1")
        assert loaded_model.find("t-1") is None

    def test_apply_order_requires_same_rows(self, loaded_model):
        with pytest.raises(ValidationError):
            loaded_model.apply_order(RowKind.TASK, ["t-1"])


class TestReferences:
    """참조 데이터"""

    def test_upsert_new_sprint(self, loaded_model, listener):
        loaded_model.upsert_reference(
            EntityKind.SPRINT, Sprint(code="Q3S3", start="2025-06-30", end="2025-07-13")
        )

        assert listener.events == [("add", EntityKind.SPRINT, "Q3S3")]
        assert loaded_model.resolve(EntityKind.SPRINT, "Q3S3")["start"] == "2025-06-30"

    def test_upsert_existing_emits_field_changes(self, loaded_model, listener):
        loaded_model.upsert_reference(
            EntityKind.SPRINT, Sprint(code="Q3S1", start="2025-06-02", end="2025-06-16")
        )
        assert listener.events == [
            ("cell", EntityKind.SPRINT, "Q3S1", "end", "2025-06-15", "2025-06-16")
        ]

    def test_delete_reference(self, loaded_model, listener):
        loaded_model.delete_reference(EntityKind.TEAM, "Core")

        assert listener.events == [("delete", EntityKind.TEAM, "Core")]
        assert loaded_model.resolve(EntityKind.TEAM, "Core") is None

    def test_resolve_checks_kind(self, loaded_model):
        assert loaded_model.resolve(EntityKind.TASK, "t-1")["id"] == "t-1"
        assert loaded_model.resolve(EntityKind.RESOURCE, "t-1") is None
