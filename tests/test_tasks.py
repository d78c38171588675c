"""Tests for core task logic."""

from datetime import date, timedelta

import pytest

from auryn.core.tasks import (
    Bucket,
    Task,
    TaskCollection,
    apply_patch,
    classify,
    date_label,
    due_badge,
    filter_tasks,
    new_task,
    sort_tasks,
    task_stats,
)
from auryn.errors import CorruptState, ValidationError


# Fixtures
@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def make_task(today):
    """Factory for creating tasks."""
    def _make(
        task_id: str,
        priority: str = "medium",
        due_in: int | None = None,
        completed: bool = False,
    ) -> Task:
        return Task(
            id=task_id,
            title=f"Task {task_id}",
            priority=priority,
            due_date=today + timedelta(days=due_in) if due_in is not None else None,
            created=today,
            completed=completed,
            completed_date=today if completed else None,
        )
    return _make


class TestClassify:
    @pytest.mark.parametrize("days_before", [1, 2, 30, 400])
    def test_before_today_is_overdue(self, today, days_before):
        assert classify(today - timedelta(days=days_before), False, today) == Bucket.OVERDUE

    def test_today(self, today):
        assert classify(today, False, today) == Bucket.TODAY

    def test_tomorrow(self, today):
        assert classify(today + timedelta(days=1), False, today) == Bucket.TOMORROW

    @pytest.mark.parametrize("days_ahead", [2, 3, 4, 5, 6, 7])
    def test_within_a_week(self, today, days_ahead):
        assert classify(today + timedelta(days=days_ahead), False, today) == Bucket.WEEK

    @pytest.mark.parametrize("days_ahead", [8, 30, 365])
    def test_beyond_a_week_is_future(self, today, days_ahead):
        assert classify(today + timedelta(days=days_ahead), False, today) == Bucket.FUTURE

    @pytest.mark.parametrize("days_ahead", [-3, 0, 1, 5, 20])
    def test_completed_is_none_regardless_of_date(self, today, days_ahead):
        assert classify(today + timedelta(days=days_ahead), True, today) == Bucket.NONE

    def test_no_due_date_is_none(self, today):
        assert classify(None, False, today) == Bucket.NONE

    def test_week_boundary_crosses_month(self):
        as_of = date(2025, 1, 28)
        assert classify(date(2025, 2, 4), False, as_of) == Bucket.WEEK
        assert classify(date(2025, 2, 5), False, as_of) == Bucket.FUTURE

    def test_bucket_ranks_follow_display_order(self):
        ranks = [b.rank for b in (Bucket.OVERDUE, Bucket.TODAY, Bucket.TOMORROW, Bucket.WEEK, Bucket.FUTURE, Bucket.NONE)]
        assert ranks == sorted(ranks)


class TestSortTasks:
    def test_overdue_priority_then_today(self, make_task, today):
        a = make_task("A", priority="high", due_in=-2)
        b = make_task("B", priority="low", due_in=-2)
        c = make_task("C", priority="high", due_in=0)
        assert [t.id for t in sort_tasks([c, b, a], today)] == ["A", "B", "C"]

    def test_incomplete_before_completed(self, make_task, today):
        done = make_task("done", priority="high", due_in=-5, completed=True)
        later = make_task("later", priority="low", due_in=None)
        assert [t.id for t in sort_tasks([done, later], today)] == ["later", "done"]

    def test_bucket_order(self, make_task, today):
        tasks = [
            make_task("none"),
            make_task("future", due_in=20),
            make_task("week", due_in=4),
            make_task("tomorrow", due_in=1),
            make_task("today", due_in=0),
            make_task("overdue", due_in=-1),
        ]
        assert [t.id for t in sort_tasks(tasks, today)] == [
            "overdue", "today", "tomorrow", "week", "future", "none",
        ]

    def test_unrecognized_priority_ranks_as_medium(self, make_task, today):
        tasks = [
            make_task("low", priority="low", due_in=0),
            make_task("odd", priority="urgent", due_in=0),
            make_task("high", priority="high", due_in=0),
        ]
        assert [t.id for t in sort_tasks(tasks, today)] == ["high", "odd", "low"]

    def test_earlier_due_date_first_within_bucket(self, make_task, today):
        tasks = [make_task("later", due_in=6), make_task("sooner", due_in=3)]
        assert [t.id for t in sort_tasks(tasks, today)] == ["sooner", "later"]

    def test_dated_before_undated(self, make_task, today):
        # Both completed -> same bucket and priority; only the date rule separates them
        undated = make_task("undated", completed=True)
        dated = make_task("dated", due_in=3, completed=True)
        assert [t.id for t in sort_tasks([undated, dated], today)] == ["dated", "undated"]

    def test_stable_for_full_ties(self, make_task, today):
        tasks = [make_task(str(i)) for i in range(5)]
        assert [t.id for t in sort_tasks(tasks, today)] == ["0", "1", "2", "3", "4"]

    def test_does_not_mutate_input(self, make_task, today):
        tasks = [make_task("b", due_in=3), make_task("a", due_in=-1)]
        sort_tasks(tasks, today)
        assert [t.id for t in tasks] == ["b", "a"]


class TestFilterTasks:
    @pytest.fixture
    def tasks(self, make_task):
        return [
            make_task("h", priority="high"),
            make_task("m", priority="medium", completed=True),
            make_task("l", priority="low"),
        ]

    def test_active_is_default(self, tasks):
        assert [t.id for t in filter_tasks(tasks)] == ["h", "l"]

    def test_completed(self, tasks):
        assert [t.id for t in filter_tasks(tasks, status="completed")] == ["m"]

    def test_all_statuses(self, tasks):
        assert len(filter_tasks(tasks, status="all")) == 3

    def test_priority_exact_match(self, tasks):
        assert [t.id for t in filter_tasks(tasks, priority="low", status="all")] == ["l"]

    def test_priority_and_status_combined(self, tasks):
        assert filter_tasks(tasks, priority="medium", status="active") == []


class TestNewTask:
    def test_defaults(self, today):
        task = new_task("task_1", "Pay rent", as_of=today)
        assert task.priority == "medium"
        assert task.category == "Admin"
        assert task.due_date is None
        assert task.created == today
        assert task.completed is False
        assert task.completed_date is None

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_blank_title_rejected(self, today, title):
        with pytest.raises(ValidationError, match="Title is required"):
            new_task("task_1", title, as_of=today)

    def test_parses_due_date(self, today):
        task = new_task("task_1", "Dentist", as_of=today, due_date="2025-02-03")
        assert task.due_date == date(2025, 2, 3)

    def test_invalid_due_date_rejected(self, today):
        with pytest.raises(ValidationError):
            new_task("task_1", "Dentist", as_of=today, due_date="next tuesday")

    @pytest.mark.parametrize("due_date", ["2024-06-01 garbage", "2024-06-01x", "2024-06-01T25:00"])
    def test_due_date_with_trailing_text_rejected(self, today, due_date):
        with pytest.raises(ValidationError):
            new_task("task_1", "Dentist", as_of=today, due_date=due_date)


class TestApplyPatch:
    def test_completing_stamps_today(self, make_task, today):
        task = apply_patch(make_task("1"), {"completed": True}, today)
        assert task.completed is True
        assert task.completed_date == today

    def test_recompleting_keeps_original_date(self, make_task, today):
        task = apply_patch(make_task("1"), {"completed": True}, today)
        again = apply_patch(task, {"completed": True}, today + timedelta(days=3))
        assert again.completed_date == today

    def test_reopening_clears_date(self, make_task, today):
        task = apply_patch(make_task("1", completed=True), {"completed": False}, today)
        assert task.completed is False
        assert task.completed_date is None

    def test_supplied_completed_date_wins(self, make_task, today):
        task = apply_patch(make_task("1"), {"completed": True, "completed_date": "2025-01-10"}, today)
        assert task.completed_date == date(2025, 1, 10)

    def test_completed_date_dropped_on_incomplete_task(self, make_task, today):
        task = apply_patch(make_task("1"), {"completed_date": "2025-01-10"}, today)
        assert task.completed_date is None

    def test_clearing_completed_date_restamps_completed_task(self, make_task, today):
        done = make_task("1", completed=True)
        task = apply_patch(done, {"completed_date": None}, today + timedelta(days=2))
        assert task.completed is True
        assert task.completed_date == today + timedelta(days=2)

    def test_ignores_fields_outside_allow_list(self, make_task, today):
        original = make_task("1")
        task = apply_patch(original, {"id": "hijack", "created": "2000-01-01", "title": "Renamed"}, today)
        assert task.id == "1"
        assert task.created == today
        assert task.title == "Renamed"

    def test_clearing_due_date(self, make_task, today):
        task = apply_patch(make_task("1", due_in=2), {"due_date": None}, today)
        assert task.due_date is None

    def test_does_not_mutate_original(self, make_task, today):
        original = make_task("1")
        apply_patch(original, {"completed": True}, today)
        assert original.completed is False

    def test_blank_title_rejected(self, make_task, today):
        with pytest.raises(ValidationError):
            apply_patch(make_task("1"), {"title": "  "}, today)

    def test_non_boolean_completed_rejected(self, make_task, today):
        with pytest.raises(ValidationError):
            apply_patch(make_task("1"), {"completed": "yes"}, today)


class TestSerialization:
    def test_to_dict_uses_iso_dates(self, make_task):
        data = make_task("1", due_in=1, completed=True).to_dict()
        assert data["due_date"] == "2025-01-16"
        assert data["completed_date"] == "2025-01-15"
        assert data["created"] == "2025-01-15"

    def test_from_dict_fills_defaults(self):
        task = Task.from_dict({"id": "task_1", "title": "Call mom", "priority": None})
        assert task.priority == "medium"
        assert task.category == "Admin"
        assert task.due_date is None

    def test_from_dict_missing_title_is_corrupt(self):
        with pytest.raises(CorruptState):
            Task.from_dict({"id": "task_1"})

    def test_from_dict_bad_date_is_corrupt(self):
        with pytest.raises(CorruptState):
            Task.from_dict({"id": "task_1", "title": "x", "due_date": "June"})

    def test_from_dict_string_completed_is_corrupt(self):
        with pytest.raises(CorruptState):
            Task.from_dict({"id": "task_1", "title": "x", "completed": "false"})

    @pytest.mark.parametrize("title", [None, "", "   ", 42])
    def test_from_dict_bad_title_is_corrupt(self, title):
        with pytest.raises(CorruptState):
            Task.from_dict({"id": "task_1", "title": title})

    def test_collection_requires_task_list(self):
        with pytest.raises(CorruptState):
            TaskCollection.from_dict({"tasks": {}})
        with pytest.raises(CorruptState):
            TaskCollection.from_dict([])

    def test_collection_preserves_order_and_metadata(self):
        data = {
            "tasks": [{"id": "b", "title": "B"}, {"id": "a", "title": "A"}],
            "last_updated": "2025-01-15T00:00:00.000Z",
            "updated_by": "auryn-tasks",
        }
        collection = TaskCollection.from_dict(data)
        assert [t.id for t in collection.tasks] == ["b", "a"]
        assert collection.last_updated == "2025-01-15T00:00:00.000Z"
        assert collection.updated_by == "auryn-tasks"


class TestStatsAndLabels:
    def test_stats(self, make_task, today):
        tasks = [
            make_task("overdue", due_in=-1),
            make_task("today", due_in=0),
            make_task("later", due_in=5),
            make_task("done", due_in=-3, completed=True),
        ]
        s = task_stats(tasks, today)
        assert (s.total, s.active, s.done, s.overdue, s.due_today) == (4, 3, 1, 1, 1)
        assert s.alert() == "1 overdue | 1 due today"

    def test_no_alert_when_nothing_due(self, make_task, today):
        assert task_stats([make_task("x", due_in=5)], today).alert() is None

    def test_date_labels(self, make_task, today):
        assert date_label(make_task("1", due_in=-1), today) == "Overdue: 01/14/2025"
        assert date_label(make_task("2", due_in=0), today) == "Due today"
        assert date_label(make_task("3", due_in=3), today) == "01/18/2025"
        assert date_label(make_task("4", completed=True), today) == "Done 01/15/2025"
        assert date_label(make_task("5"), today) == ""

    def test_due_badges(self, make_task, today):
        assert due_badge(make_task("1", due_in=-1), today) == "OVERDUE"
        assert due_badge(make_task("2", due_in=0), today) == "DUE TODAY"
        assert due_badge(make_task("3", due_in=1), today) == "Tomorrow"
        assert due_badge(make_task("4", due_in=4), today) is None
