"""Tests for the JSON file store adapter."""

import json
import threading
from datetime import date

import pytest

from cadence.adapters.json_store import JsonFileStore, StoreError
from cadence.core.errors import InvalidRuleShape, OrphanLog


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(tmp_path)


@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def gym(store):
    return store.add_recurring_task("me", "Gym", {"frequency": "daily", "weekdays": ["mon", "wed"]})


class TestRecurringTasks:
    def test_add_and_list(self, store, gym):
        tasks = store.list_recurring_tasks("me")
        assert [t.id for t in tasks] == [gym.id]
        assert tasks[0].recurrence == {"frequency": "daily", "weekdays": ["mon", "wed"]}

    def test_rejects_invalid_rule(self, store):
        with pytest.raises(InvalidRuleShape):
            store.add_recurring_task("me", "Read", {"frequency": "weekly", "mode": "target"})
        assert store.list_recurring_tasks("me") == []

    def test_active_filter(self, store, gym):
        other = store.add_recurring_task("me", "Read", {"frequency": "weekly", "mode": "target"}, 3)
        store.set_recurring_active("me", gym.id, False)

        assert [t.id for t in store.list_active_recurring_tasks("me")] == [other.id]
        assert len(store.list_recurring_tasks("me")) == 2

    def test_owners_are_isolated(self, store, gym):
        assert store.list_recurring_tasks("someone-else") == []
        assert store.get_recurring_task("someone-else", gym.id) is None
        assert store.get_recurring_task("me", gym.id).title == "Gym"

    @pytest.mark.parametrize("owner", ["", "../etc", "a/b"])
    def test_invalid_owner_ids(self, store, owner):
        with pytest.raises(StoreError):
            store.list_recurring_tasks(owner)

    def test_missing_task_update(self, store):
        with pytest.raises(StoreError):
            store.set_recurring_active("me", "nope", False)


class TestOneTimeTasks:
    def test_range_filter(self, store, today):
        store.add_one_time_task("me", "Dentist", due_date=today)
        store.add_one_time_task("me", "Taxes", due_date=date(2025, 4, 15))
        store.add_one_time_task("me", "Someday")

        assert len(store.list_one_time_tasks("me")) == 3
        in_january = store.list_one_time_tasks("me", date(2025, 1, 1), date(2025, 1, 31))
        assert [t.title for t in in_january] == ["Dentist"]

    def test_complete(self, store, today):
        todo = store.add_one_time_task("me", "Dentist", due_date=today)
        updated = store.set_one_time_completed("me", todo.id)

        assert updated.completed
        assert store.list_one_time_tasks("me")[0].completed
        assert not updated.calendar_added

    def test_complete_missing(self, store):
        with pytest.raises(StoreError):
            store.set_one_time_completed("me", "nope")


class TestLogs:
    def test_upsert_twice_yields_one_record(self, store, gym, today):
        first = store.upsert_log("me", gym.id, today, True, 1, "note")
        second = store.upsert_log("me", gym.id, today, True, 1, "note")

        logs = store.list_logs("me", task_id=gym.id)
        assert len(logs) == 1
        assert first.id == second.id
        assert logs[0].note == "note"

    def test_upsert_last_write_wins(self, store, gym, today):
        store.upsert_log("me", gym.id, today, True, 3, "first")
        store.upsert_log("me", gym.id, today, False, 1, None)

        (log,) = store.list_logs("me")
        assert (log.completed, log.count, log.note) == (False, 1, None)

    def test_increment_is_additive(self, store, gym, today):
        store.increment_log("me", gym.id, today, 2)
        store.increment_log("me", gym.id, today, 3)

        (log,) = store.list_logs("me")
        assert log.count == 5

    def test_concurrent_upserts_converge(self, store, gym, today):
        threads = [
            threading.Thread(target=store.upsert_log, args=("me", gym.id, today, True, n + 1, None))
            for n in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.list_logs("me", task_id=gym.id, start=today, end=today)) == 1

    def test_concurrent_increments_add_up(self, store, gym, today):
        threads = [threading.Thread(target=store.increment_log, args=("me", gym.id, today)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        (log,) = store.list_logs("me")
        assert log.count == 8

    def test_list_filters(self, store, gym, today):
        other = store.add_recurring_task("me", "Read", {"frequency": "weekly", "mode": "checklist"})
        store.upsert_log("me", gym.id, date(2025, 1, 13))
        store.upsert_log("me", gym.id, today)
        store.upsert_log("me", other.id, today)

        assert len(store.list_logs("me")) == 3
        assert len(store.list_logs("me", task_id=gym.id)) == 2
        assert len(store.list_logs("me", start=today)) == 2
        assert len(store.list_logs("me", task_id=gym.id, end=date(2025, 1, 14))) == 1

    def test_unknown_task_rejected(self, store, today):
        with pytest.raises(OrphanLog):
            store.upsert_log("me", "ghost", today)

    def test_task_of_other_owner_rejected(self, store, gym, today):
        with pytest.raises(OrphanLog):
            store.upsert_log("intruder", gym.id, today)

    def test_count_validated(self, store, gym, today):
        with pytest.raises(ValueError):
            store.upsert_log("me", gym.id, today, count=0)

    def test_delete(self, store, gym, today):
        store.upsert_log("me", gym.id, today)
        assert store.delete_log("me", gym.id, today) is True
        assert store.delete_log("me", gym.id, today) is False
        assert store.list_logs("me") == []


class TestPersistence:
    def test_survives_new_instance(self, tmp_path, today):
        first = JsonFileStore(tmp_path)
        task = first.add_recurring_task("me", "Write", {"frequency": "monthly", "mode": "target"}, 15)
        first.upsert_log("me", task.id, today, count=3, note="chapter 2")

        second = JsonFileStore(tmp_path)
        (log,) = second.list_logs("me")
        assert (log.task_id, log.date, log.count, log.note) == (task.id, today, 3, "chapter 2")
        assert second.list_recurring_tasks("me")[0].target_count == 15

    def test_no_temp_files_left(self, store, gym, today, tmp_path):
        store.upsert_log("me", gym.id, today)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["me.json"]

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "me.json").write_text("{not json")
        with pytest.raises(StoreError, match="Corrupt"):
            JsonFileStore(tmp_path).list_logs("me")

    def test_file_layout(self, store, gym, today, tmp_path):
        store.upsert_log("me", gym.id, today)
        data = json.loads((tmp_path / "me.json").read_text())
        assert set(data) == {"recurring_tasks", "one_time_tasks", "logs"}
        assert data["logs"][0]["date"] == "2025-01-15"


class TestMalformedRows:
    def _corrupt(self, tmp_path, key, rows):
        path = tmp_path / "me.json"
        data = json.loads(path.read_text())
        data[key].extend(rows)
        path.write_text(json.dumps(data))

    def test_bad_log_rows_skipped(self, store, gym, today, tmp_path, caplog):
        store.upsert_log("me", gym.id, today, note="good")
        self._corrupt(
            tmp_path,
            "logs",
            [
                {"id": "zero", "task_id": gym.id, "owner_id": "me", "date": "2025-01-13", "count": 0},
                {"id": "baddate", "task_id": gym.id, "owner_id": "me", "date": "13/01/2025"},
                {"id": "nokeys"},
                "not a row",
            ],
        )

        logs = store.list_logs("me")

        assert [log.note for log in logs] == ["good"]
        assert "Skipping malformed CompletionLog" in caplog.text

    def test_bad_task_rows_skipped(self, store, gym, tmp_path):
        store.add_one_time_task("me", "Dentist", due_date=date(2025, 1, 16))
        self._corrupt(tmp_path, "recurring_tasks", [{"title": "no id"}])
        self._corrupt(tmp_path, "one_time_tasks", [{"id": "x", "owner_id": "me", "title": "T", "due_date": "soon"}])

        assert [t.id for t in store.list_recurring_tasks("me")] == [gym.id]
        assert [t.title for t in store.list_one_time_tasks("me")] == ["Dentist"]

    def test_non_object_file(self, tmp_path):
        (tmp_path / "me.json").write_text("[]")
        with pytest.raises(StoreError, match="expected an object"):
            JsonFileStore(tmp_path).list_logs("me")
