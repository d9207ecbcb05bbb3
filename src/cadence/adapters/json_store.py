"""JSON file storage adapter."""

import json
import logging
import os
import re
import tempfile
import threading
import uuid
from datetime import date, datetime, timezone
from pathlib import Path

from cadence.core.errors import OrphanLog
from cadence.core.models import CompletionLog, OneTimeTask, RecurringTask
from cadence.core.rules import parse_rule

logger = logging.getLogger(__name__)

_OWNER_PATTERN = re.compile(r"^[A-Za-z0-9_.@-]+$")


class StoreError(Exception):
    """Raised when stored data cannot be read or a record is missing."""

    pass


def _decode_rows(rows: list, record_type, owner_id: str) -> list:
    """Decode stored rows one by one, skipping any that are malformed."""
    records = []
    for row in rows:
        try:
            records.append(record_type.from_dict(row))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {record_type.__name__} row for {owner_id}: {e!r}")
    return records


def _in_range(d: date | None, start: date | None, end: date | None) -> bool:
    if d is None:
        return start is None and end is None
    if start is not None and d < start:
        return False
    if end is not None and d > end:
        return False
    return True


class JsonFileStore:
    """
    File-based task and log storage.

    Implements TaskStore and LogStore protocols. Each owner gets one JSON
    document holding recurring tasks, one-time tasks and completion logs.
    Writes hold a lock and replace the file atomically, so upserts on the
    same (task, date) converge to one record within a process.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path_for_owner(self, owner_id: str) -> Path:
        if not owner_id or not _OWNER_PATTERN.match(owner_id):
            raise StoreError(f"Invalid owner id: {owner_id!r}")
        return self.data_dir / f"{owner_id}.json"

    def _load(self, owner_id: str) -> dict:
        path = self._path_for_owner(owner_id)
        data = {"recurring_tasks": [], "one_time_tasks": [], "logs": []}
        if not path.exists():
            return data
        try:
            loaded = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt data file {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise StoreError(f"Corrupt data file {path}: expected an object")
        data.update(loaded)
        return data

    def _save(self, owner_id: str, data: dict) -> None:
        path = self._path_for_owner(owner_id)
        fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=f".{owner_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    # ============== Reads ==============

    def list_recurring_tasks(self, owner_id: str) -> list[RecurringTask]:
        return _decode_rows(self._load(owner_id)["recurring_tasks"], RecurringTask, owner_id)

    def list_active_recurring_tasks(self, owner_id: str) -> list[RecurringTask]:
        return [t for t in self.list_recurring_tasks(owner_id) if t.active]

    def get_recurring_task(self, owner_id: str, task_id: str) -> RecurringTask | None:
        for task in self.list_recurring_tasks(owner_id):
            if task.id == task_id:
                return task
        return None

    def list_one_time_tasks(
        self,
        owner_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[OneTimeTask]:
        tasks = _decode_rows(self._load(owner_id)["one_time_tasks"], OneTimeTask, owner_id)
        return [t for t in tasks if _in_range(t.due_date, start, end)]

    def list_logs(
        self,
        owner_id: str,
        task_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[CompletionLog]:
        logs = _decode_rows(self._load(owner_id)["logs"], CompletionLog, owner_id)
        return [
            log
            for log in logs
            if (task_id is None or log.task_id == task_id) and _in_range(log.date, start, end)
        ]

    # ============== Task writes ==============

    def add_recurring_task(
        self,
        owner_id: str,
        title: str,
        recurrence: dict,
        target_count: int | None = None,
        category: str = "",
        description: str = "",
    ) -> RecurringTask:
        """Create a recurring task. Raises InvalidRuleShape for a bad rule."""
        task_id = uuid.uuid4().hex
        parse_rule(recurrence, target_count, task_id=task_id)
        task = RecurringTask(
            id=task_id,
            owner_id=owner_id,
            title=title,
            recurrence=recurrence,
            target_count=target_count,
            category=category,
            description=description,
        )
        with self._lock:
            data = self._load(owner_id)
            data["recurring_tasks"].append(task.to_dict())
            self._save(owner_id, data)
        logger.debug(f"Added recurring task {task.id} for {owner_id}")
        return task

    def set_recurring_active(self, owner_id: str, task_id: str, active: bool) -> RecurringTask:
        with self._lock:
            data = self._load(owner_id)
            for raw in data["recurring_tasks"]:
                if raw["id"] == task_id:
                    raw["active"] = active
                    raw["updated_at"] = datetime.now(timezone.utc).isoformat()
                    self._save(owner_id, data)
                    return RecurringTask.from_dict(raw)
        raise StoreError(f"No recurring task {task_id}")

    def add_one_time_task(
        self,
        owner_id: str,
        title: str,
        due_date: date | None = None,
        category: str = "",
        description: str = "",
    ) -> OneTimeTask:
        task = OneTimeTask(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            title=title,
            due_date=due_date,
            category=category,
            description=description,
        )
        with self._lock:
            data = self._load(owner_id)
            data["one_time_tasks"].append(task.to_dict())
            self._save(owner_id, data)
        logger.debug(f"Added one-time task {task.id} for {owner_id}")
        return task

    def set_one_time_completed(self, owner_id: str, task_id: str, completed: bool = True) -> OneTimeTask:
        with self._lock:
            data = self._load(owner_id)
            for raw in data["one_time_tasks"]:
                if raw["id"] == task_id:
                    raw["completed"] = completed
                    self._save(owner_id, data)
                    return OneTimeTask.from_dict(raw)
        raise StoreError(f"No one-time task {task_id}")

    # ============== Log writes ==============

    def _write_log(
        self,
        owner_id: str,
        task_id: str,
        log_date: date,
        completed: bool,
        count: int,
        note: str | None,
        increment: bool,
    ) -> CompletionLog:
        with self._lock:
            data = self._load(owner_id)
            if not any(t["id"] == task_id for t in data["recurring_tasks"]):
                raise OrphanLog(task_id)

            day = log_date.isoformat()
            for raw in data["logs"]:
                if raw["task_id"] == task_id and raw["date"] == day:
                    raw["completed"] = completed
                    raw["count"] = raw.get("count", 1) + count if increment else count
                    raw["note"] = note
                    log = CompletionLog.from_dict(raw)
                    break
            else:
                log = CompletionLog(
                    id=uuid.uuid4().hex,
                    task_id=task_id,
                    owner_id=owner_id,
                    date=log_date,
                    completed=completed,
                    count=count,
                    note=note,
                )
                data["logs"].append(log.to_dict())

            self._save(owner_id, data)
        logger.debug(f"Wrote log {task_id}@{day} count={log.count} for {owner_id}")
        return log

    def upsert_log(
        self,
        owner_id: str,
        task_id: str,
        log_date: date,
        completed: bool = True,
        count: int = 1,
        note: str | None = None,
    ) -> CompletionLog:
        """Create or replace the log for (task_id, log_date). Last write wins."""
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        return self._write_log(owner_id, task_id, log_date, completed, count, note, increment=False)

    def increment_log(
        self,
        owner_id: str,
        task_id: str,
        log_date: date,
        count: int = 1,
        note: str | None = None,
    ) -> CompletionLog:
        """Add ``count`` to the day's log, creating it if needed."""
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        return self._write_log(owner_id, task_id, log_date, True, count, note, increment=True)

    def delete_log(self, owner_id: str, task_id: str, log_date: date) -> bool:
        with self._lock:
            data = self._load(owner_id)
            day = log_date.isoformat()
            kept = [raw for raw in data["logs"] if not (raw["task_id"] == task_id and raw["date"] == day)]
            if len(kept) == len(data["logs"]):
                return False
            data["logs"] = kept
            self._save(owner_id, data)
        logger.debug(f"Deleted log {task_id}@{day} for {owner_id}")
        return True
