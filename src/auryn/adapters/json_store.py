"""File-based task storage adapter."""

import json
import logging
import os
import uuid
from datetime import date
from pathlib import Path
from typing import Callable

from auryn.core.clock import DEFAULT_TIMEZONE, civil_today, utc_timestamp
from auryn.core.tasks import Task, TaskCollection, apply_patch, new_task
from auryn.errors import CorruptState, NotFound, StorageUnavailable

logger = logging.getLogger(__name__)


class FileTaskStore:
    """
    JSON document task storage.

    Implements TaskStore protocol. The whole collection lives in one file;
    every mutation reads it, changes it in memory and writes it back. There is
    no locking: with two concurrent writers the later write wins.
    """

    def __init__(
        self,
        path: Path | str,
        timezone: str = DEFAULT_TIMEZONE,
        writer: str = "auryn-tasks",
        today: Callable[[], date] | None = None,
    ):
        self.path = Path(path).expanduser()
        self.timezone = timezone
        self.writer = writer
        self._today = today or (lambda: civil_today(self.timezone))

    def initialize(self) -> bool:
        """Write an empty document if none exists. Returns True if one was created."""
        if self.path.exists():
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write(TaskCollection())
        logger.info(f"Created empty task document at {self.path}")
        return True

    def _read(self) -> TaskCollection:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to read tasks from {self.path}: {e}")
            raise StorageUnavailable(f"Task document unavailable: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Task document {self.path} is not valid JSON: {e}")
            raise CorruptState(f"Task document is not valid JSON: {e}") from e

        try:
            return TaskCollection.from_dict(data)
        except CorruptState as e:
            logger.error(f"Task document {self.path} has an unexpected shape: {e}")
            raise

    def _write(self, collection: TaskCollection) -> None:
        collection.last_updated = utc_timestamp()
        collection.updated_by = self.writer
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            tmp_path.write_text(json.dumps(collection.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to write tasks to {self.path}: {e}")
            raise StorageUnavailable(f"Task document could not be written: {e}") from e

    def list(self) -> TaskCollection:
        """Return the full persisted collection."""
        return self._read()

    def get(self, task_id: str) -> Task:
        task = self._read().find(task_id)
        if task is None:
            raise NotFound("Task not found")
        return task

    def create(
        self,
        title: str,
        priority: str | None = None,
        category: str | None = None,
        due_date=None,
    ) -> Task:
        """Append a new task with a fresh id, created today."""
        collection = self._read()
        task = new_task(
            _new_id(collection),
            title,
            as_of=self._today(),
            priority=priority,
            category=category,
            due_date=due_date,
        )
        collection.tasks.append(task)
        self._write(collection)
        logger.debug(f"Created task {task.id}")
        return task

    def patch(self, task_id: str, fields: dict) -> Task:
        """Apply an allow-listed patch to an existing task."""
        collection = self._read()
        idx = collection.index_of(task_id)
        if idx == -1:
            raise NotFound("Task not found")

        updated = apply_patch(collection.tasks[idx], fields, as_of=self._today())
        collection.tasks[idx] = updated
        self._write(collection)
        logger.debug(f"Patched task {task_id}: {sorted(fields)}")
        return updated

    def delete(self, task_id: str) -> None:
        collection = self._read()
        idx = collection.index_of(task_id)
        if idx == -1:
            raise NotFound("Task not found")

        del collection.tasks[idx]
        self._write(collection)
        logger.debug(f"Deleted task {task_id}")


def _new_id(collection: TaskCollection) -> str:
    while True:
        task_id = f"task_{uuid.uuid4().hex[:12]}"
        if collection.find(task_id) is None:
            return task_id
