"""Task store interface."""

from typing import Protocol

from auryn.core.tasks import Task, TaskCollection


class TaskStore(Protocol):
    """Interface for the durable task collection.

    Every mutation is a full load-modify-store cycle over the whole document.
    """

    def list(self) -> TaskCollection:
        """Return the full collection. Raises StorageUnavailable or CorruptState."""
        ...

    def get(self, task_id: str) -> Task:
        """Return one task. Raises NotFound."""
        ...

    def create(
        self,
        title: str,
        priority: str | None = None,
        category: str | None = None,
        due_date=None,
    ) -> Task:
        """Create a task. Raises ValidationError on a blank title."""
        ...

    def patch(self, task_id: str, fields: dict) -> Task:
        """Update allow-listed fields. Raises NotFound."""
        ...

    def delete(self, task_id: str) -> None:
        """Remove a task. Raises NotFound."""
        ...
