import logging
from typing import List, Optional

from task_portal.domain.models import Task
from task_portal.infra.db.persistence import SaveResult, StorePersistence, save_logged
from task_portal.infra.db.store import StoreGuard

logger = logging.getLogger("task_portal.tasks")


class TaskService:
    def __init__(self, guard: StoreGuard, persistence: StorePersistence):
        self.guard = guard
        self.persistence = persistence

    def create_task(self, task: Task) -> SaveResult:
        logger.info("task.create", extra={"category": "tasks", "event": "task.create", "task_id": task.id})
        with self.guard.locked() as store:
            store.insert_task(task)
            return save_logged(self.persistence, store, "task.create")

    def update_task(self, task: Task) -> SaveResult:
        logger.info("task.update", extra={"category": "tasks", "event": "task.update", "task_id": task.id})
        with self.guard.locked() as store:
            store.update_task(task)
            return save_logged(self.persistence, store, "task.update")

    def delete_task(self, task_id: int) -> SaveResult:
        logger.info("task.delete", extra={"category": "tasks", "event": "task.delete", "task_id": task_id})
        with self.guard.locked() as store:
            store.remove_task(task_id)
            return save_logged(self.persistence, store, "task.delete")

    def get_task(self, task_id: int) -> Optional[Task]:
        with self.guard.locked() as store:
            return store.get_task(task_id)

    def list_tasks(self) -> List[Task]:
        with self.guard.locked() as store:
            return store.list_tasks()
