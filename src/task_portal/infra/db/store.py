from __future__ import annotations
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, Field

from task_portal.domain.models import Task, User


class StorePoisonedError(RuntimeError):
    """Raised when a previous holder of the store lock failed mid-operation."""


class StoreSnapshot(BaseModel):
    """On-disk shape of the whole store: two collections keyed by id."""
    tasks: Dict[int, Task] = Field(default_factory=dict)
    users: Dict[int, User] = Field(default_factory=dict)


class Store:
    """
    Authoritative in-memory tasks and users.
    Never persists by itself; callers decide when to save.
    """
    def __init__(self, tasks: Optional[Dict[int, Task]] = None, users: Optional[Dict[int, User]] = None):
        self._tasks: Dict[int, Task] = dict(tasks or {})
        self._users: Dict[int, User] = dict(users or {})

    # ---- tasks ----

    def upsert_task(self, task: Task) -> None:
        self._tasks[task.id] = task.model_copy()

    # update has no existence check, so both names share one implementation
    insert_task = upsert_task
    update_task = upsert_task

    def remove_task(self, task_id: int) -> None:
        self._tasks.pop(task_id, None)

    def get_task(self, task_id: int) -> Optional[Task]:
        task = self._tasks.get(task_id)
        return task.model_copy() if task else None

    def list_tasks(self) -> List[Task]:
        return [t.model_copy() for t in self._tasks.values()]

    # ---- users ----

    def insert_user(self, user: User) -> None:
        self._users[user.id] = user.model_copy()

    def get_user_by_name(self, username: str) -> Optional[User]:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy()
        return None

    # ---- snapshots ----

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(tasks=dict(self._tasks), users=dict(self._users))

    @classmethod
    def from_snapshot(cls, snap: StoreSnapshot) -> "Store":
        return cls(tasks=snap.tasks, users=snap.users)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Store):
            return NotImplemented
        return self._tasks == other._tasks and self._users == other._users

    def __len__(self) -> int:
        return len(self._tasks) + len(self._users)


class StoreGuard:
    """
    One store behind one lock.

    An exception escaping `locked()` poisons the guard: the store may be
    half-mutated, so every later acquisition raises StorePoisonedError.
    """
    def __init__(self, store: Optional[Store] = None):
        self._store = store if store is not None else Store()
        self._lock = threading.Lock()
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    @contextmanager
    def locked(self) -> Iterator[Store]:
        with self._lock:
            if self._poisoned:
                raise StorePoisonedError("store lock poisoned by an earlier failure")
            try:
                yield self._store
            except BaseException:
                self._poisoned = True
                raise
