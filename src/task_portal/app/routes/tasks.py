from typing import List

from fastapi import APIRouter, Depends, Path, Response

from task_portal.app.deps import get_task_service
from task_portal.domain.models import MAX_ID, Task
from task_portal.services.task_service import TaskService

router = APIRouter(prefix="/task", tags=["tasks"])

# Plain `def` handlers run on the threadpool; the store lock serializes them.
# Save results are ignored here: the request succeeds even if the file write failed.


@router.post("")
def create_task(payload: Task, svc: TaskService = Depends(get_task_service)):
    svc.create_task(payload)
    return Response(status_code=200)


@router.get("", response_model=List[Task])
def list_tasks(svc: TaskService = Depends(get_task_service)):
    return svc.list_tasks()


@router.put("")
def update_task(payload: Task, svc: TaskService = Depends(get_task_service)):
    svc.update_task(payload)
    return Response(status_code=200)


@router.delete("/{task_id}")
def delete_task(task_id: int = Path(ge=0, le=MAX_ID), svc: TaskService = Depends(get_task_service)):
    svc.delete_task(task_id)
    return Response(status_code=200)


@router.get("/{task_id}", response_model=Task)
def get_task(task_id: int = Path(ge=0, le=MAX_ID), svc: TaskService = Depends(get_task_service)):
    task = svc.get_task(task_id)
    if task is None:
        return Response(status_code=404)
    return task
