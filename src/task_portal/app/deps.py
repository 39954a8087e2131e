from fastapi import Request

from task_portal.services.account_service import AccountService
from task_portal.services.task_service import TaskService


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service
