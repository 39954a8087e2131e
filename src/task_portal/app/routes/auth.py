from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from task_portal.app.deps import get_account_service
from task_portal.domain.models import Credentials, User
from task_portal.services.account_service import AccountService

router = APIRouter(tags=["auth"])

LOGIN_OK = "Logged in!"
LOGIN_FAILED = "Invalid password or username"


@router.post("/register")
def register(payload: User, svc: AccountService = Depends(get_account_service)):
    svc.register(payload)
    return Response(status_code=200)


@router.post("/login")
def login(payload: Credentials, svc: AccountService = Depends(get_account_service)):
    if svc.login(payload):
        return PlainTextResponse(LOGIN_OK)
    return PlainTextResponse(LOGIN_FAILED, status_code=400)
