import logging

from task_portal.domain.models import Credentials, User
from task_portal.infra.db.persistence import SaveResult, StorePersistence, save_logged
from task_portal.infra.db.store import StoreGuard

logger = logging.getLogger("task_portal.accounts")


class AccountService:
    def __init__(self, guard: StoreGuard, persistence: StorePersistence):
        self.guard = guard
        self.persistence = persistence

    def register(self, user: User) -> SaveResult:
        # duplicate usernames are accepted; login matches the first one found
        logger.info(
            "user.register",
            extra={"category": "accounts", "event": "user.register", "user_id": user.id, "username": user.username},
        )
        with self.guard.locked() as store:
            store.insert_user(user)
            return save_logged(self.persistence, store, "user.register")

    def login(self, credentials: Credentials) -> bool:
        with self.guard.locked() as store:
            user = store.get_user_by_name(credentials.username)
        ok = user is not None and user.password == credentials.password
        logger.info(
            "user.login",
            extra={"category": "accounts", "event": "user.login", "username": credentials.username, "success": ok},
        )
        return ok
