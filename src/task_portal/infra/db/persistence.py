from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from task_portal.infra.db.store import Store

logger = logging.getLogger("task_portal.store")


@dataclass(frozen=True)
class SaveResult:
    ok: bool
    path: Optional[Path] = None
    error: Optional[str] = None


class StoreLoadError(Exception):
    pass


class StoreNotFoundError(StoreLoadError):
    pass


class StoreCorruptError(StoreLoadError):
    pass


class StorePersistence(Protocol):
    """
    Whole-store save/load.
    Swap this later for an incremental backend without touching Store.
    """
    def save(self, store: Store) -> SaveResult: ...

    def load(self) -> Store: ...


def load_or_empty(persistence: StorePersistence) -> Store:
    """
    Startup load. A missing store and a corrupt one both yield an empty Store;
    they are told apart only by log level. A corrupt source is left as-is
    until the next save replaces it.
    """
    backend = type(persistence).__name__
    try:
        store = persistence.load()
    except StoreNotFoundError as e:
        logger.info(
            "store.empty",
            extra={"category": "store", "event": "store.empty", "backend": backend, "source": str(e)},
        )
        return Store()
    except StoreCorruptError as e:
        logger.warning(
            "store.corrupt",
            extra={"category": "store", "event": "store.corrupt", "backend": backend, "error": str(e)},
        )
        return Store()

    logger.info(
        "store.loaded",
        extra={"category": "store", "event": "store.loaded", "backend": backend, "entities": len(store)},
    )
    return store


def save_logged(persistence: StorePersistence, store: Store, trigger: str) -> SaveResult:
    """Save while the caller still holds the lock; failures are logged, never raised."""
    result = persistence.save(store)
    if not result.ok:
        logger.error(
            "store.save_failed",
            extra={
                "category": "store",
                "event": "store.save_failed",
                "trigger": trigger,
                "db_path": str(result.path),
                "error": result.error,
            },
        )
    return result
