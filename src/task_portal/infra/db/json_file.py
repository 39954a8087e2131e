from __future__ import annotations
import os
import stat
import tempfile
from pathlib import Path

from pydantic import ValidationError

from task_portal.infra.db.persistence import SaveResult, StoreCorruptError, StoreNotFoundError
from task_portal.infra.db.store import Store, StoreSnapshot


def _default_mode() -> int:
    # umask can only be read by setting it
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


_DEFAULT_MODE = _default_mode()


class JsonFilePersistence:
    """Writes the full store as one compact JSON document on every save."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def save(self, store: Store) -> SaveResult:
        try:
            data = store.snapshot().model_dump_json()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                os.chmod(tmp_name, self._target_mode())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, ValueError) as e:
            return SaveResult(ok=False, path=self.path, error=str(e))
        return SaveResult(ok=True, path=self.path)

    def _target_mode(self) -> int:
        # mkstemp creates 0600; keep the existing file's mode, else what open() would give
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            return _DEFAULT_MODE

    def load(self) -> Store:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StoreNotFoundError(str(self.path)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise StoreCorruptError(f"{self.path}: {e}") from e

        try:
            snap = StoreSnapshot.model_validate_json(text)
        except ValidationError as e:
            raise StoreCorruptError(f"{self.path}: {e}") from e
        return Store.from_snapshot(snap)

