"""UpgradeService: bring the database schema to the Alembic head.

``apply`` backs up a file-backed SQLite database, then migrates, then
runs the integrity check. A database whose tables were created straight
from the schema metadata (no ``alembic_version`` row yet) is stamped at
head instead of migrated, since its tables already match.
Other backends are expected to be backed up by their operators.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.engine import make_url

from orgtree.infrastructure.database.migrations import build_config
from orgtree.services._helpers import now_compact
from orgtree.services.base import BaseService
from orgtree.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)

_OP = "upgrade"


def _failure(code: str, message: str, **detail: Any) -> ServiceResult:
    return ServiceResult(
        ok=False, op=_OP, error=ServiceError(code=code, message=message, detail=detail)
    )


class UpgradeService(BaseService):
    """Reports and applies pending schema migrations."""

    @property
    def _url(self) -> str:
        return self._directory.settings.database_url

    def _revisions(self) -> tuple[str | None, str | None, list[dict[str, str]]]:
        """Return ``(current, head, pending)``; pending is newest first."""
        script = ScriptDirectory.from_config(build_config(self._url))
        head = script.get_current_head()
        with self._directory.engine.connect() as conn:
            current = MigrationContext.configure(conn).get_current_revision()

        pending: list[dict[str, str]] = []
        if head is not None and current != head:
            for rev in script.iterate_revisions(head, current or "base"):
                pending.append({"revision": rev.revision, "description": rev.doc or ""})
        return current, head, pending

    def _has_nodes_table(self) -> bool:
        return "nodes" in inspect(self._directory.engine).get_table_names()

    def _backup(self) -> Path | None:
        """Copy the SQLite file to ``<db dir>/backups/<stem>-<timestamp><suffix>``."""
        url = make_url(self._url)
        if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
            return None
        source = Path(url.database)
        target_dir = source.parent / "backups"
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / f"{source.stem}-{now_compact()}{source.suffix}"
        shutil.copy2(source, target)
        logger.debug("Backed up %s to %s", source, target)
        return target

    def check_pending(self) -> ServiceResult:
        """List migrations between the current revision and head, without applying."""
        try:
            current, head, pending = self._revisions()
        except Exception as exc:
            return _failure("CHECK_FAILED", f"Failed to check migrations: {exc}")
        return ServiceResult(
            ok=True,
            op=_OP,
            data={
                "pending_count": len(pending),
                "pending": pending,
                "current": current,
                "head": head,
            },
        )

    def apply(self) -> ServiceResult:
        """Back up, migrate (or stamp), then validate with the integrity check."""
        status = self.check_pending()
        if not status.ok:
            return status

        head = status.data["head"]
        pending_count = status.data["pending_count"]
        if pending_count == 0:
            return ServiceResult(
                ok=True,
                op=_OP,
                data={
                    "applied_count": 0,
                    "current": head,
                    "message": "Database is already up to date",
                },
            )

        try:
            backup_path = self._backup()
        except OSError as exc:
            return _failure("BACKUP_FAILED", f"Backup failed: {exc}")
        backup = str(backup_path) if backup_path else None

        cfg = build_config(self._url)
        stamped = status.data["current"] is None and self._has_nodes_table()
        try:
            if stamped:
                command.stamp(cfg, "head")
            else:
                command.upgrade(cfg, "head")
        except Exception as exc:
            return _failure(
                "MIGRATION_FAILED",
                f"Migration failed: {exc}. Backup at: {backup}",
                backup_path=backup,
            )

        from orgtree.services.check import CheckService

        warnings: list[str] = []
        integrity = CheckService(self._directory).check()
        errors = integrity.data.get("error_count", 0) if integrity.ok else 0
        if errors:
            warnings.append(f"Post-migration integrity check found {errors} errors")

        return ServiceResult(
            ok=True,
            op=_OP,
            data={
                "applied_count": 0 if stamped else pending_count,
                "stamped": stamped,
                "current": head,
                "backup_path": backup,
            },
            warnings=warnings,
        )
