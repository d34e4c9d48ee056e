"""Cross-process session store.

Each session id maps to one JSON record under the store root. Every call
re-reads the record from disk because the caller is usually a short-lived hook
process that shares no memory with the process that last wrote it.

Writes take the session lock, re-read the record, apply the mutation, and
atomically replace the file through a temporary sibling. The rename keeps
readers from ever seeing a partial record; the lock only serializes writers.
A failed write is logged and reported as ``False``/``None``, never raised.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from skillrt.diagnostics import Diagnostic, DiagnosticCategory
from skillrt.session.config import (
    ACTIVATION_MAX_AGE_MS,
    CLEANUP_INTERVAL,
    LOCK_SUFFIX,
    LOCK_TIMEOUT_SEC,
    ORPHAN_MAX_AGE_MS,
    SESSION_FILE_PREFIX,
    SESSION_FILE_SUFFIX,
    SESSION_MAX_AGE_MS,
    TMP_SUFFIX,
    session_filename,
)
from skillrt.session.domains import detect_domains
from skillrt.session.locking import SessionLock, SessionLockTimeout, lock_path_for

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionData(BaseModel):
    """Durable per-session state, stored with camelCase keys.

    ``current_prompt_skills`` is cleared at the start of every prompt and scopes
    validation; ``last_activated_skills`` persists across prompts and is only
    used to suppress repeat activations. Records with snake_case keys are read
    as well.
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    modified_files: list[str] = Field(default_factory=list)
    active_domains: list[str] = Field(default_factory=list)
    last_activated_skills: dict[str, int] = Field(default_factory=dict)
    current_prompt_skills: list[str] = Field(default_factory=list)
    tool_use_count: int = Field(default=0, ge=0)
    created_at: int = Field(default_factory=lambda: _now_ms())

    @field_validator("modified_files", "active_domains", "current_prompt_skills")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


# Every on-disk key that may populate each field
_FIELD_KEYS: dict[str, set[str]] = {
    name: {name, info.alias or name} for name, info in SessionData.model_fields.items()
}


def _coerce(raw: object) -> SessionData | None:
    """Validate a decoded record, resetting fields with invalid values to defaults."""
    if not isinstance(raw, dict):
        return None
    try:
        return SessionData.model_validate(raw)
    except ValidationError as exc:
        bad_keys = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
    drop: set[str] = set()
    for keys in _FIELD_KEYS.values():
        if keys & bad_keys:
            drop |= keys
    patched = {k: v for k, v in raw.items() if k not in drop}
    try:
        return SessionData.model_validate(patched)
    except ValidationError:
        return None


@dataclass
class CleanupReport:
    sessions_removed: list[str] = field(default_factory=list)
    tmp_files_removed: int = 0
    lock_files_removed: int = 0
    activations_pruned: int = 0


class SessionStore:
    """Lock-protected, atomically written session records under one directory."""

    def __init__(
        self,
        root: Path,
        *,
        lock_timeout: float = LOCK_TIMEOUT_SEC,
        cleanup_interval: int = CLEANUP_INTERVAL,
        session_max_age_ms: int = SESSION_MAX_AGE_MS,
        activation_max_age_ms: int = ACTIVATION_MAX_AGE_MS,
    ) -> None:
        self.root = root
        self._lock_timeout = lock_timeout
        self._cleanup_interval = cleanup_interval
        self._session_max_age_ms = session_max_age_ms
        self._activation_max_age_ms = activation_max_age_ms
        self.diagnostics: list[Diagnostic] = []

    def session_path(self, session_id: str) -> Path:
        return self.root / session_filename(session_id)

    # -- read path --

    def get_session(self, session_id: str) -> SessionData:
        """Load a session, creating and persisting a default one if absent or corrupt."""
        path = self.session_path(session_id)
        data = self._read(path)
        if data is not None:
            return data
        data = SessionData()
        try:
            self._write_atomic(path, data, overwrite=path.exists())
        except FileExistsError:
            # Another process created it first; theirs wins.
            return self._read(path) or data
        except OSError as e:
            self._report(DiagnosticCategory.IO, f"Failed to persist new session {session_id}: {e}")
        return data

    def get_modified_files(self, session_id: str) -> list[str]:
        return self.get_session(session_id).modified_files

    def get_active_domains(self, session_id: str) -> list[str]:
        return self.get_session(session_id).active_domains

    def get_activated_skills(self, session_id: str) -> list[str]:
        """Skills activated during the current prompt cycle."""
        return self.get_session(session_id).current_prompt_skills

    def get_tool_use_count(self, session_id: str) -> int:
        return self.get_session(session_id).tool_use_count

    def was_recently_activated(self, session_id: str, skill_name: str, threshold_ms: float) -> bool:
        timestamp = self.get_session(session_id).last_activated_skills.get(skill_name)
        if timestamp is None:
            return False
        return _now_ms() - timestamp < threshold_ms

    # -- write path --

    def add_modified_file(self, session_id: str, file_path: str) -> bool:
        def mutate(data: SessionData) -> None:
            if file_path not in data.modified_files:
                data.modified_files.append(file_path)
            for domain in detect_domains(file_path):
                if domain not in data.active_domains:
                    data.active_domains.append(domain)

        return self._update(session_id, mutate) is not None

    def record_skill_activation(self, session_id: str, skill_name: str) -> bool:
        def mutate(data: SessionData) -> None:
            data.last_activated_skills[skill_name] = _now_ms()
            if skill_name not in data.current_prompt_skills:
                data.current_prompt_skills.append(skill_name)

        return self._update(session_id, mutate) is not None

    def clear_current_prompt_skills(self, session_id: str) -> bool:
        def mutate(data: SessionData) -> None:
            data.current_prompt_skills.clear()

        return self._update(session_id, mutate) is not None

    def increment_tool_use_count(self, session_id: str) -> int:
        """Bump the counter; every Nth call also runs cleanup. Returns the new count."""

        def mutate(data: SessionData) -> None:
            data.tool_use_count += 1

        updated = self._update(session_id, mutate)
        if updated is None:
            return self.get_tool_use_count(session_id)
        count = updated.tool_use_count
        if self._cleanup_interval > 0 and count % self._cleanup_interval == 0:
            logger.debug(f"Cleanup triggered at tool use {count} for session {session_id}")
            self.cleanup_old_sessions()
        return count

    def prune_stale_activations(self, session_id: str, max_age_ms: int | None = None) -> list[str]:
        """Drop last-activation entries older than max_age_ms. Returns the pruned names."""
        max_age = self._activation_max_age_ms if max_age_ms is None else max_age_ms
        pruned: list[str] = []

        def mutate(data: SessionData) -> None:
            cutoff = _now_ms() - max_age
            for name, timestamp in list(data.last_activated_skills.items()):
                if timestamp < cutoff:
                    del data.last_activated_skills[name]
                    pruned.append(name)

        if self._update(session_id, mutate) is None:
            return []
        return pruned

    def cleanup_old_sessions(self, max_age_ms: int | None = None) -> CleanupReport:
        """Delete expired sessions and orphaned artifacts, then prune survivors."""
        max_age = self._session_max_age_ms if max_age_ms is None else max_age_ms
        report = CleanupReport()
        if not self.root.is_dir():
            return report

        now = _now_ms()
        survivors: list[str] = []
        for entry in sorted(self.root.iterdir()):
            name = entry.name
            if name.endswith(TMP_SUFFIX) or name.endswith(LOCK_SUFFIX):
                if self._remove_if_older(entry, now - ORPHAN_MAX_AGE_MS):
                    if name.endswith(TMP_SUFFIX):
                        report.tmp_files_removed += 1
                    else:
                        report.lock_files_removed += 1
                continue
            if not (name.startswith(SESSION_FILE_PREFIX) and name.endswith(SESSION_FILE_SUFFIX)):
                continue

            session_id = name[len(SESSION_FILE_PREFIX) : -len(SESSION_FILE_SUFFIX)]
            data = self._read(entry)
            if data is not None and data.created_at < now - max_age:
                try:
                    entry.unlink(missing_ok=True)
                    lock_path_for(entry).unlink(missing_ok=True)
                except OSError as e:
                    self._report(DiagnosticCategory.IO, f"Failed to remove session {name}: {e}")
                    continue
                report.sessions_removed.append(session_id)
            else:
                survivors.append(session_id)

        for session_id in survivors:
            report.activations_pruned += len(self.prune_stale_activations(session_id))
        if report.sessions_removed:
            logger.debug(f"Removed {len(report.sessions_removed)} expired sessions")
        return report

    # -- internals --

    def _update(
        self, session_id: str, mutate: Callable[[SessionData], None]
    ) -> SessionData | None:
        path = self.session_path(session_id)
        self.get_session(session_id)
        lock = SessionLock(path, timeout=self._lock_timeout)
        try:
            try:
                lock.acquire()
            except FileNotFoundError:
                # Cleanup removed the file between the existence check and the lock.
                self._report(
                    DiagnosticCategory.CONCURRENCY,
                    f"Session {session_id} vanished before lock; recreating and retrying once",
                )
                try:
                    self._write_atomic(path, SessionData(), overwrite=False)
                except FileExistsError:
                    pass
                lock.acquire()
            data = self._read(path) or SessionData()
            mutate(data)
            self._write_atomic(path, data)
            return data
        except SessionLockTimeout as e:
            self._report(DiagnosticCategory.CONCURRENCY, f"Session {session_id} write skipped: {e}")
        except OSError as e:
            self._report(DiagnosticCategory.IO, f"Session {session_id} write failed: {e}")
        finally:
            lock.release()
        return None

    def _read(self, path: Path) -> SessionData | None:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            self._report(DiagnosticCategory.IO, f"Discarding unreadable session {path.name}: {e}")
            return None
        data = _coerce(raw)
        if data is None:
            self._report(DiagnosticCategory.IO, f"Discarding malformed session {path.name}")
        return data

    def _write_atomic(self, path: Path, data: SessionData, *, overwrite: bool = True) -> None:
        """Write via a temp sibling. With overwrite=False, raise FileExistsError if path exists."""
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data.model_dump(by_alias=True), indent=2)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f"{path.name}.", suffix=TMP_SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            if overwrite:
                os.replace(tmp, path)
            else:
                os.link(tmp, path)
        finally:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass

    def _remove_if_older(self, path: Path, cutoff_ms: int) -> bool:
        try:
            if path.stat().st_mtime * 1000 < cutoff_ms:
                path.unlink()
                return True
        except FileNotFoundError:
            pass
        except OSError as e:
            self._report(DiagnosticCategory.IO, f"Failed to remove orphan {path.name}: {e}")
        return False

    def _report(self, category: DiagnosticCategory, message: str) -> None:
        logger.warning(message)
        self.diagnostics.append(Diagnostic(category=category, message=message))
