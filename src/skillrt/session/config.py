"""Session store constants: file naming, cleanup cadence, and age thresholds."""

from __future__ import annotations

from pathlib import Path

# Default store location, relative to the project root
DEFAULT_CACHE_DIR = str(Path(".claude") / "cache")

SESSION_FILE_PREFIX = "session-"
SESSION_FILE_SUFFIX = ".json"
LOCK_SUFFIX = ".lock"
TMP_SUFFIX = ".tmp"

# Cleanup runs on every Nth increment of a session's tool-use counter
CLEANUP_INTERVAL = 50

# Age thresholds (milliseconds)
SESSION_MAX_AGE_MS = 24 * 60 * 60 * 1000
ACTIVATION_MAX_AGE_MS = 60 * 60 * 1000
ORPHAN_MAX_AGE_MS = 5 * 60 * 1000

# Upper bound on how long a writer waits for the session lock
LOCK_TIMEOUT_SEC = 10.0
LOCK_POLL_INTERVAL_SEC = 0.01


def sanitize_session_id(session_id: str) -> str:
    """Map an opaque session id onto a safe filename fragment."""
    cleaned = "".join(c if c.isalnum() or c in "-_." else "_" for c in session_id)
    cleaned = cleaned.strip(".")
    return cleaned or "default"


def session_filename(session_id: str) -> str:
    return f"{SESSION_FILE_PREFIX}{sanitize_session_id(session_id)}{SESSION_FILE_SUFFIX}"
