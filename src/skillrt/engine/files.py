"""Project-relative path handling and bounded file reads."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

MAX_CONTENT_BYTES = 1024 * 1024


def normalize_file_path(file_path: str, project_dir: Path) -> str:
    """Return a POSIX path relative to project_dir when inside it, else absolute POSIX."""
    path = Path(file_path)
    if not path.is_absolute():
        return PurePosixPath(*Path(file_path).parts).as_posix().removeprefix("./")
    try:
        return path.resolve().relative_to(project_dir.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def resolve_project_path(file_path: str, project_dir: Path) -> Path:
    path = Path(file_path)
    return path if path.is_absolute() else project_dir / path


def read_project_file(file_path: str, project_dir: Path) -> str | None:
    """Read a file for content matching. None when missing, unreadable, binary or too large."""
    path = resolve_project_path(file_path, project_dir)
    try:
        if path.stat().st_size > MAX_CONTENT_BYTES:
            logger.debug(f"Skipping {file_path}: larger than {MAX_CONTENT_BYTES} bytes")
            return None
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Skipping unreadable file {file_path}: {e}")
        return None
