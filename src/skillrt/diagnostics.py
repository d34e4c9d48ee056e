"""Non-fatal diagnostics collected alongside engine and store results."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class DiagnosticCategory(StrEnum):
    CONFIG = "config"  # Bad trigger pattern in a rule
    IO = "io"  # Unreadable file or session record
    CONCURRENCY = "concurrency"  # Lock timeout or cleanup race
    VALIDATION = "validation"  # Bad validation-rule pattern


class Diagnostic(BaseModel):
    category: DiagnosticCategory
    message: str
    skill_name: str | None = None
    field: str | None = None
