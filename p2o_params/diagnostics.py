# MIT License
"""Structured warnings collected while deriving a parameter set.

Every stage returns the diagnostics it produced next to the tree, so
callers can assert on warning conditions instead of parsing log output.
Each diagnostic is also written to the emitting module's logger.
"""
from __future__ import annotations

import logging
from typing import List

from pydantic import BaseModel, Field


class Diagnostic(BaseModel):
    """A single warning emitted by a pipeline stage."""

    stage: str = Field(..., description="Stage that emitted the diagnostic, e.g. 'archetype'.")
    code: str = Field(..., description="Stable machine-readable identifier, e.g. 'unknown_archetype'.")
    message: str = Field(..., description="Human-readable explanation.")


def warn(
    diagnostics: List[Diagnostic],
    logger: logging.Logger,
    stage: str,
    code: str,
    message: str,
) -> Diagnostic:
    """Record a warning diagnostic and log it."""
    diag = Diagnostic(stage=stage, code=code, message=message)
    diagnostics.append(diag)
    logger.warning("%s: %s", stage, message)
    return diag


def has_code(diagnostics: List[Diagnostic], code: str) -> bool:
    """Return True if any diagnostic in ``diagnostics`` carries ``code``."""
    return any(d.code == code for d in diagnostics)
