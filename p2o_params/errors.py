# MIT License
"""Exceptions raised by the P2O parameter builder.

Only contract violations are raised.  Bad user input (unknown selectors,
unrecognised knobs, out-of-range rates) is reported as a
:class:`~p2o_params.diagnostics.Diagnostic` instead.
"""
from __future__ import annotations


class P2OParameterError(Exception):
    """Base class for all errors raised by this package."""


class EncodingError(P2OParameterError):
    """The parameter tree cannot be rendered into the engine's file set."""

    def __init__(self, message: str, stage: str = "legacy_format") -> None:
        super().__init__(f"[{stage}] {message}")
        self.stage = stage


class MissingFieldError(EncodingError):
    """A field the encoder needs is absent from the tree or has the wrong shape."""

    def __init__(self, field: str, stage: str = "legacy_format", detail: str = "") -> None:
        message = f"required field '{field}' is missing"
        if detail:
            message = f"required field '{field}' is invalid: {detail}"
        super().__init__(message, stage=stage)
        self.field = field


class OutputDirectoryError(P2OParameterError):
    """The output directory could not be created."""
