"""Custom exceptions and warnings for pymotifscan.

Every fatal condition is raised before any parallel work is dispatched, so
callers receive either a complete hit table or exactly one of these errors.
"""

from __future__ import annotations
from typing import Optional


class MotifScanError(Exception):
    """Base exception for all pymotifscan errors.

    Args:
        message: Error message describing what went wrong
        suggestion: What the caller should do to fix the error
        context: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[str] = None,
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context
        super().__init__(self.formatted())

    def formatted(self) -> str:
        """Get fully formatted error message for display."""
        msg = f"[ERROR] {self.message}"

        if self.context:
            msg += f"\n  Context: {self.context}"

        if self.suggestion:
            msg += f"\n  Suggestion: {self.suggestion}"

        return msg

    def __str__(self) -> str:
        return self.formatted()


class InputError(MotifScanError, ValueError):
    """Caller contract violation.

    Raised for mismatched matrix/threshold counts, non-positive k, an empty
    alphabet, matrices sized for the wrong alphabet or order, and any other
    argument that cannot be scanned as given.
    """


class SequenceLengthError(InputError):
    """A sequence is shorter than the width of at least one motif.

    Args:
        shortest: Length of the shortest sequence
        widest: Width of the widest motif, in raw characters
    """

    def __init__(self, shortest: int, widest: int):
        super().__init__(
            "Found sequence(s) shorter than the width of the motif(s)",
            suggestion="Remove short sequences or scan with narrower motifs",
            context=f"shortest sequence: {shortest}, widest motif: {widest}",
        )
        self.shortest = shortest
        self.widest = widest


class AtlasNotFoundError(MotifScanError, FileNotFoundError):
    """Motif atlas file does not exist.

    Args:
        path: Path to the missing atlas
    """

    def __init__(self, path: str):
        super().__init__(
            f"Motif atlas not found: {path}",
            suggestion="Pass --motifs with a .json or .db atlas path",
        )
        self.path = path


class UnrecognizedSymbolWarning(UserWarning):
    """Characters outside the alphabet were found and scored as penalties."""
