# === NAVMAP v1 ===
# {
#   "module": "APIRefKit.DataMerge.errors",
#   "purpose": "Exception hierarchy and CLI formatting for the reference data merge.",
#   "sections": [
#     {
#       "id": "datamergeerror",
#       "name": "DataMergeError",
#       "anchor": "class-datamergeerror",
#       "kind": "class"
#     },
#     {
#       "id": "fragmentextractionerror",
#       "name": "FragmentExtractionError",
#       "anchor": "class-fragmentextractionerror",
#       "kind": "class"
#     },
#     {
#       "id": "markerlocationerror",
#       "name": "MarkerLocationError",
#       "anchor": "class-markerlocationerror",
#       "kind": "class"
#     },
#     {
#       "id": "format-error",
#       "name": "format_error",
#       "anchor": "function-format-error",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared by the fragment reader, document splicer and CLI.

Two families of failure exist. Fragment extraction errors are recoverable: the
merge loop catches them, reports a warning, and moves on to the next data file.
Marker location errors are fatal: they are raised before any write happens so
the target HTML page is left untouched. Both carry enough context for
``format_error`` to render a one-line diagnostic with a remediation hint.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "DataMergeError",
    "FragmentExtractionError",
    "MarkerLocationError",
    "MarkerNotFoundError",
    "AmbiguousAnchorError",
    "RegionBoundsError",
    "ConfigLoadError",
    "format_error",
]


class DataMergeError(RuntimeError):
    """Base exception for reference data merge failures."""

    stage = "merge"
    hint: Optional[str] = None


class FragmentExtractionError(DataMergeError):
    """Raised when a data file lacks a usable ``{ ... }`` block."""

    stage = "fragment"

    def __init__(self, label: str, reason: str) -> None:
        super().__init__(f"{label}: {reason}")
        self.label = label
        self.reason = reason


class MarkerLocationError(DataMergeError):
    """Raised when the replaceable region cannot be located in the target."""

    stage = "document"

    def __init__(self, message: str, *, marker: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.marker = marker
        self.hint = hint


class MarkerNotFoundError(MarkerLocationError):
    """Raised when the start marker or the anchor literal is absent."""


class AmbiguousAnchorError(MarkerLocationError):
    """Raised when the anchor literal occurs more than once."""

    def __init__(self, message: str, *, marker: str, occurrences: int) -> None:
        super().__init__(
            message,
            marker=marker,
            hint="the backward search needs an anchor that appears exactly once",
        )
        self.occurrences = occurrences


class RegionBoundsError(MarkerLocationError):
    """Raised when no end token lies between the start marker and the anchor."""


class ConfigLoadError(DataMergeError):
    """Raised when a profile file is missing or cannot be parsed."""

    stage = "config"


def format_error(error: DataMergeError) -> str:
    """Return a consistent error string for CLI consumption."""

    prefix = f"[{error.stage}]"
    hint = f" Hint: {error.hint}" if error.hint else ""
    return f"{prefix} {error}.{hint}".strip()
