"""
Fragment extraction for generated API reference data files.

Each ``agent*_data.js`` file holds a single JavaScript object literal, possibly
preceded by line comments (``// Agent 1: Core ...``) or a declaration such as
``const AGENT1_DATA = {``, and possibly followed by a trailing comma. The
helpers here pull the text between the outermost braces without parsing it,
count the ``'Class-Member': [`` entries for reporting, and join the payloads
into the body of the ``const D`` declaration.

NAVMAP:
- FragmentSource: Named input (path on disk or in-memory text)
- extract_payload: First ``{`` / last ``}`` extraction with comma trimming
- count_entries: Observational entry counter
- join_payloads / build_declaration: Merged ``const D={...};`` text
- collect_fragments: Read sources in order, skipping broken ones
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from .errors import FragmentExtractionError
from .io import read_text
from .logging import log_event

__all__ = [
    "DEFAULT_SEPARATOR",
    "ENTRY_PATTERN",
    "ExtractedFragment",
    "FragmentSource",
    "SkippedFragment",
    "build_declaration",
    "collect_fragments",
    "count_entries",
    "extract_payload",
    "join_payloads",
]

DEFAULT_SEPARATOR = ",\n\n"
ENTRY_PATTERN = r"'[A-Za-z0-9_]+-[A-Za-z0-9_~]+'\s*:\s*\["


@dataclass(frozen=True)
class FragmentSource:
    """A labelled fragment backed by a file path or by literal text."""

    label: str
    path: Optional[Path] = None
    text: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.path is None) == (self.text is None):
            raise ValueError("FragmentSource requires exactly one of path or text")

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FragmentSource":
        path = Path(path)
        return cls(label=path.name, path=path)

    @classmethod
    def from_text(cls, text: str, *, label: str = "<memory>") -> "FragmentSource":
        return cls(label=label, text=text)

    def read(self) -> str:
        """Return the fragment text, reading it from disk when path-backed."""

        if self.text is not None:
            return self.text
        return read_text(self.path)


@dataclass(frozen=True)
class ExtractedFragment:
    """Payload pulled from one fragment together with its entry count."""

    label: str
    payload: str
    entries: int


@dataclass(frozen=True)
class SkippedFragment:
    """A fragment that contributed nothing, with the reason it was dropped."""

    label: str
    reason: str


def extract_payload(text: str, *, label: str = "<memory>") -> str:
    """Return the trimmed text between the first ``{`` and the last ``}``.

    A single trailing comma left inside the braces (``'k': [...],\\n}``) is
    removed together with any whitespace that preceded it.

    Raises:
        FragmentExtractionError: If either brace is missing or the last ``}``
            does not come after the first ``{``.
    """

    first = text.find("{")
    if first == -1:
        raise FragmentExtractionError(label, "no opening brace found")
    last = text.rfind("}")
    if last == -1 or last <= first:
        raise FragmentExtractionError(label, "no closing brace found after the opening brace")

    inner = text[first + 1 : last].strip()
    if inner.endswith(","):
        inner = inner[:-1].rstrip()
    return inner


def count_entries(payload: str, pattern: Union[str, Pattern[str]] = ENTRY_PATTERN) -> int:
    """Count ``'Class-Member': [`` style keys in ``payload``."""

    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return sum(1 for _ in compiled.finditer(payload))


def join_payloads(payloads: Iterable[str], separator: str = DEFAULT_SEPARATOR) -> str:
    """Join non-empty payloads in order using ``separator``."""

    return separator.join(p for p in payloads if p)


def build_declaration(merged: str, *, declaration: str = "const D") -> str:
    """Wrap ``merged`` as ``<declaration>={\\n<merged>\\n};``."""

    return f"{declaration}={{\n{merged}\n}};"


def collect_fragments(
    sources: Sequence[FragmentSource],
    *,
    pattern: Union[str, Pattern[str]] = ENTRY_PATTERN,
    logger: Optional[logging.Logger] = None,
) -> Tuple[List[ExtractedFragment], List[SkippedFragment]]:
    """Read and extract every source in order.

    No single fragment can abort the run: missing files, unreadable files,
    broken braces and empty payloads are recorded as ``SkippedFragment``
    entries and reported through ``logger`` as warnings.
    """

    logger = logger or logging.getLogger(__name__)
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    extracted: List[ExtractedFragment] = []
    skipped: List[SkippedFragment] = []

    for source in sources:
        if source.path is not None and not source.path.is_file():
            _skip(logger, skipped, source.label, "file not found", "FRAGMENT_MISSING")
            continue
        try:
            text = source.read()
        except (OSError, UnicodeDecodeError) as exc:
            _skip(logger, skipped, source.label, f"unreadable: {exc}", "FRAGMENT_UNREADABLE")
            continue
        try:
            payload = extract_payload(text, label=source.label)
        except FragmentExtractionError as exc:
            _skip(logger, skipped, source.label, exc.reason, "FRAGMENT_MALFORMED")
            continue
        if not payload:
            _skip(logger, skipped, source.label, "empty payload", "FRAGMENT_EMPTY")
            continue

        entries = count_entries(payload, compiled)
        extracted.append(ExtractedFragment(label=source.label, payload=payload, entries=entries))
        log_event(
            logger,
            "info",
            f"{source.label}: {entries} entries",
            stage="fragment",
            fragment=source.label,
            entries=entries,
            payload_chars=len(payload),
        )

    return extracted, skipped


def _skip(
    logger: logging.Logger,
    skipped: List[SkippedFragment],
    label: str,
    reason: str,
    error_code: str,
) -> None:
    skipped.append(SkippedFragment(label=label, reason=reason))
    log_event(
        logger,
        "warning",
        f"WARNING: {label} skipped ({reason})",
        stage="fragment",
        fragment=label,
        error_code=error_code,
    )
