# === NAVMAP v1 ===
# {
#   "module": "APIRefKit.DataMerge.merge",
#   "purpose": "Splice merged data files into the reference page",
#   "sections": [
#     {
#       "id": "mergeplan",
#       "name": "MergePlan",
#       "anchor": "class-mergeplan",
#       "kind": "class"
#     },
#     {
#       "id": "mergereport",
#       "name": "MergeReport",
#       "anchor": "class-mergereport",
#       "kind": "class"
#     },
#     {
#       "id": "merge-text",
#       "name": "merge_text",
#       "anchor": "function-merge-text",
#       "kind": "function"
#     },
#     {
#       "id": "run-merge",
#       "name": "run_merge",
#       "anchor": "function-run-merge",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Merge orchestration.

``run_merge`` reads the reference page, locates the data declaration before
touching any data file, collects the fragments in order, and overwrites the
page in a single atomic replace. Marker errors propagate out of ``run_merge``
untouched so the CLI can turn them into a non-zero exit; fragment problems are
recorded on the returned ``MergeReport`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .document import (
    DEFAULT_ANCHOR,
    DEFAULT_END_TOKEN,
    DEFAULT_START_MARKER,
    RegionSpan,
    locate_region,
    replace_region,
)
from .fragments import (
    DEFAULT_SEPARATOR,
    ENTRY_PATTERN,
    ExtractedFragment,
    FragmentSource,
    SkippedFragment,
    build_declaration,
    collect_fragments,
    join_payloads,
)
from .io import read_text, write_text_atomic
from .logging import log_event
from .settings import MergeSettings

__all__ = ["MergePlan", "MergeReport", "merge_text", "run_merge"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergePlan:
    """Everything needed to perform one merge."""

    html_path: Path
    sources: Tuple[FragmentSource, ...]
    start_marker: str = DEFAULT_START_MARKER
    anchor: str = DEFAULT_ANCHOR
    end_token: str = DEFAULT_END_TOKEN
    declaration: str = "const D"
    separator: str = DEFAULT_SEPARATOR
    entry_pattern: str = ENTRY_PATTERN
    dry_run: bool = False

    @classmethod
    def from_settings(cls, settings: MergeSettings) -> "MergePlan":
        return cls(
            html_path=settings.html_path,
            sources=tuple(FragmentSource.from_path(p) for p in settings.data_paths()),
            start_marker=settings.start_marker,
            anchor=settings.anchor,
            end_token=settings.end_token,
            declaration=settings.declaration,
            separator=settings.separator,
            entry_pattern=settings.entry_pattern,
            dry_run=settings.dry_run,
        )


@dataclass
class MergeReport:
    """Outcome of a merge, suitable for console summaries and JSON output."""

    span: RegionSpan
    fragments: List[ExtractedFragment] = field(default_factory=list)
    skipped: List[SkippedFragment] = field(default_factory=list)
    output_chars: int = 0
    output_bytes: int = 0
    changed: bool = False
    written: bool = False

    @property
    def total_entries(self) -> int:
        return sum(f.entries for f in self.fragments)

    @property
    def size_kb(self) -> float:
        return self.output_chars / 1024

    def to_dict(self) -> dict:
        return {
            "span": {"start": self.span.start, "end": self.span.end},
            "fragments": [{"file": f.label, "entries": f.entries} for f in self.fragments],
            "skipped": [{"file": s.label, "reason": s.reason} for s in self.skipped],
            "total_entries": self.total_entries,
            "output_chars": self.output_chars,
            "output_bytes": self.output_bytes,
            "changed": self.changed,
            "written": self.written,
        }


def merge_text(
    html: str,
    sources: Sequence[FragmentSource],
    *,
    start_marker: str = DEFAULT_START_MARKER,
    anchor: str = DEFAULT_ANCHOR,
    end_token: str = DEFAULT_END_TOKEN,
    declaration: str = "const D",
    separator: str = DEFAULT_SEPARATOR,
    entry_pattern: str = ENTRY_PATTERN,
    logger: Optional[logging.Logger] = None,
) -> Tuple[str, MergeReport]:
    """Return ``html`` with its data declaration rebuilt from ``sources``.

    Raises:
        MarkerLocationError: If the region cannot be located. Raised before any
            fragment is read.
    """

    logger = logger or LOGGER
    span = locate_region(html, start_marker=start_marker, anchor=anchor, end_token=end_token)
    log_event(
        logger,
        "info",
        f"Found {declaration} block: chars {span.start} to {span.end} "
        f"({span.length} chars)",
        stage="document",
        span_start=span.start,
        span_end=span.end,
    )

    extracted, skipped = collect_fragments(sources, pattern=entry_pattern, logger=logger)
    report = MergeReport(span=span, fragments=extracted, skipped=skipped)
    log_event(
        logger,
        "info",
        f"\nTotal entries: {report.total_entries}",
        stage="merge",
        total_entries=report.total_entries,
        fragments=len(extracted),
        skipped=len(skipped),
    )

    merged = join_payloads((f.payload for f in extracted), separator)
    new_html = replace_region(html, span, build_declaration(merged, declaration=declaration))
    report.output_chars = len(new_html)
    report.output_bytes = len(new_html.encode("utf-8"))
    report.changed = new_html != html
    return new_html, report


def run_merge(plan: MergePlan, *, logger: Optional[logging.Logger] = None) -> MergeReport:
    """Merge ``plan.sources`` into ``plan.html_path`` and overwrite it in full.

    Nothing is written when the markers cannot be located, when ``dry_run`` is
    set, or when the rebuilt page is identical to the current one.
    """

    logger = logger or LOGGER
    html = read_text(plan.html_path)
    new_html, report = merge_text(
        html,
        plan.sources,
        start_marker=plan.start_marker,
        anchor=plan.anchor,
        end_token=plan.end_token,
        declaration=plan.declaration,
        separator=plan.separator,
        entry_pattern=plan.entry_pattern,
        logger=logger,
    )

    if plan.dry_run:
        log_event(logger, "info", "Dry run: page not written", stage="merge", dry_run=True)
    elif report.changed:
        write_text_atomic(plan.html_path, new_html)
        report.written = True
    else:
        log_event(logger, "info", "Page already up to date", stage="merge", changed=False)

    log_event(
        logger,
        "info",
        f"\nMerged {len(plan.sources)} data files into {plan.html_path.name}",
        stage="merge",
        data_files=len(plan.sources),
        html_path=str(plan.html_path),
        written=report.written,
    )
    log_event(
        logger,
        "info",
        f"HTML size: {report.size_kb:.1f} KB",
        stage="merge",
        output_chars=report.output_chars,
        output_bytes=report.output_bytes,
    )
    return report
