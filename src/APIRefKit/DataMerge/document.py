# === NAVMAP v1 ===
# {
#   "module": "APIRefKit.DataMerge.document",
#   "purpose": "Locate and replace the embedded data declaration in the reference page",
#   "sections": [
#     {
#       "id": "regionspan",
#       "name": "RegionSpan",
#       "anchor": "class-regionspan",
#       "kind": "class"
#     },
#     {
#       "id": "locate-region",
#       "name": "locate_region",
#       "anchor": "function-locate-region",
#       "kind": "function"
#     },
#     {
#       "id": "replace-region",
#       "name": "replace_region",
#       "anchor": "function-replace-region",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Region location inside the generated ``APIReference.html`` page.

The page embeds its data as ``const D={...};`` inside a ``<script>`` block,
followed later by the ``DOMContentLoaded`` handler. The region is bounded by
the first occurrence of the start marker and by the nearest end token found
when scanning backward from the anchor. That backward scan is only sound when
the anchor occurs exactly once, so a repeated anchor is rejected rather than
silently picking the first occurrence.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import AmbiguousAnchorError, MarkerNotFoundError, RegionBoundsError

__all__ = [
    "DEFAULT_ANCHOR",
    "DEFAULT_END_TOKEN",
    "DEFAULT_START_MARKER",
    "RegionSpan",
    "locate_region",
    "replace_region",
]

DEFAULT_START_MARKER = "const D={"
DEFAULT_ANCHOR = "document.addEventListener('DOMContentLoaded'"
DEFAULT_END_TOKEN = "};"


@dataclass(frozen=True)
class RegionSpan:
    """Half-open character span ``[start, end)`` that includes the end token."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


def locate_region(
    html: str,
    *,
    start_marker: str = DEFAULT_START_MARKER,
    anchor: str = DEFAULT_ANCHOR,
    end_token: str = DEFAULT_END_TOKEN,
) -> RegionSpan:
    """Return the span of the data declaration in ``html``.

    Raises:
        MarkerNotFoundError: The start marker or the anchor is absent.
        AmbiguousAnchorError: The anchor occurs more than once.
        RegionBoundsError: No end token lies between the start marker and the
            anchor.
    """

    start = html.find(start_marker)
    if start == -1:
        raise MarkerNotFoundError(
            f"Could not find start marker {start_marker!r}",
            marker=start_marker,
            hint="regenerate the reference page or pass --start-marker",
        )

    anchor_pos = html.find(anchor)
    if anchor_pos == -1:
        raise MarkerNotFoundError(
            f"Could not find anchor {anchor!r}",
            marker=anchor,
            hint="pass --anchor with a literal that follows the data block",
        )
    occurrences = html.count(anchor)
    if occurrences > 1:
        raise AmbiguousAnchorError(
            f"Anchor {anchor!r} occurs {occurrences} times",
            marker=anchor,
            occurrences=occurrences,
        )

    end = html.rfind(end_token, 0, anchor_pos)
    if end == -1 or end < start:
        raise RegionBoundsError(
            f"Could not find closing {end_token!r} for {start_marker!r} before the anchor",
            marker=end_token,
        )
    return RegionSpan(start=start, end=end + len(end_token))


def replace_region(html: str, span: RegionSpan, replacement: str) -> str:
    """Return ``html`` with ``span`` replaced by ``replacement``."""

    return html[: span.start] + replacement + html[span.end :]
