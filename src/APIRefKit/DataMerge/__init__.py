"""
Reference data merge for the generated API reference page.

Reads the ``agent*_data.js`` data files, extracts the object literal body of
each, and rebuilds the ``const D={...};`` declaration embedded in
``APIReference.html``.
"""

from .document import RegionSpan, locate_region, replace_region
from .errors import (
    AmbiguousAnchorError,
    ConfigLoadError,
    DataMergeError,
    FragmentExtractionError,
    MarkerLocationError,
    MarkerNotFoundError,
    RegionBoundsError,
)
from .fragments import (
    ExtractedFragment,
    FragmentSource,
    SkippedFragment,
    build_declaration,
    collect_fragments,
    count_entries,
    extract_payload,
    join_payloads,
)
from .merge import MergePlan, MergeReport, merge_text, run_merge
from .settings import MergeSettings, build_settings

__all__ = [
    "AmbiguousAnchorError",
    "ConfigLoadError",
    "DataMergeError",
    "ExtractedFragment",
    "FragmentExtractionError",
    "FragmentSource",
    "MarkerLocationError",
    "MarkerNotFoundError",
    "MergePlan",
    "MergeReport",
    "MergeSettings",
    "RegionBoundsError",
    "RegionSpan",
    "SkippedFragment",
    "build_declaration",
    "build_settings",
    "collect_fragments",
    "count_entries",
    "extract_payload",
    "join_payloads",
    "locate_region",
    "merge_text",
    "replace_region",
]
