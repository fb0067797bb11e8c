"""
Fragment Extraction Tests

Validates brace-delimited payload extraction, entry counting and the
order-preserving join used to rebuild the ``const D`` declaration.

Key Scenarios:
- Payload is the trimmed text between the first ``{`` and the last ``}``
- Exactly one trailing comma is removed
- Broken fragments are skipped with a warning instead of aborting

Usage:
    pytest tests/data_merge/test_fragments.py
"""

from __future__ import annotations

import logging

import pytest
from hypothesis import given
from hypothesis import strategies as st

from APIRefKit.DataMerge.errors import FragmentExtractionError
from APIRefKit.DataMerge.fragments import (
    FragmentSource,
    build_declaration,
    collect_fragments,
    count_entries,
    extract_payload,
    join_payloads,
)

_payload_text = st.text(
    alphabet=st.characters(exclude_characters="{}", exclude_categories=("Cs",)),
    max_size=40,
)


@given(
    prefix=_payload_text,
    payload=_payload_text,
    trailing_comma=st.booleans(),
    after_close=st.sampled_from(["", ",", ",\n", "\n"]),
)
def test_extract_payload_well_formed(prefix, payload, trailing_comma, after_close):
    body = payload + ("," if trailing_comma else "")
    text = f"{prefix}{{{body}}}{after_close}"

    expected = body.strip()
    if expected.endswith(","):
        expected = expected[:-1].rstrip()

    assert extract_payload(text) == expected


def test_extract_payload_strips_only_one_trailing_comma():
    assert extract_payload("{ a:1,, }") == "a:1,"


def test_extract_payload_first_brace_wins_even_inside_comments():
    text = "// header {not really}\nconst X = {\n  'A-b': [1],\n};\n"
    # The first brace in the comment opens the payload.
    assert extract_payload(text).startswith("not really}")


def test_extract_payload_nested_braces_use_outermost():
    assert extract_payload("{ 'A-b': [{x: 1}], }") == "'A-b': [{x: 1}]"


@pytest.mark.parametrize(
    "text",
    ["no braces at all", "only open {", "} closing before opening {", ""],
)
def test_extract_payload_rejects_malformed(text):
    with pytest.raises(FragmentExtractionError) as excinfo:
        extract_payload(text, label="agentX_data.js")
    assert excinfo.value.label == "agentX_data.js"


def test_join_preserves_order_with_blank_line_separator():
    payloads = [extract_payload("{a:1},"), extract_payload("{b:2}")]
    assert join_payloads(payloads) == "a:1,\n\nb:2"


def test_join_drops_empty_payloads():
    assert join_payloads(["a:1", "", "b:2"]) == "a:1,\n\nb:2"


def test_build_declaration_wraps_keyword_name_braces_and_semicolon():
    assert build_declaration("a:1") == "const D={\na:1\n};"
    assert build_declaration("", declaration="var Z") == "var Z={\n\n};"


def test_count_entries_matches_api_keys():
    payload = "'Application-AppConfig': [\n'x'],\n'Vec3-operator~': ['y'],\n'plain': [1]"
    assert count_entries(payload) == 2


def test_collect_fragments_skips_missing_and_malformed(tmp_path, caplog):
    good = tmp_path / "good.js"
    good.write_text("{'A-b': [1],}", encoding="utf-8")
    bad = tmp_path / "bad.js"
    bad.write_text("// nothing here", encoding="utf-8")
    empty = tmp_path / "empty.js"
    empty.write_text("{ , }", encoding="utf-8")
    sources = [
        FragmentSource.from_path(tmp_path / "missing.js"),
        FragmentSource.from_path(bad),
        FragmentSource.from_path(good),
        FragmentSource.from_path(empty),
        FragmentSource.from_text("{'C-d': [2]}", label="inline"),
    ]

    logger = logging.getLogger("tests.fragments")
    with caplog.at_level(logging.INFO, logger="tests.fragments"):
        extracted, skipped = collect_fragments(sources, logger=logger)

    assert [f.label for f in extracted] == ["good.js", "inline"]
    assert [f.entries for f in extracted] == [1, 1]
    assert [s.label for s in skipped] == ["missing.js", "bad.js", "empty.js"]
    assert skipped[0].reason == "file not found"
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 3
    assert warnings[1].extra_fields["error_code"] == "FRAGMENT_MALFORMED"


def test_fragment_source_requires_exactly_one_backing(tmp_path):
    with pytest.raises(ValueError):
        FragmentSource(label="x")
    with pytest.raises(ValueError):
        FragmentSource(label="x", path=tmp_path / "a.js", text="{}")


def test_collect_fragments_skips_undecodable_file_and_keeps_going(tmp_path, caplog):
    undecodable = tmp_path / "agent3_data.js"
    undecodable.write_bytes(b"{'A-b': [\xff]}")
    good = tmp_path / "agent4a_data.js"
    good.write_text("{'C-d': [1],}", encoding="utf-8")

    logger = logging.getLogger("tests.fragments")
    with caplog.at_level(logging.INFO, logger="tests.fragments"):
        extracted, skipped = collect_fragments(
            [FragmentSource.from_path(undecodable), FragmentSource.from_path(good)],
            logger=logger,
        )

    assert [f.label for f in extracted] == ["agent4a_data.js"]
    assert extracted[0].payload == "'C-d': [1]"
    assert [s.label for s in skipped] == ["agent3_data.js"]
    assert skipped[0].reason.startswith("unreadable: ")
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert [w.extra_fields["error_code"] for w in warnings] == ["FRAGMENT_UNREADABLE"]
