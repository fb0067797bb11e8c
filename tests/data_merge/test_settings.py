"""
Settings Layering Tests

Validates ``MergeSettings`` defaults, environment parsing and the
CLI > ENV > profile > defaults precedence applied by ``build_settings``.

Usage:
    pytest tests/data_merge/test_settings.py
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from APIRefKit.DataMerge.errors import ConfigLoadError
from APIRefKit.DataMerge.settings import (
    DEFAULT_DATA_FILES,
    LogFormat,
    MergeSettings,
    build_settings,
    load_profile_file,
)


def test_defaults_match_stock_docs_layout():
    settings = MergeSettings()
    assert settings.html_path == Path("docs") / "APIReference.html"
    assert tuple(settings.data_files) == DEFAULT_DATA_FILES
    assert settings.separator == ",\n\n"
    assert settings.anchor == "document.addEventListener('DOMContentLoaded'"
    assert settings.end_token == "};"


def test_env_accepts_comma_list_and_json_list(monkeypatch):
    monkeypatch.setenv("APIREFKIT_DATA_FILES", "a.js, b.js")
    assert MergeSettings().data_files == ["a.js", "b.js"]

    monkeypatch.setenv("APIREFKIT_DATA_FILES", '["c.js", "d.js"]')
    assert MergeSettings().data_files == ["c.js", "d.js"]


def test_invalid_entry_pattern_rejected():
    with pytest.raises(ValidationError):
        MergeSettings(entry_pattern="([unclosed")


def test_empty_marker_rejected():
    with pytest.raises(ValidationError):
        MergeSettings(anchor="")


def test_load_profile_toml_section(tmp_path: Path):
    profile = tmp_path / "merge.toml"
    profile.write_text(
        '[datamerge]\nhtml_file = "Ref.html"\ndata_files = ["x.js"]\n', encoding="utf-8"
    )
    assert load_profile_file(profile) == {"html_file": "Ref.html", "data_files": ["x.js"]}


def test_load_profile_rejects_unknown_suffix(tmp_path: Path):
    profile = tmp_path / "merge.ini"
    profile.write_text("[datamerge]\n", encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        load_profile_file(profile)


def test_load_profile_rejects_malformed_yaml(tmp_path: Path):
    profile = tmp_path / "merge.yaml"
    profile.write_text("datamerge: [unterminated\n", encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        load_profile_file(profile)


def test_precedence_cli_over_env_over_profile(tmp_path: Path, monkeypatch):
    profile = tmp_path / "merge.yaml"
    profile.write_text(
        "html_file: FromProfile.html\nlog_format: json\ndeclaration: var P\n", encoding="utf-8"
    )
    monkeypatch.setenv("APIREFKIT_HTML_FILE", "FromEnv.html")
    monkeypatch.setenv("APIREFKIT_DECLARATION", "var E")

    settings = build_settings(profile, declaration="var C", docs_dir=None)

    assert settings.html_file == "FromEnv.html"
    assert settings.declaration == "var C"
    assert settings.log_format is LogFormat.JSON
    assert settings.docs_dir == Path("docs")


def test_log_choices_accept_any_case(monkeypatch):
    settings = MergeSettings(log_level="debug", log_format="JSON")
    assert settings.log_level.value == "DEBUG"
    assert settings.log_format is LogFormat.JSON

    monkeypatch.setenv("APIREFKIT_LOG_LEVEL", "warning")
    assert MergeSettings().log_level.value == "WARNING"
