# === NAVMAP v1 ===
# {
#   "module": "APIRefKit.DataMerge.settings",
#   "purpose": "Pydantic v2 settings and profile layering for the reference data merge",
#   "sections": [
#     {
#       "id": "loglevel",
#       "name": "LogLevel",
#       "anchor": "class-loglevel",
#       "kind": "class"
#     },
#     {
#       "id": "logformat",
#       "name": "LogFormat",
#       "anchor": "class-logformat",
#       "kind": "class"
#     },
#     {
#       "id": "mergesettings",
#       "name": "MergeSettings",
#       "anchor": "class-mergesettings",
#       "kind": "class"
#     },
#     {
#       "id": "load-profile-file",
#       "name": "load_profile_file",
#       "anchor": "function-load-profile-file",
#       "kind": "function"
#     },
#     {
#       "id": "build-settings",
#       "name": "build_settings",
#       "anchor": "function-build-settings",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Typed settings for the reference data merge.

``MergeSettings`` reads ``APIREFKIT_``-prefixed environment variables on top of
defaults that reproduce the stock ``docs/`` layout: twelve generated
``agent*_data.js`` files spliced into ``APIReference.html``. A TOML or YAML
profile can sit between the defaults and the environment, and CLI overrides
win over everything (CLI > ENV > profile > defaults).
"""

from __future__ import annotations

import json
import os
import re
import tomllib
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

import yaml
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .document import DEFAULT_ANCHOR, DEFAULT_END_TOKEN, DEFAULT_START_MARKER
from .errors import ConfigLoadError
from .fragments import DEFAULT_SEPARATOR, ENTRY_PATTERN

__all__ = [
    "DEFAULT_DATA_FILES",
    "ENV_PREFIX",
    "LogFormat",
    "LogLevel",
    "MergeSettings",
    "build_settings",
    "load_profile_file",
]

ENV_PREFIX = "APIREFKIT_"

DEFAULT_DATA_FILES: tuple[str, ...] = (
    "agent1_data.js",
    "agent2_data.js",
    "agent3_data.js",
    "agent4a_data.js",
    "agent4b_data.js",
    "agent4c_data.js",
    "agent5_data.js",
    "agent6_data.js",
    "agent7_data.js",
    "agent8a_data.js",
    "agent8b_data.js",
    "agent8c_data.js",
)


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Supported log output formats."""

    CONSOLE = "console"
    JSON = "json"


class MergeSettings(BaseSettings):
    """Effective configuration for one merge run."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
    )

    docs_dir: Path = Field(Path("docs"), description="Directory holding the page and data files")
    html_file: str = Field("APIReference.html", description="Target page, relative to docs_dir")
    data_files: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_DATA_FILES),
        description="Data files merged in this order, relative to docs_dir",
    )
    start_marker: str = Field(DEFAULT_START_MARKER, description="Literal opening the region")
    anchor: str = Field(DEFAULT_ANCHOR, description="Unique literal following the region")
    end_token: str = Field(DEFAULT_END_TOKEN, description="Token closing the region")
    declaration: str = Field("const D", description="Declaration written before '={'")
    separator: str = Field(DEFAULT_SEPARATOR, description="Text placed between payloads")
    entry_pattern: str = Field(ENTRY_PATTERN, description="Regex counting entries per file")
    log_level: LogLevel = Field(LogLevel.INFO, description="Root logging level")
    log_format: LogFormat = Field(LogFormat.CONSOLE, description="Console summary or JSON lines")
    dry_run: bool = Field(False, description="Report the merge without writing the page")

    @field_validator("docs_dir", mode="before")
    @classmethod
    def expand_paths(cls, v: Any) -> Any:
        """Expand user home."""
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        return v

    @field_validator("data_files", mode="before")
    @classmethod
    def split_data_files(cls, v: Any) -> Any:
        """Accept a JSON list or a comma separated string as well as a list."""
        if isinstance(v, str):
            if v.lstrip().startswith("["):
                return json.loads(v)
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def normalise_log_choices(cls, v: Any, info: ValidationInfo) -> Any:
        """Accept log level and format names in any case."""
        if isinstance(v, str):
            return v.upper() if info.field_name == "log_level" else v.lower()
        return v

    @field_validator("start_marker", "anchor", "end_token")
    @classmethod
    def non_empty_marker(cls, v: str) -> str:
        if not v:
            raise ValueError("markers must be non-empty")
        return v

    @field_validator("entry_pattern")
    @classmethod
    def valid_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid entry pattern: {exc}") from exc
        return v

    @property
    def html_path(self) -> Path:
        return self.docs_dir / self.html_file

    def data_paths(self) -> List[Path]:
        return [self.docs_dir / name for name in self.data_files]


def load_profile_file(path: Path) -> Dict[str, Any]:
    """
    Load a profile file (TOML or YAML) into a dict.

    A ``[datamerge]`` table (or ``datamerge:`` mapping) is used when present,
    otherwise the top level is taken as the settings mapping.

    Raises:
        ConfigLoadError: If the file is not found, malformed, or not a mapping.
    """
    if not path.exists():
        raise ConfigLoadError(f"Profile file not found: {path}")

    suffix = path.suffix.lower()
    raw = path.read_text(encoding="utf-8")
    try:
        if suffix == ".toml":
            data = tomllib.loads(raw)
        elif suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw) or {}
        else:
            raise ConfigLoadError(f"Unsupported profile file format: {suffix}")
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigLoadError(f"Failed to parse profile file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Profile file {path} must contain a mapping")
    section = data.get("datamerge", data)
    if not isinstance(section, dict):
        raise ConfigLoadError(f"Profile section 'datamerge' in {path} must be a mapping")
    return dict(section)


def _env_keys() -> set[str]:
    """Return settings field names that are set through the environment."""

    names = set(MergeSettings.model_fields)
    present = set()
    for key in os.environ:
        upper = key.upper()
        if upper.startswith(ENV_PREFIX):
            name = upper[len(ENV_PREFIX) :].lower()
            if name in names:
                present.add(name)
    return present


def build_settings(profile: Optional[Path] = None, **overrides: Any) -> MergeSettings:
    """
    Build settings with CLI > ENV > profile > defaults precedence.

    ``None`` overrides are ignored so CLI options that were not given fall
    through to the lower layers.
    """
    layered: Dict[str, Any] = {}
    if profile is not None:
        env_set = _env_keys()
        for key, value in load_profile_file(Path(profile)).items():
            # Init kwargs beat ENV in pydantic-settings; keep ENV above the profile.
            if key not in env_set:
                layered[key] = value
    layered.update({k: v for k, v in overrides.items() if v is not None})
    return MergeSettings(**layered)
