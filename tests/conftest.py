"""
Pytest Configuration

Shared fixtures for the reference data merge suite: a miniature ``docs/``
tree holding an ``APIReference.html`` page and a few generated data files
shaped like the real ``agent*_data.js`` outputs.

Usage:
    pytest tests/data_merge
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from APIRefKit.DataMerge.settings import ENV_PREFIX

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<body>
<script>
const D={
'Old-Entry': ['old', 'stale']
};

document.addEventListener('DOMContentLoaded', () => {
  render(D);
});
</script>
</body>
</html>
"""

AGENT1 = """// Agent 1: Core
// Auto-generated API reference data
const AGENT1_DATA = {

'Application-AppConfig': [
  'struct AppConfig',
  'Settings used by Application::Initialize().'
],

'Application-Initialize': [
  'bool Initialize(const AppConfig& config)',
  'Creates the window.'
],

};
"""

AGENT2 = """// Agent 2: Graphics
{
'Renderer-Begin': [
  'void Begin()',
  'Starts a frame.'
]
},
"""


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    root.mkdir()
    (root / "APIReference.html").write_text(PAGE_TEMPLATE, encoding="utf-8")
    (root / "agent1_data.js").write_text(AGENT1, encoding="utf-8")
    (root / "agent2_data.js").write_text(AGENT2, encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    yield
    logger = logging.getLogger("APIRefKit.DataMerge")
    handler = getattr(logger, "_datamerge_handler", None)
    if handler is not None:
        logger.removeHandler(handler)
        delattr(logger, "_datamerge_handler")
