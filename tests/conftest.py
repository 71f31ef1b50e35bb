from __future__ import annotations

from pathlib import Path

import pytest

DEFAULT_TEMPLATE = "<html><head><title>{{ title }}</title></head><body>{{ content }}</body></html>"


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    write(root / "config.toml", 'title = "Test site"\nurl = "https://example.com"\n')
    write(root / "templates" / "default.html", DEFAULT_TEMPLATE)
    (root / "content").mkdir(parents=True)
    return root


@pytest.fixture
def content(project: Path) -> Path:
    return project / "content"
