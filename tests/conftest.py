"""Shared fixtures: throwaway source trees and site configs under tmp_path"""

from pathlib import Path

import pytest

from pressgen.config import SiteConfig


def write_doc(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def post_text(title: str, body: str = "Body text.", **meta: str) -> str:
    lines = ["---", f"title: {title}", "layout: post"]
    lines.extend(f"{key}: {value}" for key, value in meta.items())
    lines.append("---")
    return "\n".join(lines) + "\n" + body + "\n"


@pytest.fixture(name="source")
def source_fixture(tmp_path):
    root = tmp_path / "content"
    root.mkdir()
    return root


@pytest.fixture(name="make_config")
def make_config_fixture(tmp_path, source):
    def make(**overrides) -> SiteConfig:
        values = {
            "source": source,
            "output": tmp_path / "_site",
            "site_name": "Test Blog",
            "build_workers": 2,
        }
        values.update(overrides)
        return SiteConfig(**values)

    return make
