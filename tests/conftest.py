from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

PACKAGE_JSON = {
    "name": "template",
    "version": "1.0.0",
    "private": True,
    "scripts": {"dev": "next dev", "build": "next build"},
    "dependencies": {},
}

ENV_EXAMPLE = b"DATABASE_URL=sqlite://dev.sqlite3\r\nSECRET=\xe2\x9c\x93\n"


@pytest.fixture()
def template_dir(tmp_path: Path) -> Path:
    """A template tree including every entry the copier must skip."""

    root = tmp_path / "template"
    (root / "src" / "components").mkdir(parents=True)
    (root / "package.json").write_text(json.dumps(PACKAGE_JSON, indent=2) + "\n", encoding="utf-8")
    (root / "env.example").write_bytes(ENV_EXAMPLE)
    (root / "src" / "index.ts").write_text("export {};\n", encoding="utf-8")
    (root / "src" / "components" / "Button.tsx").write_text("export const Button = 1;\n", encoding="utf-8")

    (root / ".git" / "objects").mkdir(parents=True)
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    (root / "node_modules" / "react").mkdir(parents=True)
    (root / "node_modules" / "react" / "index.js").write_text("", encoding="utf-8")
    (root / ".next" / "cache").mkdir(parents=True)
    (root / "dev.sqlite3").write_bytes(b"SQLite format 3\x00")
    (root / "src" / "node_modules").mkdir()
    (root / "src" / "node_modules" / "local.js").write_text("", encoding="utf-8")
    (root / "src" / "components" / "dev.sqlite3").write_bytes(b"")
    return root


@pytest.fixture()
def workspace(tmp_path: Path) -> tuple[Path, Path]:
    """Separate working and temporary directories for a run."""

    cwd = tmp_path / "work"
    temp_root = tmp_path / "tmp"
    cwd.mkdir()
    temp_root.mkdir()
    return cwd, temp_root
