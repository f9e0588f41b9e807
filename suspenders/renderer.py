"""
renderer.py

Responsibility: Deterministically render/copy template files into the target project.

Rules:
- `render_template_file` always renders the source with Jinja2.
- `copy_template_file` copies bytes exactly as they exist in the templates directory.
- `copy_template_dir` walks files in sorted order; text files with Jinja2 markers are
  rendered, everything else is copied byte-for-byte.

This module intentionally does NOT know about steps, commands or CLI parsing.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined


class RenderError(RuntimeError):
    pass


class MissingTemplateError(RenderError):
    pass


def _environment() -> Environment:
    return Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def _is_binary_file(path: Path) -> bool:
    """
    Best-effort: treat a file as binary if it cannot be decoded as UTF-8.
    """
    try:
        path.read_text(encoding="utf-8")
        return False
    except UnicodeDecodeError:
        return True


def _has_markers(text: str) -> bool:
    return ("{{" in text) or ("{%" in text) or ("{#" in text)


def _iter_template_files(template_dir: Path) -> list[Path]:
    """
    Return all files under template_dir, in deterministic lexicographic order
    (relative path ordering).
    """
    files: list[Path] = []
    for root, _dirs, filenames in os.walk(template_dir):
        root_path = Path(root)
        for name in filenames:
            files.append(root_path / name)
    files.sort(key=lambda p: str(p.relative_to(template_dir)).replace(os.sep, "/"))
    return files


def _require(src: Path) -> None:
    if not src.is_file():
        raise MissingTemplateError(f"Template not found: {src}")


def render_string(text: str, context: dict[str, Any], *, name: str = "<string>") -> str:
    try:
        return _environment().from_string(text).render(**context)
    except Exception as e:  # noqa: BLE001 - surface as RenderError
        raise RenderError(f"Failed rendering template: {name}: {e}") from e


def render_template_file(src: Path, dst: Path, context: dict[str, Any]) -> None:
    """Render `src` with Jinja2 and write the result to `dst`, keeping permissions."""
    _require(src)
    out = render_string(src.read_text(encoding="utf-8"), context, name=src.name)
    dst.parent.mkdir(parents=True, exist_ok=True)
    # For rendered output, normalize newlines for stable cross-platform output.
    dst.write_text(out, encoding="utf-8", newline="\n")
    shutil.copymode(src, dst)


def copy_template_file(src: Path, dst: Path) -> None:
    _require(src)
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(src, dst)
    shutil.copymode(src, dst)


def copy_template_dir(
    src_dir: Path,
    dst_dir: Path,
    context: dict[str, Any],
    *,
    rename: Callable[[Path], Path] | None = None,
) -> list[Path]:
    """
    Render/copy a template directory into dst_dir.

    `rename` maps each relative source path to its relative destination path.
    Returns the destination paths written, in the order they were written.
    """
    if not src_dir.is_dir():
        raise MissingTemplateError(f"Template directory not found: {src_dir}")

    written: list[Path] = []
    for src_path in _iter_template_files(src_dir):
        rel = src_path.relative_to(src_dir)
        dst_path = dst_dir / (rename(rel) if rename else rel)

        if not _is_binary_file(src_path) and _has_markers(src_path.read_text(encoding="utf-8")):
            render_template_file(src_path, dst_path, context)
        else:
            copy_template_file(src_path, dst_path)
        written.append(dst_path)
    return written
