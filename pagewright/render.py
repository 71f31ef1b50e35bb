from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Mapping, Sequence

import jinja2
import markdown

from .content import ROOT_PAGE_CATEGORY, split_header_block
from .errors import BuildError, PageError

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = [
    "tables",
    "footnotes",
    "fenced_code",
    "codehilite",
    "pymdownx.tilde",
    "pymdownx.magiclink",
    "pymdownx.tasklist",
]
MARKDOWN_EXTENSION_CONFIGS = {
    "codehilite": {"guess_lang": False},
    "pymdownx.tilde": {"subscript": False},
    "pymdownx.tasklist": {"custom_checkbox": False},
}
TEMPLATE_GLOB = "*.html"


def render_content(path: Path) -> str:
    """Return the HTML body of a content file, without its header block.

    ``.html`` sources are returned as written; everything else is converted
    as Markdown.
    """
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise PageError(path, f"cannot read file: {exc}") from exc
    _, body = split_header_block(raw, path)
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise PageError(path, f"content is not valid UTF-8: {exc}") from exc
    if path.suffix == ".html":
        return text
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
    )
    try:
        return md.convert(text)
    except Exception as exc:
        raise PageError(path, f"markdown conversion failed: {exc}") from exc


def contains(items: Sequence | None, item: object) -> bool:
    return item in (items or ())


def string_contains(text: str | None, sub: str) -> bool:
    return sub in (text or "")


def filter_posts(posts: Sequence, category: str) -> Sequence:
    if category == ROOT_PAGE_CATEGORY:
        return posts
    return [post for post in posts if post.category == category]


TEMPLATE_HELPERS = {
    "contains": contains,
    "string_contains": string_contains,
    "filter_posts": filter_posts,
}


def load_templates(templates_dir: Path) -> Mapping[str, jinja2.Template]:
    """Compile every ``*.html`` file directly inside ``templates_dir``.

    Templates may extend or include one another by file name.
    """
    if not templates_dir.is_dir():
        raise BuildError(f"Templates directory not found: {templates_dir}")
    names = sorted(path.name for path in templates_dir.glob(TEMPLATE_GLOB) if path.is_file())
    if not names:
        raise BuildError(f"No templates matching {TEMPLATE_GLOB} in {templates_dir}")
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(templates_dir),
        autoescape=jinja2.select_autoescape(["html", "xml"]),
    )
    env.globals.update(TEMPLATE_HELPERS)
    env.filters.update(TEMPLATE_HELPERS)
    templates = {}
    for name in names:
        try:
            templates[name] = env.get_template(name)
        except jinja2.TemplateError as exc:
            raise BuildError(f"Error reading template {templates_dir / name}: {exc}") from exc
    logger.debug("Loaded %d templates from %s", len(templates), templates_dir)
    return templates


def write_text(path: Path, text: str) -> None:
    # Sibling units may create the same parent concurrently.
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def copy_static(static_dir: Path, output_dir: Path) -> None:
    shutil.copytree(static_dir, output_dir, dirs_exist_ok=True)
