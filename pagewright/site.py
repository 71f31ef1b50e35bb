from __future__ import annotations

import datetime as dt
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from .config import SiteConfig
from .content import apply_header_block, default_title, derive_category, parse_filename, read_header_block
from .errors import BuildError, PageError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "default.html"


@dataclass(frozen=True)
class Page:
    source_path: Path
    url_path: str
    permalink: str
    date_modified: dt.datetime
    date_published: dt.datetime | None = None
    title: str = ""
    tags: tuple[str, ...] = ()
    category: str = ""
    template_name: str = DEFAULT_TEMPLATE

    @property
    def is_post(self) -> bool:
        return self.date_published is not None


@dataclass(frozen=True)
class Site:
    title: str
    base_url: str
    pages: tuple[Page, ...] = field(default_factory=tuple)
    posts: tuple[Page, ...] = field(default_factory=tuple)


def walk_files(directory: Path) -> Iterator[Path]:
    """Yield regular files depth first, entries in lexical order."""
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except OSError as exc:
        raise BuildError(f"Error reading directory {directory}: {exc}") from exc
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from walk_files(Path(entry.path))
        elif entry.is_file():
            yield Path(entry.path)
        else:
            logger.debug("Skipping %s: not a regular file", entry.path)


def load_page(path: Path, content_dir: Path, config: SiteConfig) -> Page:
    try:
        info = path.stat()
    except OSError as exc:
        raise PageError(path, f"cannot stat file: {exc}") from exc
    url_path, published = parse_filename(path, content_dir)
    page = Page(
        source_path=path,
        url_path=url_path,
        permalink=config.base_url + url_path,
        date_modified=dt.datetime.fromtimestamp(info.st_mtime).astimezone(),
        date_published=published,
        title=default_title(url_path),
        category=derive_category(path, content_dir),
    )
    return apply_header_block(page, read_header_block(path))


def read_content(content_dir: Path, config: SiteConfig) -> Site:
    """Discover every file under ``content_dir`` and assemble the site registry."""
    if not content_dir.is_dir():
        raise BuildError(f"Content directory not found: {content_dir}")
    pages: list[Page] = []
    seen: dict[str, Path] = {}
    for path in walk_files(content_dir):
        try:
            page = load_page(path, content_dir, config)
        except PageError as exc:
            logger.warning("Skipping %s: %s", exc.source, exc.message)
            continue
        if page.url_path in seen:
            logger.warning(
                "%s and %s both render to /%s; the last one written wins",
                seen[page.url_path],
                path,
                page.url_path,
            )
        seen[page.url_path] = path
        pages.append(page)

    # sorted() is stable, so equal dates keep walk order
    posts = sorted((page for page in pages if page.is_post), key=lambda p: p.date_published, reverse=True)
    logger.debug("Discovered %d pages, %d posts under %s", len(pages), len(posts), content_dir)
    return Site(title=config.title, base_url=config.base_url, pages=tuple(pages), posts=tuple(posts))
