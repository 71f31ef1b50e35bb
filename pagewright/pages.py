from __future__ import annotations

import datetime as dt
import html
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path
from typing import Mapping

import jinja2
from markupsafe import Markup

from .errors import ManifestError, PageError, UnknownTemplate
from .render import render_content, write_text
from .site import Page, Site
from .utils import iso_date, rfc822_date

logger = logging.getLogger(__name__)

FEED_LIMIT = 10
GENERATOR = "pagewright"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
SITEMAP_SCHEMA_LOCATION = (
    "http://www.sitemaps.org/schemas/sitemap/0.9 "
    "http://www.sitemaps.org/schemas/sitemap/0.9/sitemap.xsd "
    "http://www.google.com/schemas/sitemap-image/1.1 "
    "http://www.google.com/schemas/sitemap-image/1.1/sitemap-image.xsd"
)


@dataclass(frozen=True)
class BuildContext:
    """Build-wide state shared read-only by every render unit."""

    output_dir: Path
    templates: Mapping[str, jinja2.Template]
    now: dt.datetime
    workers: int | None = None


@dataclass(frozen=True)
class PageFailure:
    page: Page
    error: PageError


def output_path(output_dir: Path, page: Page) -> Path:
    return output_dir / page.url_path / "index.html"


def page_context(ctx: BuildContext, site: Site, page: Page, content: str) -> dict:
    site_info = {"title": site.title, "url": site.base_url}
    return {
        "page": page,
        "posts": site.posts,
        "pages": site.pages,
        "site": site_info,
        "category": page.category,
        "title": page.title,
        "content": Markup(content),
        "now": ctx.now,
        "site_url": site.base_url,
    }


def build_page(ctx: BuildContext, site: Site, page: Page) -> Path:
    template = ctx.templates.get(page.template_name)
    if template is None:
        raise UnknownTemplate(page.source_path, f"invalid template name: {page.template_name}")
    content = render_content(page.source_path)
    try:
        html_doc = template.render(page_context(ctx, site, page, content))
    except Exception as exc:
        raise PageError(page.source_path, f"error rendering {page.template_name}: {exc}") from exc
    dest = output_path(ctx.output_dir, page)
    try:
        write_text(dest, html_doc)
    except OSError as exc:
        raise PageError(page.source_path, f"cannot write {dest}: {exc}") from exc
    return dest


def build_pages(ctx: BuildContext, site: Site) -> list[PageFailure]:
    """Render every page of ``site`` concurrently.

    Returns the pages that failed; their errors are logged and never stop the
    remaining units. All units have finished when this returns.
    """

    def render_unit(page: Page) -> PageFailure | None:
        try:
            build_page(ctx, site, page)
        except PageError as exc:
            logger.warning("Error processing %s: %s", exc.source, exc.message)
            return PageFailure(page, exc)
        return None

    if not site.pages:
        return []
    with ThreadPoolExecutor(max_workers=ctx.workers) as executor:
        futures = [executor.submit(render_unit, page) for page in site.pages]
    return [failure for failure in (future.result() for future in futures) if failure is not None]


def sitemap_stylesheet() -> str:
    return files(__package__).joinpath("sitemap.xsl").read_text(encoding="utf-8")


def build_sitemap(ctx: BuildContext, site: Site) -> Path:
    items = []
    for page in site.pages:
        items.append(
            "\n".join(
                [
                    "<url>",
                    f"<loc>{html.escape(page.permalink)}</loc>",
                    f"<lastmod>{iso_date(page.date_modified)}</lastmod>",
                    "</url>",
                ]
            )
        )
    sitemap = "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<?xml-stylesheet type="text/xsl" href="/sitemap.xsl"?>',
            f'<urlset xmlns="{SITEMAP_NS}" '
            'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
            'xmlns:image="http://www.google.com/schemas/sitemap-image/1.1" '
            f'xsi:schemaLocation="{SITEMAP_SCHEMA_LOCATION}">',
            *items,
            "</urlset>",
        ]
    )
    dest = ctx.output_dir / "sitemap.xml"
    try:
        write_text(dest, sitemap)
        write_text(ctx.output_dir / "sitemap.xsl", sitemap_stylesheet())
    except OSError as exc:
        raise ManifestError(f"Error creating sitemap: {exc}") from exc
    return dest


def build_feed(ctx: BuildContext, site: Site, feed_limit: int = FEED_LIMIT) -> Path:
    items = []
    for post in site.posts[:feed_limit]:
        try:
            description = render_content(post.source_path)
        except PageError as exc:
            logger.warning("Error parsing content of %s: %s", exc.source, exc.message)
            continue
        items.append(
            "\n".join(
                [
                    "<item>",
                    f"<title>{html.escape(post.title)}</title>",
                    f"<link>{html.escape(post.permalink)}</link>",
                    f"<description>{html.escape(description)}</description>",
                    f"<pubDate>{rfc822_date(post.date_published)}</pubDate>",
                    f"<guid>{html.escape(post.permalink)}</guid>",
                    "</item>",
                ]
            )
        )
    rss = "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
            "<channel>",
            f"<title>{html.escape(site.title)}</title>",
            f"<link>{html.escape(site.base_url)}</link>",
            f"<description>{html.escape(site.title)}</description>",
            f"<generator>{GENERATOR}</generator>",
            f"<lastBuildDate>{rfc822_date(ctx.now)}</lastBuildDate>",
            *items,
            "</channel>",
            "</rss>",
        ]
    )
    dest = ctx.output_dir / "feed.xml"
    try:
        write_text(dest, rss)
    except OSError as exc:
        raise ManifestError(f"Error creating RSS feed: {exc}") from exc
    return dest
