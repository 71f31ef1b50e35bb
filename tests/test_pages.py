from __future__ import annotations

import datetime as dt
import logging
import os
import xml.etree.ElementTree as etree
from pathlib import Path

import pytest

from conftest import write
from pagewright.config import SiteConfig
from pagewright.errors import UnknownTemplate
from pagewright.pages import BuildContext, build_feed, build_pages, build_sitemap, output_path
from pagewright.render import load_templates
from pagewright.site import read_content

CONFIG = SiteConfig(title="Test site", base_url="https://example.com/")
NOW = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc)
SITEMAP = "{http://www.sitemaps.org/schemas/sitemap/0.9}"


def make_context(project: Path) -> BuildContext:
    return BuildContext(
        output_dir=project / "build",
        templates=load_templates(project / "templates"),
        now=NOW,
    )


def test_build_pages_writes_index_per_url_path(project: Path, content: Path) -> None:
    write(content / "index.md", '+++\ntitle = "Home"\n+++\nWelcome')
    write(content / "blog" / "2023-05-01-hello.md", "Hello **there**")
    write(content / "blog" / "2023-05-02-again.md", "Again")
    ctx = make_context(project)
    site = read_content(content, CONFIG)

    failures = build_pages(ctx, site)

    assert failures == []
    home = (project / "build" / "index.html").read_text(encoding="utf-8")
    assert "<title>Home</title>" in home
    hello = (project / "build" / "blog" / "hello" / "index.html").read_text(encoding="utf-8")
    assert "<strong>there</strong>" in hello
    assert (project / "build" / "blog" / "again" / "index.html").exists()


def test_unknown_template_fails_only_that_page(
    project: Path, content: Path, caplog: pytest.LogCaptureFixture
) -> None:
    write(content / "good.md", "fine")
    write(content / "odd.md", '+++\ntemplate = "missing.html"\n+++\nbody')
    ctx = make_context(project)
    site = read_content(content, CONFIG)

    with caplog.at_level(logging.WARNING, logger="pagewright"):
        failures = build_pages(ctx, site)

    assert [f.page.source_path.name for f in failures] == ["odd.md"]
    assert isinstance(failures[0].error, UnknownTemplate)
    assert "missing.html" in caplog.text
    assert output_path(ctx.output_dir, site.pages[0]).exists()
    assert not output_path(ctx.output_dir, site.pages[1]).exists()


def test_colliding_url_paths_leave_one_complete_render(project: Path, content: Path) -> None:
    write(content / "about.md", "md body")
    write(content / "about.html", "<p>html</p>")
    site = read_content(content, CONFIG)
    assert [page.url_path for page in site.pages] == ["about/", "about/"]

    failures = build_pages(make_context(project), site)

    assert failures == []
    about = project / "build" / "about"
    renders = {
        "<html><head><title>About</title></head><body><p>md body</p></body></html>",
        "<html><head><title>About</title></head><body><p>html</p></body></html>",
    }
    assert (about / "index.html").read_text(encoding="utf-8") in renders
    assert os.listdir(about) == ["index.html"]


def test_template_context(project: Path, content: Path) -> None:
    write(
        project / "templates" / "list.html",
        "{{ site.title }}|{{ site_url }}|{{ category }}|{{ page.url_path }}|"
        "{% for p in posts|filter_posts(category) %}{{ p.title }},{% endfor %}|"
        "{{ pages|length }}|{{ now.year }}|{{ content }}",
    )
    write(content / "blog" / "index.md", '+++\ntemplate = "list.html"\ntitle = "Blog"\n+++\n<b>raw</b>')
    write(content / "blog" / "2023-05-01-one.md", '+++\ntitle = "One"\n+++\n')
    write(content / "notes" / "2023-05-02-two.md", '+++\ntitle = "Two"\n+++\n')
    ctx = make_context(project)

    build_pages(ctx, read_content(content, CONFIG))

    html = (project / "build" / "blog" / "index.html").read_text(encoding="utf-8")
    assert html == "Test site|https://example.com/|blog|blog/|One,|3|2024|<p><b>raw</b></p>"


def test_sitemap_lists_every_page_in_registry_order(project: Path, content: Path) -> None:
    write(content / "zeta.md", "z")
    write(content / "alpha" / "2020-01-01-old.md", "a")
    write(content / "index.html", "<p>home</p>")
    ctx = make_context(project)
    site = read_content(content, CONFIG)

    build_sitemap(ctx, site)

    sitemap = project / "build" / "sitemap.xml"
    text = sitemap.read_text(encoding="utf-8")
    assert '<?xml-stylesheet type="text/xsl" href="/sitemap.xsl"?>' in text
    urls = etree.parse(sitemap).getroot().findall(f"{SITEMAP}url")
    locs = [url.findtext(f"{SITEMAP}loc") for url in urls]
    assert locs == [
        "https://example.com/alpha/old/",
        "https://example.com/",
        "https://example.com/zeta/",
    ]
    lastmod = urls[0].findtext(f"{SITEMAP}lastmod")
    assert dt.datetime.fromisoformat(lastmod).tzinfo is not None
    assert (project / "build" / "sitemap.xsl").read_text(encoding="utf-8").startswith("<?xml")


def test_feed_is_limited_to_ten_newest_posts(project: Path, content: Path) -> None:
    for day in range(1, 13):
        write(content / "blog" / f"2023-01-{day:02d}-post-{day}.md", f'+++\ntitle = "Post {day}"\n+++\nBody {day}')
    write(content / "about.md", "not a post")
    ctx = make_context(project)
    site = read_content(content, CONFIG)

    build_feed(ctx, site)

    channel = etree.parse(project / "build" / "feed.xml").getroot().find("channel")
    items = channel.findall("item")
    assert [item.findtext("title") for item in items] == [f"Post {day}" for day in range(12, 2, -1)]
    first = items[0]
    assert first.findtext("link") == "https://example.com/blog/post-12/"
    assert first.findtext("guid") == "https://example.com/blog/post-12/"
    assert first.findtext("pubDate") == "Thu, 12 Jan 2023 00:00:00 +0000"
    assert first.findtext("description") == "<p>Body 12</p>"
    assert channel.findtext("title") == "Test site"
    assert channel.findtext("lastBuildDate") == "Sat, 01 Jun 2024 12:00:00 +0000"


def test_feed_omits_entries_that_fail_to_render(
    project: Path, content: Path, caplog: pytest.LogCaptureFixture
) -> None:
    write(content / "blog" / "2023-01-01-kept.md", '+++\ntitle = "Kept"\n+++\nok')
    doomed = write(content / "blog" / "2023-01-02-doomed.md", '+++\ntitle = "Doomed"\n+++\nok')
    ctx = make_context(project)
    site = read_content(content, CONFIG)
    doomed.unlink()

    with caplog.at_level(logging.WARNING, logger="pagewright"):
        build_feed(ctx, site)

    items = etree.parse(project / "build" / "feed.xml").getroot().find("channel").findall("item")
    assert [item.findtext("title") for item in items] == ["Kept"]
    assert "2023-01-02-doomed.md" in caplog.text
