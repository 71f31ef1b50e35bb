from __future__ import annotations

import datetime as dt
import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path

from .config import load_config
from .errors import BuildError, ManifestError
from .pages import BuildContext, PageFailure, build_feed, build_pages, build_sitemap
from .render import copy_static, load_templates
from .site import read_content
from .utils import clean_output_dir

logger = logging.getLogger(__name__)

CONTENT_DIR = "content"
TEMPLATES_DIR = "templates"
STATIC_DIR = "public"
OUTPUT_DIR = "build"
DEFAULT_CONFIG = "config.toml"


@dataclass
class BuildReport:
    pages: int = 0
    posts: int = 0
    failures: list[PageFailure] = field(default_factory=list)
    manifest_errors: list[ManifestError] = field(default_factory=list)
    elapsed: float = 0.0


def build_site(root: Path, config_file: str | Path = DEFAULT_CONFIG, workers: int | None = None) -> BuildReport:
    """Build the project at ``root`` into ``root/build``.

    Raises ``BuildError`` for anything that stops the whole build; per-page
    and per-manifest failures are logged and listed in the report.
    """
    start = time.perf_counter()
    now = dt.datetime.now().astimezone()
    root = Path(root)
    config_path = Path(config_file)
    if not config_path.is_absolute():
        config_path = root / config_path
    output_dir = root / OUTPUT_DIR

    templates = load_templates(root / TEMPLATES_DIR)
    config = load_config(config_path)
    try:
        clean_output_dir(output_dir, root)
    except OSError as exc:
        raise BuildError(f"Error removing previous output {output_dir}: {exc}") from exc
    site = read_content(root / CONTENT_DIR, config)

    ctx = BuildContext(output_dir=output_dir, templates=templates, now=now, workers=workers)
    report = BuildReport(pages=len(site.pages), posts=len(site.posts))
    report.failures = build_pages(ctx, site)

    for generate in (build_sitemap, build_feed):
        try:
            generate(ctx, site)
        except ManifestError as exc:
            logger.warning("%s", exc)
            report.manifest_errors.append(exc)

    static_dir = root / STATIC_DIR
    if static_dir.is_dir():
        try:
            copy_static(static_dir, output_dir)
        except (OSError, shutil.Error) as exc:
            raise BuildError(f"Error copying {static_dir} directory: {exc}") from exc
    else:
        logger.info("No %s/ directory, skipping static files", STATIC_DIR)

    report.elapsed = time.perf_counter() - start
    logger.info("Built %d pages in %d ms", report.pages, report.elapsed * 1000)
    if report.failures:
        logger.warning("%d pages failed to render", len(report.failures))
    return report
