from __future__ import annotations

import logging
from pathlib import Path

from .errors import BuildError

logger = logging.getLogger(__name__)

PROJECT_DIRS = ("content", "templates", "public")

PROJECT_FILES = {
    "config.toml": 'url = "http://localhost:8080"\ntitle = "My website"\n',
    "templates/default.html": (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        "\t<title>{{ title }} | {{ site.title }}</title>\n"
        "</head>\n"
        "<body>\n"
        "{{ content }}\n"
        "</body>\n"
        "</html>\n"
    ),
    "content/index.md": '+++\ntitle = "Welcome!"\n+++\n\nWelcome to my website.\n',
}


def create_project(root: Path) -> list[Path]:
    """Write a minimal project skeleton into ``root``.

    Refuses to touch an existing ``content``, ``templates`` or ``public``
    directory. Returns the files written.
    """
    root.mkdir(parents=True, exist_ok=True)
    written = []
    try:
        for name in PROJECT_DIRS:
            (root / name).mkdir()
        for name, text in PROJECT_FILES.items():
            path = root / name
            with path.open("x", encoding="utf-8") as fh:
                fh.write(text)
            written.append(path)
    except FileExistsError as exc:
        raise BuildError(f"Error creating site structure: {exc.filename} already exists") from exc
    except OSError as exc:
        raise BuildError(f"Error creating site structure: {exc}") from exc
    logger.info("Created new site in %s", root)
    return written
