from __future__ import annotations

import dataclasses
import datetime as dt
import tomllib
from pathlib import Path
from typing import Any, Callable

from .errors import MalformedHeaderBlock, PageError

HEADER_DELIMITER = b"+++"
HEADER_READ_LIMIT = 1024
DATE_PREFIX_LEN = 11
CONTENT_SUFFIXES = (".md", ".html")
ROOT_PAGE_CATEGORY = "page"


def parse_filename(path: Path | str, content_root: Path | str) -> tuple[str, dt.datetime | None]:
    """Derive the site relative URL path and optional publish date of a content file.

    ``content/blog/2023-05-01-hello.md`` becomes ``("blog/hello/", 2023-05-01)``,
    ``content/about.md`` becomes ``("about/", None)`` and ``content/index.md``
    becomes ``("", None)``.
    """
    path = Path(path).as_posix()
    prefix = Path(content_root).as_posix().rstrip("/") + "/"
    if path.startswith(prefix):
        path = path[len(prefix) :]
    for suffix in CONTENT_SUFFIXES:
        if path.endswith(suffix):
            path = path[: -len(suffix)]
    if path == "index":
        path = ""
    elif path.endswith("/index"):
        path = path[: -len("index")]

    parent, _, filename = path.rstrip("/").rpartition("/")
    if len(filename) > DATE_PREFIX_LEN and filename[4] == filename[7] == filename[10] == "-":
        try:
            published = dt.datetime.strptime(filename[:10], "%Y-%m-%d")
        except ValueError:
            pass
        else:
            parent = f"{parent}/" if parent else ""
            return f"{parent}{filename[DATE_PREFIX_LEN:]}/", published.replace(tzinfo=dt.timezone.utc)

    if path and not path.endswith("/"):
        path += "/"
    return path, None


def derive_category(path: Path | str, content_root: Path | str) -> str:
    # A bare .md file at the root is a "page"; anything else takes its first
    # segment verbatim, including root level .html files.
    relative = Path(path).relative_to(content_root).as_posix()
    first = relative.split("/", 1)[0]
    if first.endswith(".md"):
        return ROOT_PAGE_CATEGORY
    return first


def default_title(url_path: str) -> str:
    segment = url_path.rstrip("/").rpartition("/")[2]
    text = segment.replace("-", " ").replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def parse_list(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, (list, tuple)):
        if not all(isinstance(item, str) for item in value):
            raise TypeError("expected a list of strings")
        items = [item.strip() for item in value]
    else:
        raise TypeError(f"expected a list of strings, got {type(value).__name__}")
    return tuple(dict.fromkeys(item for item in items if item))


def parse_str(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


Decoder = Callable[[object], Any]

HEADER_FIELDS: tuple[tuple[str, str, Decoder], ...] = (
    ("title", "title", parse_str),
    ("tags", "tags", parse_list),
    ("category", "category", parse_str),
    ("template", "template_name", parse_str),
)


def decode_fields(data: dict, schema: tuple[tuple[str, str, Decoder], ...]) -> dict[str, Any]:
    """Map the keys of ``data`` named in ``schema`` onto record field names.

    Keys missing from ``data`` are left out of the result so callers can
    overlay it onto existing defaults. Raises ``ValueError`` naming the key
    when a decoder rejects its value.
    """
    fields = {}
    for key, field, decode in schema:
        if key not in data:
            continue
        try:
            fields[field] = decode(data[key])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid value for {key!r}: {exc}") from exc
    return fields


def split_header_block(raw: bytes, source: Path) -> tuple[bytes | None, bytes]:
    """Return ``(header, body)``; ``header`` is None when the file has none."""
    if not raw.startswith(HEADER_DELIMITER):
        return None, raw
    start = len(HEADER_DELIMITER)
    end = raw.find(HEADER_DELIMITER, start)
    if end == -1:
        raise MalformedHeaderBlock(source, "missing closing header delimiter")
    return raw[start:end], raw[end + len(HEADER_DELIMITER) :]


def read_header_block(path: Path) -> dict | None:
    try:
        with path.open("rb") as fh:
            prefix = fh.read(HEADER_READ_LIMIT)
    except OSError as exc:
        raise PageError(path, f"cannot read file: {exc}") from exc
    header, _ = split_header_block(prefix, path)
    if header is None:
        return None
    try:
        return tomllib.loads(header.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise MalformedHeaderBlock(path, f"invalid header block: {exc}") from exc


def apply_header_block(page, data: dict | None):
    if not data:
        return page
    try:
        fields = decode_fields(data, HEADER_FIELDS)
    except ValueError as exc:
        raise MalformedHeaderBlock(page.source_path, str(exc)) from exc
    return dataclasses.replace(page, **fields)
