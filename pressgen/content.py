from __future__ import annotations

import datetime as dt
import re
import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

from .errors import MalformedDocument
from .utils import parse_bool

FRONT_MATTER_SENTINEL = "---"
DEFAULT_LANG = "en-us"
REQUIRED_KEYS = ("title", "layout")
RECOGNIZED_KEYS = (
    "title",
    "layout",
    "date",
    "lang",
    "tags",
    "description",
    "author",
    "slug",
    "permalink",
    "draft",
)
DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)
POST_FILENAME_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-(?P<slug>.+)$")
SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")
LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
DOUBLE_QUOTE_RE = re.compile(r"^(?P<indent>[ \t]*)>>(?!>)(?P<rest>.*)$")


class Layout(str, Enum):
    PAGE = "page"
    POST = "post"


@dataclass(frozen=True)
class Metadata:
    title: str
    layout: str
    date: Optional[dt.datetime] = None
    lang: str = DEFAULT_LANG
    tags: tuple[str, ...] = ()
    description: str = ""
    author: str = ""
    slug: str = ""
    permalink: str = ""
    draft: bool = False
    extra: dict = field(default_factory=dict)

    def to_mapping(self) -> dict:
        """Front-matter mapping for this metadata; empty optional keys are left out."""
        data: dict = {"title": self.title, "layout": self.layout}
        if self.date is not None:
            data["date"] = self.date
        data["lang"] = self.lang
        if self.tags:
            data["tags"] = list(self.tags)
        for key in ("description", "author", "slug", "permalink"):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.draft:
            data["draft"] = True
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class Document:
    path: str
    metadata: Metadata
    body: str

    @property
    def is_post(self) -> bool:
        return self.metadata.layout == Layout.POST.value

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def date(self) -> Optional[dt.datetime]:
        return self.metadata.date


def slugify(text: str) -> str:
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = SLUG_STRIP_RE.sub("-", text).strip("-")
    return text or "post"


def parse_list(value: str) -> list[str]:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]
    if "," in value:
        items = [item.strip().strip("'\"") for item in value.split(",")]
    else:
        items = value.split()
    return [item for item in items if item]


def split_post_filename(path: str) -> tuple[Optional[dt.date], Optional[str]]:
    """Return the date and slug encoded in a ``YYYY-MM-DD-slug.md`` filename."""
    match = POST_FILENAME_RE.match(Path(path).stem)
    if not match:
        return None, None
    try:
        date = dt.date(int(match["year"]), int(match["month"]), int(match["day"]))
    except ValueError:
        return None, None
    return date, match["slug"]


def sort_key(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is not None:
        return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


def parse_front_matter(text: str, path: str = "<string>") -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_SENTINEL:
        raise MalformedDocument(path, "missing opening front matter marker '---'")

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONT_MATTER_SENTINEL:
            end = i
            break
    if end is None:
        raise MalformedDocument(path, "front matter is never closed with '---'")

    try:
        meta = yaml.safe_load("".join(lines[1:end]))
    except yaml.YAMLError as exc:
        raise MalformedDocument(path, f"invalid front matter: {exc}") from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise MalformedDocument(path, "front matter must be a mapping")
    body = "".join(lines[end + 1 :])
    return meta, body


def coerce_date(value: object, path: str) -> Optional[dt.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    text = str(value).strip()
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise MalformedDocument(path, f"invalid date {value!r}")


def coerce_tags(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set)):
        items = [str(item).strip() for item in value]
    else:
        items = parse_list(str(value))
    seen: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return tuple(seen)


def coerce_text(value: object, key: str, path: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        # bare No, 1.10 or 010 load as bool or number under YAML 1.1
        raise MalformedDocument(path, f"{key!r} must be text, got {type(value).__name__}; quote the value")
    return value.strip()


def coerce_metadata(raw: dict, path: str) -> Metadata:
    meta = {str(key).strip().lower(): value for key, value in raw.items()}
    for key in REQUIRED_KEYS:
        value = meta.get(key)
        if value is None or not str(value).strip():
            raise MalformedDocument(path, f"missing required key {key!r}")

    date = coerce_date(meta.get("date"), path)
    layout = coerce_text(meta["layout"], "layout", path)
    if layout == Layout.POST.value and date is None:
        filename_date, _ = split_post_filename(path)
        if filename_date is None:
            raise MalformedDocument(path, "post has no date in front matter or filename")
        date = dt.datetime.combine(filename_date, dt.time())

    draft = parse_bool(meta.get("draft"))
    if "published" in meta and not parse_bool(meta.get("published")):
        draft = True

    extra = {key: value for key, value in meta.items() if key not in RECOGNIZED_KEYS}
    return Metadata(
        title=coerce_text(meta["title"], "title", path),
        layout=layout,
        date=date,
        lang=coerce_text(meta.get("lang"), "lang", path) or DEFAULT_LANG,
        tags=coerce_tags(meta.get("tags")),
        description=coerce_text(meta.get("description"), "description", path),
        author=coerce_text(meta.get("author"), "author", path),
        slug=coerce_text(meta.get("slug"), "slug", path),
        permalink=coerce_text(meta.get("permalink"), "permalink", path),
        draft=draft,
        extra=extra,
    )


def parse_document(text: str, path: str) -> Document:
    raw, body = parse_front_matter(text, path)
    return Document(path=path, metadata=coerce_metadata(raw, path), body=body)


def load_document(file_path: Path, root: Path) -> Document:
    rel = file_path.relative_to(root).as_posix()
    try:
        with open(file_path, encoding="utf-8", newline="") as handle:
            text = handle.read()
    except UnicodeDecodeError as exc:
        raise MalformedDocument(rel, f"not valid UTF-8: {exc}") from exc
    return parse_document(text, rel)


def dump_front_matter(metadata: Metadata) -> str:
    text = yaml.safe_dump(
        metadata.to_mapping(), sort_keys=False, allow_unicode=True, default_flow_style=False
    )
    return f"{FRONT_MATTER_SENTINEL}\n{text}{FRONT_MATTER_SENTINEL}\n"


def normalize_list_spacing(text: str) -> str:
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        quote_match = DOUBLE_QUOTE_RE.match(line)
        if quote_match:
            rest = quote_match.group("rest").lstrip()
            if rest:
                line = f'{quote_match.group("indent")}> {rest}'
            else:
                line = f'{quote_match.group("indent")}>'
        list_match = LIST_MARKER_RE.match(line)
        if list_match:
            if not list_match.group("indent"):
                if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                    out.append("")
        out.append(line)
    return "\n".join(out)
