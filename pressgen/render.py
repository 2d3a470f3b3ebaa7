from __future__ import annotations

import html
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import markdown
from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from . import i18n
from .config import SiteConfig
from .content import Document, Layout, normalize_list_spacing
from .errors import ConfigError, UnknownLayout

DEFAULT_TEMPLATES = Path(__file__).parent / "templates"
BASE_TEMPLATE = "base.html"
LISTING_TEMPLATE = "listing.html"
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite", "sane_lists"]
MARKDOWN_CONFIGS = {"codehilite": {"guess_lang": False, "css_class": "codehilite"}}
PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
TAG_RE = re.compile(r"<[^>]+>")
DESCRIPTION_LIMIT = 160


@dataclass(frozen=True)
class RenderedDocument:
    document: Document
    route: str
    summary_html: str
    content_html: str
    has_more: bool
    html: str = ""


class LayoutRegistry:
    """Templates by layout name. Unregistered names are an error, never a fallback."""

    def __init__(self, base: str, listing: str):
        self.base = base
        self.listing = listing
        self._layouts: dict[str, str] = {}

    def register(self, name: str, template: str) -> None:
        self._layouts[name] = template

    def __contains__(self, name: str) -> bool:
        return name in self._layouts

    def names(self) -> list[str]:
        return sorted(self._layouts)

    def template_for(self, layout: str, path: str) -> str:
        try:
            return self._layouts[layout]
        except KeyError:
            raise UnknownLayout(path, layout) from None

    @classmethod
    def load(cls, templates_dir: Optional[Path] = None, extra: Optional[dict] = None) -> "LayoutRegistry":
        search = [d for d in (templates_dir, DEFAULT_TEMPLATES) if d is not None]

        def read(name: str) -> str:
            for directory in search:
                path = directory / name
                if path.is_file():
                    return read_template(path)
            raise ConfigError(f"Template not found: {name}")

        registry = cls(base=read(BASE_TEMPLATE), listing=read(LISTING_TEMPLATE))
        for layout in Layout:
            registry.register(layout.value, read(f"{layout.value}.html"))
        for name, filename in (extra or {}).items():
            registry.register(name, read(filename))
        return registry


def markdown_to_html(text: str) -> str:
    # Markdown instances keep per-document state, so each call gets its own.
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS, extension_configs=MARKDOWN_CONFIGS)
    return md.convert(normalize_list_spacing(text))


def split_summary(body: str, separator: str) -> tuple[str, Optional[str]]:
    """Split ``body`` at the first summary marker; the second part is ``None`` without one."""
    if separator and separator in body:
        before, after = body.split(separator, 1)
        return before, after
    return body, None


def first_paragraph(body: str) -> str:
    for block in re.split(r"\n\s*\n", body.strip()):
        block = block.strip()
        if block and not block.startswith(("#", "```", "~~~", "<")):
            return block
    return ""


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def plain_description(html_text: str) -> str:
    text = " ".join(html.unescape(strip_tags(html_text)).split())
    if len(text) > DESCRIPTION_LIMIT:
        text = text[: DESCRIPTION_LIMIT - 3].rstrip() + "..."
    return text


def render_body(document: Document, route: str, separator: str) -> RenderedDocument:
    before, after = split_summary(document.body, separator)
    if after is None:
        content_html = markdown_to_html(document.body)
        if document.metadata.description:
            summary_html = f"<p>{html.escape(document.metadata.description)}</p>"
        else:
            summary_html = markdown_to_html(first_paragraph(document.body))
    else:
        content_html = markdown_to_html(before + after)
        summary_html = markdown_to_html(before)
    return RenderedDocument(
        document=document,
        route=route,
        summary_html=summary_html,
        content_html=content_html,
        has_more=after is not None,
    )


def render_template(template: str, **context: str) -> str:
    """Fill every known placeholder in one pass; substituted text is never rescanned."""
    return PLACEHOLDER_RE.sub(lambda match: context.get(match.group(1), match.group(0)), template)


def url_for(config: SiteConfig, route: str) -> str:
    return config.base_url.rstrip("/") + route


def absolute_url(config: SiteConfig, route: str) -> str:
    return config.resolved_site_url + url_for(config, route)


def render_tags(tags: tuple[str, ...]) -> str:
    return " ".join(f'<span class="chip">{html.escape(tag)}</span>' for tag in tags)


def render_shell(
    registry: LayoutRegistry,
    config: SiteConfig,
    *,
    title: str,
    lang: str,
    description: str,
    route: str,
    content: str,
) -> str:
    base_url = config.base_url.rstrip("/")
    extra_head = []
    site_url = config.resolved_site_url
    if site_url:
        extra_head.append(f'<link rel="canonical" href="{html.escape(absolute_url(config, route))}">')
    if config.enable_feed and site_url:
        extra_head.append(
            f'<link rel="alternate" type="application/atom+xml" '
            f'title="{html.escape(config.site_name)}" href="{base_url}/feed.xml">'
        )
    footer = html.escape(config.site_name)
    if config.author:
        footer = f"{footer} &middot; {html.escape(config.author)}"
    return render_template(
        registry.base,
        title=html.escape(title),
        lang=html.escape(lang),
        description=html.escape(description),
        site_name=html.escape(config.site_name),
        site_description=html.escape(config.site_description),
        base_url=base_url,
        extra_head="\n".join(extra_head),
        footer=footer,
        content=content,
    )


def render_page(rendered: RenderedDocument, registry: LayoutRegistry, config: SiteConfig) -> str:
    document = rendered.document
    meta = document.metadata
    template = registry.template_for(meta.layout, document.path)
    date_html = ""
    date_iso = ""
    if meta.date is not None:
        date_html = html.escape(i18n.format_date(meta.date, meta.lang))
        date_iso = meta.date.isoformat()
    author = meta.author or config.author
    author_html = ""
    if author:
        author_html = f' <span class="post-author">{i18n.label(meta.lang, "by")} {html.escape(author)}</span>'
    fragment = render_template(
        template,
        title=html.escape(meta.title),
        lang=html.escape(meta.lang),
        date=date_html,
        date_iso=date_iso,
        author=author_html,
        tags=render_tags(meta.tags),
        description=html.escape(meta.description),
        url=url_for(config, rendered.route),
        home_url=url_for(config, "/"),
        back_label=i18n.label(meta.lang, "back"),
        content=rendered.content_html,
    )
    description = meta.description or plain_description(rendered.summary_html)
    return render_shell(
        registry,
        config,
        title=f"{meta.title} | {config.site_name}",
        lang=meta.lang,
        description=description,
        route=rendered.route,
        content=fragment,
    )


def highlight_css(style: str) -> str:
    try:
        formatter = HtmlFormatter(style=style)
    except ClassNotFound as exc:
        raise ConfigError(f"Unknown highlight style: {style}") from exc
    return formatter.get_style_defs(".codehilite") + "\n"


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def copy_static(static_dir: Path, output_dir: Path) -> list[Path]:
    copied = []
    for item in sorted(static_dir.iterdir(), key=lambda p: p.name):
        dest = output_dir / item.name
        if item.is_dir():
            if dest.exists():
                shutil.rmtree(dest)
            shutil.copytree(item, dest)
            copied.extend(path for path in dest.rglob("*") if path.is_file())
        else:
            shutil.copy2(item, dest)
            copied.append(dest)
    return copied
