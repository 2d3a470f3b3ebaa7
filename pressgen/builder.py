from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Iterable, TypeVar, Union

from .config import SiteConfig
from .content import Document, load_document, sort_key
from .digest import hash_paths, list_files
from .errors import BuildAborted, BuildError, MalformedDocument, UnknownLayout
from .pages import (
    FEED_ROUTE,
    HIGHLIGHT_ROUTE,
    SITEMAP_ROUTE,
    build_feed,
    build_index,
    build_sitemap,
    home_routes,
    reserved_routes,
)
from .render import LayoutRegistry, RenderedDocument, copy_static, highlight_css, render_body, render_page
from .routes import assign_routes, output_path
from .utils import clean_output_dir, write_nojekyll, write_text

SOURCE_SUFFIXES = {".md", ".markdown"}

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class BuildContext:
    """Everything one build knows, passed explicitly from step to step."""

    config: SiteConfig
    registry: LayoutRegistry
    documents: tuple[Document, ...]
    routes: dict
    site_index: tuple[RenderedDocument, ...] = ()


@dataclass
class BuildReport:
    output_dir: Path
    written: list[Path] = field(default_factory=list)
    errors: list[BuildError] = field(default_factory=list)
    drafts: list[str] = field(default_factory=list)
    digest: str = ""

    @property
    def ok(self) -> bool:
        return not self.errors


def map_parallel(func: Callable[[T], R], items: list[T], workers: int) -> list[R]:
    """Apply ``func`` to every item; results keep the input order."""
    workers = min(max(1, workers), len(items)) if items else 1
    if workers <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(func, items))


def find_sources(source_dir: Path) -> list[Path]:
    sources = []
    for path in source_dir.rglob("*"):
        rel = path.relative_to(source_dir)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if path.is_file() and path.suffix.lower() in SOURCE_SUFFIXES:
            sources.append(path)
    return sorted(sources, key=lambda p: p.as_posix())


def load_documents(source_dir: Path, workers: int = 1) -> tuple[list[Document], list[MalformedDocument]]:
    """Parse every source file, collecting failures instead of stopping at the first."""

    def load(path: Path) -> Union[Document, MalformedDocument]:
        try:
            return load_document(path, source_dir)
        except MalformedDocument as exc:
            return exc

    documents: list[Document] = []
    errors: list[MalformedDocument] = []
    for result in map_parallel(load, find_sources(source_dir), workers):
        if isinstance(result, MalformedDocument):
            errors.append(result)
        else:
            documents.append(result)
    return documents, errors


def order_site_index(rendered: Iterable[RenderedDocument]) -> list[RenderedDocument]:
    posts = sorted((item for item in rendered if item.document.is_post), key=lambda item: item.route)
    posts.sort(key=lambda item: sort_key(item.document.metadata.date), reverse=True)
    return posts


def render_documents(context: BuildContext) -> list[RenderedDocument]:
    separator = context.config.summary_separator

    def render(document: Document) -> RenderedDocument:
        rendered = render_body(document, context.routes[document.path], separator)
        return replace(rendered, html=render_page(rendered, context.registry, context.config))

    return map_parallel(render, list(context.documents), context.config.workers)


def render_aggregates(context: BuildContext, rendered: list[RenderedDocument]) -> list[tuple[str, str]]:
    config = context.config
    site_index = list(context.site_index)
    outputs = build_index(site_index, context.registry, config)
    if config.resolved_site_url:
        if config.enable_feed:
            outputs.append((FEED_ROUTE, build_feed(site_index, config)))
        if config.enable_sitemap:
            index_routes = home_routes(len(site_index), config.posts_per_page)
            outputs.append((SITEMAP_ROUTE, build_sitemap(rendered, index_routes, config)))
    return outputs


def prepare(config: SiteConfig) -> tuple[BuildContext, list[BuildError], list[str]]:
    """Load and validate the whole site. Raises ``BuildAborted`` on fatal errors."""
    if not config.source.is_dir():
        raise BuildError(f"Source directory not found: {config.source}")
    registry = LayoutRegistry.load(config.templates, config.layouts)

    documents, malformed = load_documents(config.source, config.workers)
    errors: list[BuildError] = list(malformed)
    drafts = [doc.path for doc in documents if doc.metadata.draft]
    documents = [doc for doc in documents if not doc.metadata.draft]

    layout_errors = [
        UnknownLayout(doc.path, doc.metadata.layout) for doc in documents if doc.metadata.layout not in registry
    ]
    if layout_errors and config.allow_unknown_layouts:
        skipped = {error.path for error in layout_errors}
        documents = [doc for doc in documents if doc.path not in skipped]
        errors.extend(layout_errors)
        layout_errors = []

    post_count = sum(1 for doc in documents if doc.is_post)
    reserved = reserved_routes(post_count, config)
    if config.custom_domain:
        reserved.append("/CNAME")
    if config.write_nojekyll:
        reserved.append("/.nojekyll")
    static_files = []
    if config.static is not None and config.static.is_dir():
        static_files = [path.relative_to(config.static).as_posix() for path in list_files(config.static)]
    routes, collisions = assign_routes(documents, reserved, static_files)
    fatal: list[BuildError] = [*layout_errors, *collisions]
    if fatal:
        raise BuildAborted(errors + fatal)

    context = BuildContext(config=config, registry=registry, documents=tuple(documents), routes=routes)
    return context, errors, drafts


def build_site(config: SiteConfig) -> BuildReport:
    context, errors, drafts = prepare(config)
    stylesheet = highlight_css(config.highlight_style)

    rendered = render_documents(context)
    context = replace(context, site_index=tuple(order_site_index(rendered)))
    outputs = [(item.route, item.html) for item in rendered]
    outputs.extend(render_aggregates(context, rendered))
    outputs.append((HIGHLIGHT_ROUTE, stylesheet))

    output_dir = config.output
    report = BuildReport(output_dir=output_dir, errors=errors, drafts=drafts)
    if config.clean:
        protected = [Path.cwd(), config.source]
        protected.extend(path for path in (config.templates, config.static) if path is not None)
        clean_output_dir(output_dir, protected)
    output_dir.mkdir(parents=True, exist_ok=True)

    if config.static is not None and config.static.is_dir():
        report.written.extend(copy_static(config.static, output_dir))
    for route, text in outputs:
        path = output_path(output_dir, route)
        write_text(path, text)
        report.written.append(path)
    if config.custom_domain:
        write_text(output_dir / "CNAME", f"{config.custom_domain.strip()}\n")
        report.written.append(output_dir / "CNAME")
    if config.write_nojekyll:
        write_nojekyll(output_dir)
        report.written.append(output_dir / ".nojekyll")

    report.digest = hash_paths(list_files(output_dir), output_dir)
    return report
