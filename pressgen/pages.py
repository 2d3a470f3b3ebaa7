from __future__ import annotations

import html
import math

from . import i18n
from .config import SiteConfig
from .render import (
    LayoutRegistry,
    RenderedDocument,
    absolute_url,
    render_shell,
    render_tags,
    render_template,
    url_for,
)
from .utils import iso_date

FEED_ROUTE = "/feed.xml"
SITEMAP_ROUTE = "/sitemap.xml"
HIGHLIGHT_ROUTE = "/css/highlight.css"


def page_route(page: int) -> str:
    if page == 1:
        return "/"
    return f"/page{page}/"


def home_routes(post_count: int, per_page: int) -> list[str]:
    total_pages = max(1, math.ceil(post_count / max(1, per_page)))
    return [page_route(page) for page in range(1, total_pages + 1)]


def reserved_routes(post_count: int, config: SiteConfig) -> list[str]:
    """Routes the generator writes itself; documents may not claim them."""
    routes = home_routes(post_count, config.posts_per_page)
    routes.append(HIGHLIGHT_ROUTE)
    if config.resolved_site_url:
        if config.enable_feed:
            routes.append(FEED_ROUTE)
        if config.enable_sitemap:
            routes.append(SITEMAP_ROUTE)
    return routes


def build_post_cards(posts: list[RenderedDocument], config: SiteConfig) -> str:
    cards = []
    for post in posts:
        meta = post.document.metadata
        url = url_for(config, post.route)
        more = ""
        if post.has_more:
            more = f'<a class="post-more" href="{url}">{i18n.label(meta.lang, "read_more")}</a>'
        cards.append(
            f'<article class="post-card" lang="{html.escape(meta.lang)}">'
            '<div class="post-meta">'
            f'<time class="post-date" datetime="{meta.date.isoformat()}">'
            f"{html.escape(i18n.format_date(meta.date, meta.lang))}</time>"
            f'<div class="post-tags">{render_tags(meta.tags)}</div></div>'
            f'<h2 class="post-title"><a href="{url}">{html.escape(meta.title)}</a></h2>'
            f'<div class="post-summary">{post.summary_html}</div>'
            f"{more}"
            "</article>"
        )
    return "\n".join(cards)


def build_pagination(page: int, total_pages: int, config: SiteConfig) -> str:
    if total_pages <= 1:
        return ""
    items = []
    if page > 1:
        href = url_for(config, page_route(page - 1))
        items.append(f'<a class="page-link" href="{href}">{i18n.label(config.lang, "newer")}</a>')
    items.append(f'<span class="page-number">{page} / {total_pages}</span>')
    if page < total_pages:
        href = url_for(config, page_route(page + 1))
        items.append(f'<a class="page-link" href="{href}">{i18n.label(config.lang, "older")}</a>')
    return f'<nav class="pagination">{"".join(items)}</nav>'


def build_index(
    site_index: list[RenderedDocument], registry: LayoutRegistry, config: SiteConfig
) -> list[tuple[str, str]]:
    """Render the home listing, one page per ``posts_per_page`` posts."""
    per_page = config.posts_per_page
    routes = home_routes(len(site_index), per_page)
    total_pages = len(routes)
    pages = []
    for page, route in enumerate(routes, start=1):
        start = (page - 1) * per_page
        page_posts = site_index[start : start + per_page]
        heading = i18n.label(config.lang, "latest")
        title = config.site_name
        if page > 1:
            title = f"{config.site_name} | {i18n.label(config.lang, 'page')} {page}"
        content = render_template(
            registry.listing,
            heading=html.escape(heading),
            pagination=build_pagination(page, total_pages, config),
            content=build_post_cards(page_posts, config),
        )
        document = render_shell(
            registry,
            config,
            title=title,
            lang=config.lang,
            description=config.site_description,
            route=route,
            content=content,
        )
        pages.append((route, document))
    return pages


def build_feed(site_index: list[RenderedDocument], config: SiteConfig) -> str:
    entries = []
    for post in site_index[: config.feed_limit]:
        meta = post.document.metadata
        link = absolute_url(config, post.route)
        author = meta.author or config.author
        lines = [
            "<entry>",
            f"<title>{html.escape(meta.title)}</title>",
            f'<link href="{html.escape(link)}" />',
            f"<id>{html.escape(link)}</id>",
            f"<updated>{iso_date(meta.date)}</updated>",
        ]
        if author:
            lines.append(f"<author><name>{html.escape(author)}</name></author>")
        lines.extend(f'<category term="{html.escape(tag)}" />' for tag in meta.tags)
        lines.append(f'<summary type="html">{html.escape(post.summary_html)}</summary>')
        lines.append("</entry>")
        entries.append("\n".join(lines))
    updated = iso_date(site_index[0].document.metadata.date) if site_index else "1970-01-01T00:00:00Z"
    feed_url = absolute_url(config, FEED_ROUTE)
    home_url = absolute_url(config, "/")
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            f"<title>{html.escape(config.site_name)}</title>",
            f"<id>{html.escape(home_url)}</id>",
            f"<updated>{updated}</updated>",
            f'<link href="{html.escape(feed_url)}" rel="self" />',
            f'<link href="{html.escape(home_url)}" />',
            *entries,
            "</feed>",
            "",
        ]
    )


def build_sitemap(
    rendered: list[RenderedDocument], index_routes: list[str], config: SiteConfig
) -> str:
    urls = [(route, None) for route in index_routes]
    for item in sorted(rendered, key=lambda r: r.route):
        urls.append((item.route, item.document.metadata.date))
    items = []
    for route, lastmod in urls:
        loc = html.escape(absolute_url(config, route))
        if lastmod is not None:
            items.append(f"<url>\n<loc>{loc}</loc>\n<lastmod>{lastmod.date().isoformat()}</lastmod>\n</url>")
        else:
            items.append(f"<url>\n<loc>{loc}</loc>\n</url>")
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *items,
            "</urlset>",
            "",
        ]
    )
