"""Route derivation: every document and generated page maps to one output path.

Posts live under ``/YYYY/MM/DD/slug/``; pages mirror their source path with the
extension stripped. Routes that end in ``/`` are written as ``index.html``
inside that directory, so ``/about/`` and ``/about/index.html`` are the same
output file and collide.
"""

from __future__ import annotations

import posixpath
from pathlib import Path, PurePosixPath
from typing import Iterable

from .content import Document, slugify, split_post_filename
from .errors import RouteCollision

INDEX_FILE = "index.html"


def normalize_route(route: str) -> str:
    route = "/" + route.strip().lstrip("/")
    trailing = route.endswith("/")
    route = posixpath.normpath(route)
    if route in {"/", "//"}:
        return "/"
    if trailing or not PurePosixPath(route).suffix:
        route += "/"
    return route


def post_route(document: Document) -> str:
    meta = document.metadata
    _, filename_slug = split_post_filename(document.path)
    slug = slugify(meta.slug or filename_slug or meta.title)
    date = meta.date
    return f"/{date:%Y}/{date:%m}/{date:%d}/{slug}/"


def page_route(document: Document) -> str:
    path = PurePosixPath(document.path).with_suffix("")
    if path.name == "index":
        path = path.parent
    rel = path.as_posix().strip("/")
    if rel in {"", "."}:
        return "/"
    return f"/{rel}/"


def route_for(document: Document) -> str:
    if document.metadata.permalink:
        return normalize_route(document.metadata.permalink)
    if document.is_post:
        return post_route(document)
    return page_route(document)


def output_key(route: str) -> str:
    rel = route.lstrip("/")
    if not rel or route.endswith("/"):
        rel += INDEX_FILE
    return rel


def output_path(output_dir: Path, route: str) -> Path:
    return output_dir.joinpath(*output_key(route).split("/"))


def assign_routes(
    documents: Iterable[Document], reserved: Iterable[str] = (), static: Iterable[str] = ()
) -> tuple[dict[str, str], list[RouteCollision]]:
    """Route every document and report every output path claimed more than once.

    ``static`` holds output-relative paths of copied static files; they claim
    their path like any generated page.
    """
    routes: dict[str, str] = {}
    claims: dict[str, list[tuple[str, str]]] = {}
    for route in reserved:
        claims.setdefault(output_key(route), []).append((route, f"<generated {route}>"))
    for document in documents:
        route = route_for(document)
        routes[document.path] = route
        claims.setdefault(output_key(route), []).append((route, document.path))
    for key in static:
        claims.setdefault(key, []).append((f"/{key}", f"<static {key}>"))

    collisions = []
    for key in sorted(claims):
        claimants = claims[key]
        if len(claimants) > 1:
            collisions.append(RouteCollision(claimants[0][0], [source for _, source in claimants]))
    return routes, collisions


def compute_routes(documents: Iterable[Document], reserved: Iterable[str] = ()) -> dict[str, str]:
    routes, collisions = assign_routes(documents, reserved)
    if collisions:
        raise collisions[0]
    return routes
