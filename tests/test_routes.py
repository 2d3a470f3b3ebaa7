"""Unit tests for route derivation and whole-site collision checks"""

import pytest

from pressgen.content import parse_document
from pressgen.errors import RouteCollision
from pressgen.routes import assign_routes, compute_routes, normalize_route, output_key, route_for


def doc(path, title="Hello World", layout="post", **meta):
    lines = ["---", f"title: {title}", f"layout: {layout}"]
    lines.extend(f"{key}: {value}" for key, value in meta.items())
    lines.append("---")
    return parse_document("\n".join(lines) + "\n", path)


def test_post_route_from_title():
    assert route_for(doc("a.md", date="2020-01-01")) == "/2020/01/01/hello-world/"


def test_post_route_prefers_filename_slug():
    post = doc("_posts/2020-01-01-first-steps.md", title="Something else entirely")
    assert route_for(post) == "/2020/01/01/first-steps/"


def test_post_route_prefers_explicit_slug():
    post = doc("_posts/2020-01-01-first-steps.md", slug="Custom Slug")
    assert route_for(post) == "/2020/01/01/custom-slug/"


@pytest.mark.parametrize("path,expected", [
    ("about.md", "/about/"),
    ("es/sobre-mi.markdown", "/es/sobre-mi/"),
    ("docs/index.md", "/docs/"),
    ("index.md", "/"),
    ("java-11.0-notes.md", "/java-11.0-notes/"),
    ("notes/intellij-2020.1.md", "/notes/intellij-2020.1/"),
])
def test_page_route_strips_extension(path, expected):
    assert route_for(doc(path, layout="page")) == expected


@pytest.mark.parametrize("permalink,expected", [
    ("/404.html", "/404.html"),
    ("about", "/about/"),
    ("/about-me/", "/about-me/"),
    ("/", "/"),
])
def test_permalink_overrides_route(permalink, expected):
    assert route_for(doc("p.md", layout="page", permalink=permalink)) == expected


def test_normalize_route_collapses_dots():
    assert normalize_route("/a/./b/../c") == "/a/c/"


@pytest.mark.parametrize("route,expected", [
    ("/", "index.html"),
    ("/about/", "about/index.html"),
    ("/feed.xml", "feed.xml"),
])
def test_output_key(route, expected):
    assert output_key(route) == expected


def test_identical_date_and_title_collide():
    first = doc("a.md", date="2020-01-01")
    second = doc("b.md", date="2020-01-01")
    assert route_for(first) == route_for(second) == "/2020/01/01/hello-world/"
    with pytest.raises(RouteCollision) as excinfo:
        compute_routes([first, second])
    assert excinfo.value.route == "/2020/01/01/hello-world/"
    assert excinfo.value.paths == ["a.md", "b.md"]


def test_distinct_documents_get_distinct_routes():
    docs = [
        doc("a.md", date="2020-01-01"),
        doc("b.md", date="2020-01-02"),
        doc("c.md", title="Other", date="2020-01-01"),
        doc("about.md", layout="page"),
    ]
    routes = compute_routes(docs)
    assert len(set(routes.values())) == len(docs)


def test_every_collision_is_reported():
    docs = [
        doc("a.md", date="2020-01-01"),
        doc("b.md", date="2020-01-01"),
        doc("about.md", layout="page"),
        doc("about/index.md", layout="page"),
    ]
    _, collisions = assign_routes(docs)
    assert sorted(c.route for c in collisions) == ["/2020/01/01/hello-world/", "/about/"]


def test_directory_route_collides_with_explicit_index_file():
    docs = [doc("about.md", layout="page"), doc("x.md", layout="page", permalink="/about/index.html")]
    _, collisions = assign_routes(docs)
    assert len(collisions) == 1


def test_reserved_routes_collide_with_documents():
    home = doc("index.md", layout="page")
    _, collisions = assign_routes([home], reserved=["/", "/feed.xml"])
    assert len(collisions) == 1
    assert collisions[0].route == "/"
    assert "index.md" in collisions[0].paths


def test_static_files_claim_their_output_path():
    docs = [doc("about.md", layout="page"), doc("notes.md", layout="page")]
    _, collisions = assign_routes(docs, reserved=["/"], static=["index.html", "about/index.html", "img/logo.svg"])
    assert sorted(c.route for c in collisions) == ["/", "/about/"]
    about = next(c for c in collisions if c.route == "/about/")
    assert about.paths == ["about.md", "<static about/index.html>"]
