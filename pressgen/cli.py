from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

from .builder import build_site
from .config import SUMMARY_SEPARATOR, SiteConfig, load_config
from .content import DEFAULT_LANG
from .errors import BuildAborted, BuildError
from .utils import parse_bool, parse_int

DEFAULT_CONFIG = "site.toml"


def build_parser(config: dict, config_path: str) -> argparse.ArgumentParser:
    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    def cfg_bool(key: str, default: bool) -> bool:
        return parse_bool(cfg_value(key, default))

    def cfg_int(key: str, default: int) -> int:
        return parse_int(cfg_value(key, default), default)

    parser = argparse.ArgumentParser(prog="pressgen", description="Static blog generator for Markdown posts.")
    parser.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--source", default=cfg_str("source", "content"), help="Directory containing posts and pages.")
    parser.add_argument("--output", default=cfg_str("output", "_site"), help="Output directory for the site.")
    parser.add_argument(
        "--templates",
        default=cfg_str("templates", ""),
        help="Directory with templates overriding the built-in ones.",
    )
    parser.add_argument("--static", default=cfg_str("static", ""), help="Directory containing static assets.")
    parser.add_argument("--site-name", default=cfg_str("site_name", "My Blog"), help="Site title.")
    parser.add_argument("--site-description", default=cfg_str("site_description", ""), help="Site description.")
    parser.add_argument(
        "--site-url",
        default=cfg_str("site_url", ""),
        help="Public site URL used for the feed, sitemap and canonical links.",
    )
    parser.add_argument("--base-url", default=cfg_str("base_url", ""), help="Path prefix the site is served under.")
    parser.add_argument("--author", default=cfg_str("author", ""), help="Default author name.")
    parser.add_argument("--lang", default=cfg_str("lang", DEFAULT_LANG), help="Site language for listing pages.")
    parser.add_argument(
        "--posts-per-page",
        default=cfg_int("posts_per_page", 10),
        type=int,
        help="Number of posts on each home page before pagination.",
    )
    parser.add_argument(
        "--build-workers",
        default=cfg_int("build_workers", 0),
        type=int,
        help="Number of worker threads for parsing/rendering (0 = auto).",
    )
    parser.add_argument(
        "--summary-separator",
        default=cfg_str("summary_separator", SUMMARY_SEPARATOR),
        help="Marker separating a post's summary from the rest of its body.",
    )
    parser.add_argument(
        "--highlight-style",
        default=cfg_str("highlight_style", "default"),
        help="Pygments style used for code highlighting.",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", True),
        help="Clean output directory before build.",
    )
    parser.add_argument(
        "--enable-feed",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_feed", True),
        help="Generate feed.xml (requires --site-url).",
    )
    parser.add_argument(
        "--enable-sitemap",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_sitemap", True),
        help="Generate sitemap.xml (requires --site-url).",
    )
    parser.add_argument(
        "--feed-limit",
        default=cfg_int("feed_limit", 20),
        type=int,
        help="Maximum number of posts in the feed.",
    )
    parser.add_argument(
        "--write-nojekyll",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("write_nojekyll", False),
        help="Write .nojekyll in the output directory.",
    )
    parser.add_argument(
        "--custom-domain",
        default=cfg_str("custom_domain", ""),
        help="Custom domain to write into CNAME.",
    )
    parser.add_argument(
        "--allow-unknown-layouts",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("allow_unknown_layouts", False),
        help="Skip documents with an unknown layout instead of aborting the build.",
    )
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("strict", False),
        help="Exit non-zero when any document was skipped because of an error.",
    )
    return parser


def report_errors(errors: list[BuildError]) -> None:
    for error in errors:
        print(f"error: {error}", file=sys.stderr)


def main(argv: Optional[list[str]] = None) -> None:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default=DEFAULT_CONFIG)
    pre_args, _ = pre_parser.parse_known_args(argv)
    try:
        config = load_config(Path(pre_args.config))
    except BuildError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    args = build_parser(config, pre_args.config).parse_args(argv)
    values = dict(vars(args))
    values["layouts"] = config.get("layouts")
    try:
        site = SiteConfig.from_mapping(values)
    except BuildError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    start = time.perf_counter()
    try:
        report = build_site(site)
    except BuildAborted as exc:
        report_errors(exc.errors)
        print(f"Build failed: {exc}", file=sys.stderr)
        sys.exit(1)
    except BuildError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start

    report_errors(report.errors)
    for path in report.drafts:
        print(f"Skipped draft: {path}")
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Site generated in: {site.output} ({len(report.written)} files, digest {report.digest[:12]})")
    if args.strict and report.errors:
        sys.exit(1)
