from .builder import BuildContext, BuildReport, build_site
from .config import SiteConfig, load_config
from .content import Document, Layout, Metadata, parse_document, slugify
from .errors import BuildAborted, BuildError, ConfigError, MalformedDocument, RouteCollision, UnknownLayout

__version__ = "0.1.0"

__all__ = [
    "BuildAborted",
    "BuildContext",
    "BuildError",
    "BuildReport",
    "ConfigError",
    "Document",
    "Layout",
    "MalformedDocument",
    "Metadata",
    "RouteCollision",
    "SiteConfig",
    "UnknownLayout",
    "build_site",
    "load_config",
    "parse_document",
    "slugify",
]
