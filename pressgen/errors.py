from __future__ import annotations


class BuildError(Exception):
    """Base class for every error the generator reports."""


class ConfigError(BuildError):
    pass


class MalformedDocument(BuildError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class RouteCollision(BuildError):
    def __init__(self, route: str, paths: list[str]):
        joined = ", ".join(paths)
        super().__init__(f"route {route} is claimed by more than one source: {joined}")
        self.route = route
        self.paths = list(paths)


class UnknownLayout(BuildError):
    def __init__(self, path: str, layout: str):
        super().__init__(f"{path}: unknown layout {layout!r}")
        self.path = path
        self.layout = layout


class BuildAborted(BuildError):
    """Raised when a fatal error stops the build before any output is written."""

    def __init__(self, errors: list[BuildError]):
        noun = "error" if len(errors) == 1 else "errors"
        super().__init__(f"build aborted with {len(errors)} {noun}")
        self.errors = list(errors)
