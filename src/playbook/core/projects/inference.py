"""
Project name inference from filesystem paths.

A small ranked list of rules, each looking at the same path context;
the first rule that returns a name wins. Rules are independent objects
so each can be tested, replaced or reordered on its own.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

UNKNOWN_PROJECT = "Unknown Project"

COMMON_CONTAINERS = frozenset(
    {
        "Documents",
        "Projects",
        "Code",
        "workspace",
        "repos",
        "git",
        "src",
        "codebase",
        "Downloads",
        "Desktop",
        "VCS",
    }
)


@dataclass(frozen=True)
class PathContext:
    """A candidate project path seen relative to the user's home directory."""

    path: PurePosixPath
    home: PurePosixPath

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(p for p in self.path.parts if p != "/")

    @property
    def username(self) -> str:
        return self.home.name

    @property
    def relative(self) -> tuple[str, ...] | None:
        """Segments below home, or None when the path is outside it."""
        try:
            return self.path.relative_to(self.home).parts
        except ValueError:
            return None


class ProjectNameRule(Protocol):
    """One heuristic; returns a name or None to defer to the next rule."""

    def apply(self, ctx: PathContext) -> str | None: ...


class RootRule:
    def apply(self, ctx: PathContext) -> str | None:
        return "Root" if not ctx.parts else None


class HomeDirectoryRule:
    def apply(self, ctx: PathContext) -> str | None:
        return "Home Directory" if ctx.relative == () else None


class OutsideHomeRule:
    """Outside home there is no layout to reason about: take the last segment."""

    def apply(self, ctx: PathContext) -> str | None:
        if ctx.relative is None:
            return ctx.parts[-1]
        return None


class KnownProjectRule:
    """The deepest segment that names a known project."""

    def __init__(self, known_projects: Iterable[str]) -> None:
        self.known_projects = frozenset(known_projects)

    def apply(self, ctx: PathContext) -> str | None:
        for segment in reversed(ctx.relative or ()):
            if segment in self.known_projects:
                return segment
        return None


class CodebaseContainerRule:
    """``~/Documents/.../codebase/<project>/...`` names ``<project>``."""

    def apply(self, ctx: PathContext) -> str | None:
        rel = ctx.relative or ()
        if "Documents" not in rel or "codebase" not in rel:
            return None
        index = rel.index("codebase")
        if index + 1 < len(rel):
            return rel[index + 1]
        return None


class LastSegmentRule:
    """The deepest segment that is neither a generic container nor the username."""

    def __init__(self, containers: Iterable[str] = COMMON_CONTAINERS) -> None:
        self.containers = frozenset(containers)

    def apply(self, ctx: PathContext) -> str | None:
        for segment in reversed(ctx.relative or ()):
            if segment in self.containers or segment == ctx.username:
                continue
            return segment
        return None


def default_rules(known_projects: Iterable[str] = ()) -> list[ProjectNameRule]:
    return [
        RootRule(),
        HomeDirectoryRule(),
        OutsideHomeRule(),
        KnownProjectRule(known_projects),
        CodebaseContainerRule(),
        LastSegmentRule(),
    ]


def extract_path(candidate: str) -> str | None:
    """
    Turn a candidate (plain absolute path or URI) into an absolute path.

    Example:
        >>> extract_path("file:///home/me/My%20Project/a.py")
        '/home/me/My Project/a.py'
    """
    candidate = candidate.strip()
    if not candidate:
        return None
    if "://" in candidate:
        parsed = urlparse(candidate)
        path = unquote(parsed.path) if parsed.scheme == "file" else unquote(
            candidate.split("://", 1)[1]
        )
        if not path.startswith("/"):
            path = "/" + path
        return posixpath.normpath(path)
    if candidate.startswith("/"):
        return posixpath.normpath(candidate)
    return None


def common_directory(paths: Sequence[str]) -> str | None:
    """
    Longest directory prefix shared by ``paths`` (None when empty).

    A prefix that is a file (one candidate, or several naming the same
    file) is reduced to its parent directory. A path counts as a file when
    it is one on disk, or when it does not exist and has a suffix.
    """
    if not paths:
        return None
    prefix = posixpath.commonpath(paths)
    local = Path(prefix)
    if local.is_file() or (PurePosixPath(prefix).suffix and not local.is_dir()):
        return posixpath.dirname(prefix)
    return prefix


class ProjectNameInferrer:
    """
    Infers a project name from the paths a conversation touched.

    Example:
        >>> inferrer = ProjectNameInferrer(home_dir="/home/me")
        >>> inferrer.infer(["/home/me/Documents/codebase/atlas/src/app.py"])
        'atlas'
    """

    def __init__(
        self,
        rules: Sequence[ProjectNameRule] | None = None,
        home_dir: str | Path | None = None,
        known_projects: Iterable[str] = (),
    ) -> None:
        self.rules = list(rules) if rules is not None else default_rules(known_projects)
        self.home = PurePosixPath(posixpath.normpath(str(home_dir or Path.home())))

    def infer(self, candidate_paths: Iterable[str | Path]) -> str:
        paths = [p for p in (extract_path(str(c)) for c in candidate_paths) if p]
        root = common_directory(paths)
        if root is None:
            logger.debug("No usable candidate paths; project name unknown")
            return UNKNOWN_PROJECT
        return self.infer_from_path(root)

    def infer_from_path(self, path: str | Path) -> str:
        ctx = PathContext(path=PurePosixPath(posixpath.normpath(str(path))), home=self.home)
        for rule in self.rules:
            name = rule.apply(ctx)
            if name:
                logger.debug("Project name %r from %s", name, type(rule).__name__)
                return name
        return UNKNOWN_PROJECT
