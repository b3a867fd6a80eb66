"""Project registry: which project owns a source file, and which page it gets.

Projects are registered with a canonical, slash-terminated source root.
Ownership of a path is decided by the longest registered root that prefixes
it, so nested projects (``/src/`` and ``/src/app/``) can coexist. The
registry also holds the set of output pages already claimed in this run,
which guarantees that one page is generated by at most one unit.
"""

import os
import threading
from dataclasses import dataclass
from enum import Enum

from codebrowser.utils.logging import logger

from .exceptions import ProjectSpecError


class ProjectType(Enum):
    """How a project participates in generation."""

    NORMAL = "normal"
    # System headers and other support code
    INTERNAL = "internal"
    # Path range owned by a project published elsewhere; never generated
    EXTERNAL = "external"


@dataclass
class ProjectInfo:
    """A named source root."""

    name: str
    source_path: str
    revision: str = ""
    type: ProjectType = ProjectType.NORMAL
    external_root_url: str = ""

    @property
    def is_external(self) -> bool:
        return self.type is ProjectType.EXTERNAL


def canonicalize(path: str) -> str:
    """Absolute path with ``.`` and ``..`` collapsed. Symlinks are kept."""
    if not path:
        return ""
    canonical = os.path.normpath(os.path.abspath(path))
    return canonical.replace("\\", "/")


def parse_project_spec(spec: str) -> ProjectInfo:
    """Parse ``name:path[:revision]``."""
    name, sep, rest = spec.partition(":")
    if not sep:
        raise ProjectSpecError(f"fail to parse project option: {spec}", spec)
    path, _, revision = rest.partition(":")
    return ProjectInfo(name=name, source_path=path, revision=revision)


def parse_external_spec(spec: str) -> ProjectInfo:
    """Parse ``name:path:url``. The url itself may contain colons."""
    name, sep, rest = spec.partition(":")
    path, sep2, url = rest.partition(":")
    if not sep or not sep2:
        raise ProjectSpecError(f"fail to parse project option: {spec}", spec)
    return ProjectInfo(
        name=name,
        source_path=path,
        type=ProjectType.EXTERNAL,
        external_root_url=url,
    )


class ProjectRegistry:
    """Longest-prefix project lookup plus the claimed-page guard set.

    ``resolve`` is deliberately uncached: projects may still be added while
    sources are being discovered.
    """

    def __init__(self, output_root: str):
        self.output_root = output_root.rstrip("/")
        self._projects: list[ProjectInfo] = []
        self._claimed_pages: set[str] = set()
        self._lock = threading.Lock()

    @property
    def projects(self) -> list[ProjectInfo]:
        return list(self._projects)

    def register(self, info: ProjectInfo) -> bool:
        """Add a project. Returns False if its source path is empty.

        Duplicate roots are accepted; resolution prefers the longest root.
        """
        source_path = canonicalize(info.source_path)
        if not source_path:
            logger.warning(f"Rejected project '{info.name}': empty source path")
            return False
        if not source_path.endswith("/"):
            source_path += "/"
        info.source_path = source_path

        with self._lock:
            self._projects.append(info)
        logger.debug(f"Registered project {info.name} ({info.type.value}) at {source_path}")
        return True

    def register_spec(self, info: ProjectInfo, spec: str) -> ProjectInfo:
        """Register a parsed command-line spec, raising on rejection."""
        if not self.register(info):
            raise ProjectSpecError(f"invalid project directory for: {spec}", spec)
        return info

    def seed_system_projects(self, system_projects: dict[str, str]) -> None:
        """Register the configured system include roots as Internal projects."""
        for name, path in system_projects.items():
            self.register(ProjectInfo(name=name, source_path=path, type=ProjectType.INTERNAL))

    def resolve(self, path: str) -> ProjectInfo | None:
        """Return the project whose root is the longest prefix of ``path``.

        ``path`` must already be canonical. On equal-length roots the one
        registered last wins.
        """
        match_length = 0
        result = None
        for project in tuple(self._projects):
            source_path = project.source_path
            if len(source_path) < match_length:
                continue
            if path.startswith(source_path):
                result = project
                match_length = len(source_path)
        return result

    def is_processable(self, path: str, project: ProjectInfo | None) -> bool:
        """Ownership check without claiming the output page."""
        if project is None:
            logger.debug(f"should not process (no project): {path}")
            return False
        if project.is_external:
            logger.debug(f"should not process since it's external: {path}")
            return False
        return True

    def relative_name(self, path: str, project: ProjectInfo) -> str:
        """``<project>/<path relative to the project root>``"""
        return f"{project.name}/{path[len(project.source_path):]}"

    def page_path(self, path: str, project: ProjectInfo) -> str:
        """Destination HTML page for ``path`` inside ``project``."""
        return f"{self.output_root}/{self.relative_name(path, project)}.html"

    def admits(self, path: str, project: ProjectInfo | None) -> bool:
        """Claim the output page of ``path``.

        True exactly once per output page for the lifetime of the registry,
        no matter how many threads race for it.
        """
        if not self.is_processable(path, project):
            return False

        page = self.page_path(path, project)
        with self._lock:
            if page in self._claimed_pages:
                claimed = False
            else:
                self._claimed_pages.add(page)
                claimed = True
        logger.debug(f"Output page {page} claimed: {claimed}")
        return claimed
