#!/usr/bin/env python3
"""
Cleanable Directory Classifier

Decides whether a directory may be offered for bulk deletion. A directory
qualifies when its base name is a well-known dependency/build/cache directory
of some language or tool ecosystem, and it is not inside one of the locations
the system cache/log purge already empties.

Classification looks at the path text only; nothing is read from disk and
symlinks are judged by their own name, not their target.
"""

import os
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class PathClass(Enum):
    """Outcome of classifying a candidate path"""

    PROJECT_DEPENDENCY = "project_dependency"
    OS_MANAGED = "os_managed"
    UNCLASSIFIED = "unclassified"


# Locations emptied by the system cache/log purge. Matched anywhere in the path.
OS_MANAGED_MARKERS = (
    "/Library/Caches/",
    "/Library/Logs/",
    "/Library/Saved Application State/",
    "/.Trash/",
    "/Library/DiagnosticReports/",
)

_ECOSYSTEMS = {
    "JavaScript/Node": ("node_modules", "bower_components", ".yarn", ".pnpm-store"),
    "Python": (
        "venv",
        ".venv",
        "virtualenv",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".eggs",
        "htmlcov",
        ".ipynb_checkpoints",
    ),
    "Ruby": ("vendor", ".bundle"),
    "Java/Kotlin/Scala": (".gradle", "out"),
    "Build outputs": (
        "build",
        "dist",
        "target",
        ".next",
        ".nuxt",
        ".output",
        ".parcel-cache",
        ".turbo",
        ".vite",
        ".nx",
        "coverage",
        ".coverage",
        ".nyc_output",
    ),
    "Frontend frameworks": (".angular", ".svelte-kit", ".astro", ".docusaurus"),
    "Apple toolchains": ("DerivedData", "Pods", ".build", "Carthage", ".dart_tool"),
    "Infrastructure as code": (".terraform",),
}

# Directory name -> ecosystem label
PROJECT_DEPENDENCY_DIRS = MappingProxyType(
    {name: ecosystem for ecosystem, names in _ECOSYSTEMS.items() for name in names}
)


@dataclass(frozen=True)
class CandidatePath:
    """A path offered for classification"""

    path: str
    base_name: str
    classification: PathClass

    @classmethod
    def from_path(cls, path: str) -> "CandidatePath":
        return cls(path=path, base_name=base_name(path), classification=classify_path(path))

    @property
    def is_cleanable(self) -> bool:
        return self.classification is PathClass.PROJECT_DEPENDENCY


def base_name(path: str) -> str:
    """Last path component, ignoring trailing separators"""
    stripped = path.rstrip(os.sep)
    if not stripped:
        return path[:1]
    return os.path.basename(stripped)


def is_handled_by_system_clean(path: str) -> bool:
    """Check if a path lies in a location the system purge already empties"""
    return any(marker in path for marker in OS_MANAGED_MARKERS)


def classify_path(path: str) -> PathClass:
    if not path:
        return PathClass.UNCLASSIFIED
    # Owned elsewhere wins over a dependency-name match
    if is_handled_by_system_clean(path):
        return PathClass.OS_MANAGED
    if base_name(path) in PROJECT_DEPENDENCY_DIRS:
        return PathClass.PROJECT_DEPENDENCY
    return PathClass.UNCLASSIFIED


def is_cleanable_dir(path: str) -> bool:
    """Return True if *path* is safe to offer for bulk deletion"""
    return classify_path(path) is PathClass.PROJECT_DEPENDENCY


def ecosystem_of(path: str) -> str:
    """Ecosystem label for an allowlisted directory, or empty string"""
    return PROJECT_DEPENDENCY_DIRS.get(base_name(path), "")
