"""
Aethr — Project Context Detector

Inspects a project directory for marker files and produces technology
tags, plus the boost multiplier that biases ranking toward commands
relevant to that project.

Pure function of filesystem state. Fails soft: a missing or unreadable
directory yields an empty context, never an error.
"""
import os
from pathlib import Path
from typing import List, Tuple, Union

from ..core.types import ProjectContext

# Marker file(s) → tag. Any one present file is enough.
MARKER_FILES: List[Tuple[Tuple[str, ...], str]] = [
    (("Dockerfile",), "docker"),
    (("docker-compose.yml", "docker-compose.yaml"), "docker-compose"),
    (("package.json",), "nodejs"),
    (("pyproject.toml", "requirements.txt"), "python"),
    (("go.mod",), "golang"),
    (("Cargo.toml",), "rust"),
    (("pom.xml",), "java"),
]

MANIFEST_EXTENSIONS = (".yml", ".yaml")
KUBERNETES_MARKERS = ("kind:", "apiVersion:")
VCS_DIR = ".git"
# Manifests are small; don't slurp huge YAML dumps
MAX_MANIFEST_BYTES = 1_000_000

# (tag group, keywords, multiplier) in table order.
# A group applies when any of its tags is present; keywords are
# case-insensitive substrings of the command.
BOOST_TABLE: List[Tuple[Tuple[str, ...], Tuple[str, ...], float]] = [
    (("nodejs",), ("npm", "yarn", "node"), 2.5),
    (("python",), ("pip", "python", "venv"), 2.5),
    (("docker", "docker-compose"), ("docker",), 2.5),
    (("kubernetes",), ("kubectl", "helm", "k8s"), 2.5),
    (("git",), ("git",), 2.0),
    (("rust",), ("cargo", "rustc"), 2.5),
    (("golang",), ("go ", "go\t"), 2.5),
    (("java",), ("mvn", "gradle", "javac"), 2.5),
]


def detect_project_context(path: Union[str, Path]) -> ProjectContext:
    """Tags for every marker found directly in `path` (non-recursive)."""
    base = Path(path)
    try:
        if not base.is_dir():
            return ProjectContext()
    except OSError:
        return ProjectContext()

    tags = set()
    for names, tag in MARKER_FILES:
        if any(_exists(base / name) for name in names):
            tags.add(tag)
    if _has_kubernetes_manifest(base):
        tags.add("kubernetes")
    if _exists(base / VCS_DIR):
        tags.add("git")
    return ProjectContext.from_tags(tags)


def boost_multiplier(context: ProjectContext, command: str) -> float:
    """
    Relevance multiplier for `command` under `context`.

    Stacking policy: every table row whose tag group is present and whose
    keywords match contributes its multiplier once; the result is their
    product. No match → 1.0.
    """
    if not context:
        return 1.0
    cmd_lower = command.lower()
    multiplier = 1.0
    for group, keywords, factor in BOOST_TABLE:
        if not any(context.has_tag(t) for t in group):
            continue
        if any(k in cmd_lower for k in keywords):
            multiplier *= factor
    return multiplier


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError:
        return False


def _has_kubernetes_manifest(base: Path) -> bool:
    """Any top-level .yml/.yaml file mentioning `kind:` or `apiVersion:`."""
    try:
        entries = list(os.scandir(base))
    except OSError:
        return False
    for entry in entries:
        if not entry.name.lower().endswith(MANIFEST_EXTENSIONS):
            continue
        try:
            if not entry.is_file():
                continue
            with open(entry.path, "r", encoding="utf-8", errors="replace") as f:
                content = f.read(MAX_MANIFEST_BYTES)
        except OSError:
            continue
        if any(marker in content for marker in KUBERNETES_MARKERS):
            return True
    return False
