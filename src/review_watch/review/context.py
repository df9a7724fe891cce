"""Project context added to review prompts.

Gathers raw material and leaves the analysis to the model: the module tree
around the reviewed file, its imports and importers, sibling files, files that
usually change with it in git history, and the project's own description.
"""

import ast
import json
import logging
import os
import re
import tomllib
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .git import cochanged_files


logger = logging.getLogger(__name__)

SKIP_DIRS = frozenset({"target", "node_modules", "__pycache__", "venv", "dist", "build"})
README_NAMES = ("README.md", "README.markdown", "README.rst", "README.txt", "README")
README_LINES = 50
MAX_COCHANGED = 5
MAX_IMPORTERS = 10
TREE_DEPTH = 2

_IMPORT_PATTERNS = {
    "rs": re.compile(r"^\s*(?:pub\s+)?use\s+([\w:]+)", re.MULTILINE),
    "java": re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+)\s*;", re.MULTILINE),
    "c": re.compile(r'^\s*#\s*include\s+[<"]([^>"]+)[>"]', re.MULTILINE),
    "go": re.compile(r'^\s*(?:import\s+)?(?:[\w.]+\s+)?"([\w./-]+)"\s*$', re.MULTILINE),
    "js": re.compile(
        r"""(?:^\s*import\s+(?:[^'"]*?\s+from\s+)?|\brequire\(\s*|^\s*export\s+[^'"]*?\s+from\s+)['"]([^'"]+)['"]""",
        re.MULTILINE,
    ),
}
_IMPORT_PATTERNS.update({
    "h": _IMPORT_PATTERNS["c"],
    "cpp": _IMPORT_PATTERNS["c"],
    "hpp": _IMPORT_PATTERNS["c"],
    "jsx": _IMPORT_PATTERNS["js"],
    "ts": _IMPORT_PATTERNS["js"],
    "tsx": _IMPORT_PATTERNS["js"],
})

_SEGMENT_SPLIT = re.compile(r"[./:\\]+")


@dataclass(frozen=True)
class ImportRef:
    module: str
    names: tuple[str, ...] = ()

    def refers_to(self, stem: str) -> bool:
        return stem in _SEGMENT_SPLIT.split(self.module) or stem in self.names

    def __str__(self) -> str:
        if self.names:
            return f"{self.module} ({', '.join(self.names)})"
        return self.module


@dataclass
class ProjectContext:
    module_tree: str = ""
    description: str | None = None
    readme_summary: str | None = None
    cochanged: list[tuple[str, int]] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    imported_by: list[str] = field(default_factory=list)
    siblings: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any((
            self.module_tree,
            self.description,
            self.readme_summary,
            self.cochanged,
            self.imports,
            self.imported_by,
            self.siblings,
        ))

    def to_prompt(self) -> str:
        sections = []
        if self.description:
            sections.append(f"## Project overview\n{self.description}")
        if self.readme_summary:
            sections.append(f"## README (excerpt)\n{self.readme_summary}")
        if self.module_tree:
            sections.append(f"## Project structure\n```\n{self.module_tree}```")
        if self.cochanged:
            lines = "\n".join(f"- {name} ({count} times)" for name, count in self.cochanged)
            sections.append(f"## Files recently changed together\n{lines}")
        if self.imports or self.imported_by:
            lines = []
            if self.imports:
                lines.append(f"This file uses: {', '.join(self.imports)}")
            if self.imported_by:
                lines.append(f"Used by: {', '.join(self.imported_by)}")
            sections.append("## Dependencies\n" + "\n".join(lines))
        if self.siblings:
            sections.append(f"## Files in the same directory\n{', '.join(self.siblings)}")
        return "\n\n".join(sections)


def _skip(name: str) -> bool:
    return name.startswith(".") or name in SKIP_DIRS


def _is_source(path: Path, extensions: Iterable[str]) -> bool:
    return path.suffix.lstrip(".").lower() in extensions


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _sorted_entries(directory: Path) -> list[Path]:
    try:
        entries = [entry for entry in directory.iterdir() if not _skip(entry.name)]
    except OSError:
        return []
    # Directories first, then files, each alphabetically.
    return sorted(entries, key=lambda entry: (not entry.is_dir(), entry.name))


def module_tree(base: Path, target: Path, max_depth: int = TREE_DEPTH) -> str:
    """ASCII tree of base, with the reviewed file marked ``← HERE``."""
    lines = [f"{base.name or '.'}/"]

    def walk(directory: Path, prefix: str, depth: int) -> None:
        entries = _sorted_entries(directory)
        for index, entry in enumerate(entries):
            last = index == len(entries) - 1
            is_dir = entry.is_dir()
            marker = " ← HERE" if entry == target else ""
            lines.append(f"{prefix}{'└── ' if last else '├── '}{entry.name}{'/' if is_dir else ''}{marker}")
            if is_dir and depth < max_depth:
                walk(entry, prefix + ("    " if last else "│   "), depth + 1)

    walk(base, "", 0)
    return "\n".join(lines) + "\n"


def _python_imports(source: str) -> list[ImportRef]:
    try:
        tree = ast.parse(source)
    except (SyntaxError, ValueError):
        return []

    refs = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            refs.extend(ImportRef(alias.name) for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            module = "." * node.level + (node.module or "")
            refs.append(ImportRef(module, tuple(alias.name for alias in node.names)))
    return refs


def find_imports(path: Path, source: str) -> list[ImportRef]:
    """Imports declared by a source file, without duplicates."""
    ext = path.suffix.lstrip(".").lower()
    if ext == "py":
        refs = _python_imports(source)
    elif ext in _IMPORT_PATTERNS:
        refs = [ImportRef(match.group(1)) for match in _IMPORT_PATTERNS[ext].finditer(source)]
    else:
        refs = []
    return list(dict.fromkeys(refs))


def find_importers(target: Path, root: Path, extensions: Iterable[str], limit: int = MAX_IMPORTERS) -> list[str]:
    """Source files under root that import target, as paths relative to root."""
    extensions = frozenset(extensions)
    stem = target.stem
    importers = []

    for directory, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if not _skip(name))
        for filename in sorted(filenames):
            candidate = Path(directory) / filename
            if candidate == target or not _is_source(candidate, extensions):
                continue
            source = _read(candidate)
            if source is None:
                continue
            if any(ref.refers_to(stem) for ref in find_imports(candidate, source)):
                importers.append(candidate.relative_to(root).as_posix())
                if len(importers) >= limit:
                    return importers
    return importers


def sibling_files(path: Path, extensions: Iterable[str]) -> list[str]:
    extensions = frozenset(extensions)
    try:
        entries = list(path.parent.iterdir())
    except OSError:
        return []
    return sorted(
        entry.name for entry in entries
        if entry != path and entry.is_file() and _is_source(entry, extensions)
    )


def project_description(root: Path) -> str | None:
    """Description from pyproject.toml, Cargo.toml or package.json, first found."""
    for name, section in (("pyproject.toml", "project"), ("Cargo.toml", "package")):
        manifest = root / name
        if manifest.is_file():
            try:
                data = tomllib.loads(manifest.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
                logger.debug(f"Cannot read {manifest}: {e}")
                continue
            description = data.get(section, {}).get("description")
            if description:
                return description

    package_json = root / "package.json"
    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.debug(f"Cannot read {package_json}: {e}")
            return None
        if isinstance(data, dict) and data.get("description"):
            return data["description"]
    return None


def readme_summary(root: Path, max_lines: int = README_LINES) -> str | None:
    for name in README_NAMES:
        readme = root / name
        if readme.is_file():
            text = _read(readme)
            if not text or not text.strip():
                return None
            return "\n".join(text.splitlines()[:max_lines])
    return None


def gather_context(
    path: Path,
    root: Path,
    extensions: Iterable[str],
    lookback: int = 50,
    git: str = "git",
) -> ProjectContext:
    """Collect everything useful about path's place in the project under root."""
    path, root = path.resolve(), root.resolve()
    extensions = frozenset(extensions)
    base = root / "src" if (root / "src").is_dir() else root
    source = _read(path) or ""

    return ProjectContext(
        module_tree=module_tree(base, path),
        description=project_description(root),
        readme_summary=readme_summary(root),
        cochanged=cochanged_files(path, lookback, git=git)[:MAX_COCHANGED],
        imports=[str(ref) for ref in find_imports(path, source)],
        imported_by=find_importers(path, root, extensions),
        siblings=sibling_files(path, extensions),
    )
