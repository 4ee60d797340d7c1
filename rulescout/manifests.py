"""Dependency manifest readers used to seed a discovery batch."""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path, PurePath
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .logging import get_logger
from .models import Dependency, DependencyType, RegistryType

logger = get_logger("manifests")

_PACKAGE_JSON_GROUPS = (
    ("dependencies", DependencyType.PRODUCTION),
    ("devDependencies", DependencyType.DEVELOPMENT),
    ("peerDependencies", DependencyType.PEER),
    ("optionalDependencies", DependencyType.OPTIONAL),
)

_SOURCE_REGISTRY = {
    "package.json": RegistryType.NPM,
    "requirements.txt": RegistryType.PYPI,
    "pyproject.toml": RegistryType.PYPI,
    "cargo.toml": RegistryType.CARGO,
    "go.mod": RegistryType.GO,
    "composer.json": RegistryType.COMPOSER,
    "deno.json": RegistryType.JSR,
}

_REQUIREMENT = re.compile(
    r"^(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)\s*(?:\[[^\]]*\])?\s*(?P<spec>[^;#]*)"
)


def resolve_registry_type(dependency: Dependency) -> RegistryType:
    """Decide which registry serves ``dependency``.

    An explicit registry wins, then a ``jsr:``/``npm:`` specifier prefix, then
    the manifest file the dependency was declared in. Unknown sources default
    to npm.
    """
    if dependency.registry is not None:
        return dependency.registry
    for value in (dependency.name, dependency.version):
        if value.startswith("jsr:"):
            return RegistryType.JSR
        if value.startswith("npm:"):
            return RegistryType.NPM
    filename = PurePath(dependency.source).name.lower()
    return _SOURCE_REGISTRY.get(filename, RegistryType.NPM)


def read_dependencies(root: Path) -> List[Dependency]:
    """Collect dependencies declared in the manifests found directly under ``root``."""
    root = root.expanduser().resolve()
    dependencies: List[Dependency] = []
    dependencies.extend(_read_package_json(root / "package.json"))
    dependencies.extend(_read_deno_json(root / "deno.json"))
    dependencies.extend(_read_requirements(root / "requirements.txt"))
    dependencies.extend(_read_pyproject(root / "pyproject.toml"))
    return _unique(dependencies)


def _read_package_json(path: Path) -> List[Dependency]:
    data = _load_json(path)
    dependencies: List[Dependency] = []
    for key, dep_type in _PACKAGE_JSON_GROUPS:
        group = data.get(key)
        if not isinstance(group, dict):
            continue
        for name, version in group.items():
            if not isinstance(name, str) or not isinstance(version, str):
                continue
            dependencies.append(
                Dependency(
                    name=name,
                    version=version.strip() or "latest",
                    source=path.name,
                    type=dep_type,
                    registry=RegistryType.JSR if version.startswith("jsr:") else None,
                )
            )
    return dependencies


def _read_deno_json(path: Path) -> List[Dependency]:
    imports = _load_json(path).get("imports")
    if not isinstance(imports, dict):
        return []
    dependencies: List[Dependency] = []
    for target in imports.values():
        if not isinstance(target, str):
            continue
        for prefix, registry in (("jsr:", RegistryType.JSR), ("npm:", RegistryType.NPM)):
            if target.startswith(prefix):
                name, version = split_specifier(target[len(prefix) :])
                dependencies.append(
                    Dependency(name=name, version=version, source=path.name, registry=registry)
                )
                break
    return dependencies


def _read_requirements(path: Path) -> List[Dependency]:
    if not path.exists():
        return []
    dependencies: List[Dependency] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        parsed = _parse_requirement(stripped)
        if parsed:
            name, version = parsed
            dependencies.append(Dependency(name=name, version=version, source=path.name))
    return dependencies


def _read_pyproject(path: Path) -> List[Dependency]:
    if not path.exists():
        return []
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Skipping unreadable %s: %s", path, exc)
        return []

    entries: List[Tuple[str, DependencyType]] = []
    project = data.get("project")
    if isinstance(project, dict):
        entries.extend((dep, DependencyType.PRODUCTION) for dep in _str_items(project.get("dependencies")))
        optional = project.get("optional-dependencies")
        if isinstance(optional, dict):
            for values in optional.values():
                entries.extend((dep, DependencyType.OPTIONAL) for dep in _str_items(values))

    dependencies: List[Dependency] = []
    for requirement, dep_type in entries:
        parsed = _parse_requirement(requirement)
        if parsed:
            name, version = parsed
            dependencies.append(Dependency(name=name, version=version, source=path.name, type=dep_type))

    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    poetry_deps = poetry.get("dependencies") if isinstance(poetry, dict) else None
    if isinstance(poetry_deps, dict):
        for name, spec in poetry_deps.items():
            if name.lower() == "python":
                continue
            if isinstance(spec, dict):
                spec = spec.get("version")
            version = spec.strip() if isinstance(spec, str) and spec.strip() else "latest"
            dependencies.append(Dependency(name=name, version=version, source=path.name))
    return dependencies


def split_specifier(specifier: str) -> Tuple[str, str]:
    """Split ``@scope/name@1.2.3`` or ``name@^1`` into name and version."""
    head, sep, version = specifier.rpartition("@")
    if not sep or not head:
        return specifier, "latest"
    return head, version or "latest"


def _parse_requirement(requirement: str) -> Optional[Tuple[str, str]]:
    match = _REQUIREMENT.match(requirement)
    if not match:
        return None
    name = match.group("name")
    if name.lower() == "python":
        return None
    spec = match.group("spec").strip().replace(" ", "")
    return name, spec or "latest"


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Skipping unreadable %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _str_items(value: Any) -> Iterable[str]:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []


def _unique(dependencies: Iterable[Dependency]) -> List[Dependency]:
    seen: Set[Tuple[str, RegistryType]] = set()
    result: List[Dependency] = []
    for dependency in dependencies:
        key = (dependency.name, resolve_registry_type(dependency))
        if key in seen:
            continue
        seen.add(key)
        result.append(dependency)
    return result


__all__ = ["read_dependencies", "resolve_registry_type", "split_specifier"]
