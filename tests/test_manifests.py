"""Tests for dependency manifest reading."""

from __future__ import annotations

import pytest

from rulescout.manifests import read_dependencies, resolve_registry_type, split_specifier
from rulescout.models import Dependency, DependencyType, RegistryType


def test_package_json_groups_are_typed(repo_builder) -> None:
    repo_builder.write_json(
        "package.json",
        {
            "name": "app",
            "dependencies": {"react": "^18.2.0", "@std/path": "jsr:^1.0.0"},
            "devDependencies": {"vitest": "^1.0.0"},
            "peerDependencies": {"react-dom": ">=18"},
            "optionalDependencies": {"fsevents": "2.3.3"},
        },
    )

    dependencies = read_dependencies(repo_builder.path())

    by_name = {dep.name: dep for dep in dependencies}
    assert by_name["react"].type is DependencyType.PRODUCTION
    assert by_name["react"].version == "^18.2.0"
    assert by_name["react"].source == "package.json"
    assert by_name["vitest"].type is DependencyType.DEVELOPMENT
    assert by_name["react-dom"].type is DependencyType.PEER
    assert by_name["fsevents"].type is DependencyType.OPTIONAL
    assert by_name["@std/path"].registry is RegistryType.JSR


def test_python_manifests_keep_version_specs(repo_builder) -> None:
    repo_builder.write(
        {
            "requirements.txt": """
                # runtime
                requests[socks]>=2.31 ; python_version >= "3.8"
                PyYAML==6.0.1
                -r dev.txt
                rich
            """,
            "pyproject.toml": """
                [project]
                name = "tool"
                dependencies = ["requests>=2.0", "pydantic >= 2.0"]

                [project.optional-dependencies]
                test = ["pytest>=7.4"]
            """,
        }
    )

    dependencies = read_dependencies(repo_builder.path())

    assert [(dep.name, dep.version, dep.type) for dep in dependencies] == [
        ("requests", ">=2.31", DependencyType.PRODUCTION),
        ("PyYAML", "==6.0.1", DependencyType.PRODUCTION),
        ("rich", "latest", DependencyType.PRODUCTION),
        ("pydantic", ">=2.0", DependencyType.PRODUCTION),
        ("pytest", ">=7.4", DependencyType.OPTIONAL),
    ]
    assert {resolve_registry_type(dep) for dep in dependencies} == {RegistryType.PYPI}


def test_deno_imports_select_registries(repo_builder) -> None:
    repo_builder.write_json(
        "deno.json",
        {"imports": {"@std/path": "jsr:@std/path@^1.0.8", "chalk": "npm:chalk@5", "local": "./x.ts"}},
    )

    dependencies = read_dependencies(repo_builder.path())

    assert [(dep.name, dep.version, dep.registry) for dep in dependencies] == [
        ("@std/path", "^1.0.8", RegistryType.JSR),
        ("chalk", "5", RegistryType.NPM),
    ]


def test_unreadable_manifests_are_ignored(repo_builder) -> None:
    repo_builder.write({"package.json": "{broken", "pyproject.toml": "[project"})

    assert read_dependencies(repo_builder.path()) == []


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("package.json", RegistryType.NPM),
        ("requirements.txt", RegistryType.PYPI),
        ("sub/pyproject.toml", RegistryType.PYPI),
        ("Cargo.toml", RegistryType.CARGO),
        ("go.mod", RegistryType.GO),
        ("composer.json", RegistryType.COMPOSER),
        ("unknown.lock", RegistryType.NPM),
    ],
)
def test_resolve_registry_type_from_source(source, expected) -> None:
    assert resolve_registry_type(Dependency(name="pkg", version="1.0.0", source=source)) is expected


def test_resolve_registry_type_prefers_explicit_values() -> None:
    assert (
        resolve_registry_type(
            Dependency(name="x", version="1", source="package.json", registry=RegistryType.PYPI)
        )
        is RegistryType.PYPI
    )
    assert (
        resolve_registry_type(Dependency(name="jsr:@std/fs", version="1", source="package.json"))
        is RegistryType.JSR
    )


def test_split_specifier() -> None:
    assert split_specifier("@std/path@^1.0.8") == ("@std/path", "^1.0.8")
    assert split_specifier("chalk") == ("chalk", "latest")
    assert split_specifier("@scope/pkg") == ("@scope/pkg", "latest")
