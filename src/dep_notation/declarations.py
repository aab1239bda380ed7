"""
Declarations file loading.

A declarations file describes one root project, its sibling projects, a
version catalog and the entries declared into each bucket. Loading a file
replays every entry through ``ComponentDependencies`` in file order.

Supported formats: TOML 1.0, JSON and YAML. Top-level sections are
``project`` (``name`` and ``catalog``), ``projects`` (sibling projects, as
names or ``[[projects]]`` tables with a ``name``), ``libraries``, ``bundles``
and ``dependencies``. Entry forms::

    "group:name:version"                      eager module notation
    {module = "group:name:version"}           same, with customizer keys
    {module = "...", lazy = true}             deferred module notation
    {library = "alias"}                       deferred catalog library
    {bundle = "alias"}                        catalog bundle, expanded immediately
    {project = "core"}                        sibling project
    {classpath = "gradleApi"}                 build tool classpath notation

Customizer keys: ``because``, ``exclude``, ``transitive``, ``capabilities``
and ``test_fixtures``.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import tomli
import yaml

from .catalog import VersionCatalog
from .cli_config import ComprehensiveConfig, get_config
from .component_dependencies import ComponentDependencies
from .dependency import ClasspathNotation, Dependency, ModuleDependency
from .error_handling import (
    ErrorCategory,
    get_error_handler,
    log_parsing_error,
    raise_invalid_notation,
)
from .factory import Customizer, DependencyFactory
from .project import Project
from .providers import provider_of
from .structured_logging import clear_project_context, set_project_context

_CLASSPATH_ENTRIES = {
    "gradleApi": ClasspathNotation.GRADLE_API,
    "gradleTestKit": ClasspathNotation.GRADLE_TEST_KIT,
    "localGroovy": ClasspathNotation.LOCAL_GROOVY,
}
_NOTATION_KEYS = {"module", "library", "bundle", "project", "classpath"}
_CUSTOMIZER_KEYS = {"because", "exclude", "transitive", "capabilities", "test_fixtures"}
_TOP_LEVEL_KEYS = {"project", "projects", "libraries", "bundles", "dependencies"}


@dataclass
class DeclaredBuild:
    """Result of loading a declarations file."""

    source_file: str
    project: Project
    catalog: VersionCatalog
    dependencies: ComponentDependencies
    entry_count: int = 0

    def realize(self) -> int:
        """Realize every pending entry of every bucket."""
        return sum(bucket.realize_pending() for bucket in self.dependencies.buckets())


def _validate_file_path(file_path: str) -> Path:
    if not file_path or not isinstance(file_path, str):
        _raise_filesystem_error("File path must be a non-empty string", file_path)

    path = Path(file_path).resolve()
    if not path.exists():
        _raise_filesystem_error(f"File does not exist: {path}", file_path)
    if not path.is_file():
        _raise_filesystem_error(f"Path is not a file: {path}", file_path)
    if path.suffix.lower() not in (".toml", ".json", ".yaml", ".yml"):
        _raise_filesystem_error(f"Unsupported declarations file type: {path.suffix}", file_path)
    return path


def _raise_filesystem_error(message: str, file_path) -> None:
    raise_invalid_notation(
        message,
        "declarations",
        "_validate_file_path",
        category=ErrorCategory.FILESYSTEM,
        details={"file_path": str(file_path)},
    )


def read_declarations_file(file_path: str) -> Dict[str, Any]:
    """Read a declarations file into a plain mapping."""
    path = _validate_file_path(file_path)
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            with open(path, "rb") as f:
                data = tomli.load(f)
        else:
            with open(path, encoding="utf-8") as f:
                data = json.load(f) if suffix == ".json" else yaml.safe_load(f)
    except (tomli.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        log_parsing_error(
            f"Failed to parse declarations file: {e}",
            "declarations",
            "read_declarations_file",
            file_path=path.name,
            exception=e,
        )
        raise ValueError(f"Failed to parse declarations file {path.name}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Declarations file {path.name} must contain a table at the top level")
    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(
            f"Declarations file {path.name} has unknown sections: {', '.join(sorted(unknown))}"
        )
    return data


def _section(data: Dict[str, Any], key: str, expected: type, where: str):
    value = data.get(key)
    if value is None:
        return expected()
    if not isinstance(value, expected):
        kind = "a table" if expected is dict else "a list"
        raise ValueError(f"'{key}' in {where} must be {kind}, got {value!r}")
    return value


def _as_list(entry: Dict[str, Any], key: str) -> List[Any]:
    value = entry.get(key, [])
    if isinstance(value, (str, dict)):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"'{key}' in entry {entry!r} must be a list, got {value!r}")
    return value


def _compose_customizer(
    entry: Dict[str, Any], component: ComponentDependencies
) -> Optional[Customizer]:
    actions: List[Callable[[Dependency], None]] = []

    if "because" in entry:
        reason = str(entry["because"])
        actions.append(lambda dep: dep.because(reason))

    for rule in _as_list(entry, "exclude"):
        if not isinstance(rule, dict) or not rule or not set(rule) <= {"group", "module"}:
            raise ValueError(
                f"Exclude rule {rule!r} in entry {entry!r} must be a table with "
                "'group' and/or 'module'"
            )
        group, module = rule.get("group"), rule.get("module")
        actions.append(lambda dep, g=group, m=module: _module(dep, "exclude").exclude(g, m))

    if "transitive" in entry:
        transitive = entry["transitive"]
        if not isinstance(transitive, bool):
            raise ValueError(f"'transitive' in entry {entry!r} must be true or false")
        actions.append(lambda dep: setattr(_module(dep, "transitive"), "transitive", transitive))

    for capability in _as_list(entry, "capabilities"):
        if not isinstance(capability, str):
            raise ValueError(
                f"Capability {capability!r} in entry {entry!r} must be a 'group:name[:version]' string"
            )
        actions.append(
            lambda dep, c=capability: _module(dep, "capabilities").capabilities(
                lambda handler: handler.require_capability(c)
            )
        )

    if entry.get("test_fixtures"):
        actions.append(component.test_fixtures)

    if not actions:
        return None

    def customizer(dependency: Dependency) -> None:
        for action in actions:
            action(dependency)

    return customizer


def _module(dependency: Dependency, key: str) -> ModuleDependency:
    if not isinstance(dependency, ModuleDependency):
        raise ValueError(f"'{key}' can only be used with module or project dependencies")
    return dependency


def _entry_notation(entry, project: Project, catalog: VersionCatalog):
    """Translate one file entry into the notation handed to the declaration pathway."""
    if isinstance(entry, str):
        return entry
    if not isinstance(entry, dict):
        raise ValueError(f"Unsupported entry {entry!r}: expected a string or a table")

    present = _NOTATION_KEYS.intersection(entry)
    if len(present) != 1:
        raise ValueError(
            f"Entry {entry!r} must have exactly one of: {', '.join(sorted(_NOTATION_KEYS))}"
        )
    unknown = set(entry) - _NOTATION_KEYS - _CUSTOMIZER_KEYS - {"lazy"}
    if unknown:
        raise ValueError(f"Entry {entry!r} has unknown keys: {', '.join(sorted(unknown))}")

    key = present.pop()
    value = entry[key]
    if not isinstance(value, str):
        raise ValueError(f"'{key}' in entry {entry!r} must be a string, got {value!r}")
    if key == "module":
        return provider_of(value) if entry.get("lazy") else value
    if key == "library":
        return catalog.library(value)
    if key == "bundle":
        return catalog.bundle(value)
    if key == "project":
        target = project.find_project(value)
        if target is None:
            raise ValueError(f"Project '{value}' not found in build")
        return target
    if value not in _CLASSPATH_ENTRIES:
        raise ValueError(
            f"Unknown classpath notation '{value}'. Expected one of: "
            + ", ".join(_CLASSPATH_ENTRIES)
        )
    return _CLASSPATH_ENTRIES[value]


def _sibling_name(sibling) -> str:
    if isinstance(sibling, dict):
        sibling = sibling.get("name")
    if not isinstance(sibling, str) or not sibling:
        raise ValueError(f"Sibling project {sibling!r} must be a name or a table with a 'name'")
    return sibling


def _build_project(data: Dict[str, Any], file_path: str, config: ComprehensiveConfig) -> Project:
    project_section = _section(data, "project", dict, "the declarations file")
    unknown = set(project_section) - {"name", "catalog"}
    if unknown:
        raise ValueError(f"[project] has unknown keys: {', '.join(sorted(unknown))}")

    project = Project(project_section.get("name", Path(file_path).stem), config=config)
    for sibling in _section(data, "projects", list, "the declarations file"):
        project.create_child(_sibling_name(sibling))
    return project


def _build_catalog(data: Dict[str, Any]) -> VersionCatalog:
    project_section = _section(data, "project", dict, "the declarations file")
    catalog = VersionCatalog(name=project_section.get("catalog", "libs"))
    for alias, notation in _section(data, "libraries", dict, "the declarations file").items():
        if not isinstance(notation, str):
            raise ValueError(f"Library '{alias}' must be a 'group:name[:version]' string")
        catalog.add_library(alias, notation)
    for alias, members in _section(data, "bundles", dict, "the declarations file").items():
        if not isinstance(members, list):
            raise ValueError(f"Bundle '{alias}' must be a list of library aliases")
        catalog.add_bundle(alias, members)
    return catalog


def load_declarations(
    file_path: str, factory: Optional[DependencyFactory] = None
) -> DeclaredBuild:
    """
    Load a declarations file and declare every entry.

    Args:
        file_path: Path to a TOML, JSON or YAML declarations file
        factory: Optional dependency factory; its configuration names the buckets

    Returns:
        DeclaredBuild: The populated build; deferred entries are still pending

    Raises:
        ValueError: If the file or one of its entries is invalid
    """
    data = read_declarations_file(file_path)
    config = factory.config if factory else get_config()

    try:
        project = _build_project(data, file_path, config)
        catalog = _build_catalog(data)
        sections = _section(data, "dependencies", dict, "the declarations file")
    except ValueError as e:
        log_parsing_error(
            f"Invalid declarations file: {e}",
            "declarations",
            "load_declarations",
            file_path=Path(file_path).name,
            exception=e,
        )
        raise

    component = ComponentDependencies.for_project(project, factory)
    build = DeclaredBuild(
        source_file=str(file_path), project=project, catalog=catalog, dependencies=component
    )

    set_project_context(project.path)
    try:
        for bucket_name, entries in sections.items():
            if not isinstance(entries, list):
                raise ValueError(f"Bucket '{bucket_name}' must hold a list of entries")
            for entry in entries:
                notation = _entry_notation(entry, project, catalog)
                customizer = _compose_customizer(entry, component) if isinstance(entry, dict) else None
                component.add(bucket_name, notation, customizer)
                build.entry_count += 1
    except ValueError as e:
        get_error_handler().error(
            ErrorCategory.PARSING,
            f"Invalid declaration: {e}",
            "declarations",
            "load_declarations",
            details={"file_path": Path(file_path).name},
        )
        raise
    finally:
        clear_project_context()

    return build
