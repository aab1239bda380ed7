"""
Dependency factory.

Turns a concrete, already-forced notation into a new dependency object and
applies an optional customizer to it. The factory never touches a bucket.
"""

from collections.abc import Mapping
from typing import Callable, Optional

from .catalog import parse_module_notation
from .cli_config import ComprehensiveConfig, get_config
from .configuration import Configuration
from .dependency import (
    ClasspathDependency,
    ClasspathNotation,
    Dependency,
    ExternalModuleDependency,
    MinimalDependency,
    ProjectDependency,
)
from .error_handling import ErrorCategory, InvalidUserDataError, raise_invalid_notation
from .project import Project
from .providers import Provider, ProviderConvertible

Customizer = Callable[[Dependency], None]

_SUPPORTED_NOTATIONS = [
    "Strings, e.g. 'org.slf4j:slf4j-api:2.0.9'",
    "Maps, e.g. {'group': 'org.slf4j', 'name': 'slf4j-api', 'version': '2.0.9'}",
    "MinimalDependency instances",
    "Project instances",
    "ClasspathNotation members",
    "Dependency instances",
]


class DependencyFactory:
    """Creates dependency objects from notations."""

    def __init__(self, config: Optional[ComprehensiveConfig] = None):
        self.config = config or get_config()

    def create(
        self,
        notation,
        customizer: Optional[Customizer] = None,
        category: ErrorCategory = ErrorCategory.NOTATION,
    ) -> Dependency:
        """
        Create a dependency and run the customizer on it exactly once.

        Args:
            notation: A concrete notation (never a provider)
            customizer: Optional callback mutating the new dependency
            category: Category a conversion failure is recorded under

        Returns:
            Dependency: A new object; the customizer's return value is ignored

        Raises:
            InvalidUserDataError: If the notation cannot be converted
        """
        dependency = self._convert(notation, category)
        if customizer is not None:
            customizer(dependency)
        return dependency

    def _convert(self, notation, category: ErrorCategory) -> Dependency:
        if isinstance(notation, Configuration):
            raise_invalid_notation(
                f"Adding configuration '{notation.name}' as a dependency isn't supported. "
                "Use extends_from() to inherit its dependencies instead",
                "factory",
                "create",
                category=category,
                details={"configuration": notation.name},
            )
        if isinstance(notation, (Provider, ProviderConvertible)):
            raise InvalidUserDataError(
                f"Deferred notation {notation!r} must be forced before creating a dependency"
            )

        if isinstance(notation, Dependency):
            # Bucket entries never alias a caller-owned object
            return notation.copy()
        if isinstance(notation, MinimalDependency):
            return self._from_coordinates(
                notation.group, notation.name, notation.version, notation, category
            )
        if isinstance(notation, Project):
            return ProjectDependency(dependency_project=notation)
        if isinstance(notation, ClasspathNotation):
            return ClasspathDependency(notation=notation)

        notation_config = self.config.notation
        if isinstance(notation, str) and notation_config.allow_string_notation:
            coordinates = parse_module_notation(notation)
            return self._from_coordinates(
                coordinates.group, coordinates.name, coordinates.version, notation, category
            )
        if isinstance(notation, Mapping) and notation_config.allow_map_notation:
            unknown = set(notation) - {"group", "name", "version"}
            if unknown:
                raise InvalidUserDataError(
                    f"Unsupported keys in map notation: {', '.join(sorted(unknown))}"
                )
            return self._from_coordinates(
                notation.get("group"),
                notation.get("name"),
                notation.get("version"),
                notation,
                category,
            )

        raise_invalid_notation(
            f"Cannot convert the provided notation to a Dependency: {notation!r}",
            "factory",
            "create",
            category=category,
            details={"notation_type": type(notation).__name__},
            suggestions=["The following notations are supported: " + "; ".join(_SUPPORTED_NOTATIONS)],
        )

    def _from_coordinates(self, group, name, version, notation, category) -> ExternalModuleDependency:
        if not group or not name:
            raise_invalid_notation(
                f"Dependency notation {notation!r} is missing its group or name",
                "factory",
                "create",
                category=category,
                details={"group": group, "name": name},
            )
        return ExternalModuleDependency.of(group, name, version or None)
