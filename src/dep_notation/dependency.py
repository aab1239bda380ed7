"""
Dependency model for component dependency declarations.

Minimal descriptors are immutable coordinates (bundle elements and catalog
libraries). Dependency objects are the richer, mutable declaration model that
ends up inside a configuration bucket.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from .project import Project


@dataclass(frozen=True)
class MinimalDependency:
    """An immutable group:name:version triple with no further metadata."""

    group: str
    name: str
    version: Optional[str] = None

    def __str__(self) -> str:
        if self.version:
            return f"{self.group}:{self.name}:{self.version}"
        return f"{self.group}:{self.name}"


class DependencyBundle:
    """Ordered, immutable sequence of minimal dependencies."""

    def __init__(self, dependencies=()):
        self._dependencies: Tuple[MinimalDependency, ...] = tuple(dependencies)

    def __iter__(self) -> Iterator[MinimalDependency]:
        return iter(self._dependencies)

    def __len__(self) -> int:
        return len(self._dependencies)

    def __getitem__(self, index: int) -> MinimalDependency:
        return self._dependencies[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, DependencyBundle):
            return NotImplemented
        return self._dependencies == other._dependencies

    def __hash__(self) -> int:
        return hash(self._dependencies)

    def __repr__(self) -> str:
        return f"DependencyBundle({[str(dep) for dep in self._dependencies]})"


@dataclass(frozen=True)
class Capability:
    """A capability a resolved module must additionally provide."""

    group: str
    name: str
    version: Optional[str] = None  # None matches any version

    def __str__(self) -> str:
        return f"{self.group}:{self.name}:{self.version or '*'}"


@dataclass(frozen=True)
class ProjectTestFixtures:
    """Requests the test-fixtures variant of a sibling build unit."""

    project: "Project"

    def __str__(self) -> str:
        return f"test-fixtures of project '{self.project.path}'"


CapabilityRequirement = Union[Capability, ProjectTestFixtures]


@dataclass(frozen=True)
class ExcludeRule:
    """Excludes a transitive module from a module dependency."""

    group: Optional[str] = None
    module: Optional[str] = None


class CapabilitiesHandler:
    """Receiver handed to ``capabilities()`` actions."""

    def __init__(self, dependency: "ModuleDependency"):
        self._dependency = dependency

    def require_capability(self, notation) -> None:
        """Require a capability given as an object or a ``group:name[:version]`` string."""
        if isinstance(notation, str):
            parts = notation.split(":")
            if len(parts) not in (2, 3) or not all(parts[:2]):
                raise ValueError(f"Invalid capability notation: {notation!r}")
            notation = Capability(parts[0], parts[1], parts[2] if len(parts) == 3 else None)
        self._dependency._add_capability(notation)


@dataclass(eq=False)
class Dependency(ABC):
    """Base class for all declared dependencies."""

    reason: Optional[str] = field(default=None, init=False)

    @property
    def group(self) -> Optional[str]:
        return None

    @property
    @abstractmethod
    def name(self) -> str:
        """Module, project or notation name."""

    @property
    def version(self) -> Optional[str]:
        return None

    def because(self, reason: str) -> None:
        self.reason = reason

    def copy(self) -> "Dependency":
        return copy.copy(self)

    def __str__(self) -> str:
        parts = [self.group or "", self.name]
        if self.version:
            parts.append(self.version)
        return ":".join(parts)


@dataclass(eq=False)
class ModuleDependency(Dependency):
    """A dependency that can carry excludes and capability requirements."""

    transitive: bool = field(default=True, init=False)
    excludes: List[ExcludeRule] = field(default_factory=list, init=False)
    requested_capabilities: List[CapabilityRequirement] = field(
        default_factory=list, init=False
    )

    def exclude(self, group: Optional[str] = None, module: Optional[str] = None) -> None:
        if group is None and module is None:
            raise ValueError("An exclude rule needs a group, a module, or both")
        self.excludes.append(ExcludeRule(group=group, module=module))

    def capabilities(
        self, *requirements: Union[CapabilityRequirement, Callable[[CapabilitiesHandler], None]]
    ) -> None:
        """Attach capability requirements, directly or through an action."""
        handler = CapabilitiesHandler(self)
        for requirement in requirements:
            if callable(requirement):
                requirement(handler)
            else:
                handler.require_capability(requirement)

    def _add_capability(self, requirement: CapabilityRequirement) -> None:
        if requirement not in self.requested_capabilities:
            self.requested_capabilities.append(requirement)

    def copy(self) -> "ModuleDependency":
        # Projects referenced by the copy stay shared
        duplicate = copy.copy(self)
        duplicate.excludes = list(self.excludes)
        duplicate.requested_capabilities = list(self.requested_capabilities)
        return duplicate


@dataclass(eq=False)
class ExternalModuleDependency(ModuleDependency):
    """A published module identified by its coordinates."""

    module_group: str = ""
    module_name: str = ""
    module_version: Optional[str] = None

    @property
    def group(self) -> str:
        return self.module_group

    @property
    def name(self) -> str:
        return self.module_name

    @property
    def version(self) -> Optional[str]:
        return self.module_version

    @classmethod
    def of(cls, group: str, name: str, version: Optional[str] = None):
        return cls(module_group=group, module_name=name, module_version=version)

    def __repr__(self) -> str:
        return f"ExternalModuleDependency({str(self)!r})"


@dataclass(eq=False)
class ProjectDependency(ModuleDependency):
    """A dependency on a sibling build unit of the same build."""

    dependency_project: Optional["Project"] = None

    @property
    def name(self) -> str:
        return self.dependency_project.name

    @property
    def path(self) -> str:
        return self.dependency_project.path

    def __str__(self) -> str:
        return f"project '{self.path}'"

    def __repr__(self) -> str:
        return f"ProjectDependency({self.path!r})"


class ClasspathNotation(Enum):
    """Classpath notations provided by the build tool distribution."""

    GRADLE_API = "gradleApi()"
    GRADLE_TEST_KIT = "gradleTestKit()"
    LOCAL_GROOVY = "localGroovy()"


@dataclass(eq=False)
class ClasspathDependency(Dependency):
    """A dependency on files shipped with the build tool itself."""

    notation: ClasspathNotation = ClasspathNotation.GRADLE_API

    @property
    def name(self) -> str:
        return self.notation.value

    def __str__(self) -> str:
        return self.notation.value
