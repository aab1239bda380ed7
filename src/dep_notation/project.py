"""Build units owning configuration buckets."""

from typing import Dict, Iterator, List, Optional

from .cli_config import ComprehensiveConfig, get_config
from .configuration import Configuration
from .error_handling import InvalidUserDataError


class ConfigurationContainer:
    """Named configurations of one project."""

    def __init__(self, owner: "Project"):
        self._owner = owner
        self._configurations: Dict[str, Configuration] = {}

    def create(self, name: str) -> Configuration:
        if name in self._configurations:
            raise InvalidUserDataError(
                f"Cannot add a configuration with name '{name}' as a configuration "
                "with that name already exists"
            )
        configuration = Configuration(name, owner=self._owner)
        self._configurations[name] = configuration
        return configuration

    def get(self, name: str) -> Optional[Configuration]:
        return self._configurations.get(name)

    def __getitem__(self, name: str) -> Configuration:
        try:
            return self._configurations[name]
        except KeyError:
            raise InvalidUserDataError(
                f"Configuration with name '{name}' not found in project '{self._owner.path}'"
            ) from None

    def __contains__(self, name: str) -> bool:
        return name in self._configurations

    def __iter__(self) -> Iterator[Configuration]:
        return iter(self._configurations.values())

    def __len__(self) -> int:
        return len(self._configurations)


class Project:
    """A build unit with a path in its build and a set of configurations."""

    def __init__(
        self,
        name: str,
        parent: Optional["Project"] = None,
        config: Optional[ComprehensiveConfig] = None,
    ):
        self.name = name
        self.parent = parent
        self.config = config or (parent.config if parent else get_config())
        self.children: Dict[str, Project] = {}
        self.configurations = ConfigurationContainer(self)

        for bucket_name in self.config.buckets.names():
            self.configurations.create(bucket_name)

    @property
    def path(self) -> str:
        if self.parent is None:
            return ":"
        if self.parent.parent is None:
            return f":{self.name}"
        return f"{self.parent.path}:{self.name}"

    @property
    def root(self) -> "Project":
        return self if self.parent is None else self.parent.root

    def create_child(self, name: str) -> "Project":
        if name in self.children:
            raise InvalidUserDataError(
                f"Project '{self.path}' already has a child project named '{name}'"
            )
        child = Project(name, parent=self)
        self.children[name] = child
        return child

    def all_projects(self) -> List["Project"]:
        result = [self]
        for child in self.children.values():
            result.extend(child.all_projects())
        return result

    def find_project(self, path: str) -> Optional["Project"]:
        """Look up a project of the same build by path (``:core``) or plain name."""
        for project in self.root.all_projects():
            if project.path == path or (not path.startswith(":") and project.name == path):
                return project
        return None

    def __repr__(self) -> str:
        return f"Project({self.path!r})"
