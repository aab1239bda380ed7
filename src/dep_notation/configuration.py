"""
Configuration buckets.

A configuration is a named, ordered collection of dependency declarations
owned by one project. Its dependency set is an append-only log of entries:
eager entries hold a dependency, deferred entries hold a provider that is
forced once, in log order, when pending entries are realized.
"""

from typing import TYPE_CHECKING, Iterator, List, Optional

from .dependency import Dependency
from .error_handling import (
    ErrorCategory,
    InvalidUserDataError,
    MissingValueError,
    raise_invalid_notation,
)
from .providers import Provider
from .structured_logging import log_deferred_realized, log_deferred_registered

if TYPE_CHECKING:
    from .project import Project


class _Entry:
    __slots__ = ("dependency", "producer")

    def __init__(self, dependency: Optional[Dependency] = None, producer: Optional[Provider] = None):
        self.dependency = dependency
        self.producer = producer

    @property
    def pending(self) -> bool:
        return self.producer is not None

    def realize(self, bucket_name: str) -> None:
        # Consumed before forcing so a producer never runs twice, even after a failure
        producer, self.producer = self.producer, None
        value = producer.get_or_none()
        if value is None:
            raise_invalid_notation(
                f"Cannot add a dependency to configuration '{bucket_name}': "
                f"{producer!r} has no value available",
                "configuration",
                "realize",
                category=ErrorCategory.DEFERRED,
                details={"bucket": bucket_name},
                error_type=MissingValueError,
            )
        self.dependency = value


class DependencySet:
    """Ordered dependencies of one configuration."""

    def __init__(self, configuration: "Configuration"):
        self._configuration = configuration
        self._entries: List[_Entry] = []

    def add(self, dependency: Dependency) -> None:
        """Append a dependency immediately."""
        self._entries.append(_Entry(dependency=dependency))

    def add_all(self, dependencies) -> None:
        for dependency in dependencies:
            self.add(dependency)

    def add_later(self, dependency_provider: Provider) -> None:
        """Register a provider whose dependency is appended when pending entries are realized."""
        self._entries.append(_Entry(producer=dependency_provider))
        log_deferred_registered(self._configuration.name, self.pending_count)

    @property
    def pending_count(self) -> int:
        return sum(1 for entry in self._entries if entry.pending)

    def realize_pending(self) -> int:
        """
        Force every pending entry in registration order.

        Returns:
            int: Number of entries realized by this call
        """
        realized = 0
        for entry in self._entries:
            if entry.pending:
                entry.realize(self._configuration.name)
                realized += 1
                log_deferred_realized(self._configuration.name, str(entry.dependency))
        return realized

    def __iter__(self) -> Iterator[Dependency]:
        return (entry.dependency for entry in self._entries if entry.dependency is not None)

    def __len__(self) -> int:
        return sum(1 for entry in self._entries if entry.dependency is not None)

    def __repr__(self) -> str:
        return (
            f"DependencySet({self._configuration.name!r}, realized={len(self)}, "
            f"pending={self.pending_count})"
        )


class Configuration:
    """A named dependency bucket."""

    def __init__(self, name: str, owner: Optional["Project"] = None):
        self._name = name
        self.owner = owner
        self.dependencies = DependencySet(self)
        self._extends_from: List["Configuration"] = []

    @property
    def name(self) -> str:
        return self._name

    def extends_from(self, *others: "Configuration") -> None:
        """Inherit every dependency of ``others``."""
        for other in others:
            if self in other.hierarchy():
                raise InvalidUserDataError(
                    f"Cyclic extends_from from configuration '{self.name}' and "
                    f"configuration '{other.name}' is not allowed"
                )
            if other not in self._extends_from:
                self._extends_from.append(other)

    def hierarchy(self) -> List["Configuration"]:
        """This configuration followed by every configuration it inherits from."""
        result: List[Configuration] = []
        stack = [self]
        while stack:
            current = stack.pop(0)
            if current in result:
                continue
            result.append(current)
            stack.extend(current._extends_from)
        return result

    def realize_pending(self) -> int:
        return self.dependencies.realize_pending()

    def all_dependencies(self) -> List[Dependency]:
        """Realize and return own plus inherited dependencies."""
        collected: List[Dependency] = []
        for configuration in self.hierarchy():
            configuration.realize_pending()
            collected.extend(configuration.dependencies)
        return collected

    def __repr__(self) -> str:
        if self.owner is None:
            return f"Configuration({self.name!r})"
        return f"Configuration({self.name!r}, project={self.owner.path!r})"
