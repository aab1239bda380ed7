"""
Deferred values.

A provider wraps a computation whose value is obtained by forcing it with
``get()``. Providers may declare the type of the value they will produce; the
declaration pathway relies on that declared type to recognise bundles without
forcing anything else.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .error_handling import MissingValueError


class Provider(ABC):
    """A value that is not computed until it is forced."""

    @property
    def element_type(self) -> Optional[type]:
        """The declared type of the value, or None when it is not known up front."""
        return None

    @abstractmethod
    def get_or_none(self) -> Any:
        """Force the provider, returning None when no value is available."""

    def get(self) -> Any:
        value = self.get_or_none()
        if value is None:
            raise MissingValueError(
                f"Cannot query the value of {self!r} because it has no value available."
            )
        return value

    def map(self, transformer: Callable[[Any], Any], element_type: Optional[type] = None):
        """Return a provider that applies ``transformer`` to this provider's value."""
        return MappedProvider(self, transformer, element_type)


class DefaultProvider(Provider):
    """Provider backed by a zero-argument callable, evaluated on every ``get()``."""

    def __init__(self, factory: Callable[[], Any], element_type: Optional[type] = None):
        self._factory = factory
        self._element_type = element_type

    @property
    def element_type(self) -> Optional[type]:
        return self._element_type

    def get_or_none(self) -> Any:
        return self._factory()

    def __repr__(self) -> str:
        type_name = self._element_type.__name__ if self._element_type else "?"
        return f"provider({type_name})"


class FixedProvider(Provider):
    """Provider of an already known value."""

    def __init__(self, value: Any):
        self._value = value

    @property
    def element_type(self) -> Optional[type]:
        return type(self._value) if self._value is not None else None

    def get_or_none(self) -> Any:
        return self._value

    def __repr__(self) -> str:
        return f"fixed({self._value!r})"


class MappedProvider(Provider):
    """Provider whose value is derived from another provider."""

    def __init__(
        self,
        source: Provider,
        transformer: Callable[[Any], Any],
        element_type: Optional[type] = None,
    ):
        self._source = source
        self._transformer = transformer
        self._element_type = element_type

    @property
    def element_type(self) -> Optional[type]:
        return self._element_type

    def get_or_none(self) -> Any:
        value = self._source.get_or_none()
        if value is None:
            return None
        return self._transformer(value)

    def __repr__(self) -> str:
        return f"map({self._source!r})"


class ProviderConvertible(ABC):
    """An object that can be turned into a provider, e.g. a catalog bundle accessor."""

    @abstractmethod
    def as_provider(self) -> Provider:
        """Return the provider this object stands for."""


def provider(factory: Callable[[], Any], element_type: Optional[type] = None) -> Provider:
    """Create a provider evaluating ``factory`` lazily."""
    return DefaultProvider(factory, element_type)


def provider_of(value: Any) -> Provider:
    """Create a provider of a known value."""
    return FixedProvider(value)
