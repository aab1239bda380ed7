"""
Version catalog of named libraries and bundles.

Libraries are exposed as deferred minimal dependencies. Bundles are exposed as
provider-convertible accessors whose provider declares ``DependencyBundle`` as
its element type, so declaring one expands it immediately.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .dependency import DependencyBundle, MinimalDependency
from .error_handling import InvalidUserDataError
from .providers import Provider, ProviderConvertible, provider


def parse_module_notation(notation: str) -> MinimalDependency:
    """Parse ``group:name`` or ``group:name:version`` into a minimal dependency."""
    parts = notation.strip().split(":")
    if len(parts) not in (2, 3) or not all(part.strip() for part in parts):
        raise InvalidUserDataError(
            f"Invalid module notation '{notation}': expected 'group:name' or 'group:name:version'"
        )
    group, name = parts[0].strip(), parts[1].strip()
    version = parts[2].strip() if len(parts) == 3 else None
    return MinimalDependency(group=group, name=name, version=version)


class BundleAccessor(ProviderConvertible):
    """Named bundle reference handed to build authors."""

    def __init__(self, catalog: "VersionCatalog", alias: str):
        self._catalog = catalog
        self.alias = alias

    def as_provider(self) -> Provider:
        return provider(lambda: self._catalog.resolve_bundle(self.alias), DependencyBundle)

    def __repr__(self) -> str:
        return f"BundleAccessor({self._catalog.name}.bundles.{self.alias})"


@dataclass
class VersionCatalog:
    """A named set of library aliases and bundles of those aliases."""

    name: str = "libs"
    libraries: Dict[str, MinimalDependency] = field(default_factory=dict)
    bundles: Dict[str, List[str]] = field(default_factory=dict)

    def add_library(self, alias: str, notation) -> None:
        if isinstance(notation, str):
            notation = parse_module_notation(notation)
        self.libraries[alias] = notation

    def add_bundle(self, alias: str, library_aliases: List[str]) -> None:
        self.bundles[alias] = list(library_aliases)

    def library(self, alias: str) -> Provider:
        """Deferred minimal dependency for a library alias."""
        if alias not in self.libraries:
            raise InvalidUserDataError(f"Catalog '{self.name}' has no library '{alias}'")
        return provider(lambda: self.libraries.get(alias), MinimalDependency)

    def bundle(self, alias: str) -> BundleAccessor:
        if alias not in self.bundles:
            raise InvalidUserDataError(f"Catalog '{self.name}' has no bundle '{alias}'")
        return BundleAccessor(self, alias)

    def resolve_bundle(self, alias: str) -> Optional[DependencyBundle]:
        members = self.bundles.get(alias)
        if members is None:
            return None
        missing = [member for member in members if member not in self.libraries]
        if missing:
            raise InvalidUserDataError(
                f"Bundle '{alias}' in catalog '{self.name}' references unknown libraries: "
                + ", ".join(missing)
            )
        return DependencyBundle(self.libraries[member] for member in members)
