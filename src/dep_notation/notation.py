"""
Notation classification.

Every declared notation falls into exactly one ``NotationKind``. The checks
run in a fixed order and the first match wins; anything that is not deferred
is eager.
"""

from enum import Enum

from .dependency import DependencyBundle
from .providers import Provider, ProviderConvertible


class NotationKind(Enum):
    """How a declared notation is routed into a bucket."""

    CONVERTIBLE = "convertible"  # unwrap once, then classify the provider
    DEFERRED_BUNDLE = "bundle"  # forced now, each element added eagerly
    DEFERRED = "deferred"  # forced when the bucket realizes pending entries
    EAGER = "eager"  # created and added now


def is_bundle_type(element_type) -> bool:
    return isinstance(element_type, type) and issubclass(element_type, DependencyBundle)


def classify(notation) -> NotationKind:
    """Classify a notation without forcing it."""
    if isinstance(notation, ProviderConvertible):
        return NotationKind.CONVERTIBLE
    if isinstance(notation, Provider):
        # A bundle is identified by its declared type; an unknown type is never a bundle
        if is_bundle_type(notation.element_type):
            return NotationKind.DEFERRED_BUNDLE
        return NotationKind.DEFERRED
    return NotationKind.EAGER
