"""Service registry and dependency injection resolver.

This package provides a small container that stores values and lazily-built
services under string identifiers, redirects identifiers through aliases, and
builds instances of classes by inspecting their constructors and satisfying
each parameter from explicit overrides, the registry, recursive construction
or declared defaults.

Exports:
- `Container`: the registry and resolver.
- `Factory`: wraps a callable so it is stored as a lazy entry.
- `EntryState`: whether an entry still holds an unevaluated factory.
- `Introspector` / `SignatureIntrospector`: the constructor inspection
  capability the container consumes, and its default implementation.
- `type_id`: identifier a class is registered and looked up under.
"""

from ._container import Container, EntryState, Factory, type_id
from ._errors import (
    AlreadyExistsError,
    ContainerError,
    CyclicDependencyError,
    NotFoundError,
    ResolutionError,
)
from ._introspect import Introspector, ParameterInfo, SignatureIntrospector


__all__ = [
    "AlreadyExistsError",
    "Container",
    "ContainerError",
    "CyclicDependencyError",
    "EntryState",
    "Factory",
    "Introspector",
    "NotFoundError",
    "ParameterInfo",
    "ResolutionError",
    "SignatureIntrospector",
    "type_id",
]
