from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._errors import (
    AlreadyExistsError,
    ContainerError,
    CyclicDependencyError,
    NotFoundError,
    ResolutionError,
)
from ._introspect import SignatureIntrospector


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ._introspect import Introspector, ParameterInfo

    T = TypeVar("T")

    Token = type | str


def type_id(cls: type) -> str:
    """Identifier under which a class is looked up: its fully-qualified name."""
    return f"{cls.__module__}.{cls.__qualname__}"


def _key(token: Token) -> str:
    if inspect.isclass(token):
        return type_id(token)
    if isinstance(token, str):
        return token
    msg = f"Identifiers must be strings or classes, got {token!r}"
    raise TypeError(msg)


class EntryState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Factory:
    """Marks a callable as a lazy entry: called once with the container on first `get`."""

    fn: Callable[[Container], object]

    def __post_init__(self) -> None:
        if not callable(self.fn):
            msg = f"Factory expects a callable, got {self.fn!r}"
            raise TypeError(msg)


@dataclass(frozen=True)
class ResolvedEntry:
    value: object

    state = EntryState.RESOLVED


@dataclass(frozen=True)
class PendingEntry:
    factory: Factory

    state = EntryState.PENDING


Entry = ResolvedEntry | PendingEntry


class Container:
    """Service registry and constructor-injection resolver.

    - store values or lazy factories under string identifiers (or classes)
    - aliases redirecting one identifier to another
    - `resolve` builds a fresh instance by satisfying constructor parameters
      from overrides, registered entries, recursive construction or defaults.
    """

    def __init__(self, *, introspector: Introspector | None = None) -> None:
        self._entries: dict[str, Entry] = {}
        self._aliases: dict[str, str] = {}
        self._lock = threading.RLock()
        self._introspector: Introspector = SignatureIntrospector() if introspector is None else introspector
        self._local = threading.local()

    # Entries

    def set(self, id: Token, value: object, *, overwrite: bool = False) -> None:  # noqa: A002
        """Store a value, or a `Factory` to be evaluated on first `get`.

        Example:
          container.set("config", {"debug": True})
          container.set(Database, Factory(lambda c: Database(c.get("config"))))

        """
        key = _key(id)
        entry: Entry = PendingEntry(value) if isinstance(value, Factory) else ResolvedEntry(value)

        with self._lock:
            if not overwrite and key in self._entries:
                raise AlreadyExistsError(key)
            self._entries[key] = entry

    def set_factory(
        self,
        id: Token,  # noqa: A002
        fn: Callable[[Container], object],
        *,
        overwrite: bool = False,
    ) -> None:
        self.set(id, Factory(fn), overwrite=overwrite)

    def bind(
        self,
        id: Token,  # noqa: A002
        cls: type,
        params: Mapping[str, Any] | None = None,
        *,
        overwrite: bool = False,
    ) -> None:
        """Register `cls` to be built with `resolve(cls, params)` on first `get`."""
        if not inspect.isclass(cls):
            msg = f"bind() expects a class, got {cls!r}"
            raise TypeError(msg)

        frozen = dict(params or {})
        self.set(id, Factory(lambda c: c.resolve(cls, frozen)), overwrite=overwrite)

    @overload
    def get(self, id: type[T]) -> T: ...  # noqa: A002

    @overload
    def get(self, id: str) -> Any: ...  # noqa: A002

    def get(self, id: Token) -> Any:  # noqa: A002
        """Return the value stored for `id`, following aliases first.

        A pending factory is invoked once with this container; its result
        replaces the factory in the same slot.
        """
        key = _key(id)
        with self._lock:
            target = self._locate(key)
            if target != key:
                logger.debug("Alias %s resolved to entry %s", key, target)
            return self._materialize(target)

    def has(self, id: Token) -> bool:  # noqa: A002
        """Whether `get(id)` would find something."""
        key = _key(id)
        with self._lock:
            try:
                self._locate(key)
            except (NotFoundError, CyclicDependencyError):
                return False
            return True

    def __contains__(self, id: object) -> bool:  # noqa: A002
        if not (isinstance(id, str) or inspect.isclass(id)):
            return False
        return self.has(id)

    def remove(self, id: Token) -> bool:  # noqa: A002
        """Drop the entry for `id`. Returns True if there was one."""
        key = _key(id)
        with self._lock:
            return self._entries.pop(key, None) is not None

    def state(self, id: Token) -> EntryState:  # noqa: A002
        key = _key(id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                raise NotFoundError(key)
            return entry.state

    def list_entries(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    # Aliases

    def set_alias(self, alias: Token, target: Token, *, overwrite: bool = False) -> None:
        alias_key, target_key = _key(alias), _key(target)
        with self._lock:
            if not overwrite and alias_key in self._aliases:
                raise AlreadyExistsError(alias_key, kind="Alias")
            self._aliases[alias_key] = target_key

    def has_alias(self, alias: Token) -> bool:
        with self._lock:
            return _key(alias) in self._aliases

    def remove_alias(self, alias: Token) -> bool:
        with self._lock:
            return self._aliases.pop(_key(alias), None) is not None

    def list_aliases(self) -> list[str]:
        with self._lock:
            return list(self._aliases)

    # Resolution

    def resolve(self, cls: type[T], params: Mapping[str, Any] | None = None, /, **overrides: Any) -> T:
        """Build a new instance of `cls` by satisfying its constructor.

        Resolution precedence per parameter:
        1. explicit override (by parameter name)
        2. registered entry for the annotated class
        3. recursive construction of the annotated class
        4. default
        5. error.

        The instance is never stored in the container, even when `cls` itself
        is registered; use `get(cls)` for the registered one.
        """
        merged = {**(params or {}), **overrides}
        with self._lock:
            return self._build(cls, merged)  # type: ignore[return-value]

    def _build(self, cls: type, overrides: dict[str, Any]) -> object:
        owner = _key(cls) if inspect.isclass(cls) else repr(cls)
        stack = self._resolution_stack()

        if owner in stack:
            raise CyclicDependencyError([*stack[stack.index(owner) :], owner], owner=owner)

        stack.append(owner)
        try:
            try:
                params = self._introspector.constructor_parameters(cls)
            except TypeError as e:
                msg = f"Unable to inspect constructor of {owner}: {e}"
                raise ResolutionError(msg, owner=owner) from e

            arguments: dict[str, Any] = {}
            for p in params:
                if p.is_variadic:
                    continue
                arguments[p.name] = self._resolve_param(owner, p, overrides)

            try:
                return self._introspector.construct(cls, arguments)
            except TypeError as e:
                msg = f"Unable to instantiate {owner}: {e}"
                raise ResolutionError(msg, owner=owner) from e
        finally:
            stack.pop()

    def _resolve_param(self, owner: str, p: ParameterInfo, overrides: dict[str, Any]) -> Any:
        # 1) explicit override, presence is enough so None can be passed
        if p.name in overrides:
            return overrides[p.name]

        ann = p.annotation
        if not _is_constructible(ann):
            if p.has_default:
                return p.default

            ann_repr = getattr(ann, "__name__", repr(ann)) if ann is not None else "no-annotation"
            msg = (
                f"Cannot satisfy constructor parameter '{p.name}' for {owner}. "
                f"No override/constructible type/default found (annotation: {ann_repr})."
            )
            raise ResolutionError(msg, owner=owner, parameter=p.name)

        dep = type_id(ann)

        # 2) registered entry
        if self.has(dep):
            try:
                return self.get(dep)
            except CyclicDependencyError:
                raise
            except ContainerError as e:
                msg = f"Error resolving dependency {dep} from container for parameter '{p.name}' of {owner}"
                raise ResolutionError(msg, owner=owner, parameter=p.name) from e

        # 3) recursive construction
        logger.debug("Constructing unregistered dependency %s for parameter '%s' of %s", dep, p.name, owner)
        try:
            return self._build(ann, overrides)
        except CyclicDependencyError:
            raise
        except ResolutionError as e:
            # 4) default
            if p.has_default:
                logger.debug("Falling back to default for parameter '%s' of %s (%s)", p.name, owner, e)
                return p.default

            msg = f"Unable to resolve parameter '{p.name}' ({dep}) for {owner}: {e}"
            raise ResolutionError(msg, owner=owner, parameter=p.name) from e

    def _materialize(self, key: str) -> object:
        entry = self._entries[key]
        if isinstance(entry, ResolvedEntry):
            return entry.value

        logger.debug("Invoking factory for %s", key)
        value = entry.factory.fn(self)

        # the factory may have replaced or removed its own slot
        if self._entries.get(key) is entry:
            self._entries[key] = ResolvedEntry(value)
        return value

    def _locate(self, key: str, seen: tuple[str, ...] = ()) -> str:
        """Identifier of the entry `get(key)` returns.

        An alias is followed first, its target looked up the same way; when
        that finds nothing the entry stored under `key` itself is used.
        """
        if key in self._aliases:
            if key in seen:
                raise CyclicDependencyError([*seen[seen.index(key) :], key])
            try:
                return self._locate(self._aliases[key], (*seen, key))
            except NotFoundError:
                pass

        if key in self._entries:
            return key

        raise NotFoundError(key)

    def _resolution_stack(self) -> list[str]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack


def _is_constructible(ann: Any) -> bool:
    return inspect.isclass(ann) and getattr(ann, "__module__", "") != "builtins"
