from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, get_type_hints


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    annotation: Any  # None when the parameter is not annotated
    kind: inspect._ParameterKind
    has_default: bool
    default: Any = None

    @property
    def is_variadic(self) -> bool:
        return self.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class Introspector(Protocol):
    """Capability the container consumes to look inside classes.

    Implementations raise `TypeError` when a class cannot be introspected or
    instantiated; the container turns that into a `ResolutionError`.
    """

    def constructor_parameters(self, cls: type) -> list[ParameterInfo]: ...

    def construct(self, cls: type, arguments: Mapping[str, Any]) -> object: ...


class SignatureIntrospector:
    """Default introspector based on `inspect.signature` and `typing.get_type_hints`."""

    def constructor_parameters(self, cls: type) -> list[ParameterInfo]:
        self._check_instantiable(cls)

        if not _has_constructor(cls):
            return []

        sig = self._signature(cls)
        hints = _get_init_type_hints(cls)

        params = []
        for name, p in sig.parameters.items():
            ann = hints.get(name, p.annotation)
            params.append(
                ParameterInfo(
                    name=name,
                    annotation=None if ann is inspect.Parameter.empty else ann,
                    kind=p.kind,
                    has_default=p.default is not inspect.Parameter.empty,
                    default=None if p.default is inspect.Parameter.empty else p.default,
                )
            )
        return params

    def construct(self, cls: type, arguments: Mapping[str, Any]) -> object:
        self._check_instantiable(cls)

        if not _has_constructor(cls):
            return cls()

        args, kwargs = self._materialize_call(self._signature(cls), arguments)
        return cls(*args, **kwargs)

    def _materialize_call(
        self, sig: inspect.Signature, arguments: Mapping[str, Any]
    ) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        # positional-only, stopping at the first gap so later defaults still apply
        for name, p in sig.parameters.items():
            if p.kind is not p.POSITIONAL_ONLY:
                continue
            if name not in arguments:
                break
            args.append(arguments[name])

        # keywords
        for name, p in sig.parameters.items():
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY) and name in arguments:
                kwargs[name] = arguments[name]

        return args, kwargs

    def _signature(self, cls: type) -> inspect.Signature:
        try:
            return inspect.signature(cls)
        except ValueError as e:
            # builtins and extension types may not expose a signature
            msg = f"Unable to read constructor signature of {cls.__qualname__}: {e}"
            raise TypeError(msg) from e

    def _check_instantiable(self, cls: type) -> None:
        if not inspect.isclass(cls):
            msg = f"{cls!r} is not a class"
            raise TypeError(msg)

        if _is_protocol(cls):
            msg = f"Unable to instantiate protocol class: {cls.__qualname__}"
            raise TypeError(msg)

        if inspect.isabstract(cls):
            msg = f"Unable to instantiate abstract class: {cls.__qualname__}"
            raise TypeError(msg)


def _has_constructor(cls: type) -> bool:
    return cls.__init__ is not object.__init__ or cls.__new__ is not object.__new__  # type: ignore[misc]


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False))


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}
    except SyntaxError as exc:
        logger.warning("Malformed annotation %r retrieving %s (%s) type hints", exc.text, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
