from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence


class ContainerError(RuntimeError):
    """Base class for every error raised by the container."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        # KeyError subclasses would otherwise render the repr of the message
        return self.message


class NotFoundError(ContainerError, KeyError):
    def __init__(self, id: str) -> None:  # noqa: A002
        super().__init__(f"No entry or alias found for identifier: {id!r}")
        self.id = id


class AlreadyExistsError(ContainerError, KeyError):
    def __init__(self, id: str, *, kind: str = "Entry") -> None:  # noqa: A002
        super().__init__(f"{kind} {id!r} is already registered. Pass overwrite=True to replace it.")
        self.id = id


class ResolutionError(ContainerError):
    """A constructor could not be satisfied.

    `owner` is the identifier of the class being built, `parameter` the
    constructor parameter that failed (None when the class itself is the problem).
    """

    def __init__(self, message: str, *, owner: str | None = None, parameter: str | None = None) -> None:
        super().__init__(message)
        self.owner = owner
        self.parameter = parameter


class CyclicDependencyError(ResolutionError):
    def __init__(self, chain: Sequence[str], *, owner: str | None = None, parameter: str | None = None) -> None:
        self.chain = list(chain)
        super().__init__(
            f"Circular dependency detected: {' -> '.join(self.chain)}",
            owner=owner,
            parameter=parameter,
        )
