import abc
from typing import Protocol

import pytest

from wirebox import Container, EntryState, NotFoundError, ResolutionError, type_id


class Dependency: ...


class Consumer:
    def __init__(self, dep: Dependency, count: int = 5):
        self.dep = dep
        self.count = count


def test_resolve_simple_type_returns_fresh_instances():
    c = Container()

    class A: ...

    a1 = c.resolve(A)
    a2 = c.resolve(A)
    assert isinstance(a1, A)
    assert a1 is not a2


def test_resolve_does_not_register_anything():
    c = Container()
    c.resolve(Consumer)
    assert c.list_entries() == []
    assert not c.has(Consumer)
    assert not c.has(Dependency)


def test_resolve_constructs_dependency_and_uses_default():
    c = Container()
    obj = c.resolve(Consumer)
    assert isinstance(obj.dep, Dependency)
    assert obj.count == 5


def test_resolve_override_wins_over_default():
    c = Container()
    assert c.resolve(Consumer, count=7).count == 7
    assert c.resolve(Consumer, {"count": 8}).count == 8


def test_keyword_overrides_win_over_params_mapping():
    c = Container()
    assert c.resolve(Consumer, {"count": 8}, count=9).count == 9


def test_none_override_is_used_verbatim():
    c = Container()
    obj = c.resolve(Consumer, dep=None)
    assert obj.dep is None


def test_override_is_not_type_checked():
    c = Container()
    obj = c.resolve(Consumer, dep="not a dependency")
    assert obj.dep == "not a dependency"


def test_registered_instance_is_injected_by_identity():
    c = Container()
    dep = Dependency()
    c.set(type_id(Dependency), dep)

    first = c.resolve(Consumer)
    second = c.resolve(Consumer)

    assert first.dep is dep
    assert second.dep is dep
    assert first is not second


def test_registered_factory_is_injected_and_memoized():
    c = Container()
    calls = []

    def make_dependency(_):
        calls.append(1)
        return Dependency()

    c.set_factory(Dependency, make_dependency)

    first = c.resolve(Consumer)
    second = c.resolve(Consumer)

    assert first.dep is second.dep
    assert len(calls) == 1


def test_aliased_dependency_is_injected():
    c = Container()
    dep = Dependency()
    c.set("dep", dep)
    c.set_alias(Dependency, "dep")

    assert c.resolve(Consumer).dep is dep


def test_resolve_builds_fresh_even_when_type_is_registered():
    c = Container()

    class A: ...

    registered = A()
    c.set(A, registered)

    assert c.resolve(A) is not registered
    assert c.get(A) is registered


def test_resolve_autowires_recursively():
    c = Container()

    class DB: ...

    class Repo:
        def __init__(self, db: DB):
            self.db = db

    class Service:
        def __init__(self, repo: Repo):
            self.repo = repo

    svc = c.resolve(Service)
    assert isinstance(svc.repo, Repo)
    assert isinstance(svc.repo.db, DB)


def test_overrides_are_forwarded_to_nested_resolution():
    c = Container()

    class Pool:
        def __init__(self, size: int):
            self.size = size

    class Repo:
        def __init__(self, pool: Pool):
            self.pool = pool

    repo = c.resolve(Repo, size=3)
    assert repo.pool.size == 3


def test_unsatisfied_primitive_parameter_raises():
    c = Container()

    class Greeter:
        def __init__(self, name: str):
            self.name = name

    with pytest.raises(ResolutionError) as ctx:
        c.resolve(Greeter)

    assert "Cannot satisfy constructor parameter 'name'" in str(ctx.value)
    assert ctx.value.parameter == "name"
    assert ctx.value.owner == type_id(Greeter)


def test_unannotated_parameter_without_default_raises():
    c = Container()

    class Repo:
        def __init__(self, db):
            self.db = db

    with pytest.raises(ResolutionError) as ctx:
        c.resolve(Repo)
    assert ctx.value.parameter == "db"


def test_unannotated_parameter_is_not_looked_up_by_name():
    c = Container()

    class Repo:
        def __init__(self, db=None):
            self.db = db

    c.set("db", object())
    assert c.resolve(Repo).db is None


def test_unannotated_parameter_uses_default():
    c = Container()

    class WithDefault:
        def __init__(self, port=5555):
            self.port = port

    assert c.resolve(WithDefault).port == 5555


def test_nested_failure_is_wrapped_with_enclosing_parameter():
    c = Container()

    class Greeter:
        def __init__(self, name: str):
            self.name = name

    class Service:
        def __init__(self, greeter: Greeter):
            self.greeter = greeter

    with pytest.raises(ResolutionError) as ctx:
        c.resolve(Service)

    assert ctx.value.parameter == "greeter"
    assert ctx.value.owner == type_id(Service)
    assert isinstance(ctx.value.__cause__, ResolutionError)
    assert ctx.value.__cause__.parameter == "name"


def test_unresolvable_dependency_with_default_uses_default():
    c = Container()

    class Greeter:
        def __init__(self, name: str):
            self.name = name

    class Service:
        def __init__(self, greeter: Greeter = None):
            self.greeter = greeter

    assert c.resolve(Service).greeter is None


def test_failing_registered_factory_is_wrapped():
    c = Container()
    c.set_factory(Dependency, lambda cont: cont.get("missing"))

    with pytest.raises(ResolutionError) as ctx:
        c.resolve(Consumer)

    assert ctx.value.parameter == "dep"
    assert isinstance(ctx.value.__cause__, NotFoundError)


def test_resolve_non_class_raises_resolution_error():
    c = Container()
    with pytest.raises(ResolutionError):
        c.resolve("not-a-class")


def test_resolve_abstract_class_raises_resolution_error():
    c = Container()

    class Base(abc.ABC):
        @abc.abstractmethod
        def run(self) -> None: ...

    with pytest.raises(ResolutionError) as ctx:
        c.resolve(Base)
    assert ctx.value.parameter is None
    assert isinstance(ctx.value.__cause__, TypeError)


def test_resolve_protocol_raises_resolution_error():
    c = Container()

    class RepoProtocol(Protocol):
        def get(self) -> int: ...

    with pytest.raises(ResolutionError):
        c.resolve(RepoProtocol)


def test_registered_protocol_implementation_is_injected():
    c = Container()

    class RepoProtocol(Protocol):
        def get(self) -> int: ...

    class RepoImpl:
        def get(self) -> int:
            return 1

    class Service:
        def __init__(self, repo: RepoProtocol):
            self.repo = repo

    c.set_factory(RepoProtocol, lambda _: RepoImpl())
    assert c.resolve(Service).repo.get() == 1


def test_builtin_container_types_are_not_constructed():
    c = Container()

    class Settings:
        def __init__(self, values: dict):
            self.values = values

    with pytest.raises(ResolutionError) as ctx:
        c.resolve(Settings)
    assert ctx.value.parameter == "values"


def test_bind_resolves_lazily_with_params():
    c = Container()
    c.bind("consumer", Consumer, {"count": 9})

    assert c.state("consumer") is EntryState.PENDING

    first = c.get("consumer")
    assert isinstance(first, Consumer)
    assert first.count == 9
    assert c.get("consumer") is first
    assert c.state("consumer") is EntryState.RESOLVED


def test_bind_by_class_makes_registered_singleton():
    c = Container()
    c.bind(Dependency, Dependency)

    first = c.resolve(Consumer)
    second = c.resolve(Consumer)
    assert first.dep is second.dep
    assert first.dep is c.get(Dependency)


def test_bind_rejects_non_class():
    c = Container()
    with pytest.raises(TypeError):
        c.bind("x", "not-a-class")
