from typing import TYPE_CHECKING

import pytest

from valuegraph import (
    AccessDeniedError,
    InaccessibleMethodError,
    KeywordOnly,
    MethodKind,
    NoSuchMethodError,
    PermissionContext,
    declared_methods,
    get_declared_method,
    get_method,
    public_methods,
    restricted,
    VarKeyword,
    VarPositional,
)

if TYPE_CHECKING:
    from decimal import Decimal


class Base:
    def describe(self) -> str:
        return "base"

    def inherited(self, flag: bool) -> bool:
        return not flag


class Service(Base):
    def configure(self, name: str, port: int) -> str:
        return f"{name}:{port}"

    def describe(self) -> str:
        return "service"

    def untyped(self, value):
        return value

    def _reset(self) -> str:
        return "reset"

    def __secret(self, token: str) -> str:
        return token[::-1]

    def __call__(self) -> str:
        return "called"

    @staticmethod
    def parse(text: str) -> int:
        return int(text)

    @classmethod
    def create(cls, name: str) -> "Service":
        return cls()

    @property
    def port(self) -> int:
        return 80

    limit = 10


class Widget:
    def price(self) -> "Decimal":
        raise NotImplementedError

    def stop(self) -> None:
        return None

    def restock(self, amount: int) -> "Decimal":
        raise NotImplementedError


class Emitter:
    def fire(self, *args: int, **kwargs: str) -> tuple[int, ...]:
        return args

    def send(self, payload: bytes, *, timeout: float) -> bytes:
        return payload


class TestDeclaredMethods:
    """Test enumerating the methods a class declares itself."""

    def test_definition_order_and_only_own_methods(self) -> None:
        names = [method.name for method in declared_methods(Service)]
        assert names == [
            "configure",
            "describe",
            "untyped",
            "_reset",
            "__secret",
            "__call__",
            "parse",
            "create",
        ]

    def test_receiver_excluded_from_parameter_types(self) -> None:
        method = get_declared_method(Service, "configure", [str, int])
        assert method.parameter_types == (str, int)
        assert method.kind is MethodKind.INSTANCE
        assert method.declaring_class is Service

    def test_unannotated_parameter_is_object(self) -> None:
        method = get_declared_method(Service, "untyped", [object])
        assert method.parameter_types == (object,)

    def test_static_and_class_methods(self) -> None:
        parse = get_declared_method(Service, "parse", [str])
        create = get_declared_method(Service, "create", [str])
        assert parse.kind is MethodKind.STATIC
        assert create.kind is MethodKind.CLASS
        assert parse.invoke(None, "42") == 42
        assert isinstance(create.invoke(None, "x"), Service)

    def test_class_is_read_on_every_call(self) -> None:
        class Mutable:
            pass

        assert list(declared_methods(Mutable)) == []

        def added(self) -> None:
            pass

        Mutable.added = added  # type: ignore[attr-defined]
        assert [method.name for method in declared_methods(Mutable)] == ["added"]


class TestGetDeclaredMethod:
    def test_exact_signature(self) -> None:
        method = get_declared_method(Service, "configure", (str, int))
        assert method.invoke(Service(), "api", 8080) == "api:8080"

    def test_swapped_parameter_order_does_not_match(self) -> None:
        with pytest.raises(NoSuchMethodError):
            get_declared_method(Service, "configure", [int, str])

    def test_no_widening(self) -> None:
        with pytest.raises(NoSuchMethodError):
            get_declared_method(Service, "configure", [str, bool])
        with pytest.raises(NoSuchMethodError):
            get_declared_method(Service, "parse", [object])

    def test_inherited_method_is_not_declared(self) -> None:
        with pytest.raises(NoSuchMethodError) as exc_info:
            get_declared_method(Service, "inherited", [bool])
        assert exc_info.value.cls is Service
        assert exc_info.value.name == "inherited"
        assert str(exc_info.value) == "Service.inherited(bool)"

    def test_private_names_are_demangled(self) -> None:
        method = get_declared_method(Service, "__secret", [str])
        assert method.name == "__secret"
        assert not method.is_public

    def test_requires_declared_members_permission(self) -> None:
        with restricted(PermissionContext.none()):
            with pytest.raises(AccessDeniedError):
                get_declared_method(Service, "configure", [str, int])


class TestMethodHandle:
    """Test access checks on method handles."""

    def test_dunder_is_public(self) -> None:
        method = get_declared_method(Service, "__call__", [])
        assert method.is_public
        assert method.invoke(Service()) == "called"

    def test_non_public_handle_refuses_invocation(self) -> None:
        method = get_declared_method(Service, "_reset", [])
        with pytest.raises(InaccessibleMethodError):
            method.invoke(Service())

    def test_with_accessible_returns_new_handle(self) -> None:
        method = get_declared_method(Service, "__secret", [str])
        accessible = method.with_accessible()
        assert accessible is not method
        assert accessible.accessible
        assert not method.accessible
        assert accessible == method
        assert accessible.invoke(Service(), "abc") == "cba"
        with pytest.raises(InaccessibleMethodError):
            method.invoke(Service(), "abc")

    def test_with_accessible_is_idempotent(self) -> None:
        accessible = get_declared_method(Service, "_reset", []).with_accessible()
        assert accessible.with_accessible() is accessible

    def test_with_accessible_requires_permission(self) -> None:
        method = get_declared_method(Service, "_reset", [])
        with restricted(PermissionContext.none()):
            with pytest.raises(AccessDeniedError):
                method.with_accessible()


class TestPublicMethods:
    def test_includes_inherited(self) -> None:
        method = get_method(Service, "inherited", [bool])
        assert method.declaring_class is Base
        assert method.invoke(Service(), True) is False

    def test_nearest_override_wins(self) -> None:
        method = get_method(Service, "describe", [])
        assert method.declaring_class is Service
        described = [m for m in public_methods(Service) if m.name == "describe"]
        assert len(described) == 1

    def test_excludes_non_public(self) -> None:
        assert "_reset" not in {method.name for method in public_methods(Service)}
        with pytest.raises(NoSuchMethodError):
            get_method(Service, "_reset", [])

    def test_does_not_require_permission(self) -> None:
        with restricted(PermissionContext.none()):
            assert get_method(Service, "configure", [str, int]).name == "configure"


class TestUnresolvableAnnotations:
    """Annotations that only exist for type checkers do not break lookups."""

    def test_earlier_method_with_unresolvable_return(self) -> None:
        method = get_declared_method(Widget, "stop", [])
        assert method.name == "stop"
        assert method.invoke(Widget()) is None

    def test_own_unresolvable_return(self) -> None:
        method = get_declared_method(Widget, "restock", [int])
        assert method.parameter_types == (int,)

    def test_public_lookup(self) -> None:
        assert get_method(Widget, "stop", []).declaring_class is Widget


class TestParameterKinds:
    """Variadic and keyword-only parameters are distinct signature entries."""

    def test_variadic_does_not_match_positional(self) -> None:
        with pytest.raises(NoSuchMethodError):
            get_declared_method(Emitter, "fire", [int, str])

    def test_variadic_signature(self) -> None:
        method = get_declared_method(
            Emitter, "fire", [VarPositional(type=int), VarKeyword(type=str)]
        )
        assert method.invoke(Emitter(), 1, 2, tag="x") == (1, 2)

    def test_keyword_only_does_not_match_positional(self) -> None:
        with pytest.raises(NoSuchMethodError):
            get_declared_method(Emitter, "send", [bytes, float])

    def test_keyword_only_signature(self) -> None:
        method = get_declared_method(
            Emitter, "send", [bytes, KeywordOnly(name="timeout", type=float)]
        )
        assert method.invoke(Emitter(), b"data", timeout=1.0) == b"data"
