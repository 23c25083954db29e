"""
Method metadata and exact-signature lookup.

Parameter types are read from annotations. The receiver (``self`` or ``cls``)
is not part of a signature, and an unannotated parameter has type ``object``.
Signatures match exactly: ``bool`` does not match ``int`` and ``int`` does not
match ``float``.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from inspect import Parameter, Signature, get_annotations, signature
from types import FunctionType, SimpleNamespace
from typing import (
    Any,
    Callable,
    Iterable,
    Iterator,
    Mapping,
    Sequence,
    final,
    get_type_hints,
)

from valuegraph._config import MethodKind, Permission
from valuegraph._security import check_permission


def _type_name(t: object) -> str:
    if isinstance(t, type):
        return t.__qualname__
    return repr(t)


class NoSuchMethodError(LookupError):
    """No method matches the requested name and parameter types."""

    def __init__(
        self, cls: type, name: str, parameter_types: tuple[object, ...]
    ) -> None:
        super().__init__(
            f"{cls.__qualname__}.{name}({', '.join(map(_type_name, parameter_types))})"
        )
        self.cls = cls
        self.name = name
        self.parameter_types = parameter_types


class InaccessibleMethodError(PermissionError):
    """A non-public method was invoked through a handle that is not accessible."""

    def __init__(self, method: MethodHandle) -> None:
        super().__init__(
            f"Cannot invoke non-public method "
            f"{method.declaring_class.__qualname__}.{method.name}"
        )
        self.method = method


def _is_public_name(name: str) -> bool:
    is_dunder = len(name) > 4 and name.startswith("__") and name.endswith("__")
    return is_dunder or not name.startswith("_")


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class MethodHandle:
    """
    A method declared directly on ``declaring_class``.

    Handles are immutable. Overriding the access check produces a new handle via
    :meth:`with_accessible` and leaves every other handle to the same method
    untouched. ``accessible`` does not take part in equality, so two lookups of
    the same method compare equal.
    """

    declaring_class: type
    name: str
    parameter_types: tuple[Any, ...]
    function: Callable[..., Any]
    kind: MethodKind
    accessible: bool = field(default=False, compare=False)

    @property
    def is_public(self) -> bool:
        return _is_public_name(self.name)

    def with_accessible(self) -> MethodHandle:
        """
        Return a handle that bypasses the access check of a non-public method.

        :raises AccessDeniedError: if the active policy does not grant
            :attr:`Permission.SUPPRESS_ACCESS_CHECKS`.
        """
        check_permission(Permission.SUPPRESS_ACCESS_CHECKS)
        if self.accessible:
            return self
        return replace(self, accessible=True)

    def invoke(self, receiver: object, /, *args: Any, **kwargs: Any) -> Any:
        if not (self.accessible or self.is_public):
            raise InaccessibleMethodError(self)
        match self.kind:
            case MethodKind.INSTANCE:
                return self.function(receiver, *args, **kwargs)
            case MethodKind.CLASS:
                return self.function(self.declaring_class, *args, **kwargs)
            case MethodKind.STATIC:
                return self.function(*args, **kwargs)


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class VarPositional:
    """The signature entry of a ``*args`` parameter annotated with ``type``."""

    type: Any


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class VarKeyword:
    """The signature entry of a ``**kwargs`` parameter annotated with ``type``."""

    type: Any


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class KeywordOnly:
    """The signature entry of a keyword-only parameter."""

    name: str
    type: Any


if sys.version_info >= (3, 14):
    from annotationlib import Format

    # unresolvable names stay forward references instead of raising
    def _signature(function: FunctionType) -> Signature:
        return signature(function, annotation_format=Format.FORWARDREF)

    def _raw_annotations(function: FunctionType) -> Mapping[str, Any]:
        return get_annotations(function, format=Format.FORWARDREF)

else:

    def _signature(function: FunctionType) -> Signature:
        return signature(function)

    def _raw_annotations(function: FunctionType) -> Mapping[str, Any]:
        return get_annotations(function)


def _demangle(cls: type, key: str) -> str:
    stripped = cls.__name__.lstrip("_")
    if not stripped:
        return key
    prefix = f"_{stripped}__"
    if key.startswith(prefix) and not key.endswith("__"):
        return key[len(prefix) - 2 :]
    return key


def _parameter_types(function: FunctionType, kind: MethodKind) -> tuple[Any, ...]:
    parameters = tuple(_signature(function).parameters.values())
    if kind is not MethodKind.STATIC:
        # receiver
        parameters = parameters[1:]
    annotations = _raw_annotations(function)
    # parameter annotations only, never ``return``
    hints = get_type_hints(
        SimpleNamespace(
            __annotations__={
                parameter.name: annotations[parameter.name]
                for parameter in parameters
                if parameter.name in annotations
            },
            __globals__=function.__globals__,
        )
    )

    def entry(parameter: Parameter) -> Any:
        annotation = hints.get(parameter.name, object)
        match parameter.kind:
            case Parameter.VAR_POSITIONAL:
                return VarPositional(type=annotation)
            case Parameter.VAR_KEYWORD:
                return VarKeyword(type=annotation)
            case Parameter.KEYWORD_ONLY:
                return KeywordOnly(name=parameter.name, type=annotation)
            case _:
                return annotation

    return tuple(map(entry, parameters))


def _declared_members(cls: type) -> Iterator[tuple[str, MethodKind, FunctionType]]:
    for key, member in tuple(vars(cls).items()):
        match member:
            case staticmethod():
                kind = MethodKind.STATIC
                function = member.__func__
            case classmethod():
                kind = MethodKind.CLASS
                function = member.__func__
            case FunctionType():
                kind = MethodKind.INSTANCE
                function = member
            case _:
                continue
        if not isinstance(function, FunctionType):
            continue
        yield _demangle(cls, key), kind, function


def _method_handle(
    cls: type, name: str, kind: MethodKind, function: FunctionType
) -> MethodHandle:
    return MethodHandle(
        declaring_class=cls,
        name=name,
        parameter_types=_parameter_types(function, kind),
        function=function,
        kind=kind,
    )


def declared_methods(cls: type) -> Iterator[MethodHandle]:
    """
    Iterate the methods defined in the body of ``cls``, in definition order.

    Inherited methods are not included. The class dictionary is read on each call.
    """
    for name, kind, function in _declared_members(cls):
        yield _method_handle(cls, name, kind, function)


def _find(
    classes: Iterable[type],
    name: str,
    wanted: tuple[Any, ...],
    *,
    public_only: bool,
) -> MethodHandle | None:
    if public_only and not _is_public_name(name):
        return None
    for klass in classes:
        for member_name, kind, function in _declared_members(klass):
            if member_name != name:
                continue
            method = _method_handle(klass, member_name, kind, function)
            if method.parameter_types == wanted:
                return method
    return None


def get_declared_method(
    cls: type, name: str, parameter_types: Sequence[Any]
) -> MethodHandle:
    """
    Find the method declared on ``cls`` with exactly this name and signature.

    Non-public methods are found as well. Only the signature of a method with
    the requested name is inspected, so annotations elsewhere in the class never
    need to resolve.

    :raises AccessDeniedError: if the active policy does not grant
        :attr:`Permission.ACCESS_DECLARED_MEMBERS`.
    :raises NoSuchMethodError: if ``cls`` itself declares no such method, even
        when a base class does.
    """
    check_permission(Permission.ACCESS_DECLARED_MEMBERS)
    wanted = tuple(parameter_types)
    method = _find((cls,), name, wanted, public_only=False)
    if method is None:
        raise NoSuchMethodError(cls, name, wanted)
    return method


def public_methods(cls: type) -> Iterator[MethodHandle]:
    """Public methods of ``cls`` including inherited ones, nearest class first."""
    seen: set[tuple[str, tuple[Any, ...]]] = set()
    for klass in cls.__mro__:
        for name, kind, function in _declared_members(klass):
            if not _is_public_name(name):
                continue
            method = _method_handle(klass, name, kind, function)
            key = (method.name, method.parameter_types)
            if key in seen:
                continue
            seen.add(key)
            yield method


def get_method(cls: type, name: str, parameter_types: Sequence[Any]) -> MethodHandle:
    """Find a public method, possibly inherited, searching the nearest class first."""
    wanted = tuple(parameter_types)
    method = _find(cls.__mro__, name, wanted, public_only=True)
    if method is None:
        raise NoSuchMethodError(cls, name, wanted)
    return method
