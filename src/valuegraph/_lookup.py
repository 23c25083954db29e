"""
Values that resolve a method handle by name and parameter types.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any, final, override

from valuegraph._reflection import (
    MethodHandle,
    NoSuchMethodError,
    get_declared_method,
    get_method,
)
from valuegraph._security import PermissionContext, active_policy, do_privileged
from valuegraph._value import ResolutionError, Value

logger = logging.getLogger(__name__)


def _copy_parameter_types(
    parameter_types: Iterable[Value[Any]],
) -> tuple[Value[Any], ...]:
    if parameter_types is None:
        raise ValueError("parameter_types is None")
    copied = tuple(parameter_types)
    for index, parameter_type in enumerate(copied):
        if parameter_type is None:
            raise ValueError(f"parameter_types[{index}] is None")
    return copied


def _evaluate_parameter_types(
    parameter_types: tuple[Value[Any], ...],
) -> tuple[Any, ...]:
    return tuple(parameter_type.evaluate() for parameter_type in parameter_types)


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class LookupDeclaredMethodValue(Value[MethodHandle]):
    """
    A value which looks up a possibly non-public method by name and parameter
    types from the methods a class declares itself.

    Prefer :class:`LookupMethodValue` for public methods.

    When a restrictive policy is active, the lookup and the optional access
    override run in a privileged scope bound to ``context``. Without one they
    run inline and ``context`` is not consulted.
    """

    target: Value[type]
    """The class in which to look for the method."""

    method_name: str

    parameter_types: Sequence[Value[Any]]
    """One value per formal parameter, in declaration order."""

    context: PermissionContext

    make_accessible: bool = False
    """Return a handle whose access check is overridden."""

    def __post_init__(self) -> None:
        if self.target is None:
            raise ValueError("target is None")
        if self.method_name is None:
            raise ValueError("method_name is None")
        if not self.method_name:
            raise ValueError("method_name is empty")
        parameter_types = _copy_parameter_types(self.parameter_types)
        if self.context is None:
            raise ValueError("context is None")
        object.__setattr__(self, "parameter_types", parameter_types)

    def _lookup(self, target_class: type, types: tuple[Any, ...]) -> MethodHandle:
        try:
            method = get_declared_method(target_class, self.method_name, types)
        except NoSuchMethodError as e:
            raise ResolutionError(
                f"No such method '{self.method_name}' found on {target_class!r}"
            ) from e
        if self.make_accessible:
            method = method.with_accessible()
            logger.debug(
                "Overrode access check of %s.%s",
                target_class.__qualname__,
                self.method_name,
            )
        return method

    @override
    def evaluate(self) -> MethodHandle:
        types = _evaluate_parameter_types(self.parameter_types)
        target_class = self.target.evaluate()
        if active_policy() is None:
            logger.debug(
                "Looking up declared method %s%r on %r",
                self.method_name,
                types,
                target_class,
            )
            return self._lookup(target_class, types)
        logger.debug(
            "Looking up declared method %s%r on %r in privileged scope",
            self.method_name,
            types,
            target_class,
        )
        return do_privileged(partial(self._lookup, target_class, types), self.context)


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class LookupMethodValue(Value[MethodHandle]):
    """
    A value which looks up a public method, possibly inherited, by name and
    parameter types.
    """

    target: Value[type]
    method_name: str
    parameter_types: Sequence[Value[Any]]

    def __post_init__(self) -> None:
        if self.target is None:
            raise ValueError("target is None")
        if self.method_name is None:
            raise ValueError("method_name is None")
        if not self.method_name:
            raise ValueError("method_name is empty")
        object.__setattr__(
            self, "parameter_types", _copy_parameter_types(self.parameter_types)
        )

    @override
    def evaluate(self) -> MethodHandle:
        types = _evaluate_parameter_types(self.parameter_types)
        target_class = self.target.evaluate()
        logger.debug(
            "Looking up method %s%r on %r", self.method_name, types, target_class
        )
        try:
            return get_method(target_class, self.method_name, types)
        except NoSuchMethodError as e:
            raise ResolutionError(
                f"No such method '{self.method_name}' found on {target_class!r}"
            ) from e
