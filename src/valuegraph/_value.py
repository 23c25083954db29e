"""
Lazy values: the nodes of a dependency-resolution graph.

A :class:`Value` produces its result on demand, every time :meth:`Value.evaluate`
is called. Values never cache; a node that depends on other values evaluates
them again on each call.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pkgutil import resolve_name
from typing import Generic, TypeVar, final, override

logger = logging.getLogger(__name__)

T_co = TypeVar("T_co", covariant=True)


class ResolutionError(RuntimeError):
    """
    A value could not be produced.

    Signals a broken wiring of the value graph rather than a transient condition,
    so callers should not retry.
    """


class Value(Generic[T_co], ABC):
    """
    A deferred computation producing a ``T_co``.
    """

    __slots__ = ()

    @abstractmethod
    def evaluate(self) -> T_co:
        """
        Produce the value.

        May be called any number of times, possibly from several threads.

        :raises ResolutionError: if the value cannot be produced.
        """


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class ImmediateValue(Value[T_co]):
    """A value that always evaluates to the captured object."""

    value: T_co

    @override
    def evaluate(self) -> T_co:
        return self.value


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class ClassValue(Value[type]):
    """
    A value that resolves a class from its fully-qualified name.

    Both ``package.module.Qualified.Name`` and ``package.module:Qualified.Name``
    are accepted. The name is resolved again on each evaluation, so a reloaded
    module yields the new class.
    """

    name: str

    def __post_init__(self) -> None:
        if self.name is None:
            raise ValueError("name is None")
        if not self.name:
            raise ValueError("name is empty")

    @override
    def evaluate(self) -> type:
        try:
            resolved = resolve_name(self.name)
        except (ImportError, AttributeError, ValueError) as e:
            raise ResolutionError(f"Cannot resolve class '{self.name}'") from e
        if not isinstance(resolved, type):
            raise ResolutionError(
                f"'{self.name}' resolved to {type(resolved).__name__}, not a class"
            )
        logger.debug("Resolved class %r to %r", self.name, resolved)
        return resolved
