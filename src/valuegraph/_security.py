"""
Permission contexts and privileged execution.

A restrictive policy is ambient state held in a :class:`~contextvars.ContextVar`:
when no policy is active every permission check passes. Code that needs rights
beyond the caller's runs through :func:`do_privileged` with an explicit
:class:`PermissionContext`, which replaces the active policy for the duration
of the action.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Callable, Iterator, Self, TypeVar, final

from valuegraph._config import Permission

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AccessDeniedError(PermissionError):
    """The active policy does not grant a required permission."""

    def __init__(self, permission: Permission) -> None:
        super().__init__(f"Access denied: {permission.name}")
        self.permission = permission


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class PermissionContext:
    """
    An immutable set of granted permissions.

    Instances are capability tokens: they can be shared freely between threads
    and value nodes.
    """

    permissions: frozenset[Permission]

    def implies(self, permission: Permission) -> bool:
        return permission in self.permissions

    @classmethod
    def all(cls) -> Self:
        return cls(permissions=frozenset(Permission))

    @classmethod
    def none(cls) -> Self:
        return cls(permissions=frozenset())


_active_policy: ContextVar[PermissionContext | None] = ContextVar(
    "_active_policy", default=None
)


def active_policy() -> PermissionContext | None:
    """The restrictive policy in effect, or ``None`` when none is installed."""
    return _active_policy.get()


@contextmanager
def restricted(context: PermissionContext) -> Iterator[PermissionContext]:
    """Install ``context`` as the restrictive policy for the enclosed block."""
    token = _active_policy.set(context)
    try:
        yield context
    finally:
        _active_policy.reset(token)


def check_permission(permission: Permission) -> None:
    """
    Raise :class:`AccessDeniedError` unless the active policy grants ``permission``.

    Passes unconditionally when no restrictive policy is active.
    """
    policy = _active_policy.get()
    if policy is not None and not policy.implies(permission):
        raise AccessDeniedError(permission)


def do_privileged(action: Callable[[], T], context: PermissionContext) -> T:
    """
    Run ``action`` with exactly the permissions of ``context``.

    The caller's policy is not intersected with ``context``; it is replaced for
    the duration of the call and restored afterwards.
    """
    logger.debug(
        "Entering privileged scope with %s",
        sorted(permission.name for permission in context.permissions),
    )
    with restricted(context):
        return action()
