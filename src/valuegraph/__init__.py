"""
valuegraph: lazy values for dependency-resolution containers.

Public API
==========

Values:
    - :class:`Value`
    - :class:`ImmediateValue`
    - :class:`ClassValue`
    - :class:`LookupDeclaredMethodValue`
    - :class:`LookupMethodValue`

Reflection:
    - :class:`MethodHandle`
    - :class:`VarPositional`, :class:`VarKeyword`, :class:`KeywordOnly`
    - :func:`declared_methods`
    - :func:`get_declared_method`
    - :func:`public_methods`
    - :func:`get_method`

Permissions:
    - :class:`Permission`
    - :class:`PermissionContext`
    - :func:`active_policy`
    - :func:`restricted`
    - :func:`check_permission`
    - :func:`do_privileged`

Errors:
    - :exc:`ResolutionError`
    - :exc:`NoSuchMethodError`
    - :exc:`InaccessibleMethodError`
    - :exc:`AccessDeniedError`

Example
=======

.. code-block:: python

    from valuegraph import (
        ImmediateValue,
        LookupDeclaredMethodValue,
        PermissionContext,
    )

    class Service:
        def configure(self, name: str, port: int) -> None: ...

    lookup = LookupDeclaredMethodValue(
        target=ImmediateValue(value=Service),
        method_name="configure",
        parameter_types=[ImmediateValue(value=str), ImmediateValue(value=int)],
        context=PermissionContext.all(),
    )
    lookup.evaluate().invoke(Service(), "api", 8080)
"""

from valuegraph._config import MethodKind as MethodKind
from valuegraph._config import Permission as Permission
from valuegraph._lookup import LookupDeclaredMethodValue as LookupDeclaredMethodValue
from valuegraph._lookup import LookupMethodValue as LookupMethodValue
from valuegraph._reflection import InaccessibleMethodError as InaccessibleMethodError
from valuegraph._reflection import KeywordOnly as KeywordOnly
from valuegraph._reflection import MethodHandle as MethodHandle
from valuegraph._reflection import NoSuchMethodError as NoSuchMethodError
from valuegraph._reflection import VarKeyword as VarKeyword
from valuegraph._reflection import VarPositional as VarPositional
from valuegraph._reflection import declared_methods as declared_methods
from valuegraph._reflection import get_declared_method as get_declared_method
from valuegraph._reflection import get_method as get_method
from valuegraph._reflection import public_methods as public_methods
from valuegraph._security import AccessDeniedError as AccessDeniedError
from valuegraph._security import PermissionContext as PermissionContext
from valuegraph._security import active_policy as active_policy
from valuegraph._security import check_permission as check_permission
from valuegraph._security import do_privileged as do_privileged
from valuegraph._security import restricted as restricted
from valuegraph._value import ClassValue as ClassValue
from valuegraph._value import ImmediateValue as ImmediateValue
from valuegraph._value import ResolutionError as ResolutionError
from valuegraph._value import Value as Value
