from enum import Enum, auto


class Permission(Enum):
    ACCESS_DECLARED_MEMBERS = auto()
    """
    Enumerate the methods a class declares itself, including non-public ones.
    """

    SUPPRESS_ACCESS_CHECKS = auto()
    """
    Override the access restriction of a non-public method so it can be invoked.
    """


class MethodKind(Enum):
    INSTANCE = auto()
    """
    A plain function in the class body. Invoked with the receiver as ``self``.
    """

    CLASS = auto()
    """
    A ``classmethod``. Invoked with the declaring class as ``cls``.
    """

    STATIC = auto()
    """
    A ``staticmethod``. The receiver is ignored.
    """
