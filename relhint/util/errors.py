"""Contains the general errors of relhint. They extend Python's base errors."""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional


class LogicError(RuntimeError):
    """Generic error to indicate that an internal assumption of relhint does not hold.

    Faulty user input (e.g. a missing node category for a hint predicate) is reported as a `ValueError` or a `TypeError`
    instead. Hence, encountering a `LogicError` always points to a bug in relhint itself, e.g. an incomplete operator table.
    """


class StateError(RuntimeError):
    """Indicates that an object is not in the right state to perform an operation.

    For example, a strategy table builder can no longer accept new strategies once the table has been built.

    Parameters
    ----------
    message : str
        Describes the operation that was attempted
    target : Optional[Any], optional
        The object that is in the wrong state, if available
    """

    def __init__(self, message: str, *, target: Optional[Any] = None) -> None:
        super().__init__(message)
        self.target = target


class InvariantViolationError(LogicError):
    """Indicates that a structural invariant was violated.

    Parameters
    ----------
    message : str
        Describes the invariant
    violations : Iterable[Any], optional
        The offending elements, e.g. the node categories without an operator capability
    """

    def __init__(self, message: str, *, violations: Iterable[Any] = ()) -> None:
        super().__init__(message)
        self.violations = tuple(violations)
