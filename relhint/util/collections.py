"""Provides utilities to work with arbitrary collections like lists, sets and tuples."""

from __future__ import annotations

import typing
from collections.abc import Iterable

T = typing.TypeVar("T")


def flatten(xs: Iterable[Iterable[T] | T]) -> list[T]:
    """Transforms a nested list into a flat list: ``[[1, 2], [3]]`` is turned into ``[1, 2, 3]``

    Scalar elements (including strings) are preserved as-is. Elements of containers are extracted and added to the resulting
    list. Nested containers are treated as scalar elements and are not flattened recursively.
    """
    flattened = []
    for nested in xs:
        if isinstance(nested, Iterable) and not isinstance(nested, (str, bytes)):
            flattened.extend(nested)
        else:
            flattened.append(nested)
    return flattened

