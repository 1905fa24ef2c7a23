"""Contains utilities to work with dictionaries, most importantly an immutable (and hashable) dictionary."""

from __future__ import annotations

import collections
import collections.abc
import typing
import warnings

K = typing.TypeVar("K")
V = typing.TypeVar("V")


def hash_dict(dictionary: collections.abc.Mapping[K, V]) -> int:
    """Calculates a hash value based on the current dict contents (keys and values).

    The hash does not depend on the insertion order of the entries, i.e. two dictionaries that compare equal also share the
    same hash value.
    """
    entries = []
    for key, val in dictionary.items():
        if isinstance(val, collections.abc.Hashable):
            entries.append((key, hash(val)))
        elif isinstance(val, (list, set)):
            entries.append((key, hash(tuple(val))))
        elif isinstance(val, dict):
            entries.append((key, hash_dict(val)))
        else:
            warnings.warn(f"Unhashable type, skipping: {type(val)}")
    return hash(frozenset(entries))


class frozendict(collections.UserDict[K, V]):
    """Read-only variant of a normal Python dictionary.

    Once the dictionary has been created, its key/value pairs can no longer be modified. At the same time, this allows the
    dictionary to be hashable by default.

    Parameters
    ----------
    items : any, optional
        Supports the same argument types as the normal dictionary. If no items are supplied, an empty frozen dictionary is
        returned.
    """

    def __init__(self, items=None) -> None:
        self._frozen = False
        super().__init__(items)
        self._frozen = True

    def __setitem__(self, key: K, item: V) -> None:
        if self._frozen:
            raise TypeError("Cannot set frozendict entries after creation")
        return super().__setitem__(key, item)

    def __delitem__(self, key: K) -> None:
        if self._frozen:
            raise TypeError("Cannot remove frozendict entries after creation")
        return super().__delitem__(key)

    def __hash__(self) -> int:
        return hash_dict(self)
