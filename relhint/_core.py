from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Optional

from . import util
from .util import jsondict


class RelHint:
    """A hint is a directive for the optimizer that is attached to a part of a query plan.

    Each hint is identified by its name and can be parameterized through options. Options come in two flavors: either as a
    plain list (e.g. the tables of a join order hint, ``LEADING(R, S)``), or as key-value pairs (e.g. the settings of a
    query-level hint, ``SET_VAR(parallelism='4')``). A single hint cannot mix both flavors.

    Hints are declared on a specific node of the plan and are then propagated to the descendants of that node. The
    `inherit_path` keeps track of this propagation: it contains the child indexes that lead from the declaring node to the
    node that the hint is currently attached to. An empty path denotes a hint that is attached to its declaring node.

    Hints are immutable and hashable. The options are never interpreted by relhint itself, this is up to the optimizer
    that consumes the hints.

    Parameters
    ----------
    hint_name : str
        The name of the hint. Must not be empty.
    inherit_path : Iterable[int], optional
        The propagation path of the hint. Defaults to an empty path.
    list_options : Iterable[str], optional
        The options of the hint in list form.
    kv_options : Optional[Mapping[str, str]], optional
        The options of the hint in key-value form.

    Raises
    ------
    ValueError
        If the name is empty, if the inherit path contains negative indexes, or if both list and key-value options are given.
    """

    def __init__(self, hint_name: str, *, inherit_path: Iterable[int] = (), list_options: Iterable[str] = (),
                 kv_options: Optional[Mapping[str, str]] = None) -> None:
        if not hint_name:
            raise ValueError("Hint name is required")
        self._hint_name = hint_name
        self._inherit_path = tuple(inherit_path)
        self._list_options = tuple(list_options)
        self._kv_options = util.frozendict(kv_options or {})

        if any(idx < 0 for idx in self._inherit_path):
            raise ValueError(f"Inherit path must consist of child indexes, not {list(self._inherit_path)}")
        if self._list_options and self._kv_options:
            raise ValueError(f"Hint '{hint_name}' can have either list options or key-value options, not both")

        self._hash_val = hash((self._hint_name, self._inherit_path, self._list_options, self._kv_options))

    @property
    def hint_name(self) -> str:
        """Get the name of the hint.

        Returns
        -------
        str
            The name
        """
        return self._hint_name

    @property
    def inherit_path(self) -> tuple[int, ...]:
        """Get the child indexes that lead from the declaring node of the hint to its current node.

        Returns
        -------
        tuple[int, ...]
            The path. Empty if the hint has not been propagated.
        """
        return self._inherit_path

    @property
    def list_options(self) -> tuple[str, ...]:
        """Get the list options of the hint.

        Returns
        -------
        tuple[str, ...]
            The options. Can be empty.
        """
        return self._list_options

    @property
    def kv_options(self) -> util.frozendict[str, str]:
        """Get the key-value options of the hint.

        Returns
        -------
        util.frozendict[str, str]
            The options. Can be empty.
        """
        return self._kv_options

    def with_inherit_path(self, inherit_path: Iterable[int]) -> RelHint:
        """Creates a copy of the current hint with a different propagation path.

        Parameters
        ----------
        inherit_path : Iterable[int]
            The new path

        Returns
        -------
        RelHint
            The copied hint. All other attributes are retained.
        """
        return RelHint(self._hint_name, inherit_path=inherit_path, list_options=self._list_options,
                       kv_options=self._kv_options)

    def __json__(self) -> jsondict:
        return {
            "hint_name": self._hint_name,
            "inherit_path": list(self._inherit_path),
            "list_options": list(self._list_options),
            "kv_options": dict(self._kv_options),
        }

    def __hash__(self) -> int:
        return self._hash_val

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, type(self))
                and self._hint_name == other._hint_name
                and self._inherit_path == other._inherit_path
                and self._list_options == other._list_options
                and self._kv_options == other._kv_options)

    def __repr__(self) -> str:
        return (f"RelHint(hint_name={self._hint_name!r}, inherit_path={list(self._inherit_path)}, "
                f"list_options={list(self._list_options)}, kv_options={dict(self._kv_options)})")

    def __str__(self) -> str:
        if self._kv_options:
            options = ", ".join(f"{key}={value}" for key, value in self._kv_options.items())
        else:
            options = ", ".join(self._list_options)
        path = ", ".join(str(idx) for idx in self._inherit_path)
        return f"[{self._hint_name} inheritPath:[{path}] options:[{options}]]"
