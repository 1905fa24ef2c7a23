"""Hint strategies register the hints that an optimizer understands, along with their propagation predicates.

The `HintStrategyTable` is the central registry. It is created once when the optimizer is configured (by means of a
`HintStrategyTableBuilder`) and is read-only afterwards. During hint propagation, the table is used to filter the hints
that can be attached to a specific plan node.
"""
from __future__ import annotations

import warnings
from collections.abc import Iterable
from typing import Literal, Optional

from . import util
from ._core import RelHint
from ._hints import HintPredicate, HintPredicates
from .relalg import RelNode
from .util import jsondict

UnknownHintHandling = Literal["warn", "raise", "ignore"]
"""How the strategy table reacts to hints that have not been registered.

- *warn* issues a warning
- *raise* raises an `UnknownHintError`
- *ignore* silently treats the hint as invalid
"""


class UnknownHintError(ValueError):
    """Error to indicate that a hint has no registered strategy.

    Parameters
    ----------
    hint : RelHint
        The unknown hint
    """

    def __init__(self, hint: RelHint) -> None:
        super().__init__(f"Hint '{hint.hint_name}' is not registered in the hint strategy table: {hint}")
        self.hint = hint


class HintStrategy:
    """A hint strategy describes how a specific hint is handled by the optimizer.

    Currently, this is limited to the propagation predicate of the hint.

    Parameters
    ----------
    hint_name : str
        The name of the hint
    predicate : HintPredicate
        The predicate that decides which plan nodes the hint can be attached to
    """

    def __init__(self, hint_name: str, predicate: HintPredicate) -> None:
        if not hint_name:
            raise ValueError("Hint name is required")
        if predicate is None:
            raise ValueError(f"Hint predicate is required for hint '{hint_name}'")
        self._hint_name = hint_name
        self._predicate = predicate

    @property
    def hint_name(self) -> str:
        return self._hint_name

    @property
    def predicate(self) -> HintPredicate:
        return self._predicate

    def __json__(self) -> jsondict:
        return {"hint_name": self._hint_name, "predicate": self._predicate.describe()}

    def __hash__(self) -> int:
        return hash((self._hint_name, self._predicate))

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, type(self)) and self._hint_name == other._hint_name
                and self._predicate == other._predicate)

    def __repr__(self) -> str:
        return f"HintStrategy({self._hint_name}, {self._predicate!r})"

    def __str__(self) -> str:
        return f"{self._hint_name}: {self._predicate}"


def _normalize(hint_name: str) -> str:
    return hint_name.lower()


class HintStrategyTable:
    """The strategy table contains the strategies of all hints that are known to the optimizer.

    Hint names are matched case-insensitively. Instead of creating the table directly, the `builder` should be used.

    Parameters
    ----------
    strategies : Iterable[HintStrategy]
        The strategies to register. Each hint can only be registered once.
    on_unknown_hint : UnknownHintHandling, optional
        How hints without a registered strategy should be reported during validation. Issues a warning by default.
    verbose : bool, optional
        Whether registration and propagation decisions should be logged to *stderr*. Off by default.

    Raises
    ------
    ValueError
        If the same hint name is registered multiple times, or if the unknown hint handling is not supported
    """

    EMPTY: HintStrategyTable
    """A table without any strategies. No hint can be propagated using this table."""

    @staticmethod
    def builder() -> HintStrategyTableBuilder:
        """Provides a builder to create a new strategy table."""
        return HintStrategyTableBuilder()

    def __init__(self, strategies: Iterable[HintStrategy] = (), *, on_unknown_hint: UnknownHintHandling = "warn",
                 verbose: bool = False) -> None:
        if on_unknown_hint not in ("warn", "raise", "ignore"):
            raise ValueError(f"Unknown hint handling must be one of 'warn', 'raise' or 'ignore', not '{on_unknown_hint}'")
        self._on_unknown_hint = on_unknown_hint
        self._log = util.make_logger(verbose, prefix=util.timestamp)

        self._strategies: dict[str, HintStrategy] = {}
        for strategy in strategies:
            key = _normalize(strategy.hint_name)
            if key in self._strategies:
                raise ValueError(f"Hint '{strategy.hint_name}' has already been registered")
            self._strategies[key] = strategy
            self._log("Registered hint strategy", strategy)

    @property
    def on_unknown_hint(self) -> UnknownHintHandling:
        return self._on_unknown_hint

    def strategies(self) -> list[HintStrategy]:
        """Provides all registered strategies in the order of their registration."""
        return list(self._strategies.values())

    def lookup(self, hint_name: str) -> Optional[HintStrategy]:
        """Provides the strategy of a specific hint, or *None* if the hint has not been registered."""
        return self._strategies.get(_normalize(hint_name))

    def apply(self, hints: Iterable[RelHint], node: RelNode) -> list[RelHint]:
        """Determines all hints that can be attached to a specific plan node.

        Hints that have not been registered in the table can never be attached.

        Parameters
        ----------
        hints : Iterable[RelHint]
            The candidate hints, typically the hints of the parent node
        node : RelNode
            The node to attach the hints to

        Returns
        -------
        list[RelHint]
            The applicable hints, in the same order as the input hints
        """
        applicable: list[RelHint] = []
        for hint in hints:
            strategy = self.lookup(hint.hint_name)
            if strategy is not None and strategy.predicate.apply(hint, node):
                applicable.append(hint)
        self._log(f"Applicable hints for {node.node_type}:", *applicable)
        return applicable

    def validate_hint(self, hint: RelHint) -> bool:
        """Checks, whether a strategy has been registered for a hint.

        Unknown hints are reported according to the `on_unknown_hint` setting.

        Parameters
        ----------
        hint : RelHint
            The hint to check

        Returns
        -------
        bool
            Whether the hint is known to the table

        Raises
        ------
        UnknownHintError
            If the hint is unknown and the table is configured to raise errors for unknown hints
        """
        if self.lookup(hint.hint_name) is not None:
            return True
        if self._on_unknown_hint == "raise":
            raise UnknownHintError(hint)
        if self._on_unknown_hint == "warn":
            warnings.warn(f"Hint '{hint.hint_name}' should be registered in the hint strategy table: {hint}")
        return False

    def __json__(self) -> jsondict:
        return {"on_unknown_hint": self._on_unknown_hint, "strategies": self.strategies()}

    def __contains__(self, item: object) -> bool:
        if isinstance(item, RelHint):
            return self.lookup(item.hint_name) is not None
        return isinstance(item, str) and self.lookup(item) is not None

    def __len__(self) -> int:
        return len(self._strategies)

    def __repr__(self) -> str:
        return f"HintStrategyTable({list(self._strategies.values())})"

    def __str__(self) -> str:
        return "{" + ", ".join(str(strategy) for strategy in self._strategies.values()) + "}"


HintStrategyTable.EMPTY = HintStrategyTable()


class HintStrategyTableBuilder:
    """Builder to configure a `HintStrategyTable` step-by-step.

    Examples
    --------
    >>> table = (HintStrategyTable.builder()
    ...          .hint_strategy("HASH_JOIN", HintPredicates.JOIN)
    ...          .hint_strategy("INDEX", HintPredicates.TABLE_SCAN)
    ...          .on_unknown_hint("raise")
    ...          .build())
    """

    def __init__(self) -> None:
        self._strategies: list[HintStrategy] = []
        self._on_unknown_hint: UnknownHintHandling = "warn"
        self._verbose = False
        self._built = False

    def hint_strategy(self, hint_name: str, strategy: HintPredicate | HintStrategy) -> HintStrategyTableBuilder:
        """Registers a new hint.

        Parameters
        ----------
        hint_name : str
            The name of the hint
        strategy : HintPredicate | HintStrategy
            The strategy of the hint. If only a predicate is given, a strategy with that predicate is created.

        Returns
        -------
        HintStrategyTableBuilder
            The current builder for method chaining
        """
        self._assert_not_built()
        if isinstance(strategy, HintStrategy):
            strategy = HintStrategy(hint_name, strategy.predicate)
        else:
            strategy = HintStrategy(hint_name, strategy)
        self._strategies.append(strategy)
        return self

    def query_hint(self, hint_name: str) -> HintStrategyTableBuilder:
        """Registers a hint that configures the entire query and is never propagated to any plan node."""
        return self.hint_strategy(hint_name, HintPredicates.SET_VAR)

    def on_unknown_hint(self, handling: UnknownHintHandling) -> HintStrategyTableBuilder:
        self._assert_not_built()
        self._on_unknown_hint = handling
        return self

    def verbose(self, enabled: bool = True) -> HintStrategyTableBuilder:
        self._assert_not_built()
        self._verbose = enabled
        return self

    def build(self) -> HintStrategyTable:
        """Creates the strategy table. Afterwards, the builder can no longer be modified."""
        self._assert_not_built()
        self._built = True
        return HintStrategyTable(self._strategies, on_unknown_hint=self._on_unknown_hint, verbose=self._verbose)

    def _assert_not_built(self) -> None:
        if self._built:
            raise util.StateError("Hint strategy table has already been built", target=self)
