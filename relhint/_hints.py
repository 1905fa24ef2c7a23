"""Hint predicates decide whether a hint may be propagated to a specific node of a query plan.

Hints are declared on some node of the plan (typically the root of a query block) and are then propagated to the nodes of
the subtree. However, most hints only make sense for specific operators. For example, a join algorithm hint can only be
applied to join nodes. The `HintPredicate` interface models this decision. The most important predicate is the
`NodeCategoryPredicate`, which matches hints to nodes based on the kind of the operator. Predicates can be combined using
the `CompositeHintPredicate`. The `HintPredicates` namespace provides ready-to-use instances of all predicates.

All predicates are immutable and can be shared between different plans and threads.
"""
from __future__ import annotations

import abc
import enum
from collections.abc import Iterable

from . import util
from ._core import RelHint
from .relalg import (
    RelNode, OperatorCapability, belongs_to,
    AnyNode, AggregateCapability, CalcCapability, CorrelateCapability, FilterCapability, JoinCapability, ProjectCapability,
    SetOpCapability, SnapshotCapability, SortCapability, TableFunctionScanCapability, TableScanCapability,
    ValuesCapability, WindowCapability
)
from .util import jsondict


class HintPredicate(abc.ABC):
    """The predicate interface.

    A predicate is consulted for each pair of hint and candidate plan node during hint propagation. If the predicate is
    satisfied, the hint is attached to the node.
    """

    @abc.abstractmethod
    def apply(self, hint: RelHint, node: RelNode) -> bool:
        """Decides whether a hint may be attached to a plan node.

        Parameters
        ----------
        hint : RelHint
            The hint to propagate
        node : RelNode
            The candidate node

        Returns
        -------
        bool
            Whether the hint can be attached to the node
        """
        raise NotImplementedError

    @abc.abstractmethod
    def describe(self) -> jsondict:
        """Provides a JSON-serializable representation of the predicate, as well as its important parameters.

        Returns
        -------
        jsondict
            The description
        """
        raise NotImplementedError

    def __json__(self) -> jsondict:
        return self.describe()


class PlanNodeCategory(enum.Enum):
    """The categories of relational operators that a hint can target.

    The values correspond to the names that are commonly used to declare the target of a hint.
    """

    QueryScopeOnly = "SET_VAR"
    """The hint configures the entire query, similar to a session setting. Such hints are never propagated to any node."""

    Join = "JOIN"
    TableScan = "TABLE_SCAN"
    Project = "PROJECT"
    Aggregate = "AGGREGATE"
    Calc = "CALC"
    Correlate = "CORRELATE"
    Filter = "FILTER"
    SetOperation = "SETOP"
    """Targets unions, intersections and differences."""
    Sort = "SORT"
    Values = "VALUES"
    Window = "WINDOW"
    Snapshot = "SNAPSHOT"
    TableFunctionScan = "TABLE_FUNCTION_SCAN"

    @property
    def capability(self) -> OperatorCapability:
        """Get the operator capability that the nodes of this category provide.

        For `QueryScopeOnly` this is the universal capability, even though such hints are never propagated.
        """
        return _CategoryCapabilities[self]

    @property
    def never_propagates(self) -> bool:
        """Whether hints of this category must not be attached to any plan node."""
        return self is PlanNodeCategory.QueryScopeOnly

    def __json__(self) -> str:
        return self.value


_CategoryCapabilities: dict[PlanNodeCategory, OperatorCapability] = {
    PlanNodeCategory.QueryScopeOnly: AnyNode,
    PlanNodeCategory.Join: JoinCapability,
    PlanNodeCategory.TableScan: TableScanCapability,
    PlanNodeCategory.Project: ProjectCapability,
    PlanNodeCategory.Aggregate: AggregateCapability,
    PlanNodeCategory.Calc: CalcCapability,
    PlanNodeCategory.Correlate: CorrelateCapability,
    PlanNodeCategory.Filter: FilterCapability,
    PlanNodeCategory.SetOperation: SetOpCapability,
    PlanNodeCategory.Sort: SortCapability,
    PlanNodeCategory.Values: ValuesCapability,
    PlanNodeCategory.Window: WindowCapability,
    PlanNodeCategory.Snapshot: SnapshotCapability,
    PlanNodeCategory.TableFunctionScan: TableFunctionScanCapability,
}


def _assert_exhaustive_categories() -> None:
    unmapped = [category for category in PlanNodeCategory if category not in _CategoryCapabilities]
    if unmapped:
        raise util.InvariantViolationError(f"No operator capability for node categories {unmapped}",
                                           violations=unmapped)


_assert_exhaustive_categories()


class NodeCategoryPredicate(HintPredicate):
    """Predicate that allows a hint to be propagated to all nodes of a specific operator category.

    The check is inclusive regarding specialized operators, e.g. a predicate for the `Join` category is satisfied by all
    kinds of joins. Hints of the `QueryScopeOnly` category are never propagated, no matter the node.

    Notice that the hint itself is not considered in the check. Only the type of the node matters.

    Parameters
    ----------
    category : PlanNodeCategory
        The category of nodes that the hint can be propagated to

    Raises
    ------
    ValueError
        If no category is given
    TypeError
        If the category is not a `PlanNodeCategory`
    """

    def __init__(self, category: PlanNodeCategory) -> None:
        if category is None:
            raise ValueError("Node category is required")
        if not isinstance(category, PlanNodeCategory):
            raise TypeError(f"Expected a PlanNodeCategory, not {type(category).__name__}: {category!r}")
        self._category = category

    @property
    def category(self) -> PlanNodeCategory:
        """Get the category of nodes that the hint can be propagated to.

        Returns
        -------
        PlanNodeCategory
            The category
        """
        return self._category

    def apply(self, hint: RelHint, node: RelNode) -> bool:
        if node is None:
            raise ValueError("Plan node is required")

        # query-level hints never propagate
        if self._category.never_propagates:
            return False
        return belongs_to(node, self._category.capability)

    def describe(self) -> jsondict:
        return {"predicate": "node_category", "category": self._category.value}

    def __hash__(self) -> int:
        return hash(self._category)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, type(self)) and self._category == other._category

    def __repr__(self) -> str:
        return f"NodeCategoryPredicate({self._category.name})"

    def __str__(self) -> str:
        return self._category.value


class Composition(enum.Enum):
    """How the child predicates of a `CompositeHintPredicate` are combined."""
    And = "AND"
    Or = "OR"


class CompositeHintPredicate(HintPredicate):
    """A composite predicate combines multiple predicates into one.

    Nested composites with the same composition are merged into a single composite. The child predicates are evaluated in
    the order in which they were supplied and the evaluation short-circuits.

    Parameters
    ----------
    composition : Composition
        Whether all child predicates (`Composition.And`) or at least one child predicate (`Composition.Or`) must be
        satisfied.
    predicates : Iterable[HintPredicate]
        The child predicates. At least one is required.

    Raises
    ------
    ValueError
        If no composition or no child predicates are given
    TypeError
        If the composition is not a `Composition`
    """

    def __init__(self, composition: Composition, predicates: Iterable[HintPredicate]) -> None:
        if composition is None:
            raise ValueError("Composition is required")
        if not isinstance(composition, Composition):
            raise TypeError(f"Expected a Composition, not {type(composition).__name__}: {composition!r}")
        predicates = util.flatten([
            predicate.predicates if isinstance(predicate, CompositeHintPredicate)
            and predicate.composition == composition else [predicate]
            for predicate in predicates
        ])
        if not predicates:
            raise ValueError("Composite predicate requires at least one child predicate")
        if any(predicate is None for predicate in predicates):
            raise ValueError(f"Child predicates must not be None: {predicates}")
        self._composition = composition
        self._predicates = tuple(predicates)

    @property
    def composition(self) -> Composition:
        return self._composition

    @property
    def predicates(self) -> tuple[HintPredicate, ...]:
        return self._predicates

    def apply(self, hint: RelHint, node: RelNode) -> bool:
        if self._composition == Composition.And:
            return all(predicate.apply(hint, node) for predicate in self._predicates)
        if self._composition == Composition.Or:
            return any(predicate.apply(hint, node) for predicate in self._predicates)
        raise util.LogicError(f"Unknown composition: {self._composition}")

    def describe(self) -> jsondict:
        return {"composition": self._composition.value,
                "predicates": [predicate.describe() for predicate in self._predicates]}

    def __hash__(self) -> int:
        return hash((self._composition, self._predicates))

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, type(self)) and self._composition == other._composition
                and self._predicates == other._predicates)

    def __repr__(self) -> str:
        return f"CompositeHintPredicate({self._composition.name}, {list(self._predicates)})"

    def __str__(self) -> str:
        joined = f" {self._composition.value} ".join(str(predicate) for predicate in self._predicates)
        return f"({joined})"


class HintPredicates:
    """Provides the predicates for all node categories, as well as factories to combine predicates.

    Examples
    --------
    >>> hash_join_predicate = HintPredicates.JOIN
    >>> scan_or_join = HintPredicates.or_(HintPredicates.TABLE_SCAN, HintPredicates.JOIN)
    """

    SET_VAR = NodeCategoryPredicate(PlanNodeCategory.QueryScopeOnly)
    """The hint is used for the whole query and is never propagated."""

    JOIN = NodeCategoryPredicate(PlanNodeCategory.Join)
    TABLE_SCAN = NodeCategoryPredicate(PlanNodeCategory.TableScan)
    PROJECT = NodeCategoryPredicate(PlanNodeCategory.Project)
    AGGREGATE = NodeCategoryPredicate(PlanNodeCategory.Aggregate)
    CALC = NodeCategoryPredicate(PlanNodeCategory.Calc)
    CORRELATE = NodeCategoryPredicate(PlanNodeCategory.Correlate)
    FILTER = NodeCategoryPredicate(PlanNodeCategory.Filter)
    SETOP = NodeCategoryPredicate(PlanNodeCategory.SetOperation)
    SORT = NodeCategoryPredicate(PlanNodeCategory.Sort)
    VALUES = NodeCategoryPredicate(PlanNodeCategory.Values)
    WINDOW = NodeCategoryPredicate(PlanNodeCategory.Window)
    SNAPSHOT = NodeCategoryPredicate(PlanNodeCategory.Snapshot)
    TABLE_FUNCTION_SCAN = NodeCategoryPredicate(PlanNodeCategory.TableFunctionScan)

    @staticmethod
    def and_(*predicates: HintPredicate) -> CompositeHintPredicate:
        """Creates a predicate that is satisfied if all of the given predicates are satisfied."""
        return CompositeHintPredicate(Composition.And, predicates)

    @staticmethod
    def or_(*predicates: HintPredicate) -> CompositeHintPredicate:
        """Creates a predicate that is satisfied if any of the given predicates is satisfied."""
        return CompositeHintPredicate(Composition.Or, predicates)

    @staticmethod
    def for_category(category: PlanNodeCategory) -> NodeCategoryPredicate:
        """Provides the predicate for a specific node category."""
        return NodeCategoryPredicate(category)
