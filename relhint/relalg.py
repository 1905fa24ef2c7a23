"""relalg provides the plan-node model that hints are attached to, as well as the operator classification of plan nodes.

The central component of the model is the `RelNode` class. All relational operators inherit from this abstract class. Just
like a "real" optimizer, we distinguish between the logical kind of an operator and its concrete implementation: every node
carries exactly one `OperatorKind`. Specialized implementations of an operator (e.g. an `EquiJoin` as a specific `Join`, or
an `IndexScan` as a specific `TableScan`) inherit the kind of their base operator. Therefore, all consumers that only care
about the kind of an operator can treat them uniformly.

The kinds are grouped into `OperatorCapability` markers. A capability is a named set of operator kinds and answers the
question "does this node perform operation X?". Most capabilities contain exactly one kind, but some group multiple kinds
together. For example, the `SetOp` capability covers unions, intersections and differences alike. Use `belongs_to` to check
whether a node provides a specific capability.

All plan nodes are immutable. Once a node has been created, its inputs and payload can no longer be modified. The only
exception are the hints that are attached to the node: `with_hints` creates a copy of the node with different hints.
"""
from __future__ import annotations

import abc
import copy
import enum
from collections.abc import Generator, Iterable, Sequence
from dataclasses import dataclass
from typing import Optional

from ._core import RelHint


class OperatorKind(enum.Enum):
    """The different kinds of relational operators that can appear in a plan.

    The set of kinds is closed: each concrete node type maps to exactly one kind and new node types must re-use an existing
    kind (if they are specializations of a known operator) or extend this enumeration.
    """

    TableScan = "TableScan"
    TableFunctionScan = "TableFunctionScan"
    Values = "Values"
    Project = "Project"
    Filter = "Filter"
    Calc = "Calc"
    Join = "Join"
    Correlate = "Correlate"
    Aggregate = "Aggregate"
    Sort = "Sort"
    Window = "Window"
    Snapshot = "Snapshot"
    Union = "Union"
    Intersect = "Intersect"
    Minus = "Minus"
    Exchange = "Exchange"

    def __json__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OperatorCapability:
    """A capability marker identifies a group of operator kinds.

    Attributes
    ----------
    name : str
        A descriptive name of the capability
    kinds : frozenset[OperatorKind]
        The operator kinds that provide the capability. Must not be empty.
    """

    name: str
    kinds: frozenset[OperatorKind]

    def __post_init__(self) -> None:
        if not self.kinds:
            raise ValueError(f"Capability '{self.name}' must contain at least one operator kind")

    def __contains__(self, item: object) -> bool:
        return item in self.kinds

    def __json__(self) -> dict:
        return {"capability": self.name, "kinds": sorted(kind.value for kind in self.kinds)}

    def __str__(self) -> str:
        return self.name


def _capability(name: str, *kinds: OperatorKind) -> OperatorCapability:
    return OperatorCapability(name, frozenset(kinds))


AnyNode = _capability("AnyNode", *OperatorKind)
"""The universal capability. It is provided by all plan nodes."""

TableScanCapability = _capability("TableScan", OperatorKind.TableScan)
TableFunctionScanCapability = _capability("TableFunctionScan", OperatorKind.TableFunctionScan)
ValuesCapability = _capability("Values", OperatorKind.Values)
ProjectCapability = _capability("Project", OperatorKind.Project)
FilterCapability = _capability("Filter", OperatorKind.Filter)
CalcCapability = _capability("Calc", OperatorKind.Calc)
JoinCapability = _capability("Join", OperatorKind.Join)
CorrelateCapability = _capability("Correlate", OperatorKind.Correlate)
AggregateCapability = _capability("Aggregate", OperatorKind.Aggregate)
SortCapability = _capability("Sort", OperatorKind.Sort)
WindowCapability = _capability("Window", OperatorKind.Window)
SnapshotCapability = _capability("Snapshot", OperatorKind.Snapshot)
SetOpCapability = _capability("SetOp", OperatorKind.Union, OperatorKind.Intersect, OperatorKind.Minus)
"""Capability of all set operations, i.e. unions, intersections and differences."""


def belongs_to(node: RelNode, capability: OperatorCapability) -> bool:
    """Checks, whether a plan node provides a specific operator capability.

    The check is based on the operator kind of the node. Since specialized operators inherit the kind of their base
    operator, they provide the same capabilities.

    Parameters
    ----------
    node : RelNode
        The node to check
    capability : OperatorCapability
        The required capability

    Returns
    -------
    bool
        Whether the node's kind is part of the capability
    """
    return node.kind in capability


class RelNode(abc.ABC):
    """Models a fundamental operator in a relational plan. All specific operators like filters or joins inherit from it.

    Each concrete operator type has to set the `kind` class attribute. Creating a node of a type without a kind (such as the
    abstract `SetOp`) fails with a `TypeError`.

    Parameters
    ----------
    inputs : Iterable[RelNode]
        The child nodes of the operator, from left to right. Leaf operators such as table scans do not have any inputs.
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    kind: OperatorKind

    def __init__(self, inputs: Iterable[RelNode] = (), *, hints: Iterable[RelHint] = ()) -> None:
        if not isinstance(getattr(type(self), "kind", None), OperatorKind):
            raise TypeError(f"{type(self).__name__} does not define an operator kind and cannot be instantiated")
        self._inputs = tuple(inputs)
        self._hints = tuple(hints)

    @property
    def node_type(self) -> str:
        """Get the current operator as a string.

        In contrast to the `kind`, this is the name of the concrete implementation, e.g. *EquiJoin* rather than *Join*.
        """
        return type(self).__name__

    @property
    def hints(self) -> tuple[RelHint, ...]:
        """Get the hints that are attached to the current operator."""
        return self._hints

    def children(self) -> Sequence[RelNode]:
        """Provides all input nodes of the current operator.

        Returns
        -------
        Sequence[RelNode]
            The input nodes. For leaf nodes such as table scans, the sequence will be empty, otherwise the children are
            provided from left to right.
        """
        return self._inputs

    def is_leaf(self) -> bool:
        """Checks, whether the current operator does not have any inputs (e.g. a table scan or a values node)."""
        return not self._inputs

    def with_hints(self, hints: Iterable[RelHint]) -> RelNode:
        """Creates a copy of the current operator that carries different hints.

        The inputs of the operator are shared between the current node and the copy.

        Parameters
        ----------
        hints : Iterable[RelHint]
            The hints of the copy. They replace all hints of the current node.

        Returns
        -------
        RelNode
            The copied node
        """
        copied = copy.copy(self)
        copied._hints = tuple(hints)
        return copied

    def dfs_walk(self) -> Generator[RelNode, None, None]:
        """Performs a depth-first search on the plan.

        This produces the subtree induced by the current node. The current node is also included in the output.

        Yields
        ------
        Generator[RelNode, None, None]
            All nodes of the subtree induced by the current node.
        """
        yield self
        for child in self.children():
            yield from child.dfs_walk()

    def inspect(self, *, _indentation: int = 0) -> str:
        """Provides a nice hierarchical string representation of the plan.

        The representation typically spans multiple lines and uses indentation to separate parent nodes from their
        children.

        Parameters
        ----------
        _indentation : int, optional
            Internal parameter to the `inspect` function. Should not be modified by the user. Denotes how deeply
            recursed we are in the plan tree.

        Returns
        -------
        str
            A string representation of the plan
        """
        padding = " " * _indentation
        prefix = f"{padding}<- " if padding else ""
        inspections = [prefix + str(self)]
        for child in self.children():
            inspections.append(child.inspect(_indentation=_indentation + 2))
        return "\n".join(inspections)

    @abc.abstractmethod
    def _payload(self) -> tuple:
        """Provides all operator-specific attributes that identify the node (in addition to its inputs).

        The hints of a node are not part of its identity.
        """
        raise NotImplementedError

    def _describe_payload(self) -> str:
        return ", ".join(str(attr) for attr in self._payload() if attr not in (None, ()))

    def __hash__(self) -> int:
        return hash((self.node_type, self._inputs, self._payload()))

    def __eq__(self, other: object) -> bool:
        return (type(self) is type(other) and self._inputs == other._inputs and self._payload() == other._payload())

    def __repr__(self) -> str:
        child_reprs = ", ".join(repr(child) for child in self.children())
        return f"{self.node_type}({child_reprs})"

    def __str__(self) -> str:
        payload = self._describe_payload()
        hints = " " + ", ".join(str(hint) for hint in self._hints) if self._hints else ""
        return f"{self.node_type}({payload}){hints}"


class TableScan(RelNode):
    """A table scan reads all tuples of a base table.

    Parameters
    ----------
    table : str
        The (qualified) name of the scanned table
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    kind = OperatorKind.TableScan

    def __init__(self, table: str, *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__(hints=hints)
        self._table = table

    @property
    def table(self) -> str:
        return self._table

    def _payload(self) -> tuple:
        return (self._table,)


class IndexScan(TableScan):
    """An index scan is a specialized table scan that reads the tuples of a base table by means of an index.

    Parameters
    ----------
    table : str
        The (qualified) name of the scanned table
    index : str
        The index that is used to access the table
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    def __init__(self, table: str, index: str, *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__(table, hints=hints)
        self._index = index

    @property
    def index(self) -> str:
        return self._index

    def _payload(self) -> tuple:
        return (self._table, self._index)


class TableFunctionScan(RelNode):
    """A table function scan produces its tuples by calling a table-valued function.

    The inputs of the scan (if any) are the relational arguments of the function.
    """

    kind = OperatorKind.TableFunctionScan

    def __init__(self, function_call: str, inputs: Iterable[RelNode] = (), *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__(inputs, hints=hints)
        self._function_call = function_call

    @property
    def function_call(self) -> str:
        return self._function_call

    def _payload(self) -> tuple:
        return (self._function_call,)


class Values(RelNode):
    """A values node provides a fixed set of literal tuples, e.g. from a *VALUES* clause."""

    kind = OperatorKind.Values

    def __init__(self, rows: Iterable[Sequence], *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__(hints=hints)
        self._rows = tuple(tuple(row) for row in rows)

    @property
    def rows(self) -> tuple[tuple, ...]:
        return self._rows

    def _payload(self) -> tuple:
        return (self._rows,)

    def _describe_payload(self) -> str:
        return f"{len(self._rows)} rows"


class Project(RelNode):
    """A projection computes a list of expressions for each input tuple.

    Parameters
    ----------
    input_node : RelNode
        The tuples to project
    targets : Iterable[str]
        The expressions that form the output tuples
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    kind = OperatorKind.Project

    def __init__(self, input_node: RelNode, targets: Iterable[str], *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__([input_node], hints=hints)
        self._targets = tuple(targets)

    @property
    def input_node(self) -> RelNode:
        return self._inputs[0]

    @property
    def targets(self) -> tuple[str, ...]:
        return self._targets

    def _payload(self) -> tuple:
        return self._targets


class Filter(RelNode):
    """A filter only retains the input tuples that satisfy a predicate.

    Parameters
    ----------
    input_node : RelNode
        The tuples to filter
    condition : str
        The predicate that must be satisfied by all output tuples
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    kind = OperatorKind.Filter

    def __init__(self, input_node: RelNode, condition: str, *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__([input_node], hints=hints)
        self._condition = condition

    @property
    def input_node(self) -> RelNode:
        return self._inputs[0]

    @property
    def condition(self) -> str:
        return self._condition

    def _payload(self) -> tuple:
        return (self._condition,)


class Calc(RelNode):
    """A calc combines a projection and an (optional) filter into a single operator."""

    kind = OperatorKind.Calc

    def __init__(self, input_node: RelNode, targets: Iterable[str], condition: Optional[str] = None, *,
                 hints: Iterable[RelHint] = ()) -> None:
        super().__init__([input_node], hints=hints)
        self._targets = tuple(targets)
        self._condition = condition

    @property
    def input_node(self) -> RelNode:
        return self._inputs[0]

    @property
    def targets(self) -> tuple[str, ...]:
        return self._targets

    @property
    def condition(self) -> Optional[str]:
        return self._condition

    def _payload(self) -> tuple:
        return (self._targets, self._condition)


class JoinType(enum.Enum):
    """The different join semantics."""
    Inner = "INNER"
    Left = "LEFT"
    Right = "RIGHT"
    Full = "FULL"
    Semi = "SEMI"
    Anti = "ANTI"


class Join(RelNode):
    """A join combines the tuples of two input relations based on a join condition.

    Parameters
    ----------
    left_input : RelNode
        The left (outer) input
    right_input : RelNode
        The right (inner) input
    condition : str
        The join condition
    join_type : JoinType, optional
        The join semantics. Defaults to an inner join.
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    kind = OperatorKind.Join

    def __init__(self, left_input: RelNode, right_input: RelNode, condition: str,
                 join_type: JoinType = JoinType.Inner, *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__([left_input, right_input], hints=hints)
        self._condition = condition
        self._join_type = join_type

    @property
    def left_input(self) -> RelNode:
        return self._inputs[0]

    @property
    def right_input(self) -> RelNode:
        return self._inputs[1]

    @property
    def condition(self) -> str:
        return self._condition

    @property
    def join_type(self) -> JoinType:
        return self._join_type

    def _payload(self) -> tuple:
        return (self._condition, self._join_type.value)


class EquiJoin(Join):
    """An equi-join is a specialized join whose condition only consists of equality comparisons between key columns.

    Parameters
    ----------
    left_input : RelNode
        The left (outer) input
    right_input : RelNode
        The right (inner) input
    left_keys : Sequence[str]
        The join columns of the left input
    right_keys : Sequence[str]
        The join columns of the right input. Must have the same length as the `left_keys`.
    join_type : JoinType, optional
        The join semantics. Defaults to an inner join.
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    def __init__(self, left_input: RelNode, right_input: RelNode, left_keys: Sequence[str], right_keys: Sequence[str],
                 join_type: JoinType = JoinType.Inner, *, hints: Iterable[RelHint] = ()) -> None:
        if len(left_keys) != len(right_keys):
            raise ValueError(f"Join keys do not match: {left_keys} vs. {right_keys}")
        condition = " AND ".join(f"{left} = {right}" for left, right in zip(left_keys, right_keys))
        super().__init__(left_input, right_input, condition, join_type, hints=hints)
        self._left_keys = tuple(left_keys)
        self._right_keys = tuple(right_keys)

    @property
    def left_keys(self) -> tuple[str, ...]:
        return self._left_keys

    @property
    def right_keys(self) -> tuple[str, ...]:
        return self._right_keys


class Correlate(RelNode):
    """A correlate evaluates its right input once for each tuple of the left input (e.g. for a dependent subquery).

    Parameters
    ----------
    left_input : RelNode
        The outer relation
    right_input : RelNode
        The dependent relation
    correlation_id : str
        The variable name that binds the current tuple of the outer relation
    join_type : JoinType, optional
        The join semantics. Defaults to an inner join.
    """

    kind = OperatorKind.Correlate

    def __init__(self, left_input: RelNode, right_input: RelNode, correlation_id: str,
                 join_type: JoinType = JoinType.Inner, *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__([left_input, right_input], hints=hints)
        self._correlation_id = correlation_id
        self._join_type = join_type

    @property
    def correlation_id(self) -> str:
        return self._correlation_id

    @property
    def join_type(self) -> JoinType:
        return self._join_type

    def _payload(self) -> tuple:
        return (self._correlation_id, self._join_type.value)


class Aggregate(RelNode):
    """An aggregate groups its input tuples and computes aggregate functions for each group.

    Parameters
    ----------
    input_node : RelNode
        The tuples to group
    group_columns : Iterable[str]
        The grouping columns. If empty, the entire input forms a single group.
    aggregates : Iterable[str]
        The aggregate function calls
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    kind = OperatorKind.Aggregate

    def __init__(self, input_node: RelNode, group_columns: Iterable[str], aggregates: Iterable[str] = (), *,
                 hints: Iterable[RelHint] = ()) -> None:
        super().__init__([input_node], hints=hints)
        self._group_columns = tuple(group_columns)
        self._aggregates = tuple(aggregates)

    @property
    def group_columns(self) -> tuple[str, ...]:
        return self._group_columns

    @property
    def aggregates(self) -> tuple[str, ...]:
        return self._aggregates

    def _payload(self) -> tuple:
        return (self._group_columns, self._aggregates)


class Sort(RelNode):
    """A sort orders its input tuples. It can optionally restrict the output to a number of tuples (i.e. a *LIMIT*)."""

    kind = OperatorKind.Sort

    def __init__(self, input_node: RelNode, sort_keys: Iterable[str], *, fetch: Optional[int] = None,
                 hints: Iterable[RelHint] = ()) -> None:
        super().__init__([input_node], hints=hints)
        self._sort_keys = tuple(sort_keys)
        self._fetch = fetch

    @property
    def sort_keys(self) -> tuple[str, ...]:
        return self._sort_keys

    @property
    def fetch(self) -> Optional[int]:
        return self._fetch

    def _payload(self) -> tuple:
        return (self._sort_keys, self._fetch)


class Window(RelNode):
    """A window computes window functions over its input tuples."""

    kind = OperatorKind.Window

    def __init__(self, input_node: RelNode, window_functions: Iterable[str], *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__([input_node], hints=hints)
        self._window_functions = tuple(window_functions)

    @property
    def window_functions(self) -> tuple[str, ...]:
        return self._window_functions

    def _payload(self) -> tuple:
        return self._window_functions


class Snapshot(RelNode):
    """A snapshot provides the state of its input relation at a specific point in time (e.g. *FOR SYSTEM_TIME AS OF*)."""

    kind = OperatorKind.Snapshot

    def __init__(self, input_node: RelNode, period: str, *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__([input_node], hints=hints)
        self._period = period

    @property
    def period(self) -> str:
        return self._period

    def _payload(self) -> tuple:
        return (self._period,)


class SetOp(RelNode):
    """Common base class of all set operations. Set operations combine two or more input relations.

    The set operation itself is abstract, only `Union`, `Intersect` and `Minus` can be instantiated.

    Parameters
    ----------
    inputs : Iterable[RelNode]
        The input relations. At least two are required.
    distinct : bool, optional
        Whether duplicates should be eliminated (set semantics) or retained (bag semantics, i.e. *ALL*). Defaults to set
        semantics.
    hints : Iterable[RelHint], optional
        The hints that are attached to the operator.
    """

    def __init__(self, inputs: Iterable[RelNode], *, distinct: bool = True, hints: Iterable[RelHint] = ()) -> None:
        super().__init__(inputs, hints=hints)
        if len(self._inputs) < 2:
            raise ValueError(f"{self.node_type} requires at least two inputs, not {len(self._inputs)}")
        self._distinct = distinct

    @property
    def distinct(self) -> bool:
        return self._distinct

    def _payload(self) -> tuple:
        return (self._distinct,)

    def _describe_payload(self) -> str:
        return "" if self._distinct else "ALL"


class Union(SetOp):
    kind = OperatorKind.Union


class Intersect(SetOp):
    kind = OperatorKind.Intersect


class Minus(SetOp):
    kind = OperatorKind.Minus


class Exchange(RelNode):
    """An exchange redistributes its input tuples, e.g. among parallel workers.

    In contrast to all other operators, exchanges are not targeted by any of the node categories of the hint predicates.
    """

    kind = OperatorKind.Exchange

    def __init__(self, input_node: RelNode, distribution: str, *, hints: Iterable[RelHint] = ()) -> None:
        super().__init__([input_node], hints=hints)
        self._distribution = distribution

    @property
    def distribution(self) -> str:
        return self._distribution

    def _payload(self) -> tuple:
        return (self._distribution,)
