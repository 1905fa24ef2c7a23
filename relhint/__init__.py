"""relhint - Propagation predicates for optimizer hints in relational query plans.

Query optimizers frequently allow users to influence their decisions by means of *hints*. For example, a hint might request
a specific join algorithm or force the usage of an index. Typically, such hints are declared for an entire query block and
the optimizer then has to figure out which operators of the plan the hint actually refers to: a join algorithm hint is
only meaningful for join nodes, an index hint only for table scans and a hint that sets a query-level option does not
belong to any node at all. This process is called *hint propagation*.

relhint provides the building blocks that decide whether a hint may be propagated to a specific node:

- the `relalg` module contains the plan-node model. Each node carries an `OperatorKind` and can be classified by means of
  `OperatorCapability` markers using `belongs_to`.
- `RelHint` models the hints themselves
- `HintPredicate` is the interface of all propagation decisions. The `NodeCategoryPredicate` matches hints to nodes based on
  a `PlanNodeCategory`, `CompositeHintPredicate` combines multiple predicates. `HintPredicates` contains ready-to-use
  instances for all categories.
- the `HintStrategyTable` registers the hints that an optimizer understands and filters the hints for a specific node
- the `util` package contains general utilities (errors, logging, JSON export) that are not specific to hints

The tree walker that actually visits the plan nodes is up to the optimizer. A minimal propagation step looks like this:

>>> table = HintStrategyTable.builder().hint_strategy("HASH_JOIN", HintPredicates.JOIN).build()
>>> join = relalg.Join(relalg.TableScan("R"), relalg.TableScan("S"), "R.a = S.b")
>>> hinted_join = join.with_hints(table.apply([RelHint("HASH_JOIN")], join))
"""

from . import relalg, util
from ._core import RelHint
from ._hints import (
    HintPredicate,
    PlanNodeCategory,
    NodeCategoryPredicate,
    Composition,
    CompositeHintPredicate,
    HintPredicates,
)
from ._strategies import (
    UnknownHintHandling,
    UnknownHintError,
    HintStrategy,
    HintStrategyTable,
    HintStrategyTableBuilder,
)
from .relalg import RelNode, OperatorKind, OperatorCapability, belongs_to

__version__ = "0.1.0"

__all__ = [
    "relalg",
    "util",
    "RelHint",
    "HintPredicate",
    "PlanNodeCategory",
    "NodeCategoryPredicate",
    "Composition",
    "CompositeHintPredicate",
    "HintPredicates",
    "UnknownHintHandling",
    "UnknownHintError",
    "HintStrategy",
    "HintStrategyTable",
    "HintStrategyTableBuilder",
    "RelNode",
    "OperatorKind",
    "OperatorCapability",
    "belongs_to",
]
