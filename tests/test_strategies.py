"""Tests for the registration of hint strategies and the filtering of hints for plan nodes."""
from __future__ import annotations

import io
import unittest
import warnings
from contextlib import redirect_stderr

import relhint as rh
from relhint import relalg, HintPredicates, HintStrategyTable
from tests import sample_plans


def _make_table(**kwargs) -> HintStrategyTable:
    builder = (HintStrategyTable.builder()
               .hint_strategy("HASH_JOIN", HintPredicates.JOIN)
               .hint_strategy("INDEX", HintPredicates.TABLE_SCAN)
               .hint_strategy("NO_PUSHDOWN", HintPredicates.or_(HintPredicates.FILTER, HintPredicates.PROJECT))
               .query_hint("SET_VAR"))
    for setting, value in kwargs.items():
        getattr(builder, setting)(value)
    return builder.build()


class HintStrategyTableTests(unittest.TestCase):
    def setUp(self) -> None:
        self.hash_join = rh.RelHint("HASH_JOIN")
        self.index = rh.RelHint("INDEX", list_options=["r_pkey"])
        self.no_pushdown = rh.RelHint("NO_PUSHDOWN")
        self.set_var = rh.RelHint("SET_VAR", kv_options={"parallelism": "4"})
        self.all_hints = [self.set_var, self.hash_join, self.index, self.no_pushdown]

    def test_filters_hints_by_node(self) -> None:
        table = _make_table()
        plan = sample_plans.sample_query_plan()
        applicable = {node.node_type: table.apply(self.all_hints, node) for node in plan.dfs_walk()}

        self.assertEqual(applicable["EquiJoin"], [self.hash_join])
        self.assertEqual(applicable["IndexScan"], [self.index])
        self.assertEqual(applicable["TableScan"], [self.index])
        self.assertEqual(applicable["Filter"], [self.no_pushdown])
        self.assertEqual(applicable["Project"], [self.no_pushdown])
        self.assertEqual(applicable["Sort"], [])
        self.assertEqual(applicable["Aggregate"], [])

    def test_query_hints_are_never_applicable(self) -> None:
        table = _make_table()
        for node in sample_plans.one_node_per_kind().values():
            self.assertNotIn(self.set_var, table.apply([self.set_var], node), str(node))

    def test_preserves_hint_order(self) -> None:
        table = (HintStrategyTable.builder()
                 .hint_strategy("A", HintPredicates.JOIN)
                 .hint_strategy("B", HintPredicates.JOIN)
                 .build())
        join = relalg.Join(sample_plans.scan("R"), sample_plans.scan("S"), "R.a = S.b")
        hints = [rh.RelHint("B"), rh.RelHint("A", list_options=["x"]), rh.RelHint("A")]
        self.assertEqual(table.apply(hints, join), hints)

    def test_unknown_hints_are_not_applicable(self) -> None:
        table = _make_table()
        join = relalg.Join(sample_plans.scan("R"), sample_plans.scan("S"), "R.a = S.b")
        self.assertEqual(table.apply([rh.RelHint("MERGE_JOIN")], join), [])
        self.assertEqual(HintStrategyTable.EMPTY.apply([self.hash_join], join), [])

    def test_lookup_is_case_insensitive(self) -> None:
        table = _make_table()
        self.assertEqual(table.lookup("hash_join"), table.lookup("HASH_JOIN"))
        self.assertIn(rh.RelHint("Hash_Join"), table)
        self.assertIn("index", table)
        self.assertNotIn("merge_join", table)

        join = relalg.Join(sample_plans.scan("R"), sample_plans.scan("S"), "R.a = S.b")
        lowercase_hint = rh.RelHint("hash_join")
        self.assertEqual(table.apply([lowercase_hint], join), [lowercase_hint])

    def test_duplicate_registration(self) -> None:
        builder = (HintStrategyTable.builder()
                   .hint_strategy("HASH_JOIN", HintPredicates.JOIN)
                   .hint_strategy("hash_join", HintPredicates.TABLE_SCAN))
        with self.assertRaises(ValueError):
            builder.build()

    def test_missing_predicate(self) -> None:
        with self.assertRaises(ValueError):
            HintStrategyTable.builder().hint_strategy("HASH_JOIN", None)

    def test_builder_cannot_be_reused(self) -> None:
        builder = HintStrategyTable.builder().hint_strategy("HASH_JOIN", HintPredicates.JOIN)
        builder.build()
        with self.assertRaises(rh.util.StateError) as error:
            builder.hint_strategy("INDEX", HintPredicates.TABLE_SCAN)
        self.assertIs(error.exception.target, builder)

    def test_strategies_keep_registration_order(self) -> None:
        table = _make_table()
        self.assertEqual([strategy.hint_name for strategy in table.strategies()],
                         ["HASH_JOIN", "INDEX", "NO_PUSHDOWN", "SET_VAR"])
        self.assertEqual(len(table), 4)
        self.assertEqual(len(HintStrategyTable.EMPTY), 0)

    def test_register_strategy_object(self) -> None:
        strategy = rh.HintStrategy("LEADING", HintPredicates.JOIN)
        table = HintStrategyTable.builder().hint_strategy("ORDERED", strategy).build()
        self.assertEqual(table.lookup("ORDERED"), rh.HintStrategy("ORDERED", HintPredicates.JOIN))
        self.assertIsNone(table.lookup("LEADING"))


class UnknownHintHandlingTests(unittest.TestCase):
    def test_warn_by_default(self) -> None:
        table = _make_table()
        self.assertEqual(table.on_unknown_hint, "warn")
        with self.assertWarns(UserWarning):
            self.assertFalse(table.validate_hint(rh.RelHint("MERGE_JOIN")))

    def test_raise(self) -> None:
        table = _make_table(on_unknown_hint="raise")
        with self.assertRaises(rh.UnknownHintError) as ctx:
            table.validate_hint(rh.RelHint("MERGE_JOIN"))
        self.assertEqual(ctx.exception.hint, rh.RelHint("MERGE_JOIN"))
        self.assertIsInstance(ctx.exception, ValueError)

    def test_ignore(self) -> None:
        table = _make_table(on_unknown_hint="ignore")
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            self.assertFalse(table.validate_hint(rh.RelHint("MERGE_JOIN")))

    def test_known_hints_are_valid(self) -> None:
        table = _make_table(on_unknown_hint="raise")
        self.assertTrue(table.validate_hint(rh.RelHint("hash_join")))

    def test_unsupported_handling(self) -> None:
        with self.assertRaises(ValueError):
            HintStrategyTable(on_unknown_hint="fail")


class StrategyTableLoggingTests(unittest.TestCase):
    def test_verbose_logging(self) -> None:
        log_output = io.StringIO()
        with redirect_stderr(log_output):
            table = _make_table(verbose=True)
            table.apply([rh.RelHint("HASH_JOIN")],
                        relalg.Join(sample_plans.scan("R"), sample_plans.scan("S"), "R.a = S.b"))

        log_lines = log_output.getvalue().splitlines()
        self.assertEqual(len(log_lines), 5)
        self.assertIn("Registered hint strategy HASH_JOIN: JOIN", log_lines[0])
        self.assertIn("Applicable hints for Join: [HASH_JOIN inheritPath:[] options:[]]", log_lines[-1])

    def test_quiet_by_default(self) -> None:
        log_output = io.StringIO()
        with redirect_stderr(log_output):
            table = _make_table()
            table.apply([rh.RelHint("HASH_JOIN")], sample_plans.scan("R"))
        self.assertEqual(log_output.getvalue(), "")


class StrategyExportTests(unittest.TestCase):
    def test_json_export(self) -> None:
        table = HintStrategyTable.builder().hint_strategy("HASH_JOIN", HintPredicates.JOIN).build()
        expected = ('{"on_unknown_hint": "warn", "strategies": [{"hint_name": "HASH_JOIN", '
                    '"predicate": {"predicate": "node_category", "category": "JOIN"}}]}')
        self.assertEqual(rh.util.to_json(table), expected)


if __name__ == "__main__":
    unittest.main()
