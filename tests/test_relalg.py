"""Tests for the plan-node model and the classification of plan nodes by their operator capabilities."""
from __future__ import annotations

import unittest

import relhint as rh
from relhint import relalg
from tests import sample_plans


class OperatorKindTests(unittest.TestCase):
    def test_each_kind_has_plain_operator(self) -> None:
        nodes = sample_plans.one_node_per_kind()
        self.assertEqual(set(nodes.keys()), set(relalg.OperatorKind))
        for kind, node in nodes.items():
            self.assertEqual(node.kind, kind)

    def test_specialized_operators_inherit_kind(self) -> None:
        index_scan = relalg.IndexScan("R", "r_pkey")
        self.assertEqual(index_scan.kind, relalg.OperatorKind.TableScan)
        self.assertEqual(index_scan.node_type, "IndexScan")

        equi_join = relalg.EquiJoin(sample_plans.scan("R"), sample_plans.scan("S"), ["R.a", "R.b"], ["S.a", "S.b"])
        self.assertEqual(equi_join.kind, relalg.OperatorKind.Join)
        self.assertEqual(equi_join.condition, "R.a = S.a AND R.b = S.b")


class CapabilityTests(unittest.TestCase):
    def test_any_node_covers_all_kinds(self) -> None:
        for node in sample_plans.one_node_per_kind().values():
            self.assertTrue(rh.belongs_to(node, relalg.AnyNode), f"{node} should belong to AnyNode")

    def test_set_op_groups_set_operations(self) -> None:
        set_operations = {relalg.OperatorKind.Union, relalg.OperatorKind.Intersect, relalg.OperatorKind.Minus}
        for kind, node in sample_plans.one_node_per_kind().items():
            self.assertEqual(rh.belongs_to(node, relalg.SetOpCapability), kind in set_operations, str(node))

    def test_single_kind_capabilities(self) -> None:
        nodes = sample_plans.one_node_per_kind()
        self.assertTrue(rh.belongs_to(nodes[relalg.OperatorKind.Join], relalg.JoinCapability))
        self.assertFalse(rh.belongs_to(nodes[relalg.OperatorKind.Correlate], relalg.JoinCapability))
        self.assertFalse(rh.belongs_to(nodes[relalg.OperatorKind.Filter], relalg.CalcCapability))
        self.assertFalse(rh.belongs_to(nodes[relalg.OperatorKind.TableFunctionScan], relalg.TableScanCapability))

    def test_specialized_operators_keep_capabilities(self) -> None:
        self.assertTrue(rh.belongs_to(relalg.IndexScan("R", "r_pkey"), relalg.TableScanCapability))
        equi_join = relalg.EquiJoin(sample_plans.scan("R"), sample_plans.scan("S"), ["R.a"], ["S.b"])
        self.assertTrue(rh.belongs_to(equi_join, relalg.JoinCapability))

    def test_empty_capability_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            relalg.OperatorCapability("Nothing", frozenset())


class RelNodeTests(unittest.TestCase):
    def test_dfs_walk(self) -> None:
        plan = sample_plans.sample_query_plan()
        node_types = [node.node_type for node in plan.dfs_walk()]
        self.assertEqual(node_types, ["Sort", "Project", "Aggregate", "EquiJoin", "Filter", "IndexScan", "TableScan"])

    def test_with_hints_creates_copy(self) -> None:
        join = relalg.Join(sample_plans.scan("R"), sample_plans.scan("S"), "R.a = S.b")
        hint = rh.RelHint("HASH_JOIN")

        hinted_join = join.with_hints([hint])

        self.assertEqual(hinted_join.hints, (hint,))
        self.assertEqual(join.hints, ())
        self.assertIsInstance(hinted_join, relalg.Join)
        self.assertEqual(hinted_join, join, "Hints should not be part of the node identity")
        self.assertEqual(hash(hinted_join), hash(join))
        self.assertIs(hinted_join.left_input, join.left_input)

    def test_node_equality(self) -> None:
        self.assertEqual(relalg.Filter(sample_plans.scan("R"), "R.a = 1"), relalg.Filter(sample_plans.scan("R"), "R.a = 1"))
        self.assertNotEqual(relalg.Filter(sample_plans.scan("R"), "R.a = 1"),
                            relalg.Filter(sample_plans.scan("S"), "R.a = 1"))
        self.assertNotEqual(relalg.TableScan("R"), relalg.IndexScan("R", "r_pkey"))
        self.assertNotEqual(relalg.Union([sample_plans.scan("R"), sample_plans.scan("S")]),
                            relalg.Intersect([sample_plans.scan("R"), sample_plans.scan("S")]))

    def test_inspect(self) -> None:
        plan = relalg.Filter(relalg.TableScan("R", hints=[rh.RelHint("INDEX", list_options=["r_pkey"])]), "R.a > 1")
        expected = "Filter(R.a > 1)\n  <- TableScan(R) [INDEX inheritPath:[] options:[r_pkey]]"
        self.assertEqual(plan.inspect(), expected)

    def test_set_op_requires_two_inputs(self) -> None:
        with self.assertRaises(ValueError):
            relalg.Union([sample_plans.scan("R")])

    def test_equi_join_keys_must_match(self) -> None:
        with self.assertRaises(ValueError):
            relalg.EquiJoin(sample_plans.scan("R"), sample_plans.scan("S"), ["R.a", "R.b"], ["S.a"])

    def test_abstract_set_op_cannot_be_instantiated(self) -> None:
        with self.assertRaises(TypeError):
            relalg.SetOp([sample_plans.scan("R"), sample_plans.scan("S")])

    def test_node_without_kind_cannot_be_instantiated(self) -> None:
        class Untagged(relalg.RelNode):
            def _payload(self) -> tuple:
                return ()

        with self.assertRaises(TypeError):
            Untagged()

    def test_is_leaf(self) -> None:
        r, s = sample_plans.scan("R"), sample_plans.scan("S")
        self.assertTrue(r.is_leaf())
        self.assertTrue(relalg.Values([(1, "a")]).is_leaf())
        self.assertFalse(relalg.Filter(r, "R.a = 1").is_leaf())
        self.assertFalse(relalg.Join(r, s, "R.a = S.b").is_leaf())


if __name__ == "__main__":
    unittest.main()
