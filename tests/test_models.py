import unittest

from chemopt.errors import SemanticConfigError
from chemopt.models import (
    Cost,
    Program,
    Reaction,
    ReactionsGoal,
    Symbol,
    Target,
    Terms,
    UnknownTargetError,
    merge_terms,
)


class TestTerms(unittest.TestCase):
    def setUp(self):
        self.a = Terms.of(A=2, B=1)
        self.b = Terms.of(B=3, C=1)
        self.c = Terms.of(A=1, D=4)

    def test_merge_sums_multiplicities(self):
        merged = merge_terms(self.a, self.b)
        self.assertEqual(merged, Terms.of(A=2, B=4, C=1))

    def test_merge_commutative(self):
        self.assertEqual(merge_terms(self.a, self.b), merge_terms(self.b, self.a))

    def test_merge_associative(self):
        left = merge_terms(merge_terms(self.a, self.b), self.c)
        right = merge_terms(self.a, merge_terms(self.b, self.c))
        self.assertEqual(left, right)

    def test_merge_does_not_touch_operands(self):
        self.a.merge(self.b)
        self.assertEqual(self.a, Terms.of(A=2, B=1))

    def test_order_irrelevant_for_equality(self):
        self.assertEqual(Terms.of(A=1, B=2), Terms.of(B=2, A=1))
        self.assertEqual(hash(Terms.of(A=1, B=2)), hash(Terms.of(B=2, A=1)))

    def test_repeated_symbols_are_summed(self):
        terms = Terms([(Symbol("A"), 1), (Symbol("A"), 2)])
        self.assertEqual(terms[Symbol("A")], 3)

    def test_non_positive_multiplicity_rejected(self):
        with self.assertRaises(ValueError):
            Terms.of(A=0)

    def test_fractional_multiplicity_rejected(self):
        with self.assertRaises(ValueError):
            Terms.of(A=1.5)
        with self.assertRaises(ValueError):
            Terms.of(A=2.0)

    def test_bool_multiplicity_rejected(self):
        with self.assertRaises(ValueError):
            Terms.of(A=True)


class TestReaction(unittest.TestCase):
    def test_zero_cost_rejected(self):
        with self.assertRaises(SemanticConfigError):
            Reaction(Terms.of(A=1), Terms.of(B=1), cost=0)

    def test_negative_cost_rejected(self):
        with self.assertRaises(SemanticConfigError):
            Cost(-3)

    def test_fractional_cost_rejected(self):
        with self.assertRaises(SemanticConfigError):
            Reaction(Terms.of(A=1), Terms.of(B=1), cost=2.5)
        with self.assertRaises(SemanticConfigError):
            Cost(True)

    def test_var_name_is_canonical(self):
        r1 = Reaction(Terms.of(B=1, A=2), Terms.of(D=1, C=3), cost=1)
        r2 = Reaction(Terms.of(A=2, B=1), Terms.of(C=3, D=1), cost=5, label="other")
        self.assertEqual(r1.var_name, "machine_2A_1B_into_3C_1D")
        self.assertEqual(r1.var_name, r2.var_name)

    def test_var_name_replaces_hyphens(self):
        r = Reaction(Terms.of(), Terms([(Symbol("iron-plate"), 1)]))
        self.assertEqual(r.var_name, "machine__into_1iron_plate")

    def test_display_name(self):
        r = Reaction(Terms.of(A=1), Terms.of(B=1))
        self.assertEqual(r.display_name, r.var_name)
        labelled = Reaction(Terms.of(A=1), Terms.of(B=1), label="convert")
        self.assertEqual(labelled.display_name, "convert")

    def test_inputs_and_outputs_not_netted(self):
        r = Reaction(Terms.of(A=1), Terms.of(A=2))
        self.assertEqual(r.inputs[Symbol("A")], 1)
        self.assertEqual(r.outputs[Symbol("A")], 2)


class TestProgram(unittest.TestCase):
    def setUp(self):
        self.program = Program(
            targets={
                "first": Target("first", goal=ReactionsGoal()),
                "second": Target("second"),
            },
            reactions=[
                Reaction(Terms.of(A=2), Terms.of(B=1)),
                Reaction(Terms.of(B=1, D=1), Terms.of(C=1, A=1)),
            ],
        )

    def test_symbols_first_appearance_order(self):
        self.assertEqual([s.name for s in self.program.symbols()], ["A", "B", "D", "C"])

    def test_unknown_target_lists_all_names(self):
        with self.assertRaises(UnknownTargetError) as ctx:
            self.program.target("third")
        self.assertEqual(ctx.exception.name, "third")
        self.assertEqual(ctx.exception.help, "did you mean first or second")

    def test_target_in_time_must_be_positive(self):
        with self.assertRaises(SemanticConfigError):
            Target("t", in_time=0)


if __name__ == "__main__":
    unittest.main()
