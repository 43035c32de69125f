import os
import tempfile
import unittest

from chemopt.errors import FileIOError, ParseError, ParseErrorKind, SemanticConfigError
from chemopt.models import Cost, ReactionsGoal, ResourcesGoal, Symbol, Terms
from chemopt.parser import parse, parse_file, tokenize

SOURCE = """\
# two step network
"make b": 2 A -> B;
B -> C cost 2; // slow

target T {
    input A;
    constraint C;
    in_time 10;
    goal reactions;
}

target cheap-c {
    input A, B;
    constraint 2 C, 1 C + D;
    goal resources 3 A;
}
"""


class TestParse(unittest.TestCase):
    def setUp(self):
        self.program = parse(SOURCE, "net.chem")

    def test_reactions(self):
        first, second = self.program.reactions
        self.assertEqual(first.label, "make b")
        self.assertEqual(first.inputs, Terms.of(A=2))
        self.assertEqual(first.outputs, Terms.of(B=1))
        self.assertEqual(first.cost, Cost(1))
        self.assertIsNone(second.label)
        self.assertEqual(second.cost, Cost(2))

    def test_target(self):
        target = self.program.target("T")
        self.assertEqual(target.inputs, (Symbol("A"),))
        self.assertEqual(target.constraints, Terms.of(C=1))
        self.assertEqual(target.in_time, 10)
        self.assertEqual(target.goal, ReactionsGoal())
        self.assertTrue(SOURCE[target.span.start:target.span.end].startswith("target T {"))
        self.assertTrue(SOURCE[target.span.start:target.span.end].endswith("}"))

    def test_items_accumulate(self):
        target = self.program.target("cheap-c")
        self.assertEqual(target.inputs, (Symbol("A"), Symbol("B")))
        self.assertEqual(target.constraints, Terms.of(C=3, D=1))
        self.assertEqual(target.in_time, 1)
        self.assertEqual(target.goal, ResourcesGoal(Terms.of(A=3)))

    def test_empty_sides(self):
        program = parse("-> ore cost 4;\nwaste -> ;")
        source, sink = program.reactions
        self.assertEqual(len(source.inputs), 0)
        self.assertEqual(source.outputs, Terms.of(ore=1))
        self.assertEqual(len(sink.outputs), 0)

    def test_target_without_goal_parses(self):
        program = parse("A -> B;\ntarget T { constraint B; }")
        self.assertIsNone(program.target("T").goal)

    def test_hyphenated_names_do_not_swallow_arrow(self):
        tokens = tokenize("iron-ore->iron-plate")
        self.assertEqual([t.text for t in tokens[:-1]], ["iron-ore", "->", "iron-plate"])


class TestParseErrors(unittest.TestCase):
    def assertParseError(self, source, kind):
        with self.assertRaises(ParseError) as ctx:
            parse(source, "bad.chem")
        self.assertEqual(ctx.exception.kind, kind)
        self.assertEqual(ctx.exception.source, source)
        self.assertEqual(ctx.exception.source_name, "bad.chem")
        return ctx.exception

    def test_invalid_token(self):
        error = self.assertParseError("A -> B $;", ParseErrorKind.INVALID_TOKEN)
        self.assertEqual(error.labels[0].span.start, 7)

    def test_unexpected_eof(self):
        error = self.assertParseError("A -> B", ParseErrorKind.UNEXPECTED_EOF)
        self.assertEqual(error.labels[0].message, "expected '+','cost' or ';'")

    def test_unrecognized_token(self):
        error = self.assertParseError("A B;", ParseErrorKind.UNRECOGNIZED_TOKEN)
        self.assertEqual(error.message, "invalid token 'B'")
        self.assertEqual(error.labels[0].message, "expected '+' or '->'")

    def test_duplicate_goal(self):
        self.assertParseError("target T { goal reactions; goal reactions; }", ParseErrorKind.EXTRA_TOKEN)

    def test_duplicate_in_time(self):
        self.assertParseError("target T { in_time 2; in_time 3; }", ParseErrorKind.EXTRA_TOKEN)

    def test_duplicate_target(self):
        error = self.assertParseError("target T { }\ntarget T { }", ParseErrorKind.USER)
        self.assertEqual(len(error.labels), 2)

    def test_zero_multiplicity(self):
        self.assertParseError("0 A -> B;", ParseErrorKind.USER)

    def test_unterminated_label(self):
        self.assertParseError('"oops: A -> B;', ParseErrorKind.USER)

    def test_unknown_target_item(self):
        error = self.assertParseError("target T { output A; }", ParseErrorKind.UNRECOGNIZED_TOKEN)
        self.assertIn("'goal'", error.labels[0].message)

    def test_zero_cost_is_semantic_error(self):
        source = "A -> B;\nB -> C cost 0;\n"
        with self.assertRaises(SemanticConfigError) as ctx:
            parse(source, "bad.chem")
        self.assertNotIsInstance(ctx.exception, ParseError)
        span = ctx.exception.labels[0].span
        self.assertEqual(source[span.start:span.end], "0")


class TestParseFile(unittest.TestCase):
    def test_roundtrip_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "net.chem")
            with open(path, "w") as f:
                f.write(SOURCE)
            program, source = parse_file(path)
        self.assertEqual(source, SOURCE)
        self.assertEqual(set(program.targets), {"T", "cheap-c"})

    def test_missing_file(self):
        with self.assertRaises(FileIOError) as ctx:
            parse_file("/nonexistent/net.chem")
        self.assertEqual(ctx.exception.labels[0].message, "while reading this file")
        self.assertEqual(ctx.exception.source, "/nonexistent/net.chem")


if __name__ == "__main__":
    unittest.main()
