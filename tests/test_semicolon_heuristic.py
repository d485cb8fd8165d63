import unittest

import lazyc


class ShouldTerminateTests(unittest.TestCase):
    def test_plain_statement_needs_terminator(self) -> None:
        self.assertTrue(lazyc.should_terminate("int x = 5"))
        self.assertTrue(lazyc.should_terminate('    printf("hi")'))
        self.assertTrue(lazyc.should_terminate("return 0"))

    def test_blank_and_terminated_lines(self) -> None:
        self.assertFalse(lazyc.should_terminate(""))
        self.assertFalse(lazyc.should_terminate("   \t"))
        self.assertFalse(lazyc.should_terminate("int x = 5;"))
        self.assertFalse(lazyc.should_terminate("int x = 5;   "))

    def test_block_openers_closers_and_labels(self) -> None:
        self.assertFalse(lazyc.should_terminate("int main() {"))
        self.assertFalse(lazyc.should_terminate("}"))
        self.assertFalse(lazyc.should_terminate("    } while (x)  }"))
        self.assertFalse(lazyc.should_terminate("int a[] = ["))
        self.assertFalse(lazyc.should_terminate("label:"))

    def test_preprocessor_and_comments(self) -> None:
        self.assertFalse(lazyc.should_terminate("#include <stdio.h>"))
        self.assertFalse(lazyc.should_terminate("#define N 10"))
        self.assertFalse(lazyc.should_terminate("// just a note"))
        self.assertFalse(lazyc.should_terminate("/* block"))
        self.assertFalse(lazyc.should_terminate(" * continued"))
        self.assertFalse(lazyc.should_terminate("end of block */"))

    def test_control_headers(self) -> None:
        self.assertFalse(lazyc.should_terminate("if (x > 0)"))
        self.assertFalse(lazyc.should_terminate("while (i < n)"))
        self.assertFalse(lazyc.should_terminate("for (i = 0; i < n; i++)"))
        self.assertFalse(lazyc.should_terminate("switch (c)"))
        self.assertFalse(lazyc.should_terminate("else if (y)"))

    def test_function_headers(self) -> None:
        self.assertFalse(lazyc.should_terminate("int add(int a, int b)"))
        self.assertFalse(lazyc.should_terminate("static void helper(void)"))
        self.assertFalse(lazyc.should_terminate("unsigned char *buf_get(int n)"))

    def test_type_declaration_openers(self) -> None:
        self.assertFalse(lazyc.should_terminate("struct point"))
        self.assertFalse(lazyc.should_terminate("typedef unsigned int uint"))
        self.assertFalse(lazyc.should_terminate("enum color"))

    def test_case_labels(self) -> None:
        self.assertFalse(lazyc.should_terminate("case 1:"))
        self.assertFalse(lazyc.should_terminate("    default :"))


class TerminateLineEditTests(unittest.TestCase):
    def test_edit_appends_at_line_end(self) -> None:
        lines = ["int main() {", "    int x = 5", "}"]
        edit = lazyc.terminate_line_edit(lines, 1)
        self.assertEqual(edit, lazyc.EditOperation(lazyc.Position(1, 13), ";"))
        self.assertEqual(lazyc.apply_edits(lines, [edit])[1], "    int x = 5;")

    def test_no_edit_when_not_needed(self) -> None:
        self.assertIsNone(lazyc.terminate_line_edit(["int main() {"], 0))
        self.assertIsNone(lazyc.terminate_line_edit(["x = 1;"], 0))

    def test_out_of_range_line(self) -> None:
        self.assertIsNone(lazyc.terminate_line_edit(["x = 1"], 3))
        self.assertIsNone(lazyc.terminate_line_edit(["x = 1"], -1))


class ApplyEditsTests(unittest.TestCase):
    def test_edits_use_original_positions(self) -> None:
        lines = ["a", "b"]
        edits = [
            lazyc.EditOperation(lazyc.Position(0, 1), ";"),
            lazyc.EditOperation(lazyc.Position(1, 1), ";"),
        ]
        self.assertEqual(lazyc.apply_edits(lines, edits), ["a;", "b;"])

    def test_same_position_keeps_order(self) -> None:
        edits = [
            lazyc.EditOperation(lazyc.Position(0, 0), "x"),
            lazyc.EditOperation(lazyc.Position(0, 0), "y"),
        ]
        self.assertEqual(lazyc.apply_edits("z", edits), ["xyz"])

    def test_past_end_appends_on_new_line(self) -> None:
        edit = lazyc.EditOperation(lazyc.Position(10, 0), "tail")
        self.assertEqual(lazyc.apply_edits("a", [edit]), ["a", "tail"])

    def test_column_is_clamped(self) -> None:
        edit = lazyc.EditOperation(lazyc.Position(0, 99), ";")
        self.assertEqual(lazyc.apply_edits("ab", [edit]), ["ab;"])


if __name__ == "__main__":
    unittest.main()
