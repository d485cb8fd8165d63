import unittest

import lazyc


def checks(diagnostics):
    return [d.check for d in diagnostics]


class UnsafeFunctionTests(unittest.TestCase):
    def test_strcpy_flagged_with_safe_alternative(self) -> None:
        diagnostics = lazyc.scan("strcpy(dst, src);")
        self.assertEqual(len(diagnostics), 1)
        diag = diagnostics[0]
        self.assertEqual(diag.severity, "warning")
        self.assertEqual(diag.check, lazyc.CHECK_UNSAFE_FUNCTION)
        self.assertIn("strncpy", diag.message)
        self.assertEqual(diag.range, lazyc.SourceRange(0, 0, 0, 6))

    def test_commented_lines_are_skipped(self) -> None:
        self.assertEqual(lazyc.scan("// strcpy(dst, src);"), [])
        self.assertEqual(lazyc.scan(" * gets(buf);"), [])
        self.assertEqual(lazyc.scan("x = 1; // gets(buf);"), [])

    def test_name_inside_longer_identifier_still_flagged(self) -> None:
        diagnostics = lazyc.scan("fgets(buf, 10, stdin);")
        self.assertEqual(len(diagnostics), 1)
        self.assertIn("'gets'", diagnostics[0].message)
        self.assertEqual(diagnostics[0].range, lazyc.SourceRange(0, 1, 0, 5))

        diagnostics = lazyc.scan("my_strcpy(a, b);")
        self.assertEqual(len(diagnostics), 1)
        self.assertIn("strncpy", diagnostics[0].message)
        self.assertEqual(diagnostics[0].range, lazyc.SourceRange(0, 3, 0, 9))

    def test_range_points_at_occurrence(self) -> None:
        diagnostics = lazyc.check_unsafe_functions("    gets(buf);", 3)
        self.assertEqual(diagnostics[0].range, lazyc.SourceRange(3, 4, 3, 8))
        self.assertEqual(
            diagnostics[0].message,
            "Unsafe function 'gets'. Consider using 'fgets' instead.",
        )

    def test_custom_unsafe_table(self) -> None:
        diagnostics = lazyc.check_unsafe_functions("strtok(s, \",\");", 0, {"strtok": "strtok_r"})
        self.assertEqual(len(diagnostics), 1)
        self.assertIn("strtok_r", diagnostics[0].message)


class AssignmentInConditionalTests(unittest.TestCase):
    def test_assignment_flagged(self) -> None:
        diagnostics = lazyc.scan("if (x = 5) { }")
        self.assertEqual(checks(diagnostics), [lazyc.CHECK_ASSIGNMENT_IN_CONDITIONAL])
        self.assertEqual(diagnostics[0].severity, "warning")
        self.assertEqual(diagnostics[0].range.col_start, 0)

    def test_comparisons_not_flagged(self) -> None:
        for line in ("if (x == 5) { }", "if (x != 5)", "if (x <= 5)", "if (x >= 5)"):
            with self.subTest(line=line):
                self.assertEqual(lazyc.scan(line), [])

    def test_comment_text_ignored(self) -> None:
        self.assertEqual(lazyc.scan("x++; // if (x = 5)"), [])


class AllocationReminderTests(unittest.TestCase):
    def test_each_allocation_gets_reminder(self) -> None:
        diagnostics = lazyc.scan("p = malloc(10);\nq = calloc(1, 2);\nr = realloc(p, 20);")
        self.assertEqual(checks(diagnostics), [lazyc.CHECK_ALLOCATION_REMINDER] * 3)
        self.assertTrue(all(d.severity == "information" for d in diagnostics))
        self.assertEqual([d.range.line_start for d in diagnostics], [0, 1, 2])

    def test_allocation_range_runs_to_line_end(self) -> None:
        diag = lazyc.check_memory_allocation("p = malloc(10);", 0)[0]
        self.assertEqual(diag.range, lazyc.SourceRange(0, 4, 0, 15))


class FopenNullCheckTests(unittest.TestCase):
    def test_unchecked_fopen_flagged(self) -> None:
        diagnostics = lazyc.scan('fopen("f","r");')
        self.assertEqual(checks(diagnostics), [lazyc.CHECK_FOPEN_NULL_CHECK])
        self.assertEqual(diagnostics[0].severity, "information")

    def test_null_comparison_suppresses(self) -> None:
        for check in ("if (fp == NULL) return 1;", "if (NULL != fp) {", "assert(fp != NULL);"):
            with self.subTest(check=check):
                lines = ['FILE *fp = fopen("f", "r");', check]
                self.assertEqual(lazyc.scan(lines), [])

    def test_perror_suppresses(self) -> None:
        self.assertEqual(lazyc.scan(['fp = fopen("f", "r");', 'perror("open");']), [])

    def test_if_without_null_suppresses(self) -> None:
        self.assertEqual(lazyc.scan(['fp = fopen("f", "r");', "if (!fp) return 1;"]), [])

    def test_bare_null_without_comparison_still_flagged(self) -> None:
        lines = ['fp = fopen("f", "r");', "assert(fp); x = NULL;"]
        self.assertEqual(checks(lazyc.scan(lines)), [lazyc.CHECK_FOPEN_NULL_CHECK])

    def test_lookahead_is_limited(self) -> None:
        lines = ['fp = fopen("f", "r");', "a();", "b();", "c();", "d();", "if (fp == NULL) return 1;"]
        self.assertEqual(checks(lazyc.scan(lines)), [lazyc.CHECK_FOPEN_NULL_CHECK])
        self.assertEqual(lazyc.scan(lines, fopen_lookahead=5), [])


class ScanTests(unittest.TestCase):
    def test_independent_checks_on_one_line(self) -> None:
        diagnostics = lazyc.scan("if (p = malloc(10)) strcpy(p, s);")
        self.assertEqual(
            checks(diagnostics),
            [
                lazyc.CHECK_UNSAFE_FUNCTION,
                lazyc.CHECK_ASSIGNMENT_IN_CONDITIONAL,
                lazyc.CHECK_ALLOCATION_REMINDER,
            ],
        )

    def test_disabled_checks(self) -> None:
        diagnostics = lazyc.scan(
            "p = malloc(10);\nstrcpy(p, s);",
            disabled_checks=[lazyc.CHECK_ALLOCATION_REMINDER],
        )
        self.assertEqual(checks(diagnostics), [lazyc.CHECK_UNSAFE_FUNCTION])

    def test_clean_buffer(self) -> None:
        self.assertEqual(lazyc.scan("int main() {\n    return 0;\n}\n"), [])


if __name__ == "__main__":
    unittest.main()
