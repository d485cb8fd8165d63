import unittest

import lazyc


class DocCommentTests(unittest.TestCase):
    def test_function_with_parameters(self) -> None:
        doc = lazyc.generate_doc_comment("int add(int a, int b) {")
        self.assertEqual(
            doc,
            "/**\n"
            " * @brief Brief description of add\n"
            " *\n"
            " * @param a Description of a\n"
            " * @param b Description of b\n"
            " * @return Description of return value\n"
            " */\n",
        )

    def test_void_function_has_no_return_line(self) -> None:
        doc = lazyc.generate_doc_comment("void reset()")
        self.assertNotIn("@return", doc)
        self.assertNotIn("@param", doc)

    def test_non_declaration(self) -> None:
        self.assertIsNone(lazyc.generate_doc_comment("x = 1;"))


class TemplateTests(unittest.TestCase):
    def test_main_template_at_position(self) -> None:
        edit = lazyc.main_template_edit(lazyc.Position(2, 0))
        self.assertEqual(edit.insert_at, lazyc.Position(2, 0))
        self.assertIn("int main() {", edit.text)
        self.assertIn("// Your code here", edit.text)

    def test_new_file_template_cursor_line_is_blank_body(self) -> None:
        lines = lazyc.new_file_template().split("\n")
        self.assertEqual(lines[0], "#include <stdio.h>")
        self.assertEqual(lines[lazyc.NEW_FILE_CURSOR.line], "\t")


class CompileCommandTests(unittest.TestCase):
    def test_unix_compile(self) -> None:
        cmd = lazyc.build_compile_command("/src/hello.c", windows=False)
        self.assertEqual(
            cmd,
            'clang "/src/hello.c" -o "/src/hello.exe" 2>/dev/null || gcc "/src/hello.c" -o "/src/hello.exe"',
        )

    def test_unix_compile_and_run(self) -> None:
        cmd = lazyc.build_compile_command("/src/hello.c", run=True, windows=False)
        self.assertTrue(cmd.startswith('(clang "/src/hello.c"'))
        self.assertTrue(cmd.endswith(') && "/src/hello.exe"'))

    def test_windows_compile_and_run(self) -> None:
        cmd = lazyc.build_compile_command("hello.c", run=True, windows=True)
        self.assertEqual(
            cmd,
            'clang "hello.c" -o "hello.exe" 2>nul || gcc "hello.c" -o "hello.exe" && "hello.exe"',
        )


if __name__ == "__main__":
    unittest.main()
