import contextlib
import io
import os
import tempfile
import unittest
from unittest import mock

import lazyc


class ConfigLoadingTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def write(self, text: str) -> str:
        path = os.path.join(self._tmp.name, "lazyc.yaml")
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(text)
        return path

    def test_values_are_loaded(self) -> None:
        path = self.write(
            "language_id: c\n"
            "features:\n"
            "  semicolons: false\n"
            "disabled_checks: [allocation-reminder]\n"
            "fopen_lookahead: 6\n"
            "delays:\n"
            "  prototype_debounce: 0.75\n"
            "unsafe_functions:\n"
            "  strtok: strtok_r\n"
        )
        config = lazyc.load_config_from_yaml(path)

        self.assertFalse(config.enabled("semicolons"))
        self.assertTrue(config.enabled("headers"))
        self.assertEqual(config.disabled_checks, {lazyc.CHECK_ALLOCATION_REMINDER})
        self.assertEqual(config.fopen_lookahead, 6)
        self.assertEqual(config.delay("prototype_debounce"), 0.75)
        self.assertEqual(config.delay("semicolon"), 0.01)
        self.assertEqual(config.unsafe_functions["strtok"], "strtok_r")
        self.assertEqual(config.unsafe_functions["gets"], "fgets")

    def test_config_drives_scan(self) -> None:
        path = self.write("disabled_checks: [allocation-reminder]\n")
        config = lazyc.load_config_from_yaml(path)
        self.assertEqual(config.scan("p = malloc(1);"), [])

    def test_empty_document_gives_defaults(self) -> None:
        config = lazyc.load_config_from_yaml(self.write(""))
        self.assertEqual(config, lazyc.LazyCConfig())

    def test_unknown_keys_are_reported(self) -> None:
        path = self.write("colour: blue\nfeatures:\n  linting: true\n")
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            config = lazyc.load_config_from_yaml(path)
        self.assertEqual(config, lazyc.LazyCConfig())
        self.assertIn("colour", stderr.getvalue())
        self.assertIn("linting", stderr.getvalue())

    def test_missing_file_falls_back_to_defaults(self) -> None:
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            config = lazyc.load_config_from_yaml(os.path.join(self._tmp.name, "absent.yaml"))
        self.assertEqual(config, lazyc.LazyCConfig())
        self.assertIn("[lazyc] Config file not found", stderr.getvalue())

    def test_malformed_yaml_raises(self) -> None:
        path = self.write("features: [unclosed\n")
        with self.assertRaises(lazyc.ConfigError):
            lazyc.load_config_from_yaml(path)

    def test_bad_values_raise(self) -> None:
        for text in (
            "- just\n- a list\n",
            "fopen_lookahead: -1\n",
            "fopen_lookahead: true\n",
            "features:\n  headers: maybe\n",
            "delays:\n  semicolon: soon\n",
        ):
            with self.subTest(text=text):
                with self.assertRaises(lazyc.ConfigError):
                    lazyc.load_config_from_yaml(self.write(text))

    def test_environment_fallback(self) -> None:
        path = self.write("fopen_lookahead: 2\n")
        with mock.patch.dict(os.environ, {"LAZYC_CONFIG": path}):
            self.assertEqual(lazyc.resolve_config().fopen_lookahead, 2)
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(lazyc.resolve_config(), lazyc.LazyCConfig())


if __name__ == "__main__":
    unittest.main()
