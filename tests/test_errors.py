import unittest

from graderkit.core.errors import (
    ErrorKind,
    PluginCodeError,
    PluginDataError,
    PluginError,
    PluginUseError,
    classify,
    error_for_kind,
    failure_message,
)
from graderkit.sandbox.outcome import ExecOutcome
from graderkit.utils.text import indent, indent_error, iter_causes, message_trace


def _raise_chain() -> Exception:
    try:
        try:
            raise KeyError("inner")
        except KeyError as exc:
            raise RuntimeError("outer") from exc
    except RuntimeError as exc:
        return exc


class TextHelperTests(unittest.TestCase):
    def test_indent_terminates_every_line(self) -> None:
        self.assertEqual(indent("a\nb"), "   a\n   b\n")
        self.assertEqual(indent("a", 2, "-"), "--a\n")
        self.assertEqual(indent(""), "")

    def test_indent_error_puts_details_below_message(self) -> None:
        self.assertEqual(indent_error("Failed", "why\nmore"), "Failed\n   why\n   more\n")

    def test_message_trace_follows_causes(self) -> None:
        exc = _raise_chain()
        self.assertEqual([type(link) for link in iter_causes(exc)], [RuntimeError, KeyError])
        self.assertEqual(message_trace(exc), "outer\n'inner'\n")
        detailed = message_trace(exc, detailed=True).splitlines()
        self.assertTrue(detailed[0].startswith("outer (RuntimeError @ "))
        self.assertIn("test_errors.py:", detailed[0])
        self.assertTrue(detailed[1].startswith("'inner' (KeyError @ "))

    def test_message_trace_uses_type_name_for_empty_messages(self) -> None:
        self.assertEqual(message_trace(ValueError()), "ValueError\n")


class ErrorTaxonomyTests(unittest.TestCase):
    def test_kinds_and_classification(self) -> None:
        self.assertIs(PluginUseError("x").kind, ErrorKind.USE)
        self.assertIs(PluginDataError("x").kind, ErrorKind.DATA)
        self.assertIs(PluginCodeError("x").kind, ErrorKind.CODE)
        self.assertIs(classify(OSError("disk")), ErrorKind.INFRASTRUCTURE)
        self.assertIsInstance(error_for_kind(ErrorKind.DATA, "m"), PluginDataError)
        self.assertIs(type(error_for_kind(ErrorKind.INFRASTRUCTURE, "m")), PluginError)

    def test_plugin_error_message_is_verbatim(self) -> None:
        self.assertEqual(failure_message(PluginUseError("Data file argument missing")), "Data file argument missing")

    def test_unexpected_error_names_type_and_origin(self) -> None:
        try:
            raise OSError("disk full")
        except OSError as exc:
            message = failure_message(exc)
        self.assertTrue(message.startswith("Unexpected OSError: disk full @ "))
        self.assertIn("test_errors.py:", message)
        self.assertEqual(len(message.splitlines()), 1)

    def test_verbose_mode_appends_cause_chain(self) -> None:
        message = failure_message(_raise_chain(), verbose=True)
        lines = message.splitlines()
        self.assertTrue(lines[0].startswith("Unexpected RuntimeError: outer @ "))
        self.assertTrue(any(line.startswith("   'inner' (KeyError @ ") for line in lines[1:]))

    def test_outcome_unwrap_raises_matching_error(self) -> None:
        self.assertEqual(ExecOutcome.success(5).unwrap(), 5)
        failed = ExecOutcome.failure(ErrorKind.CODE, "wired wrong", origin="plugin.py:3")
        self.assertFalse(failed.ok)
        with self.assertRaises(PluginCodeError) as ctx:
            failed.unwrap()
        self.assertEqual(str(ctx.exception), "wired wrong")
