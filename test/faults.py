# python
"""
Faults module tests (codes, replacement, triggering and rich rendering).

Scope
- FaultCode numbering and normalization.
- CommandException / CommandWarning option handling and __replace__.
- trigger(): raise/warn outside shell mode, print (and exit for errors) in shell mode.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from cacao import faults
from cacao.faults import (
    FaultCode,
    CommandException,
    UnknownOptionError,
    MissingArgumentsError,
    AmbiguousCommandWarning,
    trigger,
)


def capture():
    return Console(file=io.StringIO(), width=120, color_system=None)


class TestFaultCode(TestCase):

    def testCodesAreGroupedByDomain(self):
        self.assertEqual(FaultCode.MALFORMED_OPTION, 10001)
        self.assertEqual(FaultCode.UNKNOWN_OPTION, 10101)
        self.assertEqual(FaultCode.MISSING_ARGUMENTS, 10201)
        self.assertEqual(FaultCode.AMBIGUOUS_COMMAND, 12001)

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "10101")


class TestFaults(TestCase):

    def testMessageAndOptions(self):
        error = UnknownOptionError("unknown option '--bogus'", code=FaultCode.UNKNOWN_OPTION, input="--bogus")
        self.assertIsInstance(error, CommandException)
        self.assertEqual(str(error), "unknown option '--bogus'")
        self.assertEqual(error.options["input"], "--bogus")

    def testOptionsAreReadOnly(self):
        error = UnknownOptionError("x", code=FaultCode.UNKNOWN_OPTION)
        with self.assertRaises(TypeError):
            error.options["code"] = 0

    def testReplaceMergesOptions(self):
        error = MissingArgumentsError("missing", code=FaultCode.MISSING_ARGUMENTS)
        replaced = error.__replace__(prog="fs")
        self.assertIsInstance(replaced, MissingArgumentsError)
        self.assertEqual(replaced.options["prog"], "fs")
        self.assertEqual(replaced.options["code"], FaultCode.MISSING_ARGUMENTS)
        self.assertNotIn("prog", error.options)


class TestTrigger(TestCase):

    def testTriggerRaisesOutsideShell(self):
        with self.assertRaises(UnknownOptionError) as caught:
            trigger(UnknownOptionError("boom"), prog="fs")
        self.assertEqual(caught.exception.options["prog"], "fs")

    def testTriggerPrintsAndExitsInShell(self):
        console = capture()
        error = UnknownOptionError(
            "unknown option '--bogus'",
            title="unknown option",
            code=FaultCode.UNKNOWN_OPTION,
            hint="run with --help",
        )
        with mock.patch.object(faults, "console", console):
            with self.assertRaises(SystemExit) as caught:
                trigger(error, prog="fs", shell=True, colorful=False)
        self.assertEqual(caught.exception.code, 1)
        output = console.file.getvalue()
        self.assertIn("fs", output)
        self.assertIn("10101", output)
        self.assertIn("Unknown Option", output)
        self.assertIn("unknown option '--bogus'", output)
        self.assertIn("run with --help", output)

    def testTriggerWarnsOutsideShell(self):
        with self.assertWarns(AmbiguousCommandWarning):
            trigger(AmbiguousCommandWarning("shadowed", code=FaultCode.AMBIGUOUS_COMMAND))

    def testTriggerPrintsWarningInShell(self):
        console = capture()
        with mock.patch.object(faults, "console", console):
            trigger(AmbiguousCommandWarning("shadowed", title="ambiguous command"), shell=True)
        self.assertIn("shadowed", console.file.getvalue())

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(object())

    def testFancyRendering(self):
        console = capture()
        console.print(UnknownOptionError("boom", title="unknown option", fancy=True, colorful=False))
        output = console.file.getvalue()
        self.assertIn("boom", output)
        self.assertIn("╭", output)


if __name__ == "__main__":
    unittest.main()
