"""
Tests for faults (errors, warnings, codes and trigger()).

This module verifies:
- str(fault) is the exact engine message and options carry the fault code.
- FaultCode.normalize() honors a __codes__ mapping in __main__.
- Rich rendering produces the header, message and hint.
- trigger() raises, exits or warns depending on the shell option.
- __replace__ merges options into a fresh instance of the same type.
"""
import io
import sys
import unittest
from unittest import TestCase

from rich.console import Console

from optline.faults import *


def render(fault):
    buffer = io.StringIO()
    Console(file=buffer, width=200, color_system=None).print(fault)
    return buffer.getvalue()


class FaultTest(TestCase):
    """
    Behavioral tests for CommandLineError subclasses.
    """

    def testMessageAndCode(self):
        fault = UnknownOptionError("unknown option: --name", input="--name")
        self.assertEqual(str(fault), "unknown option: --name")
        self.assertIs(fault.options["code"], FaultCode.UNKNOWN_OPTION)
        self.assertEqual(fault.options["input"], "--name")
        self.assertIsInstance(fault, CommandLineError)

    def testOptionsAreReadOnly(self):
        fault = InvalidOptionValueError("invalid option value: x")
        with self.assertRaises(TypeError):
            fault.options["code"] = 0

    def testEveryErrorHasItsOwnCode(self):
        codes = {
            cls.code for cls in (
                UnknownOptionError,
                MissingOptionNameError,
                FlagValueMixError,
                OptionRequiresValueError,
                OptionValueUnexpectedError,
                InvalidOptionValueError,
                PositionalArgNotAllowedError,
                RequiredOptionMissingError,
            )
        }
        self.assertEqual(len(codes), 8)
        self.assertTrue(all(isinstance(code, FaultCode) for code in codes))

    def testReplaceMergesOptions(self):
        fault = PositionalArgNotAllowedError("positional arg not allowed: x", hint="remove it")
        replaced = fault.__replace__(prog="tool", hint="drop it")
        self.assertIsNot(replaced, fault)
        self.assertIs(type(replaced), PositionalArgNotAllowedError)
        self.assertEqual(str(replaced), str(fault))
        self.assertEqual(replaced.options["prog"], "tool")
        self.assertEqual(replaced.options["hint"], "drop it")
        self.assertEqual(fault.options["hint"], "remove it")

    def testRendering(self):
        fault = MissingOptionNameError(
            "missing option name: --=x",
            title="missing option name",
            hint="write the option name before '='",
            prog="tool",
            colorful=False,
        )
        output = render(fault)
        self.assertIn("tool", output)
        self.assertIn(str(FaultCode.MISSING_OPTION_NAME.value), output)
        self.assertIn("Missing Option Name", output)
        self.assertIn("missing option name: --=x", output)
        self.assertIn("write the option name before '='", output)


class CodeTest(TestCase):
    """
    Behavioral tests for FaultCode.normalize().
    """

    def tearDown(self):
        main = sys.modules["__main__"]
        if hasattr(main, "__codes__"):
            del main.__codes__

    def testNumericByDefault(self):
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "11112")

    def testHostOverride(self):
        sys.modules["__main__"].__codes__ = {FaultCode.UNKNOWN_OPTION: "E-UNKNOWN"}
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "E-UNKNOWN")
        self.assertEqual(FaultCode.FLAG_VALUE_MIX.normalize(), "11114")


class TriggerTest(TestCase):
    """
    Behavioral tests for trigger().
    """

    def testRaisesWithoutShell(self):
        with self.assertRaises(FlagValueMixError) as context:
            trigger(FlagValueMixError("flag/argument mix disallowed: -ab=1"), shell=False, prog="tool")
        self.assertEqual(context.exception.options["prog"], "tool")

    def testExitsInShell(self):
        with self.assertRaises(SystemExit) as context:
            trigger(OptionRequiresValueError("option requires value: -c"), status=3, colorful=False)
        self.assertEqual(context.exception.code, 3)

    def testWarningGoesThroughWarnings(self):
        with self.assertWarns(DuplicatedPositionWarning) as context:
            trigger(DuplicatedPositionWarning("positional slot 1 is already taken"))
        self.assertEqual(str(context.warning), "positional slot 1 is already taken")
        self.assertIs(context.warning.options["code"], FaultCode.DUPLICATED_POSITION)

    def testRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))


if __name__ == "__main__":
    unittest.main()
