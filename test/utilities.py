# python
"""
Utilities tests (sentinel, naming helpers, dot-path setter).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from cacao.utils import (
    Unset,
    UnsetType,
    coalesce,
    rename,
    mirror,
    camelcase,
    spellings,
    strip_brackets,
    set_dotted,
)


class TestUnset(TestCase):

    def testUnsetIsFalsySingleton(self):
        self.assertFalse(Unset)
        self.assertIs(UnsetType(), Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testUnsetCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            class Other(UnsetType):
                pass

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, 1), 1)
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, 1))
        self.assertEqual(coalesce(0, 1), 0)


class TestHelpers(TestCase):

    def testRename(self):
        @rename("renamed")
        def original():
            pass
        self.assertEqual(original.__name__, "renamed")
        with self.assertRaises(TypeError):
            rename(1, "x")

    def testMirrorReturnsImmutableViews(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        with self.assertRaises(TypeError):
            holder.table["b"] = 2

    def testCamelcase(self):
        self.assertEqual(camelcase("clear-screen"), "clearScreen")
        self.assertEqual(camelcase("some-env.x-y"), "someEnv.x-y")
        self.assertEqual(camelcase("port"), "port")

    def testSpellings(self):
        self.assertEqual(spellings("clearScreen"), ("clearScreen", "clear-screen", "clear_screen"))
        self.assertEqual(spellings("port"), ("port",))

    def testStripBrackets(self):
        self.assertEqual(strip_brackets("-t, --type [type]"), "-t, --type")
        self.assertEqual(strip_brackets("rm <dir>"), "rm")

    def testSetDotted(self):
        options = {"a": 1}
        set_dotted(options, ["a", "b"], 2)
        set_dotted(options, ["a", "c"], 3)
        set_dotted(options, ["d"], 4)
        self.assertEqual(options, {"a": {"b": 2, "c": 3}, "d": 4})


if __name__ == "__main__":
    unittest.main()
